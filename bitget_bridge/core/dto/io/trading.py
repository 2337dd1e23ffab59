"""주문/계정 DTO

Order, Position, Balance는 업스트림 재조회로만 갱신되는 읽기 전용 스냅샷이다.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from bitget_bridge.core.dto.io._base import BaseIOModelDTO
from bitget_bridge.core.types import (
    DEFAULT_MARGIN_COIN,
    MarginMode,
    OrderSide,
    OrderStatus,
    OrderType,
    PositionSide,
    TimeInForce,
)


class OrderRequestDTO(BaseIOModelDTO):
    """주문 요청

    지정가(limit) 주문의 price 필수 여부는 어댑터 경계에서 ValidationError로 검사한다.
    """

    symbol: str = Field(min_length=1)
    side: OrderSide
    type: OrderType
    quantity: str = Field(min_length=1)
    price: str | None = None
    time_in_force: TimeInForce | None = None
    client_order_id: str | None = None
    reduce_only: bool | None = None
    margin_mode: MarginMode = MarginMode.CROSSED
    margin_coin: str = DEFAULT_MARGIN_COIN


class OrderDTO(BaseIOModelDTO):
    order_id: str
    client_order_id: str | None = None
    symbol: str
    side: OrderSide
    type: OrderType
    quantity: str
    price: str | None = None
    status: OrderStatus
    filled: str = "0"
    remaining: str = "0"
    timestamp: int
    update_time: int


class BalanceDTO(BaseIOModelDTO):
    asset: str
    free: str
    locked: str
    total: str


class PositionDTO(BaseIOModelDTO):
    symbol: str
    side: PositionSide
    size: str
    entry_price: str
    mark_price: str
    pnl: str
    pnl_percent: str
    margin: str
    leverage: str
    timestamp: int


class MarginAccountDTO(BaseIOModelDTO):
    """선물 증거금 계정 요약 (원본 필드는 raw에 보존)"""

    margin_coin: str
    available: str
    locked: str
    account_equity: str
    usdt_equity: str
    crossed_max_available: str
    raw: dict[str, Any] = Field(default_factory=dict)
