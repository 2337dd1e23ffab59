"""업스트림 API 방언 공통 인터페이스

Strategy Pattern으로 현물/선물 요청 구성과 응답 매핑을 분리합니다.
심볼 분류는 클라이언트 진입점에서 한 번만 수행하고, 이후에는 선택된 방언으로 정적 디스패치합니다.
두 방언은 매핑 함수를 공유하지 않습니다 (공통 값 정규화 헬퍼만 공유).
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from bitget_bridge.core.dto.io.market import CandleDTO, OrderBookDTO, TickerDTO
from bitget_bridge.core.dto.io.trading import OrderDTO, OrderRequestDTO
from bitget_bridge.core.dto.io._base import as_int, as_str
from bitget_bridge.core.types import (
    OrderStatus,
    OrderType,
    QueryParams,
    RawPayload,
    TimeInForce,
)

HttpMethod = Literal["GET", "POST"]


@dataclass(frozen=True, slots=True)
class RequestSpec:
    """방언이 구성한 단일 업스트림 호출 명세"""

    method: HttpMethod
    path: str
    params: QueryParams = field(default_factory=dict)
    private: bool = False


_STATUS_TABLE: dict[str, OrderStatus] = {
    "live": OrderStatus.OPEN,
    "new": OrderStatus.OPEN,
    "init": OrderStatus.OPEN,
    "open": OrderStatus.OPEN,
    "partially_fill": OrderStatus.PARTIALLY_FILLED,
    "partially_filled": OrderStatus.PARTIALLY_FILLED,
    "full_fill": OrderStatus.FILLED,
    "filled": OrderStatus.FILLED,
    "cancelled": OrderStatus.CANCELLED,
    "canceled": OrderStatus.CANCELLED,
}


def normalize_order_status(raw: Any) -> OrderStatus:
    """업스트림 상태 문자열 → 4가지 정규 상태 (미확인 값은 open)"""
    return _STATUS_TABLE.get(str(raw or "").lower(), OrderStatus.OPEN)


def now_ms() -> int:
    return int(time.time() * 1000)


def to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(as_str(value))
    except InvalidOperation:
        return Decimal(0)


def decimal_str(value: Decimal) -> str:
    """지수 표기 없이 문자열화 (1E+1 → 10)"""
    return format(value, "f")


def default_force(order: OrderRequestDTO) -> str | None:
    """지정가 주문에 time-in-force가 없으면 GTC, v2 표기(소문자)로 반환"""
    if order.time_in_force:
        return str(order.time_in_force).lower()
    if order.type == OrderType.LIMIT:
        return TimeInForce.GTC.lower()
    return None


def placed_order(order: OrderRequestDTO, data: RawPayload | None) -> OrderDTO:
    """주문 접수 응답 → 최초 Order 스냅샷 (상태 open, 체결 0)"""
    data = data or {}
    timestamp = now_ms()
    return OrderDTO(
        order_id=as_str(data.get("orderId"), ""),
        client_order_id=data.get("clientOid") or order.client_order_id,
        symbol=order.symbol,
        side=order.side,
        type=order.type,
        quantity=order.quantity,
        price=order.price,
        status=OrderStatus.OPEN,
        filled="0",
        remaining=order.quantity,
        timestamp=timestamp,
        update_time=timestamp,
    )


def candle_rows(symbol: str, rows: Any) -> list[CandleDTO]:
    """``[ts, open, high, low, close, volume, ...]`` 행 목록 → Candle 목록"""
    if not rows:
        return []
    return [
        CandleDTO(
            symbol=symbol,
            timestamp=as_int(row[0], 0),
            open=as_str(row[1]),
            high=as_str(row[2]),
            low=as_str(row[3]),
            close=as_str(row[4]),
            volume=as_str(row[5]),
        )
        for row in rows
    ]


class MarketDialect(ABC):
    """현물/선물 공통 능력 집합 (시세, 주문 접수/취소/조회)"""

    @abstractmethod
    def ticker_request(self, symbol: str) -> RequestSpec:
        """가격/티커 조회 요청"""

    @abstractmethod
    def parse_price(self, symbol: str, data: Any) -> str | None:
        """응답에서 최종 체결가 추출 (없으면 None → NotFound)"""

    @abstractmethod
    def parse_ticker(self, symbol: str, data: Any) -> TickerDTO | None:
        """응답 → Ticker (없으면 None → NotFound)"""

    @abstractmethod
    def orderbook_request(self, symbol: str, depth: int) -> RequestSpec: ...

    @abstractmethod
    def parse_orderbook(self, symbol: str, data: Any) -> OrderBookDTO: ...

    @abstractmethod
    def candles_request(self, symbol: str, interval: str, limit: int) -> RequestSpec: ...

    @abstractmethod
    def parse_candles(self, symbol: str, data: Any) -> list[CandleDTO]: ...

    @abstractmethod
    def place_order_request(self, order: OrderRequestDTO) -> RequestSpec: ...

    @abstractmethod
    def cancel_order_request(self, order_id: str, symbol: str) -> RequestSpec: ...

    @abstractmethod
    def orders_request(self, symbol: str | None) -> RequestSpec: ...

    @abstractmethod
    def parse_orders(self, symbol: str | None, data: Any) -> list[OrderDTO]: ...
