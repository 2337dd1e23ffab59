"""
REST 어댑터 앞단의 캐시 게이트웨이

데이터 종류별 이름 붙은 캐시(price, ticker, orderbook, candles, balance, positions)를
read-through 방식으로 사용합니다. 주문은 캐시하지 않습니다.

주문 접수/취소, 레버리지 변경이 성공하면 balance/positions 캐시를 무효화합니다.
"""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.dto.io.market import CandleDTO, OrderBookDTO, TickerDTO
from bitget_bridge.core.dto.io.trading import (
    BalanceDTO,
    MarginAccountDTO,
    OrderDTO,
    OrderRequestDTO,
    PositionDTO,
)
from bitget_bridge.core.rest.client import BitgetRestClient
from bitget_bridge.core.types import OrderStatus, PositionSide
from bitget_bridge.infra.cache.cache_store import CacheManager

logger = PipelineLogger.get_logger("gateway", "application")

T = TypeVar("T")


def _detached(value: T) -> T:
    """리스트 결과는 얕은 복사본으로 주고받는다 (DTO 자체는 frozen)"""
    if isinstance(value, list):
        return list(value)  # type: ignore[return-value]
    return value


ACCOUNT_CACHES = ("balance", "positions")


class BitgetGateway:
    """캐시 확인 후 REST 어댑터 호출"""

    def __init__(self, client: BitgetRestClient, caches: CacheManager) -> None:
        self.client = client
        self.caches = caches

    async def _read_through(
        self, cache_name: str, key: str, loader: Callable[[], Awaitable[T]]
    ) -> T:
        cache = self.caches[cache_name]
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Cache hit", cache=cache_name, key=key)
            return _detached(cached)

        logger.debug("Cache miss", cache=cache_name, key=key)
        value = await loader()
        cache.set(key, _detached(value))
        return value

    def _invalidate_account(self) -> None:
        for name in ACCOUNT_CACHES:
            self.caches[name].clear()
        logger.debug("Account caches invalidated", caches=list(ACCOUNT_CACHES))

    # ── 시세 ──

    async def get_price(self, symbol: str) -> str:
        return await self._read_through(
            "price", symbol, lambda: self.client.get_price(symbol)
        )

    async def get_ticker(self, symbol: str) -> TickerDTO:
        return await self._read_through(
            "ticker", symbol, lambda: self.client.get_ticker(symbol)
        )

    async def get_order_book(self, symbol: str, depth: int = 20) -> OrderBookDTO:
        return await self._read_through(
            "orderbook",
            f"{symbol}:{depth}",
            lambda: self.client.get_order_book(symbol, depth),
        )

    async def get_candles(
        self, symbol: str, interval: str, limit: int = 100
    ) -> list[CandleDTO]:
        return await self._read_through(
            "candles",
            f"{symbol}:{interval}:{limit}",
            lambda: self.client.get_candles(symbol, interval, limit),
        )

    # ── 계정 ──

    async def get_balance(self, asset: str | None = None) -> list[BalanceDTO]:
        return await self._read_through(
            "balance", asset or "*", lambda: self.client.get_balance(asset)
        )

    async def get_positions(self, symbol: str | None = None) -> list[PositionDTO]:
        return await self._read_through(
            "positions", symbol or "*", lambda: self.client.get_positions(symbol)
        )

    async def get_margin_info(self, symbol: str | None = None) -> list[MarginAccountDTO]:
        return await self.client.get_margin_info(symbol)

    async def get_orders(
        self, symbol: str | None = None, status: OrderStatus | str | None = None
    ) -> list[OrderDTO]:
        return await self.client.get_orders(symbol, status)

    # ── 상태 변경 (성공 시 계정 캐시 무효화) ──

    async def place_order(self, order: OrderRequestDTO) -> OrderDTO:
        placed = await self.client.place_order(order)
        self._invalidate_account()
        return placed

    async def cancel_order(self, order_id: str, symbol: str) -> bool:
        cancelled = await self.client.cancel_order(order_id, symbol)
        self._invalidate_account()
        return cancelled

    async def set_leverage(
        self,
        symbol: str,
        leverage: int,
        hold_side: PositionSide | str = PositionSide.LONG,
    ) -> bool:
        updated = await self.client.set_leverage(symbol, leverage, hold_side)
        self._invalidate_account()
        return updated
