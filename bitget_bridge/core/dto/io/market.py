"""시세 스냅샷 DTO (Ticker / OrderBook / Candle)

모든 가격/수량은 정밀도 보존을 위해 문자열로 유지한다.
호가(bids/asks)는 업스트림 순서(최우선 호가 먼저)를 그대로 유지하며 재정렬하지 않는다.
"""

from __future__ import annotations

from pydantic import Field

from bitget_bridge.core.dto.io._base import BaseIOModelDTO

PriceLevel = tuple[str, str]


class TickerDTO(BaseIOModelDTO):
    """24시간 티커 스냅샷"""

    symbol: str
    last: str
    bid: str
    ask: str
    high_24h: str = Field(alias="high24h")
    low_24h: str = Field(alias="low24h")
    volume_24h: str = Field(alias="volume24h")
    change_24h: str = Field(alias="change24h")
    change_percent_24h: str = Field(alias="changePercent24h")
    timestamp: int


class OrderBookDTO(BaseIOModelDTO):
    """호가 스냅샷 ([price, quantity] 쌍의 순서 보존 리스트)"""

    symbol: str
    bids: list[PriceLevel] = Field(default_factory=list)
    asks: list[PriceLevel] = Field(default_factory=list)
    timestamp: int

    @property
    def best_bid(self) -> PriceLevel | None:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> PriceLevel | None:
        return self.asks[0] if self.asks else None


class CandleDTO(BaseIOModelDTO):
    symbol: str
    timestamp: int
    open: str
    high: str
    low: str
    close: str
    volume: str
