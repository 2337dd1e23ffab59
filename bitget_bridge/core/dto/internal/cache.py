from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class CacheEntry(Generic[T]):
    """캐시 항목 (값 + 절대 만료 시각)

    만료 시각 이후 관측된 항목은 없는 것으로 취급한다.
    """

    value: T
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class CacheTTLSpec:
    """데이터 종류별 기본 TTL(초) 묶음

    변동성이 큰 데이터일수록 짧게 둔다.
    """

    price: float = 5.0
    ticker: float = 10.0
    orderbook: float = 2.0
    candles: float = 60.0
    balance: float = 30.0
    positions: float = 15.0

    def as_mapping(self) -> dict[str, float]:
        return {
            "price": self.price,
            "ticker": self.ticker,
            "orderbook": self.orderbook,
            "candles": self.candles,
            "balance": self.balance,
            "positions": self.positions,
        }
