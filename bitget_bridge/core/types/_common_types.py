from __future__ import annotations

from enum import StrEnum
from typing import Any, Final, TypeAlias


class MarketKind(StrEnum):
    """심볼 분류 (현물 / 선물)"""

    SPOT = "spot"
    FUTURES = "futures"


class IntervalDialect(StrEnum):
    """캔들 간격 문자열 방언"""

    SPOT = "spot"
    FUTURES = "futures"


class OrderSide(StrEnum):
    BUY = "buy"
    SELL = "sell"


class OrderType(StrEnum):
    MARKET = "market"
    LIMIT = "limit"


class TimeInForce(StrEnum):
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


class OrderStatus(StrEnum):
    """정규화된 주문 상태 (업스트림 상태 문자열은 이 4가지로 매핑)"""

    OPEN = "open"
    FILLED = "filled"
    CANCELLED = "cancelled"
    PARTIALLY_FILLED = "partially_filled"


class PositionSide(StrEnum):
    LONG = "long"
    SHORT = "short"


class MarginMode(StrEnum):
    CROSSED = "crossed"
    ISOLATED = "isolated"


class ConnectionState(StrEnum):
    """스트리밍 연결 상태 머신

    Idle → Connecting → Connected → Disconnected → (Reconnecting → Connecting)*
    종료 상태: Stopped (명시적 disconnect 또는 재연결 한도 소진)
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    STOPPED = "stopped"


# 스트리밍 구독 instType (v1 표기 + v2 표기)
INST_TYPE_SPOT: Final[str] = "SPOT"
INST_TYPE_UMCBL: Final[str] = "UMCBL"
INST_TYPE_DMCBL: Final[str] = "DMCBL"
INST_TYPE_USDT_FUTURES: Final[str] = "USDT-FUTURES"
INST_TYPE_COIN_FUTURES: Final[str] = "COIN-FUTURES"
KNOWN_INST_TYPES: Final[frozenset[str]] = frozenset(
    {
        INST_TYPE_SPOT,
        INST_TYPE_UMCBL,
        INST_TYPE_DMCBL,
        INST_TYPE_USDT_FUTURES,
        INST_TYPE_COIN_FUTURES,
    }
)

# 업스트림 상수
FUTURES_SUFFIX: Final[str] = "_UMCBL"
PRODUCT_TYPE_USDT_FUTURES: Final[str] = "USDT-FUTURES"
DEFAULT_MARGIN_COIN: Final[str] = "USDT"
SUCCESS_CODE: Final[str] = "00000"

# 업스트림 응답/요청 원본 (dict 그대로)
RawPayload: TypeAlias = dict[str, Any]
QueryParams: TypeAlias = dict[str, Any]
