from bitget_bridge.core.types._common_types import (
    DEFAULT_MARGIN_COIN,
    FUTURES_SUFFIX,
    INST_TYPE_COIN_FUTURES,
    INST_TYPE_DMCBL,
    INST_TYPE_SPOT,
    INST_TYPE_UMCBL,
    INST_TYPE_USDT_FUTURES,
    KNOWN_INST_TYPES,
    PRODUCT_TYPE_USDT_FUTURES,
    SUCCESS_CODE,
    ConnectionState,
    IntervalDialect,
    MarginMode,
    MarketKind,
    OrderSide,
    OrderStatus,
    OrderType,
    PositionSide,
    QueryParams,
    RawPayload,
    TimeInForce,
)
from bitget_bridge.core.types._exception_types import (
    CONNECTION_FAILURE_CODES,
    DEFAULT_RETRYABLE_CODES,
    FRAME_PARSE_EXCEPTIONS,
    SOCKET_EXCEPTIONS,
    AsyncOperation,
    ErrorCode,
    EventHandler,
    ExceptionGroup,
    RuleKind,
)

__all__ = [
    # _common_types
    "MarketKind",
    "IntervalDialect",
    "OrderSide",
    "OrderType",
    "TimeInForce",
    "OrderStatus",
    "PositionSide",
    "MarginMode",
    "ConnectionState",
    "INST_TYPE_SPOT",
    "INST_TYPE_UMCBL",
    "INST_TYPE_DMCBL",
    "INST_TYPE_USDT_FUTURES",
    "INST_TYPE_COIN_FUTURES",
    "KNOWN_INST_TYPES",
    "FUTURES_SUFFIX",
    "PRODUCT_TYPE_USDT_FUTURES",
    "DEFAULT_MARGIN_COIN",
    "SUCCESS_CODE",
    "RawPayload",
    "QueryParams",
    # _exception_types
    "ErrorCode",
    "CONNECTION_FAILURE_CODES",
    "DEFAULT_RETRYABLE_CODES",
    "SOCKET_EXCEPTIONS",
    "FRAME_PARSE_EXCEPTIONS",
    "AsyncOperation",
    "EventHandler",
    "ExceptionGroup",
    "RuleKind",
]
