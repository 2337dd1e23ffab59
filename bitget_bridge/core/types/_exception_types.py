"""트라이/캐치 블록 및 재시도 분류에서 사용할 예외/에러 코드 타입 모듈.

광범위한 Exception 사용을 지양하고, 의도한 예외만 명시적으로 처리하기 위해 사용합니다.
"""

from enum import StrEnum
from typing import Any, Awaitable, Callable, Final, TypeAlias, TypeVar

import websockets

T = TypeVar("T")

# Callables
AsyncOperation = Callable[[], Awaitable[T]]
EventHandler = Callable[[Any], Any]


class ErrorCode(StrEnum):
    """로컬에서 부여하는 에러 코드

    업스트림 에러는 봉투(envelope)의 code 문자열을 그대로 사용합니다.
    """

    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    # 저수준 연결 실패 (재시도 대상 고정 집합)
    ECONNRESET = "ECONNRESET"
    ENOTFOUND = "ENOTFOUND"
    ECONNREFUSED = "ECONNREFUSED"
    ETIMEDOUT = "ETIMEDOUT"


# 설정과 무관하게 항상 재시도하는 저수준 연결 실패 코드
CONNECTION_FAILURE_CODES: Final[frozenset[str]] = frozenset(
    {
        ErrorCode.ECONNRESET,
        ErrorCode.ENOTFOUND,
        ErrorCode.ECONNREFUSED,
        ErrorCode.ETIMEDOUT,
    }
)

# 기본 재시도 대상 코드
# - 40014: rate limit exceeded
# - 50001~50004: 업스트림 서버 일시 장애
DEFAULT_RETRYABLE_CODES: Final[tuple[str, ...]] = (
    "40014",
    "50001",
    "50002",
    "50003",
    "50004",
    ErrorCode.NETWORK_ERROR,
    ErrorCode.TIMEOUT_ERROR,
    ErrorCode.RATE_LIMITED,
)

# 웹소켓 연결/수신 단계에서 전송 계층 실패로 취급하는 예외
SOCKET_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    websockets.ConnectionClosed,
    websockets.InvalidHandshake,
    websockets.WebSocketException,
    ConnectionError,
    OSError,
)

# 프레임 파싱 실패 (로깅 후 폐기)
FRAME_PARSE_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    ValueError,
    TypeError,
    UnicodeDecodeError,
)

ExceptionGroup: TypeAlias = type[BaseException] | tuple[type[BaseException], ...]
RuleKind: TypeAlias = tuple[str, ...]

__all__ = [
    "AsyncOperation",
    "EventHandler",
    "ErrorCode",
    "CONNECTION_FAILURE_CODES",
    "DEFAULT_RETRYABLE_CODES",
    "SOCKET_EXCEPTIONS",
    "FRAME_PARSE_EXCEPTIONS",
    "ExceptionGroup",
    "RuleKind",
]
