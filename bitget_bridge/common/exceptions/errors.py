"""클라이언트 에러 계층

모든 에러는 문자열 `code`를 가지며, 재시도 분류기(RetryExecutor)가 이 값을 사용합니다.
"""

from __future__ import annotations

from bitget_bridge.core.types import ErrorCode


class BitgetBridgeError(Exception):
    """기본 예외"""

    code: str = "UNKNOWN_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class RateLimitedError(BitgetBridgeError):
    """로컬 사전 점검(슬라이딩 윈도우)에서 요청 한도 초과"""

    code = ErrorCode.RATE_LIMITED

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message)


class UpstreamError(BitgetBridgeError):
    """응답 봉투의 code가 성공 값이 아닐 때"""

    def __init__(self, code: str, msg: str) -> None:
        super().__init__(f"Bitget API Error: {code} - {msg}", code=code)
        self.msg = msg


class TransportError(BitgetBridgeError):
    """연결 단계 실패 (reset, refused, unresolved, timed out 등)"""

    code = ErrorCode.NETWORK_ERROR


class ConnectTimeoutError(BitgetBridgeError):
    """스트리밍 연결이 제한 시간 안에 열리지 않음"""

    code = ErrorCode.TIMEOUT_ERROR

    def __init__(self, message: str = "WebSocket connection timeout") -> None:
        super().__init__(message)


class ValidationError(BitgetBridgeError):
    """호출자 입력 오류 (예: 가격 없는 지정가 주문)"""

    code = ErrorCode.VALIDATION_ERROR


class NotFoundError(BitgetBridgeError):
    """응답에 요청한 심볼/가격이 없음"""

    code = ErrorCode.NOT_FOUND


__all__ = [
    "BitgetBridgeError",
    "RateLimitedError",
    "UpstreamError",
    "TransportError",
    "ConnectTimeoutError",
    "ValidationError",
    "NotFoundError",
]
