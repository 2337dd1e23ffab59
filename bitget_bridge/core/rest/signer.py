from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Callable

from bitget_bridge.common.exceptions.errors import RateLimitedError
from bitget_bridge.common.logger import PipelineLogger

logger = PipelineLogger.get_logger("signer", "rest")


def current_timestamp_ms() -> str:
    """서명/헤더용 epoch 밀리초 문자열"""
    return str(int(time.time() * 1000))


class RequestSigner:
    """요청 서명기

    base64(HMAC-SHA256(secret, timestamp + METHOD + path + body))
    """

    def __init__(self, secret_key: str) -> None:
        self._secret = secret_key.encode("utf-8")

    def sign(self, timestamp: str, method: str, path: str, body: str = "") -> str:
        message = f"{timestamp}{method.upper()}{path}{body}"
        digest = hmac.new(self._secret, message.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")


class RateLimiter:
    """슬라이딩 윈도우 요청 수 제한 (동기 점검, 백그라운드 타이머 없음)

    윈도우 시작 후 window 초가 지나면 호출 시점에 카운터를 0으로 되돌린다.
    한도를 넘는 호출은 카운터를 올리지 않고 RateLimitedError로 실패한다.
    단일 이벤트 루프 안에서만 호출되므로 잠금 없이 read-then-increment 한다.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._count = 0
        self._window_start = clock()

    def check(self) -> None:
        now = self._clock()
        if now - self._window_start >= self.window:
            self._window_start = now
            self._count = 0

        if self._count >= self.max_requests:
            logger.warning(
                "Rate limit exceeded",
                max_requests=self.max_requests,
                window=self.window,
            )
            raise RateLimitedError()

        self._count += 1

    @property
    def remaining(self) -> int:
        return max(0, self.max_requests - self._count)
