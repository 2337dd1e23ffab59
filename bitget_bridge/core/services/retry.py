from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.dto.internal.common import RetryConfig
from bitget_bridge.core.services.backoff import compute_retry_delay
from bitget_bridge.core.types import CONNECTION_FAILURE_CODES, AsyncOperation

logger = PipelineLogger.get_logger("retry", "services")

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """분류 기반 지수 백오프 재시도 실행기

    - 첫 시도 이후 최대 max_retries 회 재시도
    - 재시도 직전에만 대기 (첫 시도 전 대기 없음)
    - 에러를 변형하거나 삼키지 않고, 재시도 여부만 결정한다
    - 호출 간 공유 상태 없음
    """

    def __init__(self, config: RetryConfig | None = None, *, sleep: Sleep = asyncio.sleep) -> None:
        self.config = config or RetryConfig()
        self._sleep = sleep

    def is_retryable(self, error: BaseException) -> bool:
        """에러 code 또는 클래스 이름이 재시도 집합에 있거나, 저수준 연결 실패이면 True"""
        code = getattr(error, "code", None)
        if isinstance(code, str):
            if code in self.config.retryable_errors or code in CONNECTION_FAILURE_CODES:
                return True
        return type(error).__name__ in self.config.retryable_errors

    async def execute(
        self, operation: AsyncOperation[T], context: str | None = None
    ) -> T:
        """operation(인자 없는 코루틴 팩토리)을 재시도 정책에 따라 실행한다."""
        max_retries = self.config.max_retries
        attempt = 0
        while True:
            if attempt > 0:
                delay = compute_retry_delay(self.config, attempt)
                logger.info(
                    f"Retrying operation (attempt {attempt}/{max_retries}) after {delay:.3f}s",
                    context=context,
                    attempt=attempt,
                    delay=delay,
                )
                await self._sleep(delay)

            try:
                result = await operation()
            except Exception as error:
                retryable = self.is_retryable(error)
                logger.warning(
                    f"Operation failed on attempt {attempt + 1}",
                    context=context,
                    attempt=attempt + 1,
                    error=str(error),
                    error_code=getattr(error, "code", None),
                    is_retryable=retryable,
                )
                if attempt >= max_retries or not retryable:
                    logger.error(
                        f"Operation failed after {attempt + 1} attempts",
                        context=context,
                        total_attempts=attempt + 1,
                        final_error=str(error),
                    )
                    raise
                attempt += 1
                continue

            if attempt > 0:
                logger.info(f"Operation succeeded after {attempt} retries", context=context)
            return result
