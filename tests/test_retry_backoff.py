import pytest

from bitget_bridge.common.exceptions.errors import (
    RateLimitedError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from bitget_bridge.core.dto.internal.common import ConnectionPolicyDomain, RetryConfig
from bitget_bridge.core.services.backoff import compute_reconnect_delay, compute_retry_delay
from bitget_bridge.core.services.retry import RetryExecutor
from bitget_bridge.core.types import ErrorCode
from tests.factory_builders import RecordingSleep


class _FlakyOperation:
    def __init__(self, *errors: Exception, result: str = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def test_retry_delay_is_exponential_and_capped() -> None:
    config = RetryConfig(base_delay=1.0, backoff_multiplier=2.0, max_delay=5.0)

    assert [compute_retry_delay(config, n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_reconnect_delay_is_fixed_interval() -> None:
    policy = ConnectionPolicyDomain(reconnect_interval=5.0)
    assert compute_reconnect_delay(policy) == 5.0
    assert compute_reconnect_delay(ConnectionPolicyDomain(reconnect_interval=-1.0)) == 0.0


@pytest.mark.asyncio
async def test_retryable_error_is_retried_with_backoff() -> None:
    sleep = RecordingSleep()
    executor = RetryExecutor(RetryConfig(max_retries=3, base_delay=1.0), sleep=sleep)
    operation = _FlakyOperation(UpstreamError("50001", "busy"), UpstreamError("40014", "slow down"))

    assert await executor.execute(operation, context="test") == "ok"
    assert operation.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_no_sleep_before_first_attempt() -> None:
    sleep = RecordingSleep()
    executor = RetryExecutor(RetryConfig(), sleep=sleep)

    assert await executor.execute(_FlakyOperation()) == "ok"
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_unchanged() -> None:
    sleep = RecordingSleep()
    executor = RetryExecutor(RetryConfig(max_retries=5), sleep=sleep)
    error = UpstreamError("40034", "param error")
    operation = _FlakyOperation(error)

    with pytest.raises(UpstreamError) as exc_info:
        await executor.execute(operation)

    assert exc_info.value is error
    assert operation.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_gives_up_after_max_retries_with_last_error() -> None:
    executor = RetryExecutor(RetryConfig(max_retries=2), sleep=RecordingSleep())
    last = TransportError("reset", code=ErrorCode.ECONNRESET)
    operation = _FlakyOperation(
        TransportError("reset", code=ErrorCode.ECONNRESET),
        TransportError("reset", code=ErrorCode.ECONNRESET),
        last,
    )

    with pytest.raises(TransportError) as exc_info:
        await executor.execute(operation)

    assert exc_info.value is last
    assert operation.calls == 3


def test_retry_classification() -> None:
    executor = RetryExecutor(RetryConfig(retryable_errors=frozenset({"50001", "CustomError"})))

    class CustomError(Exception):
        pass

    assert executor.is_retryable(UpstreamError("50001", "busy"))
    # 저수준 연결 실패는 설정과 무관하게 재시도
    assert executor.is_retryable(TransportError("refused", code=ErrorCode.ECONNREFUSED))
    # 클래스 이름 매칭
    assert executor.is_retryable(CustomError())
    assert not executor.is_retryable(RateLimitedError())
    assert not executor.is_retryable(ValidationError("bad input"))


def test_default_config_retries_local_rate_limit() -> None:
    assert RetryExecutor().is_retryable(RateLimitedError())
