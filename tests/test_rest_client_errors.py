import pytest

from bitget_bridge.common.exceptions.errors import (
    RateLimitedError,
    TransportError,
    UpstreamError,
)
from bitget_bridge.core.dto.internal.common import RetryConfig
from bitget_bridge.core.types import ErrorCode
from tests.factory_builders import (
    FakeTransport,
    RecordingSleep,
    build_envelope,
    build_rest_client,
    build_spot_ticker,
)


@pytest.mark.asyncio
async def test_error_envelope_raises_upstream_error() -> None:
    transport = FakeTransport(build_envelope(None, code="40034", msg="Parameter verification failed"))
    client = build_rest_client(transport)

    with pytest.raises(UpstreamError) as exc_info:
        await client.get_candles("BTCUSDT", "1m")

    error = exc_info.value
    assert error.code == "40034"
    assert error.msg == "Parameter verification failed"
    assert str(error) == "Bitget API Error: 40034 - Parameter verification failed"


@pytest.mark.asyncio
async def test_malformed_envelope_is_transport_failure() -> None:
    client = build_rest_client(FakeTransport(["not", "an", "envelope"]))

    with pytest.raises(TransportError) as exc_info:
        await client.get_candles("BTCUSDT", "1m")
    assert exc_info.value.code == ErrorCode.NETWORK_ERROR


@pytest.mark.asyncio
async def test_retryable_upstream_code_is_retried() -> None:
    sleep = RecordingSleep()
    transport = FakeTransport(
        build_envelope(None, code="50001", msg="busy"),
        build_envelope([build_spot_ticker()]),
    )
    client = build_rest_client(
        transport, retry=RetryConfig(max_retries=2, base_delay=0.25), sleep=sleep
    )

    assert await client.get_price("BTCUSDT") == "43250.5"
    assert len(transport.calls) == 2
    assert sleep.delays == [0.25]


@pytest.mark.asyncio
async def test_connection_failure_is_retried_then_surfaces() -> None:
    reset = TransportError("reset", code=ErrorCode.ECONNRESET)
    transport = FakeTransport(reset)
    client = build_rest_client(transport, retry=RetryConfig(max_retries=2), sleep=RecordingSleep())

    with pytest.raises(TransportError) as exc_info:
        await client.get_order_book("BTCUSDT")

    assert exc_info.value.code == ErrorCode.ECONNRESET
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_rate_limit_is_checked_before_io() -> None:
    transport = FakeTransport(build_envelope([]))
    client = build_rest_client(transport, max_requests=1)

    await client.get_candles("BTCUSDT", "1m")
    with pytest.raises(RateLimitedError):
        await client.get_candles("BTCUSDT", "1m")

    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_rate_limit_applies_to_every_retry_attempt() -> None:
    transport = FakeTransport(build_envelope(None, code="50002", msg="busy"))
    client = build_rest_client(
        transport,
        max_requests=2,
        retry=RetryConfig(max_retries=3, retryable_errors=frozenset({"50002"})),
        sleep=RecordingSleep(),
    )

    # 세 번째 시도는 로컬 한도에 걸리고, RATE_LIMITED 는 이 설정에서 재시도 대상이 아님
    with pytest.raises(RateLimitedError):
        await client.get_candles("BTCUSDT", "1m")
    assert len(transport.calls) == 2
