import pytest

from bitget_bridge.common.events import EventBus, StreamConnected, StreamDisconnected, StreamMessage
from bitget_bridge.core.dto.internal.subscription import SubscriptionKey


def _message(inst_id: str = "BTCUSDT") -> StreamMessage:
    return StreamMessage(
        action="update",
        arg={"instType": "SPOT", "channel": "ticker", "instId": inst_id},
        data=[],
        ts=1,
    )


@pytest.mark.asyncio
async def test_sync_and_async_handlers_receive_events_by_type() -> None:
    bus = EventBus()
    received: list[object] = []

    async def async_handler(event: StreamConnected) -> None:
        received.append(("async", event))

    bus.on(StreamConnected, lambda event: received.append(("sync", event)))
    bus.on(StreamConnected, async_handler)

    event = StreamConnected(url="wss://x", replayed=0)
    await bus.emit(event)
    await bus.emit(StreamDisconnected(code=None, reason=""))

    assert received == [("sync", event), ("async", event)]


@pytest.mark.asyncio
async def test_channel_handlers_match_subscription_key() -> None:
    bus = EventBus()
    received: list[StreamMessage] = []
    key = SubscriptionKey(inst_type="SPOT", channel="ticker", inst_id="BTCUSDT")
    bus.on_channel(key, received.append)

    await bus.emit_channel(_message().key, _message())
    await bus.emit_channel(_message("ETHUSDT").key, _message("ETHUSDT"))

    assert len(received) == 1

    bus.off_channel("SPOT:ticker:BTCUSDT", received.append)
    await bus.emit_channel(key, _message())
    assert len(received) == 1


@pytest.mark.asyncio
async def test_handler_failure_is_isolated() -> None:
    bus = EventBus()
    received: list[object] = []

    def broken(event: object) -> None:
        raise RuntimeError("boom")

    bus.on(StreamConnected, broken)
    bus.on(StreamConnected, received.append)

    await bus.emit(StreamConnected(url="wss://x"))

    assert len(received) == 1


@pytest.mark.asyncio
async def test_off_and_clear() -> None:
    bus = EventBus()
    received: list[object] = []
    bus.on(StreamConnected, received.append)
    bus.off(StreamConnected, received.append)
    await bus.emit(StreamConnected(url="wss://x"))

    bus.on(StreamConnected, received.append)
    bus.clear()
    await bus.emit(StreamConnected(url="wss://x"))

    assert received == []
