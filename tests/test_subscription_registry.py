import orjson
import pytest

from bitget_bridge.core.connection.subscription_manager import SubscriptionRegistry
from bitget_bridge.core.dto.internal.subscription import SubscriptionKey
from tests.factory_builders import FakeWebSocket


def _key(channel: str = "ticker", inst_id: str = "BTCUSDT", inst_type: str = "SPOT") -> SubscriptionKey:
    return SubscriptionKey(inst_type=inst_type, channel=channel, inst_id=inst_id)


def test_key_round_trips_through_canonical_string() -> None:
    key = SubscriptionKey.parse("USDT-FUTURES:books5:BTCUSDT")

    assert key == _key("books5", "BTCUSDT", "USDT-FUTURES")
    assert str(key) == "USDT-FUTURES:books5:BTCUSDT"
    assert SubscriptionKey.from_arg(key.to_arg()) == key


@pytest.mark.parametrize("raw", ["", "SPOT:ticker", "SPOT::BTCUSDT", "a:b:c:d"])
def test_invalid_key_strings_are_rejected(raw: str) -> None:
    with pytest.raises(ValueError):
        SubscriptionKey.parse(raw)


def test_registry_deduplicates_and_keeps_insertion_order() -> None:
    registry = SubscriptionRegistry()

    assert registry.add(_key("ticker")) is True
    assert registry.add(_key("books")) is True
    assert registry.add(_key("ticker")) is False

    assert [k.channel for k in registry.keys()] == ["ticker", "books"]
    assert _key("books") in registry
    assert registry.remove(_key("books")) is True
    assert registry.remove(_key("books")) is False
    assert len(registry) == 1


def test_wire_message_shape() -> None:
    message = SubscriptionRegistry.build_message("unsubscribe", [_key()])

    assert orjson.loads(message) == {
        "op": "unsubscribe",
        "args": [{"instType": "SPOT", "channel": "ticker", "instId": "BTCUSDT"}],
    }


@pytest.mark.asyncio
async def test_replay_sends_one_frame_per_key() -> None:
    registry = SubscriptionRegistry()
    registry.add(_key("ticker"))
    registry.add(_key("candle1m"))
    websocket = FakeWebSocket()

    assert await registry.replay(websocket) == 2

    frames = websocket.sent_json
    assert [f["op"] for f in frames] == ["subscribe", "subscribe"]
    assert [f["args"][0]["channel"] for f in frames] == ["ticker", "candle1m"]
    assert all(len(f["args"]) == 1 for f in frames)


@pytest.mark.asyncio
async def test_send_failure_propagates() -> None:
    registry = SubscriptionRegistry()
    websocket = FakeWebSocket()
    websocket.fail_sends = True

    with pytest.raises(ConnectionError):
        await registry.send(websocket, "subscribe", _key())
