import pytest

from bitget_bridge.common.exceptions.errors import NotFoundError
from tests.factory_builders import (
    FakeTransport,
    build_envelope,
    build_futures_ticker,
    build_rest_client,
    build_spot_ticker,
)

BASE = "https://api.bitget.test"


@pytest.mark.asyncio
async def test_spot_price_scans_ticker_list() -> None:
    transport = FakeTransport(
        build_envelope([build_spot_ticker(symbol="ETHUSDT", close="2300"), build_spot_ticker()])
    )
    client = build_rest_client(transport)

    assert await client.get_price("BTCUSDT") == "43250.5"

    call = transport.last
    assert call.method == "GET"
    assert call.url == f"{BASE}/api/spot/v1/market/tickers"
    assert "ACCESS-KEY" not in call.headers
    assert call.body is None


@pytest.mark.asyncio
async def test_futures_price_uses_suffixed_symbol() -> None:
    transport = FakeTransport(build_envelope(build_futures_ticker()))
    client = build_rest_client(transport)

    assert await client.get_price("BTCUSDT_UMCBL") == "43300"
    assert transport.last.url == f"{BASE}/api/mix/v1/market/ticker?symbol=BTCUSDT_UMCBL"


@pytest.mark.asyncio
async def test_spot_ticker_mapping() -> None:
    client = build_rest_client(FakeTransport(build_envelope([build_spot_ticker()])))

    ticker = await client.get_ticker("BTCUSDT")

    assert ticker.symbol == "BTCUSDT"
    assert (ticker.last, ticker.bid, ticker.ask) == ("43250.5", "43250.1", "43250.9")
    assert ticker.volume_24h == "1234.5"
    assert ticker.change_24h == "120.5"
    assert ticker.change_percent_24h == "0.0028"
    assert ticker.timestamp == 1_700_000_000_000


@pytest.mark.asyncio
async def test_futures_ticker_change_is_relative_to_utc_open() -> None:
    client = build_rest_client(FakeTransport(build_envelope(build_futures_ticker())))

    ticker = await client.get_ticker("BTCUSDT_UMCBL")

    assert ticker.symbol == "BTCUSDT_UMCBL"
    assert ticker.bid == "43299.5"
    assert ticker.volume_24h == "9876.5"
    # (43300 - 43000) / 43000 * 100
    assert ticker.change_24h == "0.70"
    assert ticker.change_percent_24h == "0.007"
    assert ticker.timestamp == 1_700_000_000_500


@pytest.mark.asyncio
async def test_futures_ticker_without_open_reports_zero_change() -> None:
    client = build_rest_client(
        FakeTransport(build_envelope(build_futures_ticker(openUtc="0")))
    )

    ticker = await client.get_ticker("BTCUSDT_UMCBL")
    assert ticker.change_24h == "0.00"


@pytest.mark.asyncio
async def test_unknown_symbol_is_not_found() -> None:
    spot = build_rest_client(FakeTransport(build_envelope([build_spot_ticker(symbol="ETHUSDT")])))
    futures = build_rest_client(FakeTransport(build_envelope({})))

    with pytest.raises(NotFoundError):
        await spot.get_price("BTCUSDT")
    with pytest.raises(NotFoundError):
        await spot.get_ticker("BTCUSDT")
    with pytest.raises(NotFoundError):
        await futures.get_price("XRPUSDT_UMCBL")


@pytest.mark.asyncio
async def test_order_book_keeps_upstream_ordering() -> None:
    book = {
        "bids": [["43250.1", "1.5"], ["43250.0", "2"]],
        "asks": [["43250.9", "0.3"], ["43251.0", "4"]],
        "ts": "1700000000000",
    }
    transport = FakeTransport(build_envelope(book))
    client = build_rest_client(transport)

    result = await client.get_order_book("BTCUSDT", depth=5)

    assert transport.last.url == (
        f"{BASE}/api/v2/spot/market/orderbook?symbol=BTCUSDT&type=step0&limit=5"
    )
    assert result.best_bid == ("43250.1", "1.5")
    assert result.best_ask == ("43250.9", "0.3")
    assert [level[0] for level in result.bids] == ["43250.1", "43250.0"]
    assert result.timestamp == 1_700_000_000_000


@pytest.mark.asyncio
async def test_futures_order_book_request() -> None:
    transport = FakeTransport(build_envelope({"bids": [], "asks": [], "timestamp": "5"}))
    client = build_rest_client(transport)

    result = await client.get_order_book("BTCUSDT_UMCBL")

    assert transport.last.url == f"{BASE}/api/mix/v1/market/depth?symbol=BTCUSDT_UMCBL&limit=20"
    assert result.symbol == "BTCUSDT_UMCBL"
    assert result.best_bid is None
    assert result.timestamp == 5


@pytest.mark.asyncio
async def test_spot_candles_use_spot_interval_dialect() -> None:
    rows = [["1700000000000", "1", "2", "0.5", "1.5", "10", "15"]]
    transport = FakeTransport(build_envelope(rows))
    client = build_rest_client(transport)

    candles = await client.get_candles("BTCUSDT", "5m")

    assert transport.last.url == (
        f"{BASE}/api/v2/spot/market/candles?symbol=BTCUSDT&granularity=5min&limit=100"
    )
    assert len(candles) == 1
    candle = candles[0]
    assert candle.timestamp == 1_700_000_000_000
    assert (candle.open, candle.high, candle.low, candle.close, candle.volume) == (
        "1",
        "2",
        "0.5",
        "1.5",
        "10",
    )


@pytest.mark.asyncio
async def test_futures_candles_use_bare_symbol_and_product_type() -> None:
    transport = FakeTransport(build_envelope([]))
    client = build_rest_client(transport)

    assert await client.get_candles("BTCUSDT_UMCBL", "4h", limit=50) == []
    assert transport.last.url == (
        f"{BASE}/api/v2/mix/market/candles"
        "?productType=USDT-FUTURES&symbol=BTCUSDT&granularity=4H&limit=50"
    )


@pytest.mark.asyncio
async def test_public_calls_work_without_credentials() -> None:
    from tests.factory_builders import build_credentials

    transport = FakeTransport(build_envelope([build_spot_ticker()]))
    client = build_rest_client(
        transport, credentials=build_credentials(api_key="", secret_key="", passphrase="")
    )

    assert await client.get_price("BTCUSDT") == "43250.5"
    assert "ACCESS-SIGN" not in transport.last.headers


@pytest.mark.asyncio
async def test_close_releases_transport() -> None:
    transport = FakeTransport()
    async with build_rest_client(transport):
        pass
    assert transport.closed is True
