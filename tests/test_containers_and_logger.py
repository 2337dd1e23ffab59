import logging

import pytest

from bitget_bridge.application.gateway import BitgetGateway
from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.config.containers import ApplicationContainer
from bitget_bridge.core.connection.stream_manager import StreamConnectionManager
from bitget_bridge.core.types import ConnectionState


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.mark.asyncio
async def test_container_wires_gateway_and_stream_manager() -> None:
    container = ApplicationContainer()
    await container.init_resources()
    try:
        gateway = await container.gateway()
        assert isinstance(gateway, BitgetGateway)
        assert gateway is await container.gateway()
        assert gateway.caches.is_running
        assert gateway.caches.names == [
            "price",
            "ticker",
            "orderbook",
            "candles",
            "balance",
            "positions",
        ]

        stream = container.stream_manager()
        assert isinstance(stream, StreamConnectionManager)
        assert stream.url == container.infra.bitget_config().ws_url
        assert stream.state is ConnectionState.IDLE
    finally:
        await container.shutdown_resources()

    assert gateway.caches.is_running is False


def test_keyword_extras_become_record_attributes() -> None:
    log = PipelineLogger.get_logger("extras", "tests")
    handler = _ListHandler()
    log.logger.addHandler(handler)
    try:
        log.info("hello", symbol="BTCUSDT", module="shadow", name="shadow")
    finally:
        log.close()

    record = handler.records[-1]
    assert record.getMessage() == "hello"
    assert record.symbol == "BTCUSDT"
    assert record.component == "tests"
    # LogRecord 예약 속성과 겹치는 키는 접두사로 보존
    assert record.ctx_module == "shadow"
    assert record.ctx_name == "shadow"
    assert record.name == "extras.tests"


def test_configure_applies_to_loggers_created_earlier() -> None:
    log = PipelineLogger.get_logger("late", "tests")
    PipelineLogger.configure(level="WARNING")
    try:
        assert log.logger.level == logging.WARNING
    finally:
        PipelineLogger.configure(level="DEBUG")
        log.close()
