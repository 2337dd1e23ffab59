"""애플리케이션 진입점 (DI Container 기반)

Bitget 현물/선물 연결 계층
- REST 게이트웨이 (캐시 + rate limit + 재시도)
- 스트리밍 연결 (keepalive, 재연결, 구독 복원)

Usage:
    python main.py
    WS_SUBSCRIPTIONS=SPOT:ticker:BTCUSDT,USDT-FUTURES:ticker:BTCUSDT python main.py
"""

import asyncio

from bitget_bridge.application.gateway import BitgetGateway
from bitget_bridge.common.events import (
    MaxReconnectsReached,
    StreamConnected,
    StreamDisconnected,
    StreamError,
    StreamMessage,
    SubscriptionFailed,
)
from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.config.containers import ApplicationContainer
from bitget_bridge.config.settings import logging_settings, websocket_settings
from bitget_bridge.core.connection.stream_manager import StreamConnectionManager

PipelineLogger.configure(
    level=logging_settings.level,
    log_to_file=logging_settings.to_file,
    log_dir=logging_settings.dir,
)
logger = PipelineLogger.get_logger("main", "app")


class Application:
    """애플리케이션 메인 클래스

    책임:
    - DI Container 관리
    - 스트리밍 이벤트 리스너 등록
    - 시작 구독 적용
    - Graceful Shutdown
    """

    def __init__(self) -> None:
        self.container = ApplicationContainer()
        self.gateway: BitgetGateway | None = None
        self.stream: StreamConnectionManager | None = None
        self._stopped = asyncio.Event()

    def _setup_listeners(self, stream: StreamConnectionManager) -> None:
        async def on_message(event: StreamMessage) -> None:
            logger.info(
                f"{event.key} {event.action}",
                items=len(event.data),
                ts=event.ts,
            )

        async def on_connected(event: StreamConnected) -> None:
            logger.info(f"스트림 연결 완료 (replayed={event.replayed})")

        async def on_disconnected(event: StreamDisconnected) -> None:
            logger.warning(f"스트림 연결 끊김 code={event.code} reason={event.reason}")

        async def on_failed(event: SubscriptionFailed) -> None:
            logger.warning("구독 실패", payload=event.payload)

        async def on_error(event: StreamError) -> None:
            logger.warning(f"스트림 에러 ({event.phase}): {event.exc}")

        async def on_exhausted(event: MaxReconnectsReached) -> None:
            logger.error(f"재연결 한도 소진 (attempts={event.attempts})")
            self._stopped.set()

        stream.on(StreamMessage, on_message)
        stream.on(StreamConnected, on_connected)
        stream.on(StreamDisconnected, on_disconnected)
        stream.on(SubscriptionFailed, on_failed)
        stream.on(StreamError, on_error)
        stream.on(MaxReconnectsReached, on_exhausted)

    async def initialize(self) -> None:
        """애플리케이션 초기화

        Flow:
        1. Resource 초기화 (캐시 스윕, HTTP 세션, REST 클라이언트)
        2. 게이트웨이/스트리밍 매니저 가져오기
        3. 이벤트 리스너 등록
        """
        logger.info("Resource 초기화 시작...")
        await self.container.init_resources()
        logger.info("✅ 모든 Resource 초기화 완료")

        self.gateway = await self.container.gateway()
        self.stream = self.container.stream_manager()
        self._setup_listeners(self.stream)
        logger.info("✅ Gateway 및 Stream 준비 완료")

    async def run(self) -> None:
        """시작 구독을 등록하고 연결한 뒤 종료 신호까지 대기"""
        assert self.stream is not None

        for key in websocket_settings.subscription_keys():
            await self.stream.subscribe(key.channel, key.inst_id, key.inst_type)

        await self.stream.connect()
        logger.info(f"✅ {self.stream.subscription_count}개 구독으로 스트리밍 실행 중...")
        await self._stopped.wait()

    async def shutdown(self) -> None:
        """Graceful Shutdown

        Flow:
        1. 스트림 종료 (타이머 취소, 전송 계층 종료)
        2. Resource 정리 (캐시 스윕 중단, HTTP 세션 종료)
        """
        logger.info("정리 작업 시작...")

        if self.stream:
            await self.stream.disconnect()

        logger.info("모든 Resource 종료 중...")
        await self.container.shutdown_resources()
        logger.info("✅ 프로그램 종료 완료")


async def main() -> None:
    """메인 실행 함수"""
    app = Application()

    try:
        await app.initialize()
        await app.run()
    except KeyboardInterrupt:
        logger.info("사용자에 의해 프로그램이 종료되었습니다")
    finally:
        await app.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n프로그램이 종료되었습니다.")
