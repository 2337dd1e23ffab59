from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Awaitable, Callable, Literal

import websockets

from bitget_bridge.common.events import (
    EventBus,
    Handler,
    MaxReconnectsReached,
    StreamConnected,
    StreamDisconnected,
    StreamError,
    Subscribed,
    SubscriptionFailed,
    Unsubscribed,
)
from bitget_bridge.common.exceptions.errors import ConnectTimeoutError
from bitget_bridge.common.exceptions.exception_rule import to_transport_error
from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.connection.health_monitor import KeepaliveMonitor
from bitget_bridge.core.connection.subscription_manager import (
    SubscriptionOp,
    SubscriptionRegistry,
)
from bitget_bridge.core.connection.utils.parse import (
    FrameKind,
    classify_frame,
    pong_reply,
    to_stream_message,
)
from bitget_bridge.core.dto.internal.common import ConnectionPolicyDomain
from bitget_bridge.core.dto.internal.subscription import SubscriptionKey
from bitget_bridge.core.services.backoff import compute_reconnect_delay
from bitget_bridge.core.types import (
    FRAME_PARSE_EXCEPTIONS,
    INST_TYPE_SPOT,
    KNOWN_INST_TYPES,
    SOCKET_EXCEPTIONS,
    ConnectionState,
)

logger = PipelineLogger.get_logger("stream_manager", "connection")

ConnectFn = Callable[[str], Awaitable[Any]]


async def open_websocket(url: str) -> Any:
    """기본 전송 계층 (자체 ping/open timeout 비활성, 타이머는 매니저가 관리)"""
    return await websockets.connect(url, ping_interval=None, open_timeout=None)


class StreamConnectionManager:
    """스트리밍 연결 매니저

    상태 머신:
        Idle → Connecting → Connected → Disconnected → (Reconnecting → Connecting)*
        종료 상태 Stopped (명시적 disconnect 또는 재연결 한도 소진)

    - 인스턴스당 살아있는 전송 계층은 최대 1개
    - 구독 레지스트리는 원하는 상태를 반영하며, 연결될 때마다 키당 1개의 subscribe 프레임으로 재전송
    - 프레임 파싱 실패는 로깅 후 버리고, 생명주기 실패는 이벤트로 발행
    """

    def __init__(
        self,
        url: str,
        policy: ConnectionPolicyDomain | None = None,
        *,
        connect: ConnectFn = open_websocket,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        events: EventBus | None = None,
    ) -> None:
        self.url = url
        self.policy = policy or ConnectionPolicyDomain()
        self.events = events or EventBus()

        self._connect_fn = connect
        self._sleep = sleep
        self._registry = SubscriptionRegistry()
        self._keepalive = KeepaliveMonitor(self.policy, sleep=sleep)

        self._state = ConnectionState.IDLE
        self._websocket: Any = None
        self._reader_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._reconnect_count = 0

    # ── 조회 ──

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def reconnect_count(self) -> int:
        return self._reconnect_count

    @property
    def subscription_count(self) -> int:
        return len(self._registry)

    @property
    def subscriptions(self) -> list[SubscriptionKey]:
        return self._registry.keys()

    @property
    def keepalive(self) -> KeepaliveMonitor:
        return self._keepalive

    # ── 리스너 등록 ──

    def on(self, event_type: type, handler: Handler) -> None:
        self.events.on(event_type, handler)

    def on_channel(self, key: SubscriptionKey | str, handler: Handler) -> None:
        self.events.on_channel(key, handler)

    def set_heartbeat(
        self, kind: Literal["frame", "text"] = "frame", message: str | None = None
    ) -> None:
        """하트비트 방식 구성 (keepalive 모니터로 위임)"""
        self._keepalive.update_policy(kind, message)

    def _set_state(self, state: ConnectionState) -> None:
        if self._state is not state:
            logger.info(f"Stream state {self._state} -> {state}", url=self.url)
            self._state = state

    # ── 연결 ──

    async def connect(self) -> None:
        """연결 (이미 Connected/Connecting 이면 no-op)

        Raises:
            ConnectTimeoutError: connect_timeout 안에 열리지 않음
            TransportError: 연결 단계 소켓 오류
        """
        if self._state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            return

        self._set_state(ConnectionState.CONNECTING)
        try:
            websocket = await asyncio.wait_for(
                self._connect_fn(self.url), timeout=self.policy.connect_timeout
            )
        except (asyncio.TimeoutError, TimeoutError) as e:
            self._connect_failed()
            logger.warning("Stream connect timed out", url=self.url)
            raise ConnectTimeoutError() from e
        except SOCKET_EXCEPTIONS as e:
            self._connect_failed()
            logger.warning(f"Stream connect failed - {e}", url=self.url)
            raise to_transport_error(e, "ws") from e
        except BaseException:
            # 취소 등으로 열기가 중단되면 다음 connect() 가 가능하도록 되돌린다
            self._connect_failed()
            raise

        if self._state is ConnectionState.STOPPED:
            # 연결 대기 중 disconnect() 호출됨
            with contextlib.suppress(*SOCKET_EXCEPTIONS):
                await websocket.close()
            return

        self._websocket = websocket
        self._set_state(ConnectionState.CONNECTED)
        self._reconnect_count = 0
        self._keepalive.start(websocket)
        self._reader_task = asyncio.create_task(self._read_loop(websocket))

        replayed = 0
        try:
            replayed = await self._registry.replay(websocket)
        except SOCKET_EXCEPTIONS as e:
            # 수신 루프가 close 를 감지해 재연결 흐름으로 넘어간다
            logger.warning(f"Subscription replay failed - {e}")
            await self.events.emit(StreamError(exc=e, phase="replay"))

        if self._websocket is not websocket or self._state is not ConnectionState.CONNECTED:
            # replay 도중 끊겨 재연결 흐름으로 넘어감
            return

        logger.info("Stream connected", url=self.url, replayed=replayed)
        await self.events.emit(StreamConnected(url=self.url, replayed=replayed))

    def _connect_failed(self) -> None:
        if self._state is ConnectionState.CONNECTING:
            self._set_state(ConnectionState.DISCONNECTED)

    async def disconnect(self) -> None:
        """종료 (멱등). 타이머/태스크 취소 → 전송 계층 종료 → 레지스트리 비움"""
        already_stopped = self._state is ConnectionState.STOPPED
        self._set_state(ConnectionState.STOPPED)

        current = asyncio.current_task()
        pending = [
            task
            for task in (self._reconnect_task, self._reader_task)
            if task is not None and task is not current and not task.done()
        ]
        for task in pending:
            task.cancel()
        self._keepalive.cancel()
        self._reconnect_task = None
        self._reader_task = None

        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._keepalive.stop()

        websocket, self._websocket = self._websocket, None
        self._registry.clear()

        if websocket is not None:
            try:
                await websocket.close()
            except SOCKET_EXCEPTIONS as close_error:
                logger.warning(f"Websocket close failed during disconnect - {close_error}")
            await self.events.emit(
                StreamDisconnected(
                    code=getattr(websocket, "close_code", None),
                    reason=getattr(websocket, "close_reason", None) or "client disconnect",
                )
            )

        if not already_stopped:
            logger.info("Stream stopped", url=self.url)

    # ── 구독 ──

    async def subscribe(
        self, channel: str, symbol: str, inst_type: str = INST_TYPE_SPOT
    ) -> SubscriptionKey:
        """레지스트리에 항상 반영, Connected 일 때만 즉시 전송"""
        if inst_type not in KNOWN_INST_TYPES:
            logger.warning(f"Unknown instType {inst_type!r}, sending as-is", channel=channel)
        key = SubscriptionKey(inst_type=inst_type, channel=channel, inst_id=symbol)
        self._registry.add(key)
        await self._send_if_connected("subscribe", key)
        return key

    async def unsubscribe(
        self, channel: str, symbol: str, inst_type: str = INST_TYPE_SPOT
    ) -> SubscriptionKey:
        key = SubscriptionKey(inst_type=inst_type, channel=channel, inst_id=symbol)
        self._registry.remove(key)
        await self._send_if_connected("unsubscribe", key)
        return key

    async def _send_if_connected(self, op: SubscriptionOp, key: SubscriptionKey) -> None:
        if self._state is not ConnectionState.CONNECTED or self._websocket is None:
            logger.debug(f"{op} deferred until connected", subscription=str(key))
            return
        try:
            await self._registry.send(self._websocket, op, key)
        except SOCKET_EXCEPTIONS as e:
            logger.warning(f"{op} send failed - {e}", subscription=str(key))
            await self.events.emit(StreamError(exc=e, phase=op))

    # ── 수신 ──

    async def _read_loop(self, websocket: Any) -> None:
        try:
            async for raw in websocket:
                await self._handle_frame(websocket, raw)
        except SOCKET_EXCEPTIONS as e:
            logger.warning(f"Stream receive failed - {e}", url=self.url)
        await self._handle_close(websocket)

    async def _handle_frame(self, websocket: Any, raw: str | bytes) -> None:
        try:
            frame = classify_frame(raw)
        except FRAME_PARSE_EXCEPTIONS as e:
            logger.warning(f"Malformed frame dropped - {e}", preview=str(raw)[:200])
            return

        payload = frame.payload
        match frame.kind:
            case FrameKind.DATA:
                message = to_stream_message(payload)
                await self.events.emit(message)
                await self.events.emit_channel(message.key, message)
            case FrameKind.SUBSCRIBED:
                await self.events.emit(Subscribed(arg=payload.get("arg") or {}))
            case FrameKind.UNSUBSCRIBED:
                await self.events.emit(Unsubscribed(arg=payload.get("arg") or {}))
            case FrameKind.ERROR:
                logger.warning("Subscription error frame", payload=payload)
                await self.events.emit(SubscriptionFailed(payload=payload))
            case FrameKind.PING:
                try:
                    await websocket.send(pong_reply(payload))
                except SOCKET_EXCEPTIONS as e:
                    logger.warning(f"Pong reply failed - {e}")
            case FrameKind.PONG:
                logger.debug("Keepalive reply received")
            case _:
                logger.debug("Unhandled frame", payload=payload)

    async def _handle_close(self, websocket: Any) -> None:
        """전송 계층 close → Disconnected, keepalive 중단, 알림, 재연결 예약"""
        if websocket is not self._websocket or self._state is ConnectionState.STOPPED:
            return

        self._websocket = None
        self._reader_task = None
        self._set_state(ConnectionState.DISCONNECTED)
        await self._keepalive.stop()

        code = getattr(websocket, "close_code", None)
        reason = getattr(websocket, "close_reason", None) or ""
        logger.warning("Stream disconnected", url=self.url, close_code=code, close_reason=reason)
        await self.events.emit(StreamDisconnected(code=code, reason=reason))
        await self._schedule_reconnect()

    # ── 재연결 ──

    async def _schedule_reconnect(self) -> None:
        if self._state is ConnectionState.STOPPED:
            return

        if self._reconnect_count >= self.policy.max_reconnects:
            logger.error(
                f"Max reconnect attempts ({self.policy.max_reconnects}) reached",
                url=self.url,
            )
            self._set_state(ConnectionState.STOPPED)
            await self.events.emit(
                MaxReconnectsReached(
                    attempts=self._reconnect_count,
                    extra={"url": self.url, "max_reconnects": self.policy.max_reconnects},
                )
            )
            return

        self._set_state(ConnectionState.RECONNECTING)
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay())

    async def _reconnect_after_delay(self) -> None:
        delay = compute_reconnect_delay(self.policy)
        logger.info(
            f"Reconnecting in {delay:.2f}s (attempt={self._reconnect_count + 1})",
            url=self.url,
        )
        await self._sleep(delay)
        if self._state is not ConnectionState.RECONNECTING:
            return

        self._reconnect_count += 1
        try:
            await self.connect()
        except Exception as e:
            logger.warning(
                f"Reconnect attempt {self._reconnect_count} failed - {e}",
                url=self.url,
                error_code=getattr(e, "code", None),
            )
            await self.events.emit(StreamError(exc=e, phase="reconnect"))
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None
            await self._schedule_reconnect()
            return

        if self._reconnect_task is asyncio.current_task():
            self._reconnect_task = None
