from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Any, Awaitable, Callable, Literal

from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.dto.internal.common import ConnectionPolicyDomain
from bitget_bridge.core.types import SOCKET_EXCEPTIONS

logger = PipelineLogger.get_logger("health_monitor", "connection")

DEFAULT_TEXT_HEARTBEAT = "ping"


class KeepaliveMonitor:
    """keepalive 전담 클래스

    책임:
    - 연결 상태(Connected)에서만 주기적 하트비트 전송
    - 하트비트 전송 상태 추적

    pong 수신을 기다리지 않는다. 죽은 연결 감지는 전송 계층의 close 처리에 맡긴다.
    """

    def __init__(
        self,
        policy: ConnectionPolicyDomain,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.policy = policy
        self._sleep = sleep

        self._last_heartbeat_ts: float = 0.0
        self._heartbeat_count: int = 0
        self._heartbeat_task: asyncio.Task[None] | None = None

    def update_policy(
        self, kind: Literal["frame", "text"] = "frame", message: str | None = None
    ) -> None:
        """하트비트 설정을 동적으로 구성"""
        self.policy.heartbeat_kind = kind
        self.policy.heartbeat_message = message

    async def send_heartbeat(self, websocket: Any) -> None:
        """하트비트 전송 (frame: 전송 계층 ping, text: 설정된 문자열)"""
        if self.policy.heartbeat_kind == "frame":
            await websocket.ping()
        else:
            await websocket.send(self.policy.heartbeat_message or DEFAULT_TEXT_HEARTBEAT)

        self._last_heartbeat_ts = time.monotonic()
        self._heartbeat_count += 1
        logger.debug("Heartbeat sent", kind=self.policy.heartbeat_kind)

    def start(self, websocket: Any) -> None:
        """하트비트 루프 시작 (이미 실행 중이면 교체)"""
        self.cancel()
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(websocket))

    def cancel(self) -> None:
        """하트비트 태스크 취소 요청 (동기)"""
        if self._heartbeat_task and not self._heartbeat_task.done():
            self._heartbeat_task.cancel()

    async def stop(self) -> None:
        """하트비트 루프 중단 및 종료 대기"""
        task, self._heartbeat_task = self._heartbeat_task, None
        if task is None:
            return
        if task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _heartbeat_loop(self, websocket: Any) -> None:
        interval = self.policy.ping_interval
        while True:
            await self._sleep(interval)
            try:
                await self.send_heartbeat(websocket)
            except SOCKET_EXCEPTIONS as e:
                # 연결 종료 감지는 수신 루프가 담당
                logger.warning(f"Heartbeat send failed - {e}")
                break

    @property
    def is_running(self) -> bool:
        return self._heartbeat_task is not None and not self._heartbeat_task.done()

    @property
    def heartbeat_count(self) -> int:
        return self._heartbeat_count

    @property
    def last_heartbeat_ts(self) -> float:
        return self._last_heartbeat_ts
