"""스트리밍 이벤트 정의 및 Event Bus

이벤트는 순수 데이터 객체로, 의존성이 없습니다.
연결 매니저 인스턴스마다 독립된 EventBus를 소유하며, 리스너는 타입 또는
구독 키(instType:channel:instId) 단위로 등록합니다.
리스너 종류 간 전달 순서는 보장하지 않습니다.
"""

from __future__ import annotations

import inspect
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.dto.internal.subscription import SubscriptionKey
from bitget_bridge.core.types import EventHandler

logger = PipelineLogger.get_logger("event_bus", "common")


@dataclass(frozen=True, slots=True)
class StreamConnected:
    """전송 계층 open 완료 (구독 재전송 직후)"""

    url: str
    replayed: int = 0


@dataclass(frozen=True, slots=True)
class StreamDisconnected:
    """전송 계층 close (원인 무관)"""

    code: int | None
    reason: str


@dataclass(frozen=True, slots=True)
class StreamMessage:
    """데이터 프레임 (generic data 이벤트 + 채널별 이벤트로 동시 발행)"""

    action: str
    arg: dict[str, Any]
    data: list[Any]
    ts: int

    @property
    def key(self) -> SubscriptionKey:
        return SubscriptionKey.from_arg(self.arg)


@dataclass(frozen=True, slots=True)
class Subscribed:
    arg: dict[str, Any]


@dataclass(frozen=True, slots=True)
class Unsubscribed:
    arg: dict[str, Any]


@dataclass(frozen=True, slots=True)
class SubscriptionFailed:
    """구독 단위 에러 (event == "error")"""

    payload: dict[str, Any]


@dataclass(frozen=True, slots=True)
class StreamError:
    """전송 계층 에러 / 재연결 실패"""

    exc: Exception
    phase: str


@dataclass(frozen=True, slots=True)
class MaxReconnectsReached:
    """재연결 한도 소진 (종료 상태 진입)"""

    attempts: int
    extra: dict[str, Any] = field(default_factory=dict)


Handler = EventHandler


class EventBus:
    """인스턴스 단위 이벤트 버스

    특징:
    - 타입 기반 핸들러 등록 (on)
    - 구독 키 기반 채널 핸들러 등록 (on_channel)
    - sync/async 핸들러 모두 허용
    - 핸들러 실패는 로깅만 하고 다른 핸들러/연결 상태에 영향 없음
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._channel_handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event_type: type, handler: Handler) -> None:
        """핸들러 등록

        Args:
            event_type: 이벤트 타입 (클래스)
            handler: 핸들러 함수 (def 또는 async def)
        """
        self._handlers[event_type].append(handler)

    def off(self, event_type: type, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def on_channel(self, key: SubscriptionKey | str, handler: Handler) -> None:
        """특정 구독 키의 데이터 프레임만 수신하는 핸들러 등록"""
        self._channel_handlers[str(key)].append(handler)

    def off_channel(self, key: SubscriptionKey | str, handler: Handler) -> None:
        handlers = self._channel_handlers.get(str(key), [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: Any) -> None:
        """이벤트 발행 (타입 핸들러)"""
        for handler in list(self._handlers.get(type(event), [])):
            await self._invoke(handler, event)

    async def emit_channel(self, key: SubscriptionKey | str, event: Any) -> None:
        """이벤트 발행 (채널 핸들러)"""
        for handler in list(self._channel_handlers.get(str(key), [])):
            await self._invoke(handler, event)

    async def _invoke(self, handler: Handler, event: Any) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                f"Event handler failed: {e}",
                exc_info=True,
                event_type=type(event).__name__,
                handler=getattr(handler, "__name__", repr(handler)),
            )

    def clear(self) -> None:
        """모든 핸들러 제거"""
        self._handlers.clear()
        self._channel_handlers.clear()


__all__ = [
    "EventBus",
    "StreamConnected",
    "StreamDisconnected",
    "StreamMessage",
    "Subscribed",
    "Unsubscribed",
    "SubscriptionFailed",
    "StreamError",
    "MaxReconnectsReached",
]
