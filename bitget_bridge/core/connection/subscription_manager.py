from __future__ import annotations

import asyncio
from typing import Any, Iterable, Literal

import orjson

from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.dto.internal.subscription import SubscriptionKey

logger = PipelineLogger.get_logger("subscription_manager", "connection")

SubscriptionOp = Literal["subscribe", "unsubscribe"]


class SubscriptionRegistry:
    """구독 레지스트리

    책임:
    - 원하는 구독 집합(SubscriptionKey) 보관 (재연결 후 복원 기준)
    - 구독/해지 와이어 메시지 생성 및 전송

    구독별 ACK 상태는 추적하지 않는다. 삽입 순서를 유지한다.
    """

    def __init__(self) -> None:
        self._keys: dict[str, SubscriptionKey] = {}
        self._send_lock = asyncio.Lock()

    def add(self, key: SubscriptionKey) -> bool:
        """키 추가 (새로 추가되면 True)"""
        name = str(key)
        if name in self._keys:
            return False
        self._keys[name] = key
        return True

    def remove(self, key: SubscriptionKey) -> bool:
        return self._keys.pop(str(key), None) is not None

    def clear(self) -> None:
        self._keys.clear()

    def keys(self) -> list[SubscriptionKey]:
        return list(self._keys.values())

    def __contains__(self, key: object) -> bool:
        return str(key) in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    @staticmethod
    def build_message(op: SubscriptionOp, keys: Iterable[SubscriptionKey]) -> str:
        """``{"op": ..., "args": [{instType, channel, instId}, ...]}`` 직렬화 (orjson 사용)"""
        return orjson.dumps({"op": op, "args": [k.to_arg() for k in keys]}).decode("utf-8")

    async def send(self, websocket: Any, op: SubscriptionOp, key: SubscriptionKey) -> None:
        """단일 키에 대한 구독/해지 프레임 전송 (전송 예외는 호출자에게 전파)"""
        message = self.build_message(op, [key])
        async with self._send_lock:
            await websocket.send(message)
        logger.debug(f"{op} frame sent", subscription=str(key))

    async def replay(self, websocket: Any) -> int:
        """레지스트리의 모든 키를 키당 1개의 subscribe 프레임으로 재전송

        Returns:
            전송한 프레임 수
        """
        sent = 0
        for key in self.keys():
            await self.send(websocket, "subscribe", key)
            sent += 1
        if sent:
            logger.info(f"Replayed {sent} subscriptions")
        return sent
