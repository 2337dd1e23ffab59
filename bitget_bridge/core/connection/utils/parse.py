"""수신 프레임 분류

프레임 형태(shape)로 종류를 판정합니다:
- ``{"event": "subscribe"|"unsubscribe", "arg": {...}}``  구독/해지 ACK
- ``{"event": "error", ...}``                            구독 단위 에러
- ``{"action": ..., "arg": {...}, "data": [...], "ts"}`` 데이터 프레임
- ``{"ping": ...}``                                      업스트림 앱 레벨 ping
- ``"pong"`` / ``{"pong": ...}``                          keepalive 응답
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import orjson

from bitget_bridge.common.events import StreamMessage
from bitget_bridge.core.dto.io._base import as_int


class FrameKind(StrEnum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    ERROR = "error"
    DATA = "data"
    PING = "ping"
    PONG = "pong"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class InboundFrame:
    kind: FrameKind
    payload: dict[str, Any] = field(default_factory=dict)


def decode_frame(raw: str | bytes) -> dict[str, Any] | str:
    """JSON 프레임은 dict, 텍스트 keepalive 응답은 문자열로 반환

    Raises:
        ValueError: JSON 파싱 실패 또는 객체가 아닌 JSON
        UnicodeDecodeError: 바이너리 프레임 디코딩 실패
    """
    text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    if text.strip() == "pong":
        return "pong"
    message = orjson.loads(text)
    if not isinstance(message, dict):
        raise ValueError(f"unexpected frame type: {type(message).__name__}")
    return message


def classify_frame(raw: str | bytes) -> InboundFrame:
    message = decode_frame(raw)
    if isinstance(message, str):
        return InboundFrame(FrameKind.PONG)

    match message:
        case {"event": "subscribe"}:
            return InboundFrame(FrameKind.SUBSCRIBED, message)
        case {"event": "unsubscribe"}:
            return InboundFrame(FrameKind.UNSUBSCRIBED, message)
        case {"event": "error"}:
            return InboundFrame(FrameKind.ERROR, message)
        case {"ping": _}:
            return InboundFrame(FrameKind.PING, message)
        case {"pong": _}:
            return InboundFrame(FrameKind.PONG, message)
        case {"arg": dict(), "data": _}:
            return InboundFrame(FrameKind.DATA, message)
        case _:
            return InboundFrame(FrameKind.OTHER, message)


def to_stream_message(payload: dict[str, Any]) -> StreamMessage:
    """데이터 프레임 → StreamMessage (data는 항상 리스트)"""
    data = payload.get("data")
    if data is None:
        data = []
    elif not isinstance(data, list):
        data = [data]
    return StreamMessage(
        action=str(payload.get("action", "update")),
        arg=payload["arg"],
        data=data,
        ts=as_int(payload.get("ts"), 0),
    )


def pong_reply(payload: dict[str, Any]) -> str:
    """``{"ping": X}`` → ``{"pong": X}``"""
    return orjson.dumps({"pong": payload.get("ping")}).decode("utf-8")
