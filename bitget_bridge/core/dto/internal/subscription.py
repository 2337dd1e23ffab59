from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bitget_bridge.core.types import INST_TYPE_SPOT


@dataclass(slots=True, frozen=True, eq=True, match_args=False, kw_only=True)
class SubscriptionKey:
    """구독 키 (instType, channel, instId)

    정규 문자열 형식: ``instType:channel:instId``
    """

    inst_type: str
    channel: str
    inst_id: str

    def __str__(self) -> str:
        return f"{self.inst_type}:{self.channel}:{self.inst_id}"

    @classmethod
    def parse(cls, raw: str) -> SubscriptionKey:
        """``instType:channel:instId`` 문자열을 키로 변환한다."""
        parts = raw.split(":")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"invalid subscription key: {raw!r}")
        inst_type, channel, inst_id = parts
        return cls(inst_type=inst_type, channel=channel, inst_id=inst_id)

    @classmethod
    def from_arg(cls, arg: dict[str, Any]) -> SubscriptionKey:
        """와이어 arg({instType, channel, instId})에서 키를 만든다."""
        return cls(
            inst_type=str(arg.get("instType", INST_TYPE_SPOT)),
            channel=str(arg.get("channel", "")),
            inst_id=str(arg.get("instId", "")),
        )

    def to_arg(self) -> dict[str, str]:
        return {
            "instType": self.inst_type,
            "channel": self.channel,
            "instId": self.inst_id,
        }
