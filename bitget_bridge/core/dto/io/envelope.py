from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from bitget_bridge.core.dto.io._base import UPSTREAM_CONFIG
from bitget_bridge.core.types import SUCCESS_CODE


class ApiEnvelopeDTO(BaseModel):
    """REST 응답 봉투 {code, msg, requestTime, data}

    code == "00000" 만 성공으로 취급한다.
    """

    model_config = UPSTREAM_CONFIG

    code: str
    msg: str = ""
    request_time: int | None = Field(default=None, alias="requestTime")
    data: Any = None

    @property
    def is_success(self) -> bool:
        return self.code == SUCCESS_CODE
