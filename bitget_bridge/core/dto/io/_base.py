"""I/O 경계 DTO 기반 클래스

도메인 모델은 snake_case 필드를 쓰고, 외부(프론트엔드) 직렬화는 camelCase 별칭을 쓴다.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# 도메인 스냅샷용 (불변, 알 수 없는 필드 금지)
OPTIMIZED_CONFIG = ConfigDict(
    use_enum_values=True,
    extra="forbid",
    validate_default=True,
    str_strip_whitespace=True,
    coerce_numbers_to_str=True,
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)

# 업스트림 원본 수신용 (모르는 필드 무시)
UPSTREAM_CONFIG = ConfigDict(
    extra="ignore",
    coerce_numbers_to_str=True,
    frozen=True,
    populate_by_name=True,
)


class BaseIOModelDTO(BaseModel):
    """도메인 스냅샷 공통 베이스 (불변)"""

    model_config = OPTIMIZED_CONFIG


def as_str(value: Any, default: str = "0") -> str:
    """업스트림 숫자/문자열 필드를 정밀도 보존 문자열로 정규화"""
    if value is None or value == "":
        return default
    return str(value)


def as_int(value: Any, default: int) -> int:
    """업스트림 타임스탬프 문자열을 int로 (실패 시 default)"""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
