from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from bitget_bridge.core.types import (
    DEFAULT_RETRYABLE_CODES,
    ErrorCode,
    ExceptionGroup,
    RuleKind,
)


@dataclass(slots=True, frozen=True, eq=True, repr=False, match_args=False, kw_only=True)
class Credentials:
    """거래소 접속 정보 (프로세스 수명 동안 불변).

    - 공개 시세 조회는 키 없이 동작
    - 비공개 호출은 api_key/secret_key/passphrase 모두 필요
    """

    api_key: str = ""
    secret_key: str = ""
    passphrase: str = ""
    sandbox: bool = False
    base_url: str = "https://api.bitget.com"
    ws_url: str = "wss://ws.bitget.com/v2/ws/public"

    @property
    def has_private_access(self) -> bool:
        return bool(self.api_key and self.secret_key and self.passphrase)


@dataclass(slots=True, frozen=True, eq=True, repr=False, match_args=False, kw_only=True)
class RetryConfig:
    """재시도 정책 (RetryExecutor 인스턴스별 불변)

    지연 단위는 초.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    retryable_errors: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_RETRYABLE_CODES)
    )


@dataclass(slots=True, repr=False, eq=False, match_args=False, kw_only=True)
class ConnectionPolicyDomain:
    """스트리밍 연결/재연결/keepalive 정책(도메인). 시간 단위는 초."""

    # 연결
    connect_timeout: float = 10.0

    # 재연결 (고정 간격, 횟수 한도)
    reconnect_interval: float = 5.0
    max_reconnects: int = 10

    # keepalive
    ping_interval: float = 30.0
    heartbeat_kind: Literal["frame", "text"] = "frame"
    heartbeat_message: str | None = None


@dataclass(slots=True, frozen=True, eq=False, repr=False, match_args=False, kw_only=True)
class RuleDomain:
    """저수준 예외 → 에러 코드 매핑 규칙(도메인)

    kinds: 규칙이 적용될 경계 종류 ("http", "ws")
    exc:   매칭할 예외 타입(단일 타입 또는 타입 튜플)
    result: 부여할 ErrorCode
    """

    kinds: RuleKind
    exc: ExceptionGroup
    result: ErrorCode
