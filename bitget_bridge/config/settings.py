"""통합 Settings 모듈 - 환경변수 기반

이 모듈의 역할:
    1. 코드에 합리적인 기본값 제공
    2. 환경변수로 오버라이드 (우선순위 높음)
    3. 타입 안전성 보장 (Pydantic 자동 검증)

설정 우선순위:
    1. 환경변수 (최우선) - export BITGET_API_KEY=...
    2. .env 파일 - bitget_bridge/config/.env
    3. 코드 기본값 (settings.py 내부)

사용 예시:
    # 공개 시세만 사용 (키 불필요)
    python main.py

    # 비공개 호출 + 모의투자
    export BITGET_API_KEY=...
    export BITGET_SECRET_KEY=...
    export BITGET_PASSPHRASE=...
    export BITGET_SANDBOX=true
    python main.py

라이브러리 클래스는 이 모듈의 싱글톤을 직접 읽지 않습니다.
싱글톤은 진입점(main.py)과 DI 컨테이너에서만 사용합니다.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from bitget_bridge.core.dto.internal.cache import CacheTTLSpec
from bitget_bridge.core.dto.internal.common import (
    ConnectionPolicyDomain,
    Credentials,
    RetryConfig,
)
from bitget_bridge.core.dto.internal.subscription import SubscriptionKey
from bitget_bridge.core.types import DEFAULT_RETRYABLE_CODES

# 설정 파일 경로
config_dir = Path(__file__).parent

LIVE_WS_URL = "wss://ws.bitget.com/v2/ws/public"
SANDBOX_WS_URL = "wss://wspap.bitget.com/v2/ws/public"


def env_settings(prefix: str) -> SettingsConfigDict:
    """.env + 환경변수 통합 설정

    Args:
        prefix: 환경변수 접두사 (예: BITGET_, WS_)

    Returns:
        Pydantic 설정 딕셔너리
    """
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=config_dir / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _split_csv(value: object) -> object:
    """쉼표 구분 문자열 → 리스트 (리스트는 그대로)"""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class BitgetSettings(BaseSettings):
    """거래소 접속 설정

    환경변수 오버라이드:
        BITGET_API_KEY / BITGET_SECRET_KEY / BITGET_PASSPHRASE: 비공개 호출 인증 정보
        BITGET_SANDBOX: 모의투자(paptrading) 여부 (기본: false)
        BITGET_BASE_URL: REST 기본 URL (기본: https://api.bitget.com)
        BITGET_WS_URL: 스트리밍 URL (미지정 시 sandbox 여부로 결정)
        BITGET_REQUEST_TIMEOUT: HTTP 요청 타임아웃 초 (기본: 10.0)
    """

    api_key: str = ""
    secret_key: str = ""
    passphrase: str = ""
    sandbox: bool = False
    base_url: str = "https://api.bitget.com"
    ws_url: str = ""
    request_timeout: float = 10.0

    model_config = env_settings("BITGET_")

    @model_validator(mode="after")
    def _derive_ws_url(self) -> BitgetSettings:
        if not self.ws_url:
            self.ws_url = SANDBOX_WS_URL if self.sandbox else LIVE_WS_URL
        return self

    def to_credentials(self) -> Credentials:
        return Credentials(
            api_key=self.api_key,
            secret_key=self.secret_key,
            passphrase=self.passphrase,
            sandbox=self.sandbox,
            base_url=self.base_url.rstrip("/"),
            ws_url=self.ws_url,
        )


class RateLimitSettings(BaseSettings):
    """요청 수 제한 (window 초 동안 max_requests 회)"""

    max_requests: int = 10
    window: float = 1.0

    model_config = env_settings("RATE_LIMIT_")


class RetrySettings(BaseSettings):
    """재시도 정책

    환경변수 오버라이드:
        RETRY_MAX_RETRIES: 첫 시도 이후 최대 재시도 횟수 (기본: 3)
        RETRY_BASE_DELAY / RETRY_MAX_DELAY: 백오프 기본/최대 지연 초 (기본: 1.0 / 30.0)
        RETRY_BACKOFF_MULTIPLIER: 백오프 배수 (기본: 2.0)
        RETRY_RETRYABLE_ERRORS: 재시도 대상 에러 코드 (쉼표 구분)
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    retryable_errors: Annotated[list[str], NoDecode] = list(DEFAULT_RETRYABLE_CODES)

    model_config = env_settings("RETRY_")

    @field_validator("retryable_errors", mode="before")
    @classmethod
    def _split_errors(cls, value: object) -> object:
        return _split_csv(value)

    def to_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            backoff_multiplier=self.backoff_multiplier,
            retryable_errors=frozenset(self.retryable_errors),
        )


class CacheSettings(BaseSettings):
    """캐시 TTL (모두 초 단위)"""

    price_ttl: float = 5.0
    ticker_ttl: float = 10.0
    orderbook_ttl: float = 2.0
    candles_ttl: float = 60.0
    balance_ttl: float = 30.0
    positions_ttl: float = 15.0
    cleanup_interval: float = 60.0

    model_config = env_settings("CACHE_")

    def to_spec(self) -> CacheTTLSpec:
        return CacheTTLSpec(
            price=self.price_ttl,
            ticker=self.ticker_ttl,
            orderbook=self.orderbook_ttl,
            candles=self.candles_ttl,
            balance=self.balance_ttl,
            positions=self.positions_ttl,
        )


class WebsocketSettings(BaseSettings):
    """WebSocket 설정

    환경변수 오버라이드 (모든 타이밍 설정은 초 단위):
        WS_PING_INTERVAL: keepalive 간격 (기본: 30초)
        WS_RECONNECT_INTERVAL: 재연결 대기 (기본: 5초)
        WS_MAX_RECONNECTS: 재연결 최대 시도 횟수 (기본: 10회)
        WS_CONNECT_TIMEOUT: 연결 타임아웃 (기본: 10초)
        WS_HEARTBEAT_KIND: frame(전송 계층 ping) 또는 text
        WS_HEARTBEAT_MESSAGE: text 모드에서 보낼 문자열 (기본: ping)
        WS_SUBSCRIPTIONS: 시작 시 구독 목록 (instType:channel:instId, 쉼표 구분)
    """

    ping_interval: float = 30.0
    reconnect_interval: float = 5.0
    max_reconnects: int = 10
    connect_timeout: float = 10.0
    heartbeat_kind: Literal["frame", "text"] = "frame"
    heartbeat_message: str | None = None
    subscriptions: Annotated[list[str], NoDecode] = []

    model_config = env_settings("WS_")

    @field_validator("subscriptions", mode="before")
    @classmethod
    def _split_subscriptions(cls, value: object) -> object:
        return _split_csv(value)

    @field_validator("subscriptions")
    @classmethod
    def _validate_keys(cls, value: list[str]) -> list[str]:
        for raw in value:
            SubscriptionKey.parse(raw)
        return value

    def to_policy(self) -> ConnectionPolicyDomain:
        return ConnectionPolicyDomain(
            connect_timeout=self.connect_timeout,
            reconnect_interval=self.reconnect_interval,
            max_reconnects=self.max_reconnects,
            ping_interval=self.ping_interval,
            heartbeat_kind=self.heartbeat_kind,
            heartbeat_message=self.heartbeat_message,
        )

    def subscription_keys(self) -> list[SubscriptionKey]:
        return [SubscriptionKey.parse(raw) for raw in self.subscriptions]


class LoggingSettings(BaseSettings):
    """로깅 설정

    환경변수 오버라이드:
        LOG_LEVEL: 로그 레벨 (기본: INFO)
        LOG_TO_FILE: 파일 로깅 여부 (기본: true)
        LOG_DIR: 로그 디렉토리 (기본: logs)
    """

    level: str = "INFO"
    to_file: bool = True
    dir: str = "logs"

    model_config = env_settings("LOG_")


# ========================================
# 설정 인스턴스 (싱글톤)
# ========================================
# 환경변수 로드 (환경변수 없으면 기본값 사용)

bitget_settings = BitgetSettings()
rate_limit_settings = RateLimitSettings()
retry_settings = RetrySettings()
cache_settings = CacheSettings()
websocket_settings = WebsocketSettings()
logging_settings = LoggingSettings()
