import importlib
import os
from types import ModuleType

import pytest

from bitget_bridge.core.dto.internal.subscription import SubscriptionKey


def _reload_settings_with_env(
    monkeypatch: pytest.MonkeyPatch, env: dict[str, str | None]
) -> ModuleType:
    # 테스트 간 누수 방지를 위해 관련 환경변수 먼저 제거
    prefixes = ("BITGET_", "RATE_LIMIT_", "RETRY_", "CACHE_", "WS_", "LOG_")
    for key in list(os.environ.keys()):
        if key.startswith(prefixes):
            monkeypatch.delenv(key, raising=False)

    for k, v in env.items():
        if v is None:
            monkeypatch.delenv(k, raising=False)
        else:
            monkeypatch.setenv(k, str(v))

    import bitget_bridge.config.settings as settings

    settings = importlib.reload(settings)
    return settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _reload_settings_with_env(monkeypatch, {})

    assert settings.bitget_settings.base_url == "https://api.bitget.com"
    assert settings.bitget_settings.ws_url == settings.LIVE_WS_URL
    assert settings.bitget_settings.to_credentials().has_private_access is False
    assert settings.rate_limit_settings.max_requests == 10
    assert settings.rate_limit_settings.window == 1.0
    assert settings.cache_settings.to_spec().as_mapping() == {
        "price": 5.0,
        "ticker": 10.0,
        "orderbook": 2.0,
        "candles": 60.0,
        "balance": 30.0,
        "positions": 15.0,
    }
    policy = settings.websocket_settings.to_policy()
    assert (policy.ping_interval, policy.reconnect_interval, policy.max_reconnects) == (30.0, 5.0, 10)
    assert settings.websocket_settings.subscription_keys() == []


def test_sandbox_switches_stream_url(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _reload_settings_with_env(
        monkeypatch,
        {
            "BITGET_API_KEY": "k",
            "BITGET_SECRET_KEY": "s",
            "BITGET_PASSPHRASE": "p",
            "BITGET_SANDBOX": "true",
            "BITGET_BASE_URL": "https://api.bitget.com/",
        },
    )

    credentials = settings.bitget_settings.to_credentials()
    assert credentials.sandbox is True
    assert credentials.has_private_access is True
    assert credentials.base_url == "https://api.bitget.com"
    assert credentials.ws_url == settings.SANDBOX_WS_URL


def test_explicit_ws_url_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _reload_settings_with_env(
        monkeypatch, {"BITGET_SANDBOX": "true", "BITGET_WS_URL": "wss://custom.example/ws"}
    )
    assert settings.bitget_settings.ws_url == "wss://custom.example/ws"


def test_retry_codes_from_csv(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _reload_settings_with_env(
        monkeypatch,
        {"RETRY_MAX_RETRIES": "5", "RETRY_RETRYABLE_ERRORS": "50001, TIMEOUT_ERROR ,,"},
    )

    config = settings.retry_settings.to_config()
    assert config.max_retries == 5
    assert config.retryable_errors == frozenset({"50001", "TIMEOUT_ERROR"})


def test_websocket_overrides_and_subscriptions(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _reload_settings_with_env(
        monkeypatch,
        {
            "WS_PING_INTERVAL": "15",
            "WS_MAX_RECONNECTS": "3",
            "WS_HEARTBEAT_KIND": "text",
            "WS_SUBSCRIPTIONS": "SPOT:ticker:BTCUSDT,USDT-FUTURES:books5:BTCUSDT",
        },
    )

    policy = settings.websocket_settings.to_policy()
    assert policy.ping_interval == 15.0
    assert policy.max_reconnects == 3
    assert policy.heartbeat_kind == "text"
    assert settings.websocket_settings.subscription_keys() == [
        SubscriptionKey(inst_type="SPOT", channel="ticker", inst_id="BTCUSDT"),
        SubscriptionKey(inst_type="USDT-FUTURES", channel="books5", inst_id="BTCUSDT"),
    ]


def test_invalid_subscription_key_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _reload_settings_with_env(monkeypatch, {})
    monkeypatch.setenv("WS_SUBSCRIPTIONS", "SPOT:ticker")

    with pytest.raises(ValueError):
        settings.WebsocketSettings()
