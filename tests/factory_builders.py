from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable

import orjson

from bitget_bridge.core.dto.internal.common import (
    ConnectionPolicyDomain,
    Credentials,
    RetryConfig,
)
from bitget_bridge.core.rest.client import BitgetRestClient
from bitget_bridge.core.rest.signer import RateLimiter
from bitget_bridge.core.services.retry import RetryExecutor

_CLOSED = object()


# ---------------------------------------------------------------------------
# 업스트림 응답 페이로드
# ---------------------------------------------------------------------------


def build_envelope(data: Any = None, *, code: str = "00000", msg: str = "success") -> dict[str, Any]:
    return {"code": code, "msg": msg, "requestTime": 1_700_000_000_000, "data": data}


def build_spot_ticker(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "symbol": "BTCUSDT",
        "close": "43250.5",
        "buyOne": "43250.1",
        "sellOne": "43250.9",
        "high24h": "44000",
        "low24h": "42000",
        "baseVol": "1234.5",
        "change": "120.5",
        "changePercent": "0.0028",
        "ts": "1700000000000",
    }
    payload.update(overrides)
    return payload


def build_futures_ticker(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "symbol": "BTCUSDT_UMCBL",
        "last": "43300",
        "bestBid": "43299.5",
        "bestAsk": "43300.5",
        "high24h": "44100",
        "low24h": "42100",
        "baseVolume": "9876.5",
        "openUtc": "43000",
        "priceChangePercent": "0.007",
        "timestamp": "1700000000500",
    }
    payload.update(overrides)
    return payload


def build_order_request(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "symbol": "BTCUSDT",
        "side": "buy",
        "type": "limit",
        "quantity": "0.01",
        "price": "43000",
    }
    payload.update(overrides)
    return payload


def build_data_frame(
    *,
    inst_type: str = "SPOT",
    channel: str = "ticker",
    inst_id: str = "BTCUSDT",
    data: Any = None,
    **overrides: Any,
) -> str:
    payload: dict[str, Any] = {
        "action": "snapshot",
        "arg": {"instType": inst_type, "channel": channel, "instId": inst_id},
        "data": data if data is not None else [{"lastPr": "43250.5"}],
        "ts": 1_700_000_000_000,
    }
    payload.update(overrides)
    return orjson.dumps(payload).decode("utf-8")


# ---------------------------------------------------------------------------
# REST 가짜 전송 계층
# ---------------------------------------------------------------------------


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: str | None

    @property
    def json_body(self) -> dict[str, Any]:
        return orjson.loads(self.body) if self.body else {}


class FakeTransport:
    """응답(또는 예외)을 순서대로 돌려주는 HttpTransport 대역

    응답이 하나만 남으면 이후 호출에도 계속 그 응답을 돌려준다.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses) or [build_envelope()]
        self.calls: list[RecordedRequest] = []
        self.closed = False

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> Any:
        self.calls.append(RecordedRequest(method, url, dict(headers or {}), body))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True

    @property
    def last(self) -> RecordedRequest:
        return self.calls[-1]


class RecordingSleep:
    """대기 시간만 기록하고 즉시 반환하는 sleep 대역

    block_at 이상의 대기는 취소될 때까지 멈춘다 (keepalive 루프 고정용).
    """

    def __init__(self, block_at: float | None = None) -> None:
        self.delays: list[float] = []
        self.block_at = block_at

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.block_at is not None and delay >= self.block_at:
            await asyncio.Event().wait()
        await asyncio.sleep(0)


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_credentials(**overrides: Any) -> Credentials:
    values: dict[str, Any] = {
        "api_key": "test-key",
        "secret_key": "test-secret",
        "passphrase": "test-pass",
        "sandbox": False,
        "base_url": "https://api.bitget.test",
    }
    values.update(overrides)
    return Credentials(**values)


def build_rest_client(
    transport: FakeTransport,
    *,
    credentials: Credentials | None = None,
    max_requests: int = 1000,
    retry: RetryConfig | None = None,
    sleep: RecordingSleep | None = None,
) -> BitgetRestClient:
    return BitgetRestClient(
        credentials or build_credentials(),
        transport=transport,  # type: ignore[arg-type]
        rate_limiter=RateLimiter(max_requests, 1.0),
        retry=RetryExecutor(retry or RetryConfig(max_retries=0), sleep=sleep or RecordingSleep()),
    )


# ---------------------------------------------------------------------------
# 스트리밍 가짜 전송 계층
# ---------------------------------------------------------------------------


class FakeWebSocket:
    """websockets 연결 대역 (send/ping/close + 수신 큐 기반 async 반복)"""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.pings = 0
        self.closed = False
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.fail_sends = False
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.closed or self.fail_sends:
            raise ConnectionError("socket is closed")
        self.sent.append(message)

    async def ping(self) -> None:
        if self.closed:
            raise ConnectionError("socket is closed")
        self.pings += 1

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.close_code = 1000
            self._incoming.put_nowait(_CLOSED)

    def feed(self, raw: str | bytes) -> None:
        self._incoming.put_nowait(raw)

    def drop(self, code: int = 1006, reason: str = "abnormal closure") -> None:
        """서버 측 종료 흉내"""
        self.closed = True
        self.close_code = code
        self.close_reason = reason
        self._incoming.put_nowait(_CLOSED)

    @property
    def sent_json(self) -> list[dict[str, Any]]:
        return [orjson.loads(m) for m in self.sent if m.startswith("{")]

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._incoming.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


@dataclass
class FakeConnector:
    """연결 시도마다 준비된 결과(소켓 또는 예외)를 순서대로 반환

    준비된 결과가 없으면 새 FakeWebSocket 을 만든다.
    """

    outcomes: list[Any] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)
    sockets: list[FakeWebSocket] = field(default_factory=list)

    async def __call__(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        outcome = self.outcomes.pop(0) if self.outcomes else FakeWebSocket()
        if isinstance(outcome, BaseException):
            raise outcome
        self.sockets.append(outcome)
        return outcome

    @property
    def latest(self) -> FakeWebSocket:
        return self.sockets[-1]


def build_policy(**overrides: Any) -> ConnectionPolicyDomain:
    values: dict[str, Any] = {
        "connect_timeout": 1.0,
        "reconnect_interval": 0.5,
        "max_reconnects": 3,
        "ping_interval": 3600.0,
    }
    values.update(overrides)
    return ConnectionPolicyDomain(**values)


async def wait_until(predicate: Callable[[], bool], *, attempts: int = 1000) -> None:
    """이벤트 루프를 양보하며 조건이 참이 될 때까지 대기"""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
