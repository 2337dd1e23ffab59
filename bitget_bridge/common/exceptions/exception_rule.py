from __future__ import annotations

import asyncio
import socket
from typing import TypeAlias

import aiohttp

from bitget_bridge.common.exceptions.errors import TransportError
from bitget_bridge.core.dto.internal.common import RuleDomain
from bitget_bridge.core.types import ErrorCode

# aiohttp 3.10+ 에서만 제공 (이전 버전은 ClientConnectorError로 포괄)
_DNS_ERRORS: tuple[type[BaseException], ...] = (socket.gaierror,)
if hasattr(aiohttp, "ClientConnectorDNSError"):
    _DNS_ERRORS = (aiohttp.ClientConnectorDNSError, socket.gaierror)


# 1) 구체적인 연결 실패 (고정 재시도 집합)
RULES_CONNECTION: list[RuleDomain] = [
    RuleDomain(
        kinds=("http", "ws"),
        exc=_DNS_ERRORS,
        result=ErrorCode.ENOTFOUND,
    ),
    RuleDomain(
        kinds=("http", "ws"),
        exc=ConnectionRefusedError,
        result=ErrorCode.ECONNREFUSED,
    ),
    RuleDomain(
        kinds=("http", "ws"),
        exc=(ConnectionResetError, aiohttp.ServerDisconnectedError),
        result=ErrorCode.ECONNRESET,
    ),
    RuleDomain(
        kinds=("http", "ws"),
        exc=(asyncio.TimeoutError, TimeoutError, aiohttp.ServerTimeoutError),
        result=ErrorCode.ETIMEDOUT,
    ),
]

# 2) 포괄 규칙 (클라이언트 계층 / 소켓 계층)
RULES_GENERIC: list[RuleDomain] = [
    RuleDomain(
        kinds=("http",),
        exc=aiohttp.ClientError,
        result=ErrorCode.NETWORK_ERROR,
    ),
    RuleDomain(
        kinds=("http", "ws"),
        exc=OSError,
        result=ErrorCode.NETWORK_ERROR,
    ),
]

# 3) 전체 규칙 (구체 -> 포괄 순서를 유지하며 결합)
# 주의: 매칭 우선순위를 보장하기 위해 선언 순서를 유지합니다.
RULES_FOR_HTTP: list[RuleDomain] = [
    *[r for r in RULES_CONNECTION if "http" in r.kinds],
    *[r for r in RULES_GENERIC if "http" in r.kinds],
]

RULES_FOR_WS: list[RuleDomain] = [
    *[r for r in RULES_CONNECTION if "ws" in r.kinds],
    *[r for r in RULES_GENERIC if "ws" in r.kinds],
]

RuleDict: TypeAlias = dict[str, list[RuleDomain]]
RULES_BY_KIND: RuleDict = {
    "http": RULES_FOR_HTTP,
    "ws": RULES_FOR_WS,
}

# 전송 계층 변환 대상 예외 (try/except 대상)
TRANSPORT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    TimeoutError,
    OSError,
)


def classify_exception(err: BaseException, kind: str = "http") -> ErrorCode | None:
    """예외 → ErrorCode 분류기 (규칙 테이블 기반)

    - 규칙은 "구체 → 포괄" 순서로 선언되어 가장 특수한 규칙이 먼저 매칭됩니다.
    - 매칭 규칙이 없으면 None
    """
    # aiohttp는 원인 소켓 예외를 os_error로 감싸서 전달
    os_error = getattr(err, "os_error", None)
    if isinstance(os_error, BaseException) and os_error is not err:
        inner = classify_exception(os_error, kind)
        if inner is not None and inner != ErrorCode.NETWORK_ERROR:
            return inner

    for rule in RULES_BY_KIND.get(kind, []):
        if isinstance(err, rule.exc):
            return rule.result
    return None


def to_transport_error(err: BaseException, kind: str = "http") -> TransportError:
    """저수준 예외를 TransportError로 감싼다 (code는 규칙 테이블로 결정)."""
    code = classify_exception(err, kind) or ErrorCode.NETWORK_ERROR
    transport_error = TransportError(f"{code}: {err}", code=code)
    transport_error.__cause__ = err
    return transport_error
