"""
aiohttp 기반 HTTP 전송 계층

세션을 지연 생성/재사용하고, 저수준 연결 예외를 TransportError로 변환합니다.
응답 본문은 상태 코드와 무관하게 JSON으로 파싱합니다 (에러도 봉투 형식으로 내려옴).
"""

from __future__ import annotations

from typing import Any

import aiohttp
import orjson

from bitget_bridge.common.exceptions.errors import TransportError
from bitget_bridge.common.exceptions.exception_rule import (
    TRANSPORT_EXCEPTIONS,
    to_transport_error,
)
from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.types import ErrorCode

logger = PipelineLogger.get_logger("http_client", "infra")


class HttpTransport:
    """단일 aiohttp 세션을 소유하는 전송 객체"""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpTransport:
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """HTTP 세션을 생성하거나 재사용합니다."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
        return self._session

    async def close(self) -> None:
        """HTTP 세션을 종료합니다."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> Any:
        """요청을 보내고 파싱된 JSON을 반환합니다."""
        session = await self._ensure_session()
        try:
            async with session.request(
                method,
                url,
                data=body.encode("utf-8") if body else None,
                headers=headers,
            ) as response:
                raw_body = await response.read()
                status = response.status
        except TRANSPORT_EXCEPTIONS as e:
            raise to_transport_error(e, "http") from e

        try:
            return orjson.loads(raw_body)
        except orjson.JSONDecodeError as e:
            logger.warning(
                "Non-JSON response",
                method=method,
                url=url,
                status=status,
                body_preview=raw_body[:200].decode("utf-8", errors="replace"),
            )
            raise TransportError(
                f"HTTP {status}: non-JSON response", code=ErrorCode.NETWORK_ERROR
            ) from e
