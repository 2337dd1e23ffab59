from contextlib import asynccontextmanager
from typing import AsyncIterator

from bitget_bridge.config.settings import (
    BitgetSettings,
    CacheSettings,
    RateLimitSettings,
    RetrySettings,
)
from bitget_bridge.core.rest.client import BitgetRestClient
from bitget_bridge.core.rest.signer import RateLimiter
from bitget_bridge.core.services.retry import RetryExecutor
from bitget_bridge.infra.cache.cache_store import CacheManager
from bitget_bridge.infra.http.http_client import HttpTransport


@asynccontextmanager
async def init_cache_manager(settings: CacheSettings) -> AsyncIterator[CacheManager]:
    """데이터 종류별 캐시 등록 + 주기 스윕 시작/중단"""
    manager = CacheManager.from_spec(settings.to_spec(), settings.cleanup_interval)
    manager.start_cleanup()
    yield manager
    await manager.stop_cleanup()
    manager.clear_all()


@asynccontextmanager
async def init_http_transport(timeout: float) -> AsyncIterator[HttpTransport]:
    """HTTP 세션 생성 및 정리"""
    transport = HttpTransport(timeout=timeout)
    yield transport
    await transport.close()


@asynccontextmanager
async def init_rest_client(
    bitget: BitgetSettings,
    transport: HttpTransport,
    rate_limit: RateLimitSettings,
    retry: RetrySettings,
) -> AsyncIterator[BitgetRestClient]:
    """REST 클라이언트 (rate limiter/재시도 실행기는 인스턴스 전용)"""
    client = BitgetRestClient(
        bitget.to_credentials(),
        transport=transport,
        rate_limiter=RateLimiter(rate_limit.max_requests, rate_limit.window),
        retry=RetryExecutor(retry.to_config()),
    )
    yield client
    await client.close()
