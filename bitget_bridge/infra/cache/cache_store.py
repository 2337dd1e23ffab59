from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Callable, Generic, TypeVar

from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.dto.internal.cache import CacheEntry, CacheTTLSpec

logger = PipelineLogger.get_logger("cache_store", "cache")

T = TypeVar("T")

Clock = Callable[[], float]


class TTLCache(Generic[T]):
    """항목별 만료 시각을 가진 인메모리 key→value 저장소

    - get/has: 읽기 시점 만료 검사 (만료 항목은 즉시 삭제 후 miss)
    - cleanup: 전체 항목 만료 스윕 (CacheManager가 주기적으로 호출)
    """

    def __init__(
        self,
        default_ttl: float = 60.0,
        *,
        name: str = "default",
        clock: Clock = time.monotonic,
    ) -> None:
        self.name = name
        self.default_ttl = default_ttl
        self._clock = clock
        self._store: dict[str, CacheEntry[T]] = {}

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        effective_ttl = self.default_ttl if ttl is None else ttl
        self._store[key] = CacheEntry(value=value, expires_at=self._clock() + effective_ttl)
        logger.debug("Cache set", cache=self.name, key=key, ttl=effective_ttl)

    def _live_entry(self, key: str) -> CacheEntry[T] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            logger.debug("Cache expired", cache=self.name, key=key)
            return None
        return entry

    def get(self, key: str) -> T | None:
        entry = self._live_entry(key)
        if entry is None:
            logger.debug("Cache miss", cache=self.name, key=key)
            return None
        logger.debug("Cache hit", cache=self.name, key=key)
        return entry.value

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def delete(self, key: str) -> bool:
        logger.debug("Cache delete", cache=self.name, key=key)
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        logger.debug("Cache cleared", cache=self.name)
        self._store.clear()

    def size(self) -> int:
        """만료 여부와 무관한 현재 보관 항목 수 (스윕/읽기 전까지 만료 항목 포함)"""
        return len(self._store)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def cleanup(self) -> int:
        """만료 항목 스윕. 삭제한 항목 수를 반환한다."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug(
                "Cache cleanup completed",
                cache=self.name,
                cleaned=len(expired),
                remaining=len(self._store),
            )
        return len(expired)


class CacheManager:
    """이름 붙은 TTLCache 레지스트리 + 공통 스윕 주기 관리

    각 캐시는 독립된 키 공간과 기본 TTL을 가지며, 스윕 주기만 공유한다.
    """

    def __init__(self, cleanup_interval: float = 60.0, *, clock: Clock = time.monotonic) -> None:
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._caches: dict[str, TTLCache] = {}
        self._cleanup_task: asyncio.Task[None] | None = None

    @classmethod
    def from_spec(
        cls,
        spec: CacheTTLSpec,
        cleanup_interval: float = 60.0,
        *,
        clock: Clock = time.monotonic,
    ) -> CacheManager:
        """데이터 종류별 캐시(price, ticker, orderbook, candles, balance, positions) 등록"""
        manager = cls(cleanup_interval, clock=clock)
        for name, ttl in spec.as_mapping().items():
            manager.create_cache(name, ttl)
        return manager

    def create_cache(self, name: str, default_ttl: float) -> TTLCache:
        cache: TTLCache = TTLCache(default_ttl, name=name, clock=self._clock)
        self.add_cache(cache)
        return cache

    def add_cache(self, cache: TTLCache) -> None:
        if cache.name in self._caches:
            raise ValueError(f"cache already registered: {cache.name}")
        self._caches[cache.name] = cache

    def get_cache(self, name: str) -> TTLCache:
        return self._caches[name]

    def __getitem__(self, name: str) -> TTLCache:
        return self.get_cache(name)

    @property
    def names(self) -> list[str]:
        return list(self._caches)

    @property
    def is_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start_cleanup(self) -> None:
        """주기 스윕 시작 (이미 실행 중이면 재시작)"""
        self._cancel_task()
        self._cleanup_task = asyncio.create_task(
            self._cleanup_loop(), name="cache-cleanup"
        )
        logger.debug("Cache cleanup started", interval=self.cleanup_interval)

    async def stop_cleanup(self) -> None:
        task = self._cleanup_task
        self._cancel_task()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.debug("Cache cleanup stopped")

    def _cancel_task(self) -> None:
        if self._cleanup_task is not None and not self._cleanup_task.done():
            self._cleanup_task.cancel()
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            logger.debug("Running cache cleanup", cache_count=len(self._caches))
            self.cleanup_all()

    def cleanup_all(self) -> int:
        return sum(cache.cleanup() for cache in self._caches.values())

    def clear_all(self) -> None:
        for cache in self._caches.values():
            cache.clear()
