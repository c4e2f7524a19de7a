# ABOUTME: In-memory TTL cache for assembled wiki responses with a background expiry sweep
# ABOUTME: Single-writer/multi-reader locking, lazy expiry on read, and namespaced cache key helpers

from __future__ import annotations

import asyncio
import contextlib
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from wiki_navigator.utils.logging import get_logger

KEY_SEPARATOR = ":"
DEFAULT_SWEEP_INTERVAL = 60.0

logger = get_logger(__name__)


class ReadWriteLock:
    """Lock allowing many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextlib.contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Key/value store where every entry carries its own expiration instant.

    Expired entries are invisible to ``get`` immediately and are physically removed by
    ``sweep``, which the background task started with ``start_sweeper`` runs on a fixed
    interval. There is no size cap or LRU policy; keys must be designed by the caller.

    Args:
        clock: Monotonic time source in seconds, injectable for tests
        sweep_interval: Seconds between background sweeps
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        self._items: dict[str, CacheEntry] = {}
        self._lock = ReadWriteLock()
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._sweeper: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    def get(self, key: str) -> tuple[Any, bool]:
        """Return ``(value, True)`` for a live entry, ``(None, False)`` otherwise."""
        with self._lock.read():
            entry = self._items.get(key)
            if entry is None or self._clock() >= entry.expires_at:
                return None, False
            return entry.value, True

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        with self._lock.write():
            self._items[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock.write():
            self._items.pop(key, None)

    def sweep(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        with self._lock.write():
            now = self._clock()
            expired = [key for key, entry in self._items.items() if now >= entry.expires_at]
            for key in expired:
                del self._items[key]
        if expired:
            logger.debug("Swept expired cache entries", removed=len(expired), remaining=len(self))
        return len(expired)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._items)

    def __contains__(self, key: str) -> bool:
        return self.get(key)[1]

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start_sweeper(self) -> None:
        """Start the background sweep task on the running event loop (idempotent)."""
        if self.sweeper_running:
            return
        self._stop_event = asyncio.Event()
        self._sweeper = asyncio.create_task(self._sweep_loop(self._stop_event), name="ttl-cache-sweeper")
        logger.debug("Started cache sweeper", interval_seconds=self.sweep_interval)

    async def stop_sweeper(self) -> None:
        """Signal the sweep task to stop and wait for it to finish."""
        if self._sweeper is None or self._stop_event is None:
            return
        self._stop_event.set()
        await self._sweeper
        self._sweeper = None
        self._stop_event = None
        logger.debug("Stopped cache sweeper")

    async def _sweep_loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.sweep_interval)
            except TimeoutError:
                self.sweep()


def cache_key(*parts: object) -> str:
    """Join key parts with the fixed separator."""
    return KEY_SEPARATOR.join(str(part) for part in parts)


def page_cache_key(wiki_url: str, title: str) -> str:
    return cache_key("page", wiki_url, title)


def outline_cache_key(wiki_url: str, title: str) -> str:
    return cache_key("outline", wiki_url, title)


def section_cache_key(wiki_url: str, title: str, section_index: int) -> str:
    return cache_key("section", wiki_url, title, section_index)


def search_cache_key(wiki_url: str, query: str, limit: int) -> str:
    return cache_key("search", wiki_url, query, limit)


def info_cache_key(wiki_url: str) -> str:
    return cache_key("info", wiki_url)


def category_cache_key(wiki_url: str, category: str, limit: int) -> str:
    return cache_key("category", wiki_url, category, limit)


def backlinks_cache_key(wiki_url: str, title: str, limit: int) -> str:
    return cache_key("backlinks", wiki_url, title, limit)
