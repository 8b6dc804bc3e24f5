from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from paperswift.core.errors import ConsoleError
from paperswift.metrics import record_query_event


logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


def _normalize_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'y', 'on')


def refresh_requested(context: Any | None = None) -> bool:
    if context is None:
        return False
    if isinstance(context, dict):
        return _normalize_bool(context.get('refresh'))
    query = getattr(context, 'query_params', None)
    if query is not None:
        return _normalize_bool(query.get('refresh'))
    return False


class CacheBackend:
    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def delete_prefix(self, prefix: str) -> None:
        raise NotImplementedError


class MemoryCacheBackend(CacheBackend):
    """Entries live until deleted; there is no expiry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def delete_prefix(self, prefix: str) -> None:
        with self._lock:
            keys = [key for key in self._store.keys() if key.startswith(prefix)]
            for key in keys:
                self._store.pop(key, None)


@dataclass
class QueryResult:
    data: Any = None
    error: ConsoleError | None = None
    is_loading: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class QueryCache:
    def __init__(
        self,
        backend: CacheBackend | None = None,
        invalidation_map: Mapping[str, set[str]] | None = None,
    ) -> None:
        self.backend = backend or MemoryCacheBackend()
        self.invalidation_map = {key: set(value) for key, value in (invalidation_map or {}).items()}
        self._inflight: dict[str, asyncio.Future] = {}
        self._errors: dict[str, ConsoleError] = {}
        self._generations: dict[str, int] = {}

    def peek(self, key: str) -> QueryResult:
        pending = self._inflight.get(key)
        return QueryResult(
            data=self.backend.get(key),
            error=self._errors.get(key),
            is_loading=pending is not None and not pending.done(),
        )

    async def fetch(self, key: str, fetcher: Fetcher, *, force: bool = False) -> QueryResult:
        if not force:
            cached = self.backend.get(key)
            if cached is not None:
                record_query_event('query_hit')
                logger.debug('query hit: %s', key)
                return QueryResult(data=cached)

        pending = self._inflight.get(key)
        if pending is not None and not pending.done():
            record_query_event('query_dedup')
            logger.debug('query joined in-flight load: %s', key)
        else:
            record_query_event('query_miss')
            logger.debug('query miss: %s', key)
            pending = asyncio.ensure_future(self._load(key, fetcher, self._generations.get(key, 0)))
            self._inflight[key] = pending
            pending.add_done_callback(lambda done, key=key: self._forget(key, done))
        # A caller going away must not cancel the load other callers share.
        return await asyncio.shield(pending)

    def _forget(self, key: str, done: asyncio.Future) -> None:
        if self._inflight.get(key) is done:
            self._inflight.pop(key, None)

    async def _load(self, key: str, fetcher: Fetcher, generation: int) -> QueryResult:
        try:
            data = await fetcher()
        except ConsoleError as exc:
            record_query_event('query_error')
            logger.warning('query_load_failed key=%s error=%s', key, exc)
            if self._generations.get(key, 0) == generation:
                self._errors[key] = exc
            return QueryResult(error=exc)
        if self._generations.get(key, 0) == generation:
            self._errors.pop(key, None)
            self.backend.set(key, data)
        else:
            logger.debug('query result discarded after invalidation: %s', key)
        return QueryResult(data=data)

    def invalidate(self, key: str) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1
        self._inflight.pop(key, None)
        self._errors.pop(key, None)
        self.backend.delete(key)
        record_query_event('query_invalidate')
        logger.debug('query invalidate: %s', key)

    def invalidate_related(self, resource: str) -> set[str]:
        keys = {resource} | self.invalidation_map.get(resource, set())
        for key in sorted(keys):
            self.invalidate(key)
        return keys

    def invalidate_all(self) -> None:
        keys = set(self._generations) | set(self._inflight) | set(self._errors)
        for key in keys:
            self._generations[key] = self._generations.get(key, 0) + 1
        self._inflight.clear()
        self._errors.clear()
        self.backend.delete_prefix('')
        record_query_event('query_invalidate')
        logger.debug('query invalidate all')


class ResourceQuery:
    """A named, cached read bound to one fetcher (usually a collection list)."""

    def __init__(self, cache: QueryCache, key: str, fetcher: Fetcher) -> None:
        self.cache = cache
        self.key = key
        self.fetcher = fetcher

    async def load(self, *, force: bool = False) -> QueryResult:
        return await self.cache.fetch(self.key, self.fetcher, force=force)

    async def refetch(self) -> QueryResult:
        return await self.load(force=True)

    def peek(self) -> QueryResult:
        return self.cache.peek(self.key)
