"""
Response caching around the request pipeline.

CachingResponder flow per request:
    lookup → hit: return stored response as-is
           → miss: run pipeline → add Cache-Control → schedule store → return

The store is scheduled on the running event loop and not awaited, so a
slow or failing cache write never changes the response or delays it.
"""

import asyncio
import time
import traceback
from typing import Awaitable, Callable, Dict, Optional, Protocol, Set, Tuple

from .errors import WorkshopError
from .log_utils import log_event
from .worker_response import JSON_HEADERS, WorkerResponse, error_response

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_ENTRIES = 1024


class ResponseCache(Protocol):
    """Async key → response store with per-entry TTL."""

    async def get(self, key: str) -> Optional[WorkerResponse]:
        ...

    async def put(self, key: str, response: WorkerResponse, ttl: int) -> None:
        ...


class MemoryResponseCache:
    """
    In-process response cache.

    Entries are immutable once written; rewriting a key stores the same
    computed value, so concurrent writers need no locking.

    Expired entries are swept on every write, and at most `max_entries`
    are held; past that the oldest write is evicted first.
    """

    def __init__(self, clock: Callable[[], float] = time.time, max_entries: int = DEFAULT_MAX_ENTRIES):
        self._entries: Dict[str, Tuple[WorkerResponse, float]] = {}
        self._clock = clock
        self.max_entries = max_entries

    async def get(self, key: str) -> Optional[WorkerResponse]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        response, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return response.copy()

    async def put(self, key: str, response: WorkerResponse, ttl: int) -> None:
        now = self._clock()
        self._sweep_expired(now)

        # Re-inserting moves the key to the newest position
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

        self._entries[key] = (response.copy(), now + ttl)

    def _sweep_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


Pipeline = Callable[[], Awaitable[WorkerResponse]]


class CachingResponder:
    """Serve from cache, or run the pipeline and write the result through."""

    def __init__(
        self,
        cache: ResponseCache,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        cache_control: Optional[str] = None,
        headers: Optional[dict] = None
    ):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.cache_control = cache_control or f'public, max-age={ttl_seconds}'
        self.headers = dict(headers or JSON_HEADERS)
        self._pending: Set[asyncio.Task] = set()

    async def respond(self, cache_key: str, pipeline: Pipeline) -> WorkerResponse:
        cached = await self._lookup(cache_key)
        if cached is not None:
            log_event('Cache hit', cache_key=cache_key)
            return cached

        log_event('Cache miss', cache_key=cache_key)

        try:
            response = await pipeline()
        except WorkshopError as e:
            log_event(
                'Request failed', severity='WARNING',
                cache_key=cache_key, status=e.status_code, error=e.message
            )
            return e.to_response(self.headers)
        except Exception as e:
            log_event(
                'Unhandled pipeline error', severity='ERROR',
                cache_key=cache_key, error=str(e), traceback=traceback.format_exc()
            )
            return error_response('Internal Server Error', 500, self.headers)

        # Only successful responses are cacheable
        if response.status != 200:
            return response

        response = response.with_headers({'Cache-Control': self.cache_control})
        self._schedule_store(cache_key, response)
        return response

    async def _lookup(self, cache_key: str) -> Optional[WorkerResponse]:
        try:
            return await self.cache.get(cache_key)
        except Exception as e:
            log_event('Cache read failed', severity='WARNING', cache_key=cache_key, error=str(e))
            return None

    def _schedule_store(self, cache_key: str, response: WorkerResponse) -> None:
        task = asyncio.get_running_loop().create_task(self._store(cache_key, response))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _store(self, cache_key: str, response: WorkerResponse) -> None:
        try:
            await self.cache.put(cache_key, response, self.ttl_seconds)
        except Exception as e:
            log_event('Cache store failed', severity='WARNING', cache_key=cache_key, error=str(e))

    async def drain(self) -> None:
        """Wait for every scheduled cache write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
