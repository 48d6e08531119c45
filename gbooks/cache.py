"""
In-memory memoizing cache for coroutine results.

Requests still running are kept as asyncio.Tasks so callers asking for the same
key await that task instead of starting another one. Resolved values move into a
cachetools cache: TTLCache when max_age is set, LRUCache/Cache otherwise.
Failed or cancelled tasks are never stored.
"""
import asyncio
import math
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from cachetools import Cache, LRUCache, TTLCache


class MemoCache:
    def __init__(
        self,
        max_age: float = 0,
        max_size: Optional[int] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        max_age: seconds a resolved entry stays valid, 0 means forever.
        max_size: evict least recently used entries beyond this count.
        """
        self.max_age = max_age
        self.max_size = max_size
        maxsize = max_size if max_size is not None else math.inf
        if max_age:
            self._results: Cache = TTLCache(maxsize=maxsize, ttl=max_age, timer=timer)
        elif max_size is not None:
            self._results = LRUCache(maxsize=maxsize)
        else:
            self._results = Cache(maxsize=maxsize)
        self._pending: Dict[str, "asyncio.Task[Any]"] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._results) + len(self._pending)

    def __contains__(self, key: str) -> bool:
        return key in self._results or key in self._pending

    def _on_done(self, key: str, task: "asyncio.Task[Any]"):
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled() and task.exception() is None:
            self._results[key] = task.result()

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        """Return the value cached under key, running compute() on a miss."""
        try:
            value = self._results[key]
        except KeyError:
            pass
        else:
            self.hits += 1
            return value

        task = self._pending.get(key)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(compute())
            self._pending[key] = task
            task.add_done_callback(lambda t, key=key: self._on_done(key, t))
        else:
            self.hits += 1

        # Shielded so one cancelled waiter does not cancel the shared request
        return await asyncio.shield(task)

    def clear(self):
        self._results.clear()
        self._pending.clear()
