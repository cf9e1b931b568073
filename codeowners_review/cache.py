"""Single-slot caches fronting every expensive fetch.

A single-slot cache holds at most one (key, value) pair. A lookup with a key
equal to the stored one returns the stored value; any other key invokes the
producer and replaces the entry. Callers re-invoke the pipeline at a high
rate, so the key strategies below decide how stale each kind of data may get:

* navigation_key: one fetch per pull request page
* timeline_key: refetch when more timeline items have loaded
* time_bucket_key: refetch at most once per time window
* repo_key: one fetch per repository
* rules_key: one fetch per repository and base branch

Asynchronous caches store the in-flight task in the slot before awaiting it,
so concurrent callers with an equal key share a single fetch. The event loop
is cooperative: nothing else runs between the key check and the store.
"""

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

from codeowners_review.metrics import cache_requests
from codeowners_review.models import PullRequestContext

logger = logging.getLogger(__name__)

DEFAULT_TIME_BUCKET_SECONDS = 30


class SingleSlotCache[K: Hashable, V]:
    """Memoizer remembering only the most recent (key, value) pair."""

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self._entry: tuple[K, V] | None = None

    @property
    def key(self) -> K | None:
        return self._entry[0] if self._entry is not None else None

    def __contains__(self, key: object) -> bool:
        return self._entry is not None and self._entry[0] == key

    def clear(self) -> None:
        self._entry = None

    def get(self, key: K, producer: Callable[[], V]) -> V:
        """Return the value for key, producing it on a key change.

        If the producer raises, the previous entry stays in place.
        """
        if self._entry is not None and self._entry[0] == key:
            cache_requests.labels(cache=self.name, result="hit").inc()
            return self._entry[1]

        cache_requests.labels(cache=self.name, result="miss").inc()
        value = producer()
        self._entry = (key, value)
        return value


def _succeeded(future: asyncio.Future[Any]) -> bool:
    return future.done() and not future.cancelled() and future.exception() is None


class AsyncSingleSlotCache[K: Hashable, V]:
    """Single-slot memoizer for coroutine producers.

    The slot stores the producer's task, so a second caller with the same key
    awaits the outstanding fetch instead of starting another one. A failed
    fetch puts the previous successful entry back in the slot.
    """

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self._entry: tuple[K, asyncio.Future[V]] | None = None

    @property
    def key(self) -> K | None:
        return self._entry[0] if self._entry is not None else None

    def __contains__(self, key: object) -> bool:
        return self._entry is not None and self._entry[0] == key

    def clear(self) -> None:
        self._entry = None

    async def get(self, key: K, producer: Callable[[], Awaitable[V]]) -> V:
        entry = self._entry
        if entry is not None and entry[0] == key:
            cache_requests.labels(cache=self.name, result="hit").inc()
            # shield: a cancelled caller must not cancel the shared fetch
            return await asyncio.shield(entry[1])

        cache_requests.labels(cache=self.name, result="miss").inc()
        task = asyncio.ensure_future(producer())
        self._entry = (key, task)
        # Runs even when every caller has been cancelled
        task.add_done_callback(
            functools.partial(self._evict_failed, key, entry)
        )
        return await asyncio.shield(task)

    def _evict_failed(
        self,
        key: K,
        previous: tuple[K, asyncio.Future[V]] | None,
        task: asyncio.Future[V],
    ) -> None:
        if _succeeded(task):
            return
        if not task.cancelled():
            # Marks the exception retrieved when no caller is left to await it
            task.exception()
        cache_requests.labels(cache=self.name, result="error").inc()
        if self._entry is not None and self._entry[1] is task:
            self._entry = (
                previous if previous is not None and _succeeded(previous[1]) else None
            )
            logger.debug(f"Cache {self.name}: fetch for {key!r} failed")


def memoize[**P, R](
    key_fn: Callable[P, Hashable],
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorate a function with its own SingleSlotCache.

    The cache is reachable as ``fn.cache`` and reset with ``fn.cache_clear()``.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        cache: SingleSlotCache[Hashable, R] = SingleSlotCache(name=fn.__qualname__)

        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return cache.get(key_fn(*args, **kwargs), lambda: fn(*args, **kwargs))

        wrapper.cache = cache  # type: ignore[attr-defined]
        wrapper.cache_clear = cache.clear  # type: ignore[attr-defined]
        return wrapper

    return decorator


def amemoize[**P, R](
    key_fn: Callable[P, Hashable],
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorate a coroutine function with its own AsyncSingleSlotCache."""

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        cache: AsyncSingleSlotCache[Hashable, R] = AsyncSingleSlotCache(
            name=fn.__qualname__
        )

        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return await cache.get(
                key_fn(*args, **kwargs), lambda: fn(*args, **kwargs)
            )

        wrapper.cache = cache  # type: ignore[attr-defined]
        wrapper.cache_clear = cache.clear  # type: ignore[attr-defined]
        return wrapper

    return decorator


def _page_identity(ctx: PullRequestContext) -> str:
    return ctx.url or f"{ctx.org}/{ctx.repo}/pull/{ctx.number}"


def navigation_key(ctx: PullRequestContext) -> tuple[str]:
    return (_page_identity(ctx),)


def timeline_key(ctx: PullRequestContext) -> tuple[str, int]:
    return (_page_identity(ctx), ctx.timeline_count)


def time_bucket_key(
    ctx: PullRequestContext,
    seconds: int = DEFAULT_TIME_BUCKET_SECONDS,
    clock: Callable[[], float] = time.time,
) -> tuple[str, int, int]:
    """Timeline key plus the index of the current time window."""
    return (_page_identity(ctx), ctx.timeline_count, int(clock() // max(seconds, 1)))


def repo_key(ctx: PullRequestContext) -> tuple[str, str]:
    return (ctx.org.lower(), ctx.repo.lower())


def rules_key(ctx: PullRequestContext) -> tuple[str, str, str]:
    return (ctx.org.lower(), ctx.repo.lower(), ctx.base_branch)
