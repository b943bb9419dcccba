"""Read-through helper used by every tool.

:func:`with_cache` implements the cache consumer contract: a hit returns the
stored value without calling the producer; a miss awaits the producer, stores
its result and returns it; a producer failure propagates and nothing is
cached.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, TypeVar

from composer_readme.cache.store import MemoryCache, describe
from composer_readme.output import debug

T = TypeVar("T")

_MISSING = object()


async def with_cache(
    cache: Optional[MemoryCache],
    key: str,
    producer: Callable[[], Awaitable[T]],
    ttl: Optional[float] = None,
) -> T:
    """Return the cached value for *key*, producing and storing it on a miss.

    Args:
        cache: The cache to consult. ``None`` disables caching and always
            calls *producer*.
        key: Cache key built with :mod:`composer_readme.cache.keys`.
        producer: Zero-argument coroutine function computing the value.
        ttl: Entry lifetime in seconds; ``None`` uses the cache default.

    Returns:
        The cached or freshly produced value.
    """
    if cache is None:
        return await producer()

    cached = cache.get(key, _MISSING)
    if cached is not _MISSING:
        debug(f"Cache hit: {describe(key)}")
        return cached  # type: ignore[return-value]

    debug(f"Cache miss: {describe(key)}")
    try:
        result = await producer()
    except Exception as exc:
        debug(f"Not caching {describe(key)}: {type(exc).__name__}: {exc}")
        raise
    cache.set(key, result, ttl)
    debug(f"Cache set: {describe(key)}")
    return result
