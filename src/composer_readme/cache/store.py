"""In-memory response cache bounded by time-to-live and total byte size.

:class:`MemoryCache` memoises tool responses for the lifetime of the process.
Each entry carries its own TTL and an approximate size (the length of its JSON
serialisation); the sum of all live entry sizes never exceeds
``max_size_bytes`` after a :meth:`~MemoryCache.set`. When space is needed,
expired entries are swept first and then the oldest-stored entries are
evicted until the new one fits. A single entry larger than the whole budget
is still admitted, alone.

Expired entries are dropped lazily on read and proactively by a background
sweep thread running every ``cleanup_interval`` seconds. The sweep must be
stopped with :meth:`~MemoryCache.destroy` (or by leaving the ``with`` block)
for a clean shutdown.

The cache performs no I/O and never awaits; all mutations happen under a
single lock so it is safe to share between threads. It does not de-duplicate
concurrent fetches: two callers that miss on the same key both fetch.

See Also:
    :func:`~composer_readme.cache.helpers.with_cache` -- the read-through
    helper the tools use.
"""

from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel

from composer_readme.cache.keys import KEY_SEPARATOR
from composer_readme.exceptions import InvalidInputError
from composer_readme.output import debug, warning

DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_MAX_SIZE_BYTES = 100 * 1024 * 1024
DEFAULT_CLEANUP_INTERVAL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    """A stored value with its bookkeeping. Replaced wholesale on re-``set``."""

    value: Any
    stored_at: float
    ttl: float
    size_bytes: int

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


@dataclass
class CacheStats:
    """Snapshot returned by :meth:`MemoryCache.get_stats`."""

    entry_count: int
    approx_total_bytes: int
    hit_count: int
    miss_count: int
    max_size_bytes: int
    default_ttl: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def estimate_size(value: Any) -> int:
    """Return the UTF-8 length of *value*'s JSON serialisation.

    Pydantic models (also nested inside lists and dicts) are serialised in
    JSON mode.

    Raises:
        InvalidInputError: If *value* cannot be serialised.
    """
    try:
        if isinstance(value, BaseModel):
            text = value.model_dump_json()
        else:
            text = json.dumps(value, ensure_ascii=False, default=_json_default)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(
            f"Cache value of type {type(value).__name__} is not serialisable: {exc}"
        ) from exc
    return len(text.encode("utf-8"))


class MemoryCache:
    """Expiring key-value store with a global byte budget.

    Args:
        default_ttl: TTL in seconds for entries stored without one.
        max_size_bytes: Upper bound for the summed size of live entries.
        cleanup_interval: Seconds between background expiry sweeps.
        clock: Monotonic time source; injectable for tests.
        auto_sweep: Start the background sweep thread immediately.

    Raises:
        InvalidInputError: If any of the numeric limits is not positive.

    Example::

        with MemoryCache(default_ttl=60, max_size_bytes=1_000_000) as cache:
            cache.set("readme\\x1fmonolog/monolog\\x1flatest", response)
            hit = cache.get("readme\\x1fmonolog/monolog\\x1flatest")
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        auto_sweep: bool = True,
    ) -> None:
        if default_ttl <= 0:
            raise InvalidInputError(f"default_ttl must be positive, got {default_ttl}")
        if max_size_bytes <= 0:
            raise InvalidInputError(f"max_size_bytes must be positive, got {max_size_bytes}")
        if cleanup_interval <= 0:
            raise InvalidInputError(
                f"cleanup_interval must be positive, got {cleanup_interval}"
            )

        self._default_ttl = float(default_ttl)
        self._max_size_bytes = max_size_bytes
        self._cleanup_interval = float(cleanup_interval)
        self._clock = clock

        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._total_bytes = 0
        self._hits = 0
        self._misses = 0
        self._lock = threading.RLock()

        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

        if auto_sweep:
            self.start()

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> MemoryCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.destroy()

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    @property
    def max_size_bytes(self) -> int:
        return self._max_size_bytes

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store *value* under *key*, evicting older entries if the budget requires it.

        Args:
            key: Opaque cache key, see :mod:`composer_readme.cache.keys`.
            value: JSON-serialisable value or Pydantic model.
            ttl: Lifetime in seconds. ``None`` uses the default; zero or
                negative values are coerced to the default with a warning.

        Raises:
            InvalidInputError: If *value* cannot be serialised for size
                estimation. The store is left unchanged.
        """
        size = estimate_size(value)

        if ttl is None:
            ttl = self._default_ttl
        elif ttl <= 0:
            warning(
                f"Non-positive cache TTL {ttl} for {describe(key)}, "
                f"using default {self._default_ttl:g}s"
            )
            ttl = self._default_ttl

        with self._lock:
            now = self._clock()

            previous = self._entries.pop(key, None)
            if previous is not None:
                self._total_bytes -= previous.size_bytes

            self._purge_expired(now)

            while self._entries and self._total_bytes + size > self._max_size_bytes:
                evicted_key, evicted = self._entries.popitem(last=False)
                self._total_bytes -= evicted.size_bytes
                debug(f"Cache evict: {describe(evicted_key)} ({evicted.size_bytes} bytes)")

            if size > self._max_size_bytes:
                warning(
                    f"Cache entry {describe(key)} ({size} bytes) exceeds the "
                    f"{self._max_size_bytes} byte budget; storing it alone"
                )

            self._entries[key] = CacheEntry(value=value, stored_at=now, ttl=float(ttl), size_bytes=size)
            self._total_bytes += size

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under *key*, or *default* if unknown or expired.

        An entry found expired is removed on the spot.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default
            if entry.is_expired(self._clock()):
                self._remove(key)
                self._misses += 1
                return default
            self._hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        """Return ``True`` if *key* holds a live entry. Does not count as a hit or miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._remove(key)
                return False
            return True

    def delete(self, key: str) -> bool:
        """Remove *key*; returns ``True`` if an entry was removed."""
        with self._lock:
            return self._remove(key) is not None

    def clear(self) -> None:
        """Remove all entries. Hit/miss counters are kept."""
        with self._lock:
            self._entries.clear()
            self._total_bytes = 0

    def size(self) -> int:
        """Number of stored entries (expired ones not yet swept included)."""
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entry_count=len(self._entries),
                approx_total_bytes=self._total_bytes,
                hit_count=self._hits,
                miss_count=self._misses,
                max_size_bytes=self._max_size_bytes,
                default_ttl=self._default_ttl,
            )

    def cleanup(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            return self._purge_expired(self._clock())

    # ------------------------------------------------------------------ #
    # Background sweep
    # ------------------------------------------------------------------ #

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start(self) -> None:
        """Start the background sweep thread (no-op if already running)."""
        with self._lock:
            if self.is_sweeping:
                return
            self._stop_event = threading.Event()
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(self._stop_event,),
                name="composer-readme-cache-sweep",
                daemon=True,
            )
            self._sweeper.start()

    def stop(self) -> None:
        """Stop the background sweep thread and wait for it to exit."""
        self._stop_event.set()
        sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=5)
        self._sweeper = None

    def destroy(self) -> None:
        """Stop the sweep and drop every entry. Safe to call more than once."""
        self.stop()
        self.clear()

    def _sweep_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._cleanup_interval):
            removed = self.cleanup()
            if removed:
                debug(f"Cache sweep removed {removed} expired entries")

    # ------------------------------------------------------------------ #
    # Private helpers (caller holds the lock)
    # ------------------------------------------------------------------ #

    def _remove(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._total_bytes -= entry.size_bytes
        return entry

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            self._remove(key)
        return len(expired)


def describe(key: str) -> str:
    """Render a cache key for log messages."""
    return key.replace(KEY_SEPARATOR, ":")
