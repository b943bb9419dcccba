"""In-process response caching for composer-readme.

This package provides :class:`MemoryCache`, an in-memory store with per-entry
TTL and a global byte budget, the key builders in :mod:`.keys`, and the
:func:`with_cache` read-through helper the tools are written against.

The cache is created once by :class:`~composer_readme.service.PackageService`
from the ``cache`` section of the configuration
(:class:`~composer_readme.models.CacheConfig`) and destroyed when the service
closes. Nothing is persisted across restarts.
"""

from composer_readme.cache.helpers import with_cache
from composer_readme.cache.keys import (
    create_cache_key,
    download_stats_key,
    package_info_key,
    package_readme_key,
    search_results_key,
)
from composer_readme.cache.store import CacheEntry, CacheStats, MemoryCache

__all__ = [
    "CacheEntry",
    "CacheStats",
    "MemoryCache",
    "create_cache_key",
    "download_stats_key",
    "package_info_key",
    "package_readme_key",
    "search_results_key",
    "with_cache",
]
