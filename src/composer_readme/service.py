"""Composition root owning the cache and the upstream clients.

One :class:`PackageService` is created per process (per CLI invocation, or
once for the lifetime of the MCP server) and handed to every tool call. It
must be closed so the HTTP connection pools are released and the cache's
background sweep thread stops.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from composer_readme.cache.store import MemoryCache
from composer_readme.client.github import GitHubClient
from composer_readme.client.packagist import PackagistClient
from composer_readme.models import GlobalConfig
from composer_readme.output import debug


class PackageService:
    """Owns one :class:`MemoryCache`, one :class:`PackagistClient` and one :class:`GitHubClient`.

    Args:
        config: Effective configuration, see
            :func:`~composer_readme.config.resolve_config`.
        packagist: Pre-built registry client (tests inject one with a mock
            transport); built from *config* when ``None``.
        github: Pre-built GitHub client; built from *config* when ``None``.
        cache: Pre-built cache; built from *config* when ``None``.
        clock: Time source for a cache built here.

    Example::

        async with PackageService(resolve_config()) as service:
            response = await handle_tool_call(service, "search_packages_from_composer", {"query": "log"})
    """

    def __init__(
        self,
        config: Optional[GlobalConfig] = None,
        packagist: Optional[PackagistClient] = None,
        github: Optional[GitHubClient] = None,
        cache: Optional[MemoryCache] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or GlobalConfig()
        request = self.config.request

        self.cache = cache if cache is not None else MemoryCache(
            default_ttl=self.config.cache.ttl_seconds,
            max_size_bytes=self.config.cache.max_size_bytes,
            cleanup_interval=self.config.cache.cleanup_interval_seconds,
            clock=clock,
            auto_sweep=self.config.cache.enabled,
        )
        self.packagist = packagist or PackagistClient(
            base_url=self.config.packagist_url,
            timeout=request.timeout,
            max_retries=request.max_retries,
            retry_base_delay=request.retry_base_delay,
        )
        self.github = github or GitHubClient(
            token=self.config.github.token,
            base_url=self.config.github.api_url,
            timeout=request.timeout,
            max_retries=request.max_retries,
            retry_base_delay=request.retry_base_delay,
        )
        self._closed = False

    @property
    def active_cache(self) -> Optional[MemoryCache]:
        """The cache tools should read through, or ``None`` when caching is disabled."""
        return self.cache if self.config.cache.enabled else None

    async def __aenter__(self) -> PackageService:
        self.packagist.open()
        self.github.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close both clients and destroy the cache. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self.packagist.aclose()
        await self.github.aclose()
        stats = self.cache.get_stats()
        debug(
            f"Cache stats at shutdown: {stats.entry_count} entries, "
            f"{stats.hit_count} hits, {stats.miss_count} misses"
        )
        self.cache.destroy()
