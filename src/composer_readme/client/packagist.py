"""Client for the Packagist registry API.

Endpoints used:

* ``HEAD /packages/<vendor>/<name>.json`` -- existence check
* ``GET  /packages/<vendor>/<name>.json`` -- full package metadata
* ``GET  /packages/<vendor>/<name>/stats.json`` -- download counters
* ``GET  /search.json`` -- full-text search
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from composer_readme.cache.helpers import with_cache
from composer_readme.cache.keys import download_stats_key
from composer_readme.cache.store import MemoryCache
from composer_readme.client.base import BaseAPIClient
from composer_readme.exceptions import (
    ComposerReadmeError,
    NotFoundError,
    PackageNotFoundError,
    UpstreamError,
    VersionNotFoundError,
)
from composer_readme.models import (
    DownloadStats,
    PackagistPackage,
    PackagistSearchResponse,
    PackagistVersion,
)
from composer_readme.output import debug, warning
from composer_readme.versions import resolve_version

PACKAGIST_URL = "https://packagist.org"


class PackagistClient(BaseAPIClient):
    """Async client for ``packagist.org`` (or a compatible mirror)."""

    def __init__(
        self,
        base_url: str = PACKAGIST_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url,
            service_name="Packagist",
            timeout=timeout,
            max_retries=max_retries,
            retry_base_delay=retry_base_delay,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def package_exists(self, package_name: str) -> bool:
        """Whether *package_name* is published. Any failure counts as absent."""
        try:
            await self.head(f"/packages/{package_name}.json")
        except NotFoundError:
            debug(f"Package existence check: {package_name} - not found")
            return False
        except ComposerReadmeError as exc:
            warning(f"Package existence check failed for {package_name}: {exc}")
            return False
        debug(f"Package existence check: {package_name} - exists")
        return True

    async def get_package_info(self, package_name: str) -> PackagistPackage:
        """Fetch the full metadata of *package_name*, all versions included.

        Raises:
            PackageNotFoundError: If Packagist answers 404.
            UpstreamError: If the payload is not a package document.
        """
        debug(f"Fetching package info: {package_name}")
        try:
            data = await self.get_json(f"/packages/{package_name}.json")
        except NotFoundError as exc:
            raise PackageNotFoundError(package_name) from exc

        if not isinstance(data, dict) or not isinstance(data.get("package"), dict):
            raise UpstreamError(f"Unexpected Packagist payload for {package_name}")
        try:
            return PackagistPackage.model_validate(data["package"])
        except ValidationError as exc:
            raise UpstreamError(f"Invalid Packagist payload for {package_name}: {exc}") from exc

    async def get_version_info(self, package_name: str, version: str = "latest") -> PackagistVersion:
        """Fetch the metadata of one version, resolving ``latest`` and aliases.

        The returned model's ``version`` is the resolved version key.

        Raises:
            PackageNotFoundError: If the package does not exist.
            VersionNotFoundError: If no declared version matches *version*.
        """
        package = await self.get_package_info(package_name)
        return select_version(package, version)

    async def search_packages(
        self,
        query: str,
        limit: int = 20,
        type_: Optional[str] = None,
    ) -> PackagistSearchResponse:
        params: dict[str, Any] = {"q": query, "per_page": limit}
        if type_:
            params["type"] = type_

        debug(f"Searching Packagist: {query!r} (limit {limit})")
        data = await self.get_json("/search.json", params=params)
        try:
            return PackagistSearchResponse.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError(f"Invalid Packagist search payload: {exc}") from exc

    async def get_package_stats(self, package_name: str) -> Optional[dict[str, Any]]:
        """Return the raw ``stats.json`` document, or ``None`` if the package is unknown."""
        try:
            data = await self.get_json(f"/packages/{package_name}/stats.json")
        except NotFoundError:
            return None
        return data if isinstance(data, dict) else None

    async def get_download_stats(
        self, package_name: str, cache: Optional[MemoryCache] = None
    ) -> DownloadStats:
        """Return download counters; zeros on any failure.

        With *cache*, the raw ``stats.json`` document is read through it under
        :func:`~composer_readme.cache.keys.download_stats_key`. Failed fetches
        are not cached.
        """
        try:
            stats = await with_cache(
                cache,
                download_stats_key(package_name),
                lambda: self.get_package_stats(package_name),
            )
        except ComposerReadmeError as exc:
            warning(f"Failed to fetch download stats for {package_name}, using zeros: {exc}")
            return DownloadStats()

        if not stats:
            return DownloadStats()

        package = stats.get("package")
        downloads = package.get("downloads") if isinstance(package, dict) else stats.get("downloads")
        if not isinstance(downloads, dict):
            return DownloadStats()
        try:
            return DownloadStats.model_validate(downloads)
        except ValidationError as exc:
            warning(f"Malformed download stats for {package_name}, using zeros: {exc}")
            return DownloadStats()


def select_version(package: PackagistPackage, version: str = "latest") -> PackagistVersion:
    """Pick the metadata of *version* out of an already fetched package.

    The returned model's ``version`` is the resolved version key.

    Raises:
        VersionNotFoundError: If no declared version matches *version*.
    """
    resolved = resolve_version(package.versions, version)
    if resolved is None:
        raise VersionNotFoundError(package.name, version)

    info = package.versions[resolved]
    if info.version != resolved:
        info = info.model_copy(update={"version": resolved})
    debug(f"Resolved {package.name}@{version} to {resolved}")
    return info
