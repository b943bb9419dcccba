"""``get_package_info_from_composer``: latest version, license, dependencies, downloads."""

from __future__ import annotations

from typing import TYPE_CHECKING

from composer_readme.cache.helpers import with_cache
from composer_readme.cache.keys import package_info_key
from composer_readme.client.packagist import select_version
from composer_readme.exceptions import NotFoundError
from composer_readme.models import GetPackageInfoParams, PackageInfoResponse
from composer_readme.output import debug, info
from composer_readme.readme.cleaner import NO_DESCRIPTION
from composer_readme.tools.responses import (
    info_not_found,
    license_string,
    package_download_stats,
    repository_info,
)

if TYPE_CHECKING:
    from composer_readme.service import PackageService


async def get_package_info(
    service: PackageService, params: GetPackageInfoParams
) -> PackageInfoResponse:
    """Return summary information about the latest version of a package.

    The cached response carries every dependency section; the flags in
    *params* decide which of them the caller gets back. An unknown package
    yields ``exists=False``.
    """
    info(f"Fetching package info: {params.package_name}")

    async def produce() -> PackageInfoResponse:
        return await _fetch_package_info(service, params.package_name)

    response = await with_cache(
        service.active_cache,
        package_info_key(params.package_name),
        produce,
    )
    return apply_dependency_flags(response, params)


def apply_dependency_flags(
    response: PackageInfoResponse, params: GetPackageInfoParams
) -> PackageInfoResponse:
    update = {}
    if not params.include_dependencies:
        update["dependencies"] = None
    if not params.include_dev_dependencies:
        update["dev_dependencies"] = None
    if not params.include_suggestions:
        update["suggestions"] = None
    return response.model_copy(update=update) if update else response


async def _fetch_package_info(service: PackageService, package_name: str) -> PackageInfoResponse:
    if not await service.packagist.package_exists(package_name):
        info(f"Package not found: {package_name}")
        return info_not_found(package_name)

    try:
        package = await service.packagist.get_package_info(package_name)
        latest = select_version(package, "latest")
    except NotFoundError as exc:
        debug(f"Package info lookup: {exc}")
        return info_not_found(package_name)

    downloads = await service.packagist.get_download_stats(
        package_name, cache=service.active_cache
    )
    author = latest.authors[0].name if latest.authors else ""

    info(f"Fetched package info: {package_name}@{latest.version}")
    return PackageInfoResponse(
        package_name=package_name,
        latest_version=latest.version,
        description=latest.description or package.description or NO_DESCRIPTION,
        author=author,
        license=license_string(latest.license),
        keywords=latest.keywords,
        dependencies=latest.require,
        dev_dependencies=latest.require_dev,
        suggestions=latest.suggest,
        download_stats=package_download_stats(downloads),
        repository=repository_info(latest),
        exists=True,
    )
