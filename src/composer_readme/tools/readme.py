"""``get_readme_from_composer``: README text, usage examples and install hints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from composer_readme.cache.helpers import with_cache
from composer_readme.cache.keys import package_readme_key
from composer_readme.client.packagist import select_version
from composer_readme.exceptions import NotFoundError
from composer_readme.models import GetPackageReadmeParams, PackageReadmeResponse
from composer_readme.output import debug, info
from composer_readme.readme.cleaner import NO_DESCRIPTION, clean_markdown, extract_description
from composer_readme.readme.extractor import parse_usage_examples
from composer_readme.tools.responses import (
    basic_info,
    installation_info,
    readme_not_found,
    repository_info,
)

if TYPE_CHECKING:
    from composer_readme.service import PackageService


async def get_package_readme(
    service: PackageService, params: GetPackageReadmeParams
) -> PackageReadmeResponse:
    """Return the README of a package version with extracted usage examples.

    A package or version that does not exist yields a response with
    ``exists=False`` instead of an error. The cached response always holds
    the examples; ``include_examples=False`` strips them from the copy that
    is returned.

    Raises:
        UpstreamError: If Packagist fails for another reason.
        ConnectionError_: If Packagist cannot be reached.
    """
    info(f"Fetching package README: {params.package_name}@{params.version}")

    async def produce() -> PackageReadmeResponse:
        return await _fetch_package_readme(service, params.package_name, params.version)

    response = await with_cache(
        service.active_cache,
        package_readme_key(params.package_name, params.version),
        produce,
    )
    if not params.include_examples and response.usage_examples:
        response = response.model_copy(update={"usage_examples": []})
    return response


async def _fetch_package_readme(
    service: PackageService, package_name: str, version: str
) -> PackageReadmeResponse:
    try:
        package = await service.packagist.get_package_info(package_name)
        version_info = select_version(package, version)
    except NotFoundError as exc:
        debug(f"README lookup: {exc}")
        return readme_not_found(package_name, version)

    actual_version = version_info.version
    repository = repository_info(version_info)

    readme = ""
    if repository is not None and repository.url:
        readme = await service.github.get_readme_from_repository(repository) or ""
        if readme:
            debug(f"Got README from GitHub: {package_name}")

    basic = basic_info(version_info, actual_version)
    description = basic.description
    if description == NO_DESCRIPTION and readme:
        description = extract_description(readme)

    download_stats = await service.packagist.get_download_stats(
        package_name, cache=service.active_cache
    )

    info(f"Fetched package README: {package_name}@{actual_version}")
    return PackageReadmeResponse(
        package_name=package_name,
        version=actual_version,
        description=description,
        readme_content=clean_markdown(readme),
        usage_examples=parse_usage_examples(readme),
        installation=installation_info(package_name, actual_version),
        basic_info=basic,
        repository=repository,
        download_stats=download_stats,
        exists=True,
    )
