"""Builders for the response models shared by the tools."""

from __future__ import annotations

from typing import Optional

from composer_readme.models import (
    DownloadStats,
    InstallationInfo,
    PackageBasicInfo,
    PackageDownloadStats,
    PackageInfoResponse,
    PackageReadmeResponse,
    PackagistVersion,
    RepositoryInfo,
)
from composer_readme.readme.cleaner import NO_DESCRIPTION

NOT_FOUND_DESCRIPTION = "Package not found"
UNKNOWN_LICENSE = "Unknown"


def installation_info(package_name: str, version: str) -> InstallationInfo:
    """``composer require`` hint; the version is omitted for ``dev-master``."""
    return InstallationInfo(
        composer=f"composer require {package_name}",
        version=None if version == "dev-master" else version,
    )


def basic_info(version_info: PackagistVersion, version: str) -> PackageBasicInfo:
    return PackageBasicInfo(
        name=version_info.name,
        version=version,
        description=version_info.description or NO_DESCRIPTION,
        type=version_info.type or "library",
        homepage=version_info.homepage or None,
        license=version_info.license or [UNKNOWN_LICENSE],
        authors=version_info.authors,
        keywords=version_info.keywords,
        minimum_stability=version_info.minimum_stability or None,
        require=version_info.require,
        require_dev=version_info.require_dev,
        suggest=version_info.suggest,
        autoload=version_info.autoload,
    )


def repository_info(version_info: PackagistVersion) -> Optional[RepositoryInfo]:
    source = version_info.source
    if source is None:
        return None
    return RepositoryInfo(type=source.type, url=source.url, reference=source.reference)


def license_string(licenses: list[str]) -> str:
    return ", ".join(licenses) or UNKNOWN_LICENSE


def package_download_stats(stats: DownloadStats) -> PackageDownloadStats:
    """Convert registry counters; the weekly figure is estimated from the daily one."""
    return PackageDownloadStats(
        last_day=stats.daily,
        last_week=stats.daily * 7,
        last_month=stats.monthly,
    )


def readme_not_found(package_name: str, version: str) -> PackageReadmeResponse:
    version = version or "latest"
    return PackageReadmeResponse(
        package_name=package_name,
        version=version,
        description=NOT_FOUND_DESCRIPTION,
        readme_content="",
        usage_examples=[],
        installation=installation_info(package_name, version),
        basic_info=PackageBasicInfo(
            name=package_name,
            version=version,
            description=NOT_FOUND_DESCRIPTION,
            license=UNKNOWN_LICENSE,
        ),
        exists=False,
    )


def info_not_found(package_name: str) -> PackageInfoResponse:
    return PackageInfoResponse(package_name=package_name, exists=False)
