"""Canonical Pydantic models shared across all composer_readme modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`RequestConfig`, :class:`GitHubConfig`,
    :class:`OutputConfig`, and :class:`GlobalConfig`.

**Registry payload models** -- parsed from Packagist JSON:
    :class:`AuthorInfo`, :class:`PackagistSource`, :class:`PackagistVersion`,
    :class:`PackagistPackage`, :class:`PackagistSearchHit`,
    :class:`PackagistSearchResponse`, and :class:`DownloadStats`.

**Tool parameter models** -- validated tool arguments:
    :class:`GetPackageReadmeParams`, :class:`GetPackageInfoParams`, and
    :class:`SearchPackagesParams`.

**Tool response models** -- returned by the three tools:
    :class:`UsageExample`, :class:`InstallationInfo`, :class:`RepositoryInfo`,
    :class:`PackageBasicInfo`, :class:`PackageReadmeResponse`,
    :class:`PackageInfoResponse`, :class:`PackageSearchResult`, and
    :class:`SearchPackagesResponse`.

Registry payload models use ``extra="ignore"`` because Packagist returns many
fields we never read; Composer's hyphenated keys (``require-dev``) are mapped
to snake_case attributes through aliases.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class CacheConfig(BaseModel):
    """In-process cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: float = Field(default=3600, gt=0, description="Default entry TTL in seconds")
    search_ttl_seconds: float = Field(
        default=900, gt=0, description="TTL for search results in seconds"
    )
    max_size_bytes: int = Field(
        default=100 * 1024 * 1024, gt=0, description="Byte budget for all live entries"
    )
    cleanup_interval_seconds: float = Field(
        default=300, gt=0, description="Interval of the background expiry sweep"
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every upstream call."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(default=3, description="Max retry attempts")
    retry_base_delay: float = Field(
        default=1.0, description="First backoff delay in seconds (doubles per attempt)"
    )


class GitHubConfig(BaseModel):
    """Settings for the GitHub README fallback."""

    api_url: str = Field(default="https://api.github.com")
    token: Optional[str] = Field(
        default=None, description="Personal access token (raises the rate limit)"
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/composer-readme/config.json``.

    Loaded and saved by :func:`~composer_readme.config.load_global_config`
    and :func:`~composer_readme.config.save_global_config`. Environment
    variables and CLI flags override these values; see
    :func:`~composer_readme.config.resolve_config`.
    """

    packagist_url: str = Field(default="https://packagist.org")
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Registry payloads ---


class AuthorInfo(BaseModel):
    """A package author as listed in ``composer.json``."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    email: Optional[str] = None
    role: Optional[str] = None
    homepage: Optional[str] = None


class PackagistSource(BaseModel):
    """The VCS source a version was built from (``source`` / ``dist`` blocks)."""

    model_config = ConfigDict(extra="ignore")

    type: str = "git"
    url: str = ""
    reference: Optional[str] = None


class PackagistVersion(BaseModel):
    """One entry of ``package.versions`` in the Packagist package endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = ""
    description: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    homepage: Optional[str] = None
    version: str = ""
    version_normalized: Optional[str] = None
    license: list[str] = Field(default_factory=list)
    authors: list[AuthorInfo] = Field(default_factory=list)
    source: Optional[PackagistSource] = None
    dist: Optional[PackagistSource] = None
    require: Optional[dict[str, str]] = None
    require_dev: Optional[dict[str, str]] = Field(default=None, alias="require-dev")
    suggest: Optional[dict[str, str]] = None
    type: Optional[str] = None
    time: Optional[str] = None
    autoload: Optional[dict[str, Any]] = None
    minimum_stability: Optional[str] = Field(default=None, alias="minimum-stability")


class DownloadStats(BaseModel):
    """Download counters; all zero when the registry could not be reached."""

    total: int = 0
    monthly: int = 0
    daily: int = 0


class PackagistPackage(BaseModel):
    """The ``package`` object returned by ``/packages/<vendor>/<name>.json``."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: Optional[str] = None
    time: Optional[str] = None
    type: Optional[str] = None
    repository: Optional[str] = None
    versions: dict[str, PackagistVersion] = Field(default_factory=dict)
    downloads: DownloadStats = Field(default_factory=DownloadStats)
    favers: int = 0
    github_stars: Optional[int] = None
    abandoned: Union[bool, str] = False


class PackagistSearchHit(BaseModel):
    """A single row of ``/search.json`` results."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: Optional[str] = None
    url: Optional[str] = None
    repository: Optional[str] = None
    downloads: int = 0
    favers: int = 0
    abandoned: Union[bool, str] = False


class PackagistSearchResponse(BaseModel):
    """The body of ``/search.json``."""

    model_config = ConfigDict(extra="ignore")

    results: list[PackagistSearchHit] = Field(default_factory=list)
    total: int = 0
    next: Optional[str] = None


# --- Tool parameters ---


class GetPackageReadmeParams(BaseModel):
    """Arguments of the ``get_readme_from_composer`` tool."""

    package_name: str
    version: str = "latest"
    include_examples: bool = True


class GetPackageInfoParams(BaseModel):
    """Arguments of the ``get_package_info_from_composer`` tool."""

    package_name: str
    include_dependencies: bool = True
    include_dev_dependencies: bool = False
    include_suggestions: bool = False


class SearchPackagesParams(BaseModel):
    """Arguments of the ``search_packages_from_composer`` tool."""

    query: str
    limit: int = 20
    quality: Optional[float] = None
    popularity: Optional[float] = None
    type: Optional[str] = None


# --- Tool responses ---


class UsageExample(BaseModel):
    """A code snippet lifted from a README usage section.

    ``title`` is inferred from the language and first line of the snippet,
    ``description`` from the prose line just above the code fence.
    """

    title: str
    description: Optional[str] = None
    code: str
    language: str


class InstallationInfo(BaseModel):
    """How to install the package with Composer."""

    composer: str
    version: Optional[str] = None


class RepositoryInfo(BaseModel):
    """Source repository of a package version."""

    type: str
    url: str
    reference: Optional[str] = None


class PackageBasicInfo(BaseModel):
    """``composer.json``-level metadata embedded in a README response."""

    name: str
    version: str
    description: str
    type: str = "library"
    homepage: Optional[str] = None
    license: Union[str, list[str]] = "Unknown"
    authors: list[AuthorInfo] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    minimum_stability: Optional[str] = None
    require: Optional[dict[str, str]] = None
    require_dev: Optional[dict[str, str]] = None
    suggest: Optional[dict[str, str]] = None
    autoload: Optional[dict[str, Any]] = None


class PackageReadmeResponse(BaseModel):
    """Result of ``get_readme_from_composer``."""

    package_name: str
    version: str
    description: str
    readme_content: str
    usage_examples: list[UsageExample] = Field(default_factory=list)
    installation: InstallationInfo
    basic_info: PackageBasicInfo
    repository: Optional[RepositoryInfo] = None
    download_stats: Optional[DownloadStats] = None
    exists: bool = True


class PackageDownloadStats(BaseModel):
    """Download counters as reported by ``get_package_info_from_composer``."""

    last_day: int = 0
    last_week: int = 0
    last_month: int = 0


class PackageInfoResponse(BaseModel):
    """Result of ``get_package_info_from_composer``."""

    package_name: str
    latest_version: str = ""
    description: str = ""
    author: str = ""
    license: str = ""
    keywords: list[str] = Field(default_factory=list)
    dependencies: Optional[dict[str, str]] = None
    dev_dependencies: Optional[dict[str, str]] = None
    suggestions: Optional[dict[str, str]] = None
    download_stats: PackageDownloadStats = Field(default_factory=PackageDownloadStats)
    repository: Optional[RepositoryInfo] = None
    exists: bool = True


class ScoreDetail(BaseModel):
    quality: float
    popularity: float
    maintenance: float


class SearchScore(BaseModel):
    final: float
    detail: ScoreDetail


class PackageSearchResult(BaseModel):
    """One scored package in a search response."""

    name: str
    version: str = "latest"
    description: str
    keywords: list[str] = Field(default_factory=list)
    author: str
    publisher: str
    maintainers: list[str] = Field(default_factory=list)
    score: SearchScore
    search_score: float
    downloads: int = 0
    favers: int = 0
    repository: Optional[str] = None
    abandoned: bool = False


class SearchPackagesResponse(BaseModel):
    """Result of ``search_packages_from_composer``."""

    query: str
    total: int
    packages: list[PackageSearchResult] = Field(default_factory=list)
