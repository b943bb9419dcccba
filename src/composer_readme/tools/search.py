"""``search_packages_from_composer``: registry search with heuristic scoring.

Packagist's search endpoint only reports downloads and favers, so the
scores are coarse step functions of those two counters:

* **quality** -- 0.5, +0.2 with a description, +0.2 above 10k downloads
  (+0.1 above 1k).
* **popularity** -- 0.1, +0.5/0.3/0.2 above 100k/10k/1k downloads,
  +0.3/0.2/0.1 above 100/10/1 favers.
* **maintenance** -- a flat 0.8.

The final score is the mean of the three. Quality and popularity
thresholds filter the scored list; ``total`` counts what is left.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from composer_readme.cache.helpers import with_cache
from composer_readme.cache.keys import search_results_key
from composer_readme.models import (
    PackageSearchResult,
    PackagistSearchHit,
    ScoreDetail,
    SearchPackagesParams,
    SearchPackagesResponse,
    SearchScore,
)
from composer_readme.output import info
from composer_readme.readme.cleaner import NO_DESCRIPTION

if TYPE_CHECKING:
    from composer_readme.service import PackageService

MAINTENANCE_SCORE = 0.8


def quality_score(hit: PackagistSearchHit) -> float:
    score = 0.5
    if hit.description and hit.description.strip():
        score += 0.2
    if hit.downloads > 10_000:
        score += 0.2
    elif hit.downloads > 1_000:
        score += 0.1
    return min(score, 1.0)


def popularity_score(hit: PackagistSearchHit) -> float:
    score = 0.1
    if hit.downloads > 100_000:
        score += 0.5
    elif hit.downloads > 10_000:
        score += 0.3
    elif hit.downloads > 1_000:
        score += 0.2

    if hit.favers > 100:
        score += 0.3
    elif hit.favers > 10:
        score += 0.2
    elif hit.favers > 1:
        score += 0.1
    return min(score, 1.0)


def vendor_of(package_name: str) -> str:
    vendor = package_name.split("/", 1)[0]
    return vendor or "Unknown"


def score_hit(hit: PackagistSearchHit) -> PackageSearchResult:
    quality = quality_score(hit)
    popularity = popularity_score(hit)
    final = (quality + popularity + MAINTENANCE_SCORE) / 3
    vendor = vendor_of(hit.name)

    return PackageSearchResult(
        name=hit.name,
        description=hit.description or NO_DESCRIPTION,
        author=vendor,
        publisher=vendor,
        maintainers=[vendor],
        score=SearchScore(
            final=final,
            detail=ScoreDetail(
                quality=quality,
                popularity=popularity,
                maintenance=MAINTENANCE_SCORE,
            ),
        ),
        search_score=final,
        downloads=hit.downloads,
        favers=hit.favers,
        repository=hit.repository,
        abandoned=bool(hit.abandoned),
    )


def filter_results(
    packages: list[PackageSearchResult], params: SearchPackagesParams
) -> list[PackageSearchResult]:
    if params.quality is not None:
        packages = [p for p in packages if p.score.detail.quality >= params.quality]
    if params.popularity is not None:
        packages = [p for p in packages if p.score.detail.popularity >= params.popularity]
    return packages


async def search_packages(
    service: PackageService, params: SearchPackagesParams
) -> SearchPackagesResponse:
    """Search Packagist and score the hits.

    Scored, unfiltered hits are cached for ``cache.search_ttl_seconds``
    under the query, limit and type; the score thresholds are applied
    afterwards so differently filtered calls share one cache entry.
    """
    info(f"Searching packages: {params.query} (limit: {params.limit})")

    async def produce() -> list[PackageSearchResult]:
        result = await service.packagist.search_packages(params.query, params.limit, params.type)
        return [score_hit(hit) for hit in result.results]

    scored = await with_cache(
        service.active_cache,
        search_results_key(params.query, params.limit, params.type),
        produce,
        ttl=service.config.cache.search_ttl_seconds,
    )

    packages = filter_results(scored, params)
    info(f"Search for {params.query!r} returned {len(packages)} results")
    return SearchPackagesResponse(query=params.query, total=len(packages), packages=packages)
