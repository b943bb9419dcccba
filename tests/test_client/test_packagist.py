"""Tests for PackagistClient and the shared retry / error-mapping plumbing."""

from __future__ import annotations

import httpx
import pytest

from conftest import Recorder, make_package, make_stats, packagist_client

from composer_readme.cache.keys import download_stats_key
from composer_readme.cache.store import MemoryCache
from composer_readme.client.base import USER_AGENT, parse_retry_after
from composer_readme.client.packagist import select_version
from composer_readme.exceptions import (
    ConnectionError_,
    NotFoundError,
    PackageNotFoundError,
    RateLimitError,
    UpstreamError,
    VersionNotFoundError,
)
from composer_readme.models import PackagistPackage


# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------


class TestGetPackageInfo:
    async def test_parses_package(self) -> None:
        handler = Recorder(httpx.Response(200, json=make_package()))
        async with packagist_client(handler) as client:
            package = await client.get_package_info("acme/widgets")

        assert package.name == "acme/widgets"
        assert set(package.versions) == {"dev-main", "1.2.0", "1.10.0", "2.0.0-beta1"}
        assert package.versions["1.2.0"].require_dev == {"phpunit/phpunit": "^10.0"}
        assert package.downloads.total == 50000
        assert handler.requests[0].url.path == "/packages/acme/widgets.json"

    async def test_sends_user_agent(self) -> None:
        handler = Recorder(httpx.Response(200, json=make_package()))
        async with packagist_client(handler) as client:
            await client.get_package_info("acme/widgets")
        assert handler.requests[0].headers["user-agent"] == USER_AGENT

    async def test_404_is_package_not_found(self) -> None:
        handler = Recorder(httpx.Response(404, json={"status": "error", "message": "Package not found"}))
        async with packagist_client(handler) as client:
            with pytest.raises(PackageNotFoundError) as exc_info:
                await client.get_package_info("acme/missing")
        assert exc_info.value.package_name == "acme/missing"
        assert exc_info.value.exit_code == 4

    async def test_unexpected_payload(self) -> None:
        handler = Recorder(httpx.Response(200, json={"status": "ok"}))
        async with packagist_client(handler) as client:
            with pytest.raises(UpstreamError, match="Unexpected Packagist payload"):
                await client.get_package_info("acme/widgets")

    async def test_invalid_json(self) -> None:
        handler = Recorder(httpx.Response(200, text="<html>maintenance</html>"))
        async with packagist_client(handler) as client:
            with pytest.raises(UpstreamError, match="invalid JSON"):
                await client.get_package_info("acme/widgets")


class TestVersionSelection:
    async def test_latest_resolves_to_highest_stable(self) -> None:
        handler = Recorder(httpx.Response(200, json=make_package()))
        async with packagist_client(handler) as client:
            version = await client.get_version_info("acme/widgets")
        assert version.version == "1.10.0"

    def test_resolved_key_replaces_version_field(self) -> None:
        package = PackagistPackage.model_validate(make_package()["package"])
        assert select_version(package, "v1.2.0").version == "1.2.0"

    def test_unknown_version(self) -> None:
        package = PackagistPackage.model_validate(make_package()["package"])
        with pytest.raises(VersionNotFoundError) as exc_info:
            select_version(package, "9.9.9")
        assert exc_info.value.version == "9.9.9"
        assert isinstance(exc_info.value, NotFoundError)


# ---------------------------------------------------------------------------
# Retry and error mapping
# ---------------------------------------------------------------------------


class TestRetry:
    async def test_5xx_retried_then_succeeds(self) -> None:
        handler = Recorder(
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, json=make_package()),
        )
        async with packagist_client(handler, max_retries=2) as client:
            package = await client.get_package_info("acme/widgets")
        assert package.name == "acme/widgets"
        assert len(handler.requests) == 3

    async def test_5xx_exhausted(self) -> None:
        handler = Recorder(httpx.Response(500, json={"message": "boom"}))
        async with packagist_client(handler, max_retries=1) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_package_info("acme/widgets")
        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)
        assert len(handler.requests) == 2

    async def test_4xx_not_retried(self) -> None:
        handler = Recorder(httpx.Response(400, text="bad request"))
        async with packagist_client(handler, max_retries=3) as client:
            with pytest.raises(UpstreamError):
                await client.search_packages("log")
        assert len(handler.requests) == 1

    async def test_429_maps_to_rate_limit(self) -> None:
        handler = Recorder(httpx.Response(429, headers={"Retry-After": "30"}))
        async with packagist_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.search_packages("log")
        assert exc_info.value.retry_after == 30.0
        assert exc_info.value.to_dict()["details"] == {"retry_after": 30.0}

    async def test_429_retried_using_retry_after(self, monkeypatch) -> None:
        delays = []

        async def fake_sleep(delay: float) -> None:
            delays.append(delay)

        monkeypatch.setattr("composer_readme.client.base.asyncio.sleep", fake_sleep)
        handler = Recorder(
            httpx.Response(429, headers={"Retry-After": "7"}),
            httpx.Response(200, json={"results": [], "total": 0}),
        )
        async with packagist_client(handler, max_retries=1) as client:
            result = await client.search_packages("log")
        assert result.total == 0
        assert delays == [7.0]

    async def test_backoff_doubles(self, monkeypatch) -> None:
        delays = []

        async def fake_sleep(delay: float) -> None:
            delays.append(delay)

        monkeypatch.setattr("composer_readme.client.base.asyncio.sleep", fake_sleep)
        handler = Recorder(httpx.Response(503))
        client = packagist_client(handler, max_retries=3)
        client._retry_base_delay = 0.5
        async with client:
            with pytest.raises(UpstreamError):
                await client.search_packages("log")
        assert delays == [0.5, 1.0, 2.0]

    async def test_network_error_becomes_connection_error(self) -> None:
        handler = Recorder(httpx.ConnectError("connection refused"))
        async with packagist_client(handler, max_retries=2) as client:
            with pytest.raises(ConnectionError_, match="after 3 attempts"):
                await client.get_package_info("acme/widgets")
        assert len(handler.requests) == 3

    async def test_network_error_recovers(self) -> None:
        handler = Recorder(
            httpx.ReadTimeout("slow"),
            httpx.Response(200, json=make_package()),
        )
        async with packagist_client(handler, max_retries=1) as client:
            package = await client.get_package_info("acme/widgets")
        assert package.name == "acme/widgets"

    @pytest.mark.parametrize(
        ("headers", "expected"),
        [({}, None), ({"Retry-After": "12"}, 12.0), ({"Retry-After": "soon"}, None), ({"Retry-After": "-3"}, 0.0)],
    )
    def test_parse_retry_after(self, headers, expected) -> None:
        assert parse_retry_after(httpx.Response(429, headers=headers)) == expected


# ---------------------------------------------------------------------------
# Existence, search, stats
# ---------------------------------------------------------------------------


class TestPackageExists:
    async def test_exists(self) -> None:
        handler = Recorder(httpx.Response(200))
        async with packagist_client(handler) as client:
            assert await client.package_exists("acme/widgets") is True
        assert handler.requests[0].method == "HEAD"

    async def test_missing(self) -> None:
        handler = Recorder(httpx.Response(404))
        async with packagist_client(handler) as client:
            assert await client.package_exists("acme/missing") is False

    async def test_failure_counts_as_missing(self, capsys) -> None:
        handler = Recorder(httpx.Response(500))
        async with packagist_client(handler) as client:
            assert await client.package_exists("acme/widgets") is False
        assert "existence check failed" in capsys.readouterr().err


class TestSearch:
    async def test_query_parameters(self) -> None:
        payload = {
            "results": [
                {"name": "monolog/monolog", "description": "Logging", "downloads": 10, "favers": 2},
            ],
            "total": 1,
        }
        handler = Recorder(httpx.Response(200, json=payload))
        async with packagist_client(handler) as client:
            result = await client.search_packages("log", limit=5, type_="library")

        params = handler.requests[0].url.params
        assert handler.requests[0].url.path == "/search.json"
        assert (params["q"], params["per_page"], params["type"]) == ("log", "5", "library")
        assert result.total == 1
        assert result.results[0].name == "monolog/monolog"

    async def test_type_omitted_when_none(self) -> None:
        handler = Recorder(httpx.Response(200, json={"results": [], "total": 0}))
        async with packagist_client(handler) as client:
            await client.search_packages("log")
        assert "type" not in handler.requests[0].url.params

    async def test_invalid_payload(self) -> None:
        handler = Recorder(httpx.Response(200, json={"results": "nope"}))
        async with packagist_client(handler) as client:
            with pytest.raises(UpstreamError, match="search payload"):
                await client.search_packages("log")


class TestDownloadStats:
    async def test_counters(self) -> None:
        handler = Recorder(httpx.Response(200, json=make_stats(total=9, monthly=8, daily=7)))
        async with packagist_client(handler) as client:
            stats = await client.get_download_stats("acme/widgets")
        assert (stats.total, stats.monthly, stats.daily) == (9, 8, 7)
        assert handler.requests[0].url.path == "/packages/acme/widgets/stats.json"

    async def test_top_level_downloads(self) -> None:
        handler = Recorder(httpx.Response(200, json={"downloads": {"total": 3, "monthly": 2, "daily": 1}}))
        async with packagist_client(handler) as client:
            stats = await client.get_download_stats("acme/widgets")
        assert stats.total == 3

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404),
            httpx.Response(500),
            httpx.Response(200, json=["unexpected"]),
            httpx.Response(200, json={"package": {"downloads": "many"}}),
            httpx.Response(200, json={"package": {"downloads": {"total": "lots"}}}),
        ],
    )
    async def test_zeros_on_failure(self, response) -> None:
        async with packagist_client(Recorder(response)) as client:
            stats = await client.get_download_stats("acme/widgets")
        assert (stats.total, stats.monthly, stats.daily) == (0, 0, 0)

    async def test_cached_document_reused(self) -> None:
        handler = Recorder(httpx.Response(200, json=make_stats(total=9)))
        cache = MemoryCache(auto_sweep=False)
        async with packagist_client(handler) as client:
            first = await client.get_download_stats("acme/widgets", cache=cache)
            second = await client.get_download_stats("acme/widgets", cache=cache)
        assert first == second
        assert first.total == 9
        assert len(handler.requests) == 1
        assert cache.has(download_stats_key("acme/widgets"))

    async def test_failed_fetch_not_cached(self) -> None:
        handler = Recorder(httpx.Response(500), httpx.Response(200, json=make_stats(total=9)))
        cache = MemoryCache(auto_sweep=False)
        async with packagist_client(handler) as client:
            failed = await client.get_download_stats("acme/widgets", cache=cache)
            assert not cache.has(download_stats_key("acme/widgets"))
            recovered = await client.get_download_stats("acme/widgets", cache=cache)
        assert failed.total == 0
        assert recovered.total == 9
        assert len(handler.requests) == 2

    async def test_package_stats_404_is_none(self) -> None:
        async with packagist_client(Recorder(httpx.Response(404))) as client:
            assert await client.get_package_stats("acme/missing") is None
