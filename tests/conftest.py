"""Shared test fixtures for composer_readme.

Provides isolated config environments, output-state management, a fake
clock for cache TTL tests, README fixtures and builders for Packagist /
GitHub payloads served through :class:`httpx.MockTransport`. These fixtures
are discovered by pytest and available to all test modules.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from composer_readme.cache.store import MemoryCache
from composer_readme.client.github import GitHubClient
from composer_readme.client.packagist import PackagistClient
from composer_readme.models import GlobalConfig
from composer_readme.output import OutputFormat, OutputManager, reset_output, set_output
from composer_readme.service import PackageService

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager to be created on next use.

    Each test starts with a plain, colourless manager so diagnostics reach
    the captured stderr unwrapped.
    """
    set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a PLAIN-format OutputManager with debug messages enabled."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config, and clears every environment
    variable the config resolution reads.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("composer_readme.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "COMPOSER_README_CONFIG",
        "COMPOSER_README_CACHE_TTL",
        "COMPOSER_README_TIMEOUT",
        "GITHUB_TOKEN",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Fake clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# README fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def monolog_readme() -> str:
    return (FIXTURES_DIR / "monolog_readme.md").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Registry payload builders
# ---------------------------------------------------------------------------


def make_version(
    name: str = "acme/widgets",
    version: str = "1.2.0",
    description: Optional[str] = "Reusable widgets for PHP applications",
    source_url: Optional[str] = "https://github.com/acme/widgets.git",
    **extra: Any,
) -> dict[str, Any]:
    """A ``package.versions[...]`` entry as served by Packagist."""
    data: dict[str, Any] = {
        "name": name,
        "version": version,
        "description": description,
        "keywords": ["widgets", "ui"],
        "license": ["MIT"],
        "authors": [{"name": "Jane Doe", "email": "jane@example.com"}],
        "type": "library",
        "require": {"php": ">=8.1"},
        "require-dev": {"phpunit/phpunit": "^10.0"},
        "suggest": {"ext-intl": "For locale-aware widgets"},
    }
    if source_url is not None:
        data["source"] = {"type": "git", "url": source_url, "reference": "abc123"}
    data.update(extra)
    return data


def make_package(
    name: str = "acme/widgets",
    versions: Optional[dict[str, dict[str, Any]]] = None,
) -> dict[str, Any]:
    """A ``/packages/<name>.json`` document."""
    if versions is None:
        versions = {
            "dev-main": make_version(name, "dev-main"),
            "1.2.0": make_version(name, "1.2.0"),
            "1.10.0": make_version(name, "1.10.0"),
            "2.0.0-beta1": make_version(name, "2.0.0-beta1"),
        }
    return {
        "package": {
            "name": name,
            "description": "Reusable widgets",
            "repository": f"https://github.com/{name}",
            "versions": versions,
            "downloads": {"total": 50000, "monthly": 3000, "daily": 100},
            "favers": 42,
        }
    }


def make_stats(total: int = 50000, monthly: int = 3000, daily: int = 100) -> dict[str, Any]:
    return {"package": {"downloads": {"total": total, "monthly": monthly, "daily": daily}}}


def make_readme_payload(text: str) -> dict[str, Any]:
    """A GitHub ``/repos/{o}/{r}/readme`` document."""
    return {
        "name": "README.md",
        "encoding": "base64",
        "content": base64.encodebytes(text.encode("utf-8")).decode("ascii"),
    }


Handler = Callable[[httpx.Request], httpx.Response]


class Recorder:
    """MockTransport handler replaying responses in order and recording requests.

    The last response (or exception) repeats once the others are used up.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        # Fresh copy so a response can be replayed more than once.
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)


class Router:
    """MockTransport handler dispatching on request path.

    Routes map a path to a response or to a callable taking the request.
    Unrouted paths answer 404.
    """

    def __init__(self, routes: Optional[dict[str, Any]] = None) -> None:
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            route = route(request)
        if isinstance(route, Exception):
            raise route
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def count(self, path: str, method: str = "GET") -> int:
        return sum(1 for r in self.requests if r.url.path == path and r.method == method)


def packagist_client(handler: Handler, max_retries: int = 0) -> PackagistClient:
    return PackagistClient(
        base_url="https://packagist.test",
        max_retries=max_retries,
        retry_base_delay=0,
        transport=httpx.MockTransport(handler),
    )


def github_client(handler: Handler, token: Optional[str] = None, max_retries: int = 0) -> GitHubClient:
    return GitHubClient(
        token=token,
        base_url="https://github.test",
        max_retries=max_retries,
        retry_base_delay=0,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def test_config() -> GlobalConfig:
    """Config with fast retries, suitable for services built in tests."""
    config = GlobalConfig()
    config.request.max_retries = 0
    config.request.retry_base_delay = 0
    return config


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Service builder
# ---------------------------------------------------------------------------


def widgets_routes(**package_kwargs: Any) -> dict[str, Any]:
    """Packagist routes serving ``acme/widgets`` (metadata and stats)."""
    return {
        "/packages/acme/widgets.json": httpx.Response(200, json=make_package(**package_kwargs)),
        "/packages/acme/widgets/stats.json": httpx.Response(200, json=make_stats()),
    }


def build_service(
    packagist: Handler,
    github: Optional[Handler] = None,
    config: Optional[GlobalConfig] = None,
    clock: Optional[FakeClock] = None,
) -> PackageService:
    """A PackageService wired to mock transports and a non-sweeping cache."""
    if config is None:
        config = GlobalConfig()
        config.request.max_retries = 0
        config.request.retry_base_delay = 0
    cache = MemoryCache(
        default_ttl=config.cache.ttl_seconds,
        max_size_bytes=config.cache.max_size_bytes,
        clock=clock or FakeClock(),
        auto_sweep=False,
    )
    return PackageService(
        config=config,
        packagist=packagist_client(packagist),
        github=github_client(github or Router()),
        cache=cache,
    )
