"""Tests for composer_readme.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from composer_readme.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    global_config_path,
    load_global_config,
    resolve_config,
    save_global_config,
)
from composer_readme.exceptions import ConfigError
from composer_readme.models import CacheConfig, GlobalConfig, OutputConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _config_file(root: Path) -> Path:
    return root / "config" / "composer-readme" / "config.json"


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    """XDG paths on Linux and the fallback on other platforms."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("composer_readme.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "composer-readme"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("composer_readme.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "composer-readme"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("composer_readme.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "composer-readme"
        assert result.is_dir()

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("composer_readme.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".composer-readme"
        assert get_data_dir() == tmp_path / ".composer-readme" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("composer_readme.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.packagist_url == "https://packagist.org"
        assert cfg.cache.ttl_seconds == 3600
        assert cfg.cache.max_size_bytes == 100 * 1024 * 1024
        assert cfg.output.format == "auto"

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = GlobalConfig(
            cache=CacheConfig(ttl_seconds=60, search_ttl_seconds=30),
            output=OutputConfig(format="json"),
        )
        path = save_global_config(original)
        assert path == _config_file(isolated_config)
        assert load_global_config() == original

    def test_env_overrides_path(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = isolated_config / "elsewhere.json"
        monkeypatch.setenv("COMPOSER_README_CONFIG", str(custom))
        assert global_config_path() == custom
        save_global_config(GlobalConfig())
        assert custom.is_file()

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = _config_file(isolated_config)
        path.parent.mkdir(parents=True)
        path.write_text("{invalid json!!!", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(_config_file(isolated_config), {"cache": "not-a-dict"})
        with pytest.raises(ConfigError, match="Invalid config"):
            load_global_config()

    @pytest.mark.parametrize("settings", [{"ttl_seconds": 0}, {"max_size_bytes": -1}])
    def test_non_positive_cache_limits_raise_config_error(
        self, isolated_config: Path, settings: dict
    ) -> None:
        _write_json(_config_file(isolated_config), {"cache": settings})
        with pytest.raises(ConfigError, match="Invalid config"):
            load_global_config()

    def test_unknown_keys_ignored(self, isolated_config: Path) -> None:
        _write_json(_config_file(isolated_config), {"cache": {"ttl_seconds": 5}, "profiles": []})
        assert load_global_config().cache.ttl_seconds == 5


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        cfg = resolve_config()
        assert cfg.cache.enabled is True
        assert cfg.github.token is None

    def test_file_values_used(self, isolated_config: Path) -> None:
        _write_json(_config_file(isolated_config), {"request": {"timeout": 5}})
        assert resolve_config().request.timeout == 5

    def test_env_overrides_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(
            _config_file(isolated_config),
            {"cache": {"ttl_seconds": 10}, "request": {"timeout": 5}, "github": {"token": "file"}},
        )
        monkeypatch.setenv("COMPOSER_README_CACHE_TTL", "120")
        monkeypatch.setenv("COMPOSER_README_TIMEOUT", "7.5")
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")

        cfg = resolve_config()
        assert cfg.cache.ttl_seconds == 120
        assert cfg.request.timeout == 7.5
        assert cfg.github.token == "env-token"

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        cfg = resolve_config(cli_format="json", cli_no_cache=True, cli_github_token="cli-token")
        assert cfg.output.format == "json"
        assert cfg.cache.enabled is False
        assert cfg.github.token == "cli-token"

    def test_non_numeric_env_raises(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COMPOSER_README_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="COMPOSER_README_TIMEOUT"):
            resolve_config()

    @pytest.mark.parametrize("raw", ["0", "-30"])
    def test_non_positive_env_ttl_raises(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, raw: str
    ) -> None:
        monkeypatch.setenv("COMPOSER_README_CACHE_TTL", raw)
        with pytest.raises(ConfigError, match="must be positive"):
            resolve_config()

    def test_empty_env_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COMPOSER_README_CACHE_TTL", "")
        assert resolve_config().cache.ttl_seconds == 3600
