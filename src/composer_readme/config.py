"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for composer-readme:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.composer-readme/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **Global config** -- A single :class:`~composer_readme.models.GlobalConfig`
  JSON file storing cache, request, GitHub and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the global config file into the final effective
  configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from composer_readme.exceptions import ConfigError
from composer_readme.models import GlobalConfig

_APP_NAME = "composer-readme"
_CONFIG_FILENAME = "config.json"

ENV_CONFIG = "COMPOSER_README_CONFIG"
ENV_CACHE_TTL = "COMPOSER_README_CACHE_TTL"
ENV_TIMEOUT = "COMPOSER_README_TIMEOUT"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/composer-readme/`` (default
    ``~/.config/composer-readme/``). On macOS/Windows: ``~/.composer-readme/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/composer-readme/`` (default
    ``~/.local/share/composer-readme/``). On macOS/Windows:
    ``~/.composer-readme/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file (``$COMPOSER_README_CONFIG`` wins)."""
    override = os.environ.get(ENV_CONFIG)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config(path: Optional[Path] = None) -> GlobalConfig:
    """Load the global configuration.

    Args:
        path: Explicit config file; defaults to :func:`global_config_path`.

    Returns:
        The deserialised :class:`~composer_readme.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = path or global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig, path: Optional[Path] = None) -> Path:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
        path: Explicit destination; defaults to :func:`global_config_path`.

    Returns:
        The path that was written.
    """
    path = path or global_config_path()
    data = config.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Precedence resolution ---


def _env_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"Environment variable {name} must be positive, got {raw!r}")
    return value


def resolve_config(
    cli_format: Optional[str] = None,
    cli_no_cache: bool = False,
    cli_github_token: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_format``, ``cli_no_cache``, ``cli_github_token``)
        2. Environment variables (``COMPOSER_README_CACHE_TTL``,
           ``COMPOSER_README_TIMEOUT``, ``GITHUB_TOKEN``)
        3. User config (``~/.config/composer-readme/config.json``)
        4. Defaults

    Returns:
        The effective :class:`~composer_readme.models.GlobalConfig`.

    Raises:
        ConfigError: On an unreadable config file or a non-numeric env var.
    """
    # 4 + 3. Base config (fills in defaults automatically)
    config = load_global_config()

    # 2. Environment variables
    ttl = _env_float(ENV_CACHE_TTL)
    if ttl is not None:
        config.cache.ttl_seconds = ttl
    timeout = _env_float(ENV_TIMEOUT)
    if timeout is not None:
        config.request.timeout = timeout
    env_token = os.environ.get(ENV_GITHUB_TOKEN)
    if env_token:
        config.github.token = env_token

    # 1. CLI flags (highest precedence)
    if cli_format is not None:
        config.output.format = cli_format
    if cli_no_cache:
        config.cache.enabled = False
    if cli_github_token:
        config.github.token = cli_github_token

    return config
