"""Config commands -- view and modify the global configuration.

Provides the ``composer-readme config`` sub-command group for reading,
updating and resetting the user's global configuration file
(:class:`~composer_readme.models.GlobalConfig`). Environment variables and
CLI flags still take precedence over what is stored here.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from composer_readme.exit_codes import EXIT_INVALID_INPUT
from composer_readme.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


def _coerce(key: str, current: Any, value: str) -> Any:
    """Convert *value* to the type of the field it replaces."""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_INPUT) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_INPUT) from None
    return value


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration.

    Example::

        composer-readme config show --json
    """
    from composer_readme.config import global_config_path, load_global_config

    config = load_global_config()
    info(f"Config file: {global_config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'cache.ttl_seconds')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field and the result is
    validated before it is saved.

    Example::

        composer-readme config set cache.ttl_seconds 600
        composer-readme config set github.token ghp_xxx
    """
    from composer_readme.config import load_global_config, save_global_config
    from composer_readme.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_INPUT)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_INPUT)

    target[final_key] = _coerce(key, target[final_key], value)

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_INPUT) from None

    path = save_global_config(new_config)
    success(f"Set {key} = {target[final_key]} in {path}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the configuration file to defaults.

    Example::

        composer-readme config reset --force
    """
    from composer_readme.config import save_global_config
    from composer_readme.models import GlobalConfig

    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
