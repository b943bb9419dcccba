"""Typer application and CLI entry point for composer-readme.

Commands:

* ``readme PACKAGE [VERSION]`` -- README text and usage examples
* ``info PACKAGE`` -- latest version, license, dependencies, downloads
* ``search QUERY`` -- scored Packagist search
* ``serve`` -- run the MCP server on stdio
* ``config show|set|reset`` -- manage the global configuration file

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Known errors exit with the code of their exception class
(see :mod:`composer_readme.exit_codes`); anything else writes a crash log
under the data directory.

See Also:
    :mod:`composer_readme.config`: Configuration resolution.
    :mod:`composer_readme.output`: Output formatting initialised in
    :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from pydantic import BaseModel

from composer_readme import __version__
from composer_readme.exceptions import ComposerReadmeError
from composer_readme.exit_codes import EXIT_GENERIC_FAILURE, EXIT_NOT_FOUND
from composer_readme.models import (
    GlobalConfig,
    PackageInfoResponse,
    PackageReadmeResponse,
    SearchPackagesResponse,
)
from composer_readme.output import OutputFormat, error, get_output

app = typer.Typer(
    name="composer-readme",
    help="Look up Composer package READMEs, metadata and search results on Packagist.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from composer_readme.commands.config import config_app  # noqa: E402

app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"composer-readme {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache."),
    github_token: Optional[str] = typer.Option(
        None, "--github-token", help="GitHub token for README fetches (overrides GITHUB_TOKEN)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~composer_readme.output.OutputManager`
    from CLI flags and stores the CLI overrides in ``ctx.obj`` for
    :func:`_load_config`.
    """
    from composer_readme.output import OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["format"] = fmt.value if fmt != OutputFormat.AUTO else None
    ctx.obj["no_cache"] = no_cache
    ctx.obj["github_token"] = github_token
    ctx.obj["quiet"] = quiet
    ctx.obj["verbose"] = verbose
    ctx.obj["no_color"] = no_color


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _load_config(ctx: typer.Context) -> GlobalConfig:
    from composer_readme.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(
        cli_format=obj.get("format"),
        cli_no_cache=obj.get("no_cache", False),
        cli_github_token=obj.get("github_token"),
    )


async def _call(config: GlobalConfig, tool: str, args: dict[str, Any]) -> BaseModel:
    from composer_readme.service import PackageService
    from composer_readme.tools import handle_tool_call

    async with PackageService(config) as service:
        return await handle_tool_call(service, tool, args)


def _run_tool(ctx: typer.Context, tool: str, args: dict[str, Any]) -> BaseModel:
    """Run a tool to completion, turning known errors into exit codes."""
    try:
        config = _load_config(ctx)
        return asyncio.run(_call(config, tool, args))
    except ComposerReadmeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _emit_json(response: BaseModel) -> bool:
    """Print *response* as JSON if JSON output is active; return whether it did."""
    output = get_output()
    if output.format != OutputFormat.JSON:
        return False
    output.format_response(response.model_dump(mode="json"))
    return True


def _exit_not_found(package_name: str) -> None:
    error(f"Package '{package_name}' not found")
    raise typer.Exit(code=EXIT_NOT_FOUND)


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("readme")
def readme_command(
    ctx: typer.Context,
    package_name: str = typer.Argument(help="Package name in vendor/package format."),
    version: str = typer.Argument("latest", help="Version, tag or dev branch."),
    no_examples: bool = typer.Option(False, "--no-examples", help="Skip usage examples."),
    examples_only: bool = typer.Option(
        False, "--examples-only", help="Print only the usage examples."
    ),
) -> None:
    """Show a package README and the usage examples found in it.

    Example::

        composer-readme readme monolog/monolog
        composer-readme readme symfony/console v6.4.0 --examples-only
    """
    from composer_readme.tools import README_TOOL

    response = _run_tool(
        ctx,
        README_TOOL,
        {"package_name": package_name, "version": version, "include_examples": not no_examples},
    )
    assert isinstance(response, PackageReadmeResponse)

    if _emit_json(response):
        if not response.exists:
            raise typer.Exit(code=EXIT_NOT_FOUND)
        return
    if not response.exists:
        _exit_not_found(package_name)

    output = get_output()
    if not examples_only:
        output.info(f"{response.package_name} {response.version}: {response.description}")
        output.info(response.installation.composer)
        if response.readme_content:
            output.print_markdown(response.readme_content)
        else:
            output.warning("No README available for this package")

    for example in response.usage_examples:
        output.print_code(example.code, example.language, title=example.title)
    if examples_only and not response.usage_examples:
        output.info("No usage examples found")


@app.command("info")
def info_command(
    ctx: typer.Context,
    package_name: str = typer.Argument(help="Package name in vendor/package format."),
    no_dependencies: bool = typer.Option(
        False, "--no-deps", help="Omit runtime dependencies."
    ),
    dev: bool = typer.Option(False, "--dev", help="Include development dependencies."),
    suggestions: bool = typer.Option(False, "--suggestions", help="Include suggested packages."),
) -> None:
    """Show summary information for the latest version of a package.

    Example::

        composer-readme info guzzlehttp/guzzle --dev
    """
    from composer_readme.tools import INFO_TOOL

    response = _run_tool(
        ctx,
        INFO_TOOL,
        {
            "package_name": package_name,
            "include_dependencies": not no_dependencies,
            "include_dev_dependencies": dev,
            "include_suggestions": suggestions,
        },
    )
    assert isinstance(response, PackageInfoResponse)

    if _emit_json(response):
        if not response.exists:
            raise typer.Exit(code=EXIT_NOT_FOUND)
        return
    if not response.exists:
        _exit_not_found(package_name)

    stats = response.download_stats
    rows = [
        ["name", response.package_name],
        ["version", response.latest_version],
        ["description", response.description],
        ["author", response.author],
        ["license", response.license],
        ["keywords", ", ".join(response.keywords)],
        ["downloads", f"{stats.last_day}/day, {stats.last_week}/week, {stats.last_month}/month"],
    ]
    if response.repository is not None:
        rows.append(["repository", response.repository.url])

    output = get_output()
    output.print_table(["field", "value"], rows, title=response.package_name)

    for label, deps in (
        ("Dependencies", response.dependencies),
        ("Dev dependencies", response.dev_dependencies),
        ("Suggestions", response.suggestions),
    ):
        if deps:
            output.print_table(
                ["package", "constraint"],
                [[name, constraint] for name, constraint in deps.items()],
                title=label,
            )


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(help="Search terms."),
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum number of results (1-100)."),
    quality: Optional[float] = typer.Option(None, "--quality", help="Minimum quality score (0-1)."),
    popularity: Optional[float] = typer.Option(
        None, "--popularity", help="Minimum popularity score (0-1)."
    ),
    package_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Package type, e.g. library or symfony-bundle."
    ),
) -> None:
    """Search Packagist and rank results by quality and popularity.

    Example::

        composer-readme search "http client" --limit 5 --popularity 0.5
    """
    from composer_readme.tools import SEARCH_TOOL

    args: dict[str, Any] = {"query": query, "limit": limit}
    if quality is not None:
        args["quality"] = quality
    if popularity is not None:
        args["popularity"] = popularity
    if package_type is not None:
        args["type"] = package_type

    response = _run_tool(ctx, SEARCH_TOOL, args)
    assert isinstance(response, SearchPackagesResponse)

    if _emit_json(response):
        return

    rows = [
        [
            pkg.name,
            f"{pkg.score.final:.2f}",
            str(pkg.downloads),
            str(pkg.favers),
            pkg.description,
        ]
        for pkg in response.packages
    ]
    get_output().print_table(
        ["name", "score", "downloads", "favers", "description"],
        rows,
        title=f"{response.total} results for {response.query!r}",
    )


@app.command("serve")
def serve_command(ctx: typer.Context) -> None:
    """Run the MCP server on stdin/stdout.

    Diagnostics go to stderr and are limited to warnings and errors unless
    ``--verbose`` is given.
    """
    from composer_readme.output import OutputManager, set_output
    from composer_readme.server import serve

    obj = ctx.obj or {}
    verbose = obj.get("verbose", False)
    set_output(
        OutputManager(
            format=OutputFormat.PLAIN,
            no_color=obj.get("no_color", False),
            quiet=not verbose,
            verbose=verbose,
        )
    )
    try:
        config = _load_config(ctx)
    except ComposerReadmeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    asyncio.run(serve(config))


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from composer_readme.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``composer-readme`` console script.

    :class:`~composer_readme.exceptions.ComposerReadmeError` instances that
    escape a command cause a clean exit with the error's ``exit_code``. All
    other exceptions produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except ComposerReadmeError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
