"""composer-readme -- README, metadata and search lookups for Composer packages.

This package answers three read-only questions about packages published on
`Packagist <https://packagist.org>`_: *what does the README say* (with usage
examples pulled out of it), *what is this package* (version, license,
dependencies, download stats), and *which packages match a query*.

Results are memoised in an in-process :class:`~composer_readme.cache.MemoryCache`
bounded by both time-to-live and total byte size. READMEs are fetched from the
source repository (GitHub) referenced by the package's version metadata.

Typical usage::

    composer-readme readme monolog/monolog
    composer-readme search "http client" --limit 5
    composer-readme serve          # MCP server over stdio

Modules:
    app: Typer application and CLI entry point.
    server: MCP stdio server exposing the three tools.
    service: Composition root owning the cache and HTTP clients.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting and diagnostics.
"""

__version__ = "1.0.0"
