"""Exception hierarchy for composer-readme.

All exceptions inherit from :class:`ComposerReadmeError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`composer_readme.exit_codes` and a stable string ``code`` used in MCP
error payloads. The CLI entry point catches ``ComposerReadmeError`` and exits
with the matching code; the MCP server serialises it with :meth:`to_dict`.

Subclass hierarchy::

    ComposerReadmeError         (exit 1)
    +-- InvalidInputError       (exit 2)
    +-- NotFoundError           (exit 4)
    |   +-- PackageNotFoundError
    |   +-- VersionNotFoundError
    +-- UpstreamError           (exit 5)
    |   +-- RateLimitError
    +-- ConnectionError_        (exit 6)
    +-- ConfigError             (exit 1)

The cache and the README extractor never raise :class:`UpstreamError`;
only the HTTP clients do.
"""

from __future__ import annotations

from typing import Any, Optional

from composer_readme.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_INPUT,
    EXIT_NOT_FOUND,
    EXIT_UPSTREAM_FAILURE,
)


class ComposerReadmeError(Exception):
    """Base exception for all composer-readme errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
        status_code: HTTP status that triggered the error, if any.
        details: Extra structured context (e.g. ``retry_after``).
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error for tool responses."""
        payload: dict[str, Any] = {"code": self.code, "message": str(self)}
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInputError(ComposerReadmeError):
    """Raised for caller errors: malformed package names, versions, queries, cache keys."""

    exit_code = EXIT_INVALID_INPUT
    code = "INVALID_INPUT"


class NotFoundError(ComposerReadmeError):
    """Raised when the registry reports a resource as absent (HTTP 404)."""

    exit_code = EXIT_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("status_code", 404)
        super().__init__(message, **kwargs)


class PackageNotFoundError(NotFoundError):
    """Raised when a package does not exist on Packagist."""

    code = "PACKAGE_NOT_FOUND"

    def __init__(self, package_name: str):
        super().__init__(f"Package '{package_name}' not found")
        self.package_name = package_name


class VersionNotFoundError(NotFoundError):
    """Raised when the requested version of an existing package cannot be resolved."""

    code = "VERSION_NOT_FOUND"

    def __init__(self, package_name: str, version: str):
        super().__init__(f"Version '{version}' of package '{package_name}' not found")
        self.package_name = package_name
        self.version = version


class UpstreamError(ComposerReadmeError):
    """Raised when Packagist or GitHub answers with an error status."""

    exit_code = EXIT_UPSTREAM_FAILURE
    code = "UPSTREAM_ERROR"


class RateLimitError(UpstreamError):
    """Raised on HTTP 429 or an exhausted GitHub rate-limit budget."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, service: str, retry_after: Optional[float] = None):
        super().__init__(
            f"Rate limit exceeded for {service}",
            status_code=429,
            details={"retry_after": retry_after} if retry_after is not None else None,
        )
        self.service = service
        self.retry_after = retry_after


class ConnectionError_(ComposerReadmeError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
    code = "NETWORK_ERROR"


class ConfigError(ComposerReadmeError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
    code = "CONFIG_ERROR"
