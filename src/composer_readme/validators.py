"""Input validation for tool arguments.

This module is the one place where Composer package names, version strings,
search queries and limits are checked. Every validator raises
:class:`~composer_readme.exceptions.InvalidInputError` with a message that
tells the caller how to fix the input, and returns the trimmed value on
success.

The ``validate_*_params`` functions turn an untyped argument mapping (as
received from an MCP client or the CLI) into the matching parameter model.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from composer_readme.exceptions import InvalidInputError
from composer_readme.models import GetPackageInfoParams, GetPackageReadmeParams, SearchPackagesParams

MAX_PACKAGE_NAME_LENGTH = 214
MAX_SEARCH_QUERY_LENGTH = 250
MIN_SEARCH_LIMIT = 1
MAX_SEARCH_LIMIT = 100
DEFAULT_SEARCH_LIMIT = 20

PACKAGE_TYPES = (
    "library",
    "project",
    "metapackage",
    "composer-plugin",
    "symfony-bundle",
    "wordpress-plugin",
    "drupal-module",
    "laravel-package",
    "phpunit-test",
    "psr-implementation",
)

_INVALID_NAME_CHARS_RE = re.compile(r"[^a-z0-9_./-]")
_PACKAGE_NAME_RE = re.compile(r"^[a-z0-9_.-]+/[a-z0-9_.-]+$")
_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)
_CONSTRAINT_RE = re.compile(r"^[\^~>=<! ]*v?[0-9]")

_EDGE_CHARS = (
    (".", "a dot"),
    ("-", "a hyphen"),
    ("_", "an underscore"),
)


def validate_package_name(package_name: Any) -> str:
    """Check that *package_name* is a valid ``vendor/package`` name.

    Returns:
        The name with surrounding whitespace removed.

    Raises:
        InvalidInputError: With a suggestion where one is obvious (missing
            vendor, spaces, uppercase letters).
    """
    if not isinstance(package_name, str) or not package_name:
        raise InvalidInputError("Package name is required and must be a string")

    name = package_name.strip()
    if not name:
        raise InvalidInputError(
            "Package name cannot be empty. Please provide a valid Composer package name "
            'like "monolog/monolog" or "symfony/console".'
        )

    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        raise InvalidInputError(
            f"Package name cannot exceed {MAX_PACKAGE_NAME_LENGTH} characters (current: {len(name)})"
        )

    if "/" not in name:
        raise InvalidInputError(
            f'Package name "{name}" is missing vendor prefix. Composer packages must use '
            f'vendor/package format. Example: "monolog/{name}" or "symfony/{name}".'
        )

    if " " in name:
        suggestion = re.sub(r"\s+", "-", name)
        raise InvalidInputError(
            f'Package name "{name}" contains spaces. Composer package names cannot contain '
            f'spaces. Did you mean "{suggestion}"?'
        )

    if any(c.isupper() for c in name):
        raise InvalidInputError(
            f'Package name "{name}" contains uppercase letters. Composer package names must be '
            f'lowercase. Did you mean "{name.lower()}"?'
        )

    invalid = sorted(set(_INVALID_NAME_CHARS_RE.findall(name)))
    if invalid:
        raise InvalidInputError(
            f'Package name "{name}" contains invalid characters: {", ".join(invalid)}. '
            "Composer package names can only contain lowercase letters, numbers, dots (.), "
            "hyphens (-), underscores (_), and exactly one slash (/)."
        )

    if not _PACKAGE_NAME_RE.match(name):
        slashes = name.count("/")
        if slashes > 1:
            raise InvalidInputError(
                f'Package name "{name}" contains {slashes} slashes but must contain exactly one. '
                'Format should be "vendor/package".'
            )
        raise InvalidInputError(
            f'Package name "{name}" is not in valid vendor/package format. '
            'Valid examples: "monolog/monolog", "symfony/console", "doctrine/orm".'
        )

    vendor, package = name.split("/")
    for label, part in (("Vendor", vendor), ("Package", package)):
        for char, article in _EDGE_CHARS:
            if part.startswith(char) or part.endswith(char):
                raise InvalidInputError(
                    f'{label} name "{part}" cannot start or end with {article}. '
                    f'Valid {label.lower()} names: "monolog", "symfony", "doctrine".'
                )

    return name


def validate_version(version: Any) -> str:
    """Accept ``latest``, ``dev-*`` branches, semantic versions and constraints."""
    if not isinstance(version, str):
        raise InvalidInputError("Version must be a string")

    trimmed = version.strip()
    if not trimmed:
        raise InvalidInputError("Version cannot be empty")

    if trimmed == "latest" or trimmed.startswith("dev-"):
        return trimmed

    if not _SEMVER_RE.match(trimmed) and not _CONSTRAINT_RE.match(trimmed):
        raise InvalidInputError(
            "Version must be a valid semantic version (e.g., 1.0.0), version constraint "
            "(e.g., ^1.0), or a valid branch reference"
        )
    return trimmed


def validate_search_query(query: Any) -> str:
    if not isinstance(query, str):
        raise InvalidInputError("Search query is required and must be a string")

    trimmed = query.strip()
    if not trimmed:
        raise InvalidInputError("Search query cannot be empty")
    if len(trimmed) > MAX_SEARCH_QUERY_LENGTH:
        raise InvalidInputError(
            f"Search query cannot exceed {MAX_SEARCH_QUERY_LENGTH} characters"
        )
    return trimmed


def validate_limit(limit: Any) -> int:
    # bool is an int subclass; True is not a limit.
    if (
        isinstance(limit, bool)
        or not isinstance(limit, int)
        or not MIN_SEARCH_LIMIT <= limit <= MAX_SEARCH_LIMIT
    ):
        raise InvalidInputError(
            f"Limit must be an integer between {MIN_SEARCH_LIMIT} and {MAX_SEARCH_LIMIT}"
        )
    return limit


def validate_package_type(package_type: Any) -> str:
    if package_type not in PACKAGE_TYPES:
        raise InvalidInputError(f"Package type must be one of: {', '.join(PACKAGE_TYPES)}")
    return package_type


def validate_score(name: str, value: Any) -> Optional[float]:
    """Validate an optional ``0..1`` score threshold."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
        raise InvalidInputError(f"{name} must be a number between 0 and 1")
    return float(value)


# ---------------------------------------------------------------------------
# Tool parameters
# ---------------------------------------------------------------------------


def _require_mapping(args: Any) -> Mapping[str, Any]:
    if not isinstance(args, Mapping):
        raise InvalidInputError("Invalid parameters: expected object")
    return args


def _flag(args: Mapping[str, Any], name: str, default: bool) -> bool:
    value = args.get(name)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a boolean")
    return value


def validate_readme_params(args: Any) -> GetPackageReadmeParams:
    args = _require_mapping(args)
    version = args.get("version")
    return GetPackageReadmeParams(
        package_name=validate_package_name(args.get("package_name")),
        version="latest" if version is None else validate_version(version),
        include_examples=_flag(args, "include_examples", True),
    )


def validate_info_params(args: Any) -> GetPackageInfoParams:
    args = _require_mapping(args)
    return GetPackageInfoParams(
        package_name=validate_package_name(args.get("package_name")),
        include_dependencies=_flag(args, "include_dependencies", True),
        include_dev_dependencies=_flag(args, "include_dev_dependencies", False),
        include_suggestions=_flag(args, "include_suggestions", False),
    )


def validate_search_params(args: Any) -> SearchPackagesParams:
    args = _require_mapping(args)
    limit = args.get("limit")
    package_type = args.get("type")
    return SearchPackagesParams(
        query=validate_search_query(args.get("query")),
        limit=DEFAULT_SEARCH_LIMIT if limit is None else validate_limit(limit),
        quality=validate_score("quality", args.get("quality")),
        popularity=validate_score("popularity", args.get("popularity")),
        type=None if package_type is None else validate_package_type(package_type),
    )
