"""Deterministic cache key construction.

Keys are a namespace followed by the logical identifiers of a request, joined
with the ASCII unit separator (``\\x1f``), a character that cannot appear in
Composer package names, versions or sane search queries. The namespace keeps
operations apart: ``readme`` for ``monolog/monolog@latest`` never collides
with ``info`` for the same package.

No hashing is involved, so keys stay readable in debug output (see
:func:`~composer_readme.cache.store.describe`).
"""

from __future__ import annotations

from typing import Optional

from composer_readme.exceptions import InvalidInputError

KEY_SEPARATOR = "\x1f"

NAMESPACE_README = "readme"
NAMESPACE_INFO = "info"
NAMESPACE_SEARCH = "search"
NAMESPACE_STATS = "stats"


def create_cache_key(namespace: str, *parts: object) -> str:
    """Build a cache key from a namespace and identifying parts.

    ``None`` parts become empty fields, so the number of fields is preserved:
    ``("search", "log", 20, None)`` and ``("search", "log", 20)`` differ.

    Args:
        namespace: Operation kind (``readme``, ``info``, ``search``, ...).
        *parts: Identifiers, converted with :func:`str`.

    Returns:
        The key string. Identical inputs always give identical keys.

    Raises:
        InvalidInputError: If the namespace is empty or any field contains
            the separator.
    """
    if not namespace:
        raise InvalidInputError("Cache key namespace must not be empty")

    fields = [namespace]
    for part in parts:
        fields.append("" if part is None else str(part))

    for field in fields:
        if KEY_SEPARATOR in field:
            raise InvalidInputError(f"Cache key field {field!r} contains the key separator")

    return KEY_SEPARATOR.join(fields)


def package_readme_key(package_name: str, version: str) -> str:
    return create_cache_key(NAMESPACE_README, package_name, version)


def package_info_key(package_name: str, version: str = "latest") -> str:
    return create_cache_key(NAMESPACE_INFO, package_name, version)


def search_results_key(query: str, limit: int, type_: Optional[str] = None) -> str:
    return create_cache_key(NAMESPACE_SEARCH, query, limit, type_)


def download_stats_key(package_name: str) -> str:
    return create_cache_key(NAMESPACE_STATS, package_name)
