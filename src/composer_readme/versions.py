"""Resolution of requested version strings against a package's declared versions.

Packagist lists every tag and branch of a package under ``package.versions``.
Callers ask for ``latest``, an explicit tag (``1.2.0`` or ``v1.2.0``) or a
branch (``dev-main``); :func:`resolve_version` maps that request onto a key
that actually exists, or ``None`` when nothing matches.
"""

from __future__ import annotations

import re
from functools import cmp_to_key
from typing import Any, Iterable, Mapping, Optional

LATEST = "latest"

_UNSTABLE_RE = re.compile(r"alpha|beta|rc", re.IGNORECASE)


def is_dev_branch(version: str) -> bool:
    """Whether *version* names a branch: ``dev-main`` or Composer's ``7.3.x-dev`` form."""
    return version.startswith("dev-") or version.lower().endswith("-dev")


def is_stable_version(version: str) -> bool:
    """Whether *version* is a tagged release (not a branch or pre-release)."""
    return not is_dev_branch(version) and _UNSTABLE_RE.search(version) is None


def _version_key(version: str) -> list[int]:
    parts = []
    for component in version.lstrip("v").split("."):
        digits = re.match(r"\d+", component)
        parts.append(int(digits.group(0)) if digits else 0)
    return parts


def _compare(a: str, b: str) -> int:
    ka, kb = _version_key(a), _version_key(b)
    width = max(len(ka), len(kb))
    ka += [0] * (width - len(ka))
    kb += [0] * (width - len(kb))
    return (ka > kb) - (ka < kb)


def sort_versions_desc(versions: Iterable[str]) -> list[str]:
    """Sort version strings newest first by numeric component.

    Missing components count as zero (``1.2`` equals ``1.2.0``); ties keep
    their input order.
    """
    return sorted(versions, key=cmp_to_key(_compare), reverse=True)


def latest_stable_version(versions: Iterable[str]) -> Optional[str]:
    stable = [v for v in versions if is_stable_version(v)]
    if not stable:
        return None
    return sort_versions_desc(stable)[0]


def resolve_version(versions: Optional[Mapping[str, Any]], requested: str) -> Optional[str]:
    """Map *requested* onto a key of *versions*.

    Args:
        versions: The ``package.versions`` mapping (only its keys are used).
        requested: ``latest``, a tag, or a ``dev-`` branch name.

    Returns:
        The matching key, or ``None`` if the mapping is empty or the explicit
        version is not declared. For ``latest`` the highest stable version
        wins, then the first declared ``dev-`` branch, then the first key.
        An explicit tag also matches with its ``v`` prefix toggled, and
        ``dev-master`` falls back to ``dev-main``.
    """
    if not versions:
        return None

    declared = list(versions)

    if requested == LATEST:
        stable = latest_stable_version(declared)
        if stable is not None:
            return stable
        for version in declared:
            if is_dev_branch(version):
                return version
        return declared[0]

    if requested in versions:
        return requested

    toggled = requested[1:] if requested.startswith("v") else f"v{requested}"
    if toggled in versions:
        return toggled

    if requested == "dev-master" and "dev-main" in versions:
        return "dev-main"

    return None
