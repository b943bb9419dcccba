"""Client for fetching README files from GitHub repositories.

Packagist does not serve README content, so the README of a package is read
from the GitHub repository its source URL points to. Only GitHub is
supported; other hosts simply yield no README.

The client tracks the ``X-RateLimit-*`` headers of every response so callers
can check :meth:`GitHubClient.is_rate_limited` before spending a request.
Unauthenticated clients get 60 requests per hour; pass a token to raise that.
"""

from __future__ import annotations

import base64
import binascii
import re
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from composer_readme.client.base import BaseAPIClient
from composer_readme.exceptions import ComposerReadmeError, NotFoundError, RateLimitError, UpstreamError
from composer_readme.models import RepositoryInfo
from composer_readme.output import debug, warning

GITHUB_API_URL = "https://api.github.com"

_REPOSITORY_URL_RE = re.compile(
    r"^(?:git\+)?(?:(?:https?|git|ssh)://)?(?:git@)?(?:www\.)?github\.com[/:]"
    r"([^/\s:]+)/([^/\s#?]+?)(?:\.git)?(?:[/#?].*)?$",
    re.IGNORECASE,
)


@dataclass
class RateLimitStatus:
    """Last rate-limit budget reported by GitHub (``None`` until a response is seen)."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: Optional[float] = None  # epoch seconds


def parse_repository_url(url: Optional[str]) -> Optional[tuple[str, str]]:
    """Extract ``(owner, repo)`` from a GitHub repository URL.

    Accepts ``https://github.com/o/r(.git)``, ``git@github.com:o/r.git``,
    ``git+https://github.com/o/r.git`` and bare ``github.com/o/r``.

    Returns:
        The owner and repository name, or ``None`` for anything that is not
        a GitHub repository URL.
    """
    if not url:
        return None
    match = _REPOSITORY_URL_RE.match(url.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def _int_header(response: httpx.Response, name: str) -> Optional[int]:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class GitHubClient(BaseAPIClient):
    """Async client for the GitHub REST API (README endpoint only).

    Args:
        token: Optional personal access token sent as a Bearer token.
        base_url: API root, ``https://api.github.com`` unless using GHES.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(
            base_url,
            service_name="GitHub",
            timeout=timeout,
            max_retries=max_retries,
            retry_base_delay=retry_base_delay,
            headers=headers,
            transport=transport,
        )
        self._rate_limit = RateLimitStatus()

    # ------------------------------------------------------------------ #
    # Rate limiting
    # ------------------------------------------------------------------ #

    def get_rate_limit_status(self) -> RateLimitStatus:
        return RateLimitStatus(
            limit=self._rate_limit.limit,
            remaining=self._rate_limit.remaining,
            reset_at=self._rate_limit.reset_at,
        )

    def is_rate_limited(self) -> bool:
        """Whether the last known budget is exhausted and not yet reset."""
        status = self._rate_limit
        if status.remaining is None or status.remaining > 0:
            return False
        return status.reset_at is None or status.reset_at > time.time()

    def _after_response(self, response: httpx.Response) -> None:
        remaining = _int_header(response, "x-ratelimit-remaining")
        if remaining is None:
            return
        reset = _int_header(response, "x-ratelimit-reset")
        self._rate_limit = RateLimitStatus(
            limit=_int_header(response, "x-ratelimit-limit"),
            remaining=remaining,
            reset_at=float(reset) if reset is not None else None,
        )
        if remaining < 10:
            debug(f"GitHub rate limit low: {remaining} requests remaining")

    def _map_response_error(self, response: httpx.Response) -> None:
        # GitHub reports an exhausted budget as 403, not 429.
        if response.status_code == 403 and _int_header(response, "x-ratelimit-remaining") == 0:
            raise RateLimitError("GitHub", retry_after=self._seconds_until_reset())
        super()._map_response_error(response)

    def _seconds_until_reset(self) -> Optional[float]:
        if self._rate_limit.reset_at is None:
            return None
        return max(self._rate_limit.reset_at - time.time(), 0.0)

    # ------------------------------------------------------------------ #
    # README
    # ------------------------------------------------------------------ #

    async def get_readme(self, owner: str, repo: str, ref: Optional[str] = None) -> Optional[str]:
        """Fetch and decode the README of ``owner/repo``.

        Args:
            owner: Repository owner.
            repo: Repository name.
            ref: Branch, tag or commit; the default branch when ``None``.

        Returns:
            The README text, or ``None`` if the repository has none.

        Raises:
            RateLimitError: If the rate-limit budget is known to be exhausted.
            UpstreamError: If GitHub answers with an unusable payload.
        """
        if self.is_rate_limited():
            raise RateLimitError("GitHub", retry_after=self._seconds_until_reset())

        params = {"ref": ref} if ref else None
        debug(f"Fetching README from GitHub: {owner}/{repo}")
        try:
            data = await self.get_json(f"/repos/{owner}/{repo}/readme", params=params)
        except NotFoundError:
            debug(f"No README found on GitHub for {owner}/{repo}")
            return None

        if not isinstance(data, dict) or not isinstance(data.get("content"), str):
            raise UpstreamError(f"Unexpected README payload for {owner}/{repo}")

        if data.get("encoding", "base64") != "base64":
            return data["content"]
        try:
            return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise UpstreamError(f"Could not decode README of {owner}/{repo}: {exc}") from exc

    async def get_readme_from_repository(self, repository: Optional[RepositoryInfo]) -> Optional[str]:
        """Fetch the README for a package's source repository. Never raises."""
        if repository is None or not repository.url:
            return None

        parsed = parse_repository_url(repository.url)
        if parsed is None:
            debug(f"Not a GitHub repository, skipping README fetch: {repository.url}")
            return None

        owner, repo = parsed
        try:
            return await self.get_readme(owner, repo)
        except ComposerReadmeError as exc:
            warning(f"Failed to fetch README from GitHub for {owner}/{repo}: {exc}")
            return None
