"""Shared asynchronous HTTP plumbing for the registry and source-host clients.

:class:`BaseAPIClient` wraps :class:`httpx.AsyncClient` and adds what every
upstream call needs: a fixed ``User-Agent``, retry with exponential backoff
on 5xx / 429 / network failures, and mapping of error statuses onto the
:mod:`composer_readme.exceptions` hierarchy.

Clients must be used as async context managers (or closed with
:meth:`BaseAPIClient.aclose`); the underlying connection pool is created on
entry.

See Also:
    :class:`~composer_readme.client.packagist.PackagistClient` and
    :class:`~composer_readme.client.github.GitHubClient`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from composer_readme import __version__
from composer_readme.exceptions import (
    ConnectionError_,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)
from composer_readme.output import get_output

USER_AGENT = f"composer-readme/{__version__}"

RETRYABLE_NETWORK_ERRORS = (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)


def parse_retry_after(response: httpx.Response) -> Optional[float]:
    """Return the ``Retry-After`` header in seconds, if it is a number."""
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class BaseAPIClient:
    """Asynchronous HTTP client with retry and error mapping.

    Args:
        base_url: Root URL every request path is appended to.
        service_name: Human-readable upstream name used in messages.
        timeout: Per-request timeout in seconds.
        max_retries: Retries after the first attempt (``0`` disables retry).
        retry_base_delay: First backoff delay in seconds; doubles per attempt.
        headers: Extra default headers.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).

    Example::

        async with PackagistClient() as client:
            package = await client.get_package_info("monolog/monolog")
    """

    def __init__(
        self,
        base_url: str,
        service_name: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_name = service_name
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._headers = {"User-Agent": USER_AGENT, **(headers or {})}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> BaseAPIClient:
        self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    def open(self) -> None:
        """Create the connection pool (no-op if already open)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._headers,
                follow_redirects=True,
                transport=self._transport,
            )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Send a request with retry, then map error statuses to exceptions.

        Raises:
            NotFoundError: On 404.
            RateLimitError: On 429 once retries are exhausted.
            UpstreamError: On any other status >= 400.
            ConnectionError_: On network / timeout errors after all retries.
        """
        response = await self._execute_with_retry(method, path, params, headers)
        self._after_response(response)
        self._map_response_error(response)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def head(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("HEAD", path, **kwargs)

    async def get_json(self, path: str, **kwargs: Any) -> Any:
        """GET *path* and decode the JSON body.

        Raises:
            UpstreamError: If the body is not valid JSON.
        """
        response = await self.get(path, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"{self._service_name} returned invalid JSON for {path}",
                status_code=response.status_code,
            ) from exc

    # ------------------------------------------------------------------ #
    # Hooks for subclasses
    # ------------------------------------------------------------------ #

    def _after_response(self, response: httpx.Response) -> None:
        """Called with every final response before error mapping."""

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _backoff(self, attempt: int) -> float:
        return self._retry_base_delay * 2 ** attempt

    async def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]],
        headers: Optional[dict[str, str]],
    ) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx, 429 and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt; a 429 with a
        numeric ``Retry-After`` header waits that long instead.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        output = get_output()

        for attempt in range(self._max_retries + 1):
            try:
                response = await self._client.request(
                    method, path, params=params, headers=headers
                )
            except RETRYABLE_NETWORK_ERRORS as exc:
                if attempt < self._max_retries:
                    delay = self._backoff(attempt)
                    output.debug(
                        f"{self._service_name} connection error: {exc}, retrying in "
                        f"{delay:g}s (attempt {attempt + 1}/{self._max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection to {self._service_name} failed after "
                    f"{self._max_retries + 1} attempts: {exc}"
                ) from exc

            status = response.status_code
            retryable = status >= 500 or status == 429
            if retryable and attempt < self._max_retries:
                delay = self._backoff(attempt)
                if status == 429:
                    retry_after = parse_retry_after(response)
                    if retry_after is not None:
                        delay = retry_after
                output.debug(
                    f"{self._service_name} returned {status} for {method} {path}, "
                    f"retrying in {delay:g}s (attempt {attempt + 1}/{self._max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            return response

        raise UpstreamError(f"{self._service_name} request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        msg = ""
        if response.content:
            try:
                detail = response.json()
                if isinstance(detail, dict):
                    msg = str(detail.get("message") or detail.get("error") or detail.get("status") or "")
                else:
                    msg = str(detail)
            except ValueError:
                msg = response.text[:200]

        full_msg = f"{self._service_name} HTTP {status}"
        if msg:
            full_msg = f"{full_msg}: {msg}"

        if status == 404:
            raise NotFoundError(full_msg)
        if status == 429:
            raise RateLimitError(self._service_name, retry_after=parse_retry_after(response))
        raise UpstreamError(full_msg, status_code=status)
