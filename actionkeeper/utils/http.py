"""
HTTP client utilities for actionkeeper.

This module provides an asynchronous HTTP client shared by the reference
lister (git smart-HTTP) and the release comparator (GitHub REST API). It
adds retries with backoff, GitHub rate-limit handling, concurrency control
and normalization of failures into :class:`NetworkError` /
:class:`GitHubError`.
"""

from __future__ import annotations

import time
import httpx
import random
import asyncio
from typing import Any, Dict, Mapping, Optional, cast
from urllib.parse import urlparse

from actionkeeper.utils.logger import get_logger
from actionkeeper.__version__ import __version__
from actionkeeper.exceptions import NetworkError, GitHubError
from actionkeeper.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

#: Hosts that receive the API token.
_API_HOSTS = frozenset({"api.github.com"})

#: Longest wait honoured for a rate-limit reset, in seconds.
_MAX_RATE_LIMIT_WAIT = 60


def _rate_limit_wait(response: httpx.Response) -> Optional[float]:
    """Seconds to wait before retrying a rate-limited response, else ``None``.

    Covers ``429`` responses and GitHub's ``403`` with an exhausted quota.
    """
    headers = response.headers
    if response.status_code == 429:
        return float(headers.get("Retry-After", "1"))

    if response.status_code == 403 and headers.get("X-RateLimit-Remaining") == "0":
        if "Retry-After" in headers:
            return float(headers["Retry-After"])
        reset = headers.get("X-RateLimit-Reset")
        if reset is not None:
            return max(float(reset) - time.time(), 1.0)
        return 1.0

    return None


class HTTPClient:
    """Asynchronous HTTP client with retries, rate limiting, and concurrency control.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Maximum number of retry attempts for transient errors.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of concurrent requests.
        api_token: Bearer token sent to the GitHub API only.

    Example:
        >>> async with HTTPClient() as client:
        ...     body = await client.get_text(
        ...         "https://github.com/actions/checkout.git/info/refs"
        ...         "?service=git-upload-pack"
        ...     )
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = 10,
        api_token: Optional[str] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency
        self.api_token = api_token

        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._max_rate_limit_retries: int = 5

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers_for(self, url: str, extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
        headers: Dict[str, str] = dict(extra or {})
        if self.api_token and urlparse(url).hostname in _API_HOSTS:
            headers.setdefault("Authorization", f"Bearer {self.api_token}")
        return headers

    async def _send(self, url: str, headers: Dict[str, str]) -> httpx.Response:
        """GET *url*, waiting out rate limits, and classify error statuses."""
        assert self._client is not None
        rate_limited = 0

        while True:
            async with self._semaphore:
                response = await self._client.get(url, headers=headers)

            wait = _rate_limit_wait(response)
            if wait is None:
                break

            rate_limited += 1
            if rate_limited > self._max_rate_limit_retries or wait > _MAX_RATE_LIMIT_WAIT:
                raise NetworkError(
                    "Rate limit exceeded",
                    url=url,
                    status_code=response.status_code,
                    response_body=response.text,
                )
            logger.warning(
                "Rate limited (%d), retrying after %.0fs (%d/%d)",
                response.status_code,
                wait,
                rate_limited,
                self._max_rate_limit_retries,
            )
            await asyncio.sleep(wait)

        if response.status_code == 404:
            raise GitHubError(
                f"Resource not found: {url}",
                url=url,
                status_code=404,
                repository=_repository_of(url),
            )

        if 400 <= response.status_code < 500:
            raise NetworkError(
                f"HTTP {response.status_code} error for {url}",
                url=url,
                status_code=response.status_code,
                response_body=response.text,
            )

        response.raise_for_status()
        return response

    async def get(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Perform a GET request, retrying timeouts, network errors and 5xx.

        Raises:
            GitHubError: The resource does not exist (404).
            NetworkError: Any other client error, an exhausted rate limit,
                or every attempt failed.
        """
        await self._ensure_client()

        clean_url = url.strip().strip("\"'")
        request_headers = self._headers_for(clean_url, headers)
        last_exc: Optional[Exception] = None
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                return await self._send(clean_url, request_headers)
            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning("Request timeout (%d/%d): %s", attempt + 1, attempts, clean_url)
            except httpx.NetworkError as exc:
                last_exc = exc
                logger.warning("Network error (%d/%d): %s", attempt + 1, attempts, exc)
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                logger.warning(
                    "HTTP %d error (%d/%d): %s",
                    exc.response.status_code,
                    attempt + 1,
                    attempts,
                    clean_url,
                )

            if attempt < self.max_retries:
                delay = (2**attempt) + random.uniform(0.0, 0.3)
                logger.debug("Retrying in %.2fs", delay)
                await asyncio.sleep(delay)

        raise NetworkError(
            f"Request failed after {attempts} attempts: {clean_url}",
            url=clean_url,
        ) from last_exc

    async def get_text(self, url: str, **kwargs: Any) -> str:
        """Fetch a URL and return the decoded body."""
        response = await self.get(url, **kwargs)
        return response.text

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Fetch a URL and parse the response as a JSON object."""
        response = await self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise NetworkError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)


def _repository_of(url: str) -> Optional[str]:
    """``owner/repo`` for GitHub web and API URLs."""
    parsed = urlparse(url)
    parts = [part for part in parsed.path.split("/") if part]
    if parsed.hostname == "api.github.com" and len(parts) >= 3 and parts[0] == "repos":
        return f"{parts[1]}/{parts[2]}"
    if parsed.hostname == "github.com" and len(parts) >= 2:
        repo = parts[1]
        return f"{parts[0]}/{repo[:-4] if repo.endswith('.git') else repo}"
    return None
