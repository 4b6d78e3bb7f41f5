"""Async HTTP client base with TTL caching and stale-cache fallback."""

import logging
from typing import Any, ClassVar

import httpx

from treasury_dashboard.transport.cache import ResponseCache
from treasury_dashboard.transport.errors import (
    MalformedResponseError,
    MissingCredentialsError,
    SourceError,
    UpstreamAPIError,
)
from treasury_dashboard.transport.throttle import RequestThrottle

logger = logging.getLogger(__name__)


class CachedJSONClient:
    """
    Base class for source adapters talking to a REST API.

    Every request goes through the same pipeline: credentials check, fresh
    cache lookup, optional throttle, GET, and on failure a fallback to the
    last cached response for the same endpoint and parameters.

    Parameters
    ----------
    base_url : str
        API base URL
    cache : ResponseCache
        Response cache owned by this client
    api_key : str | None
        API key, required when ``api_key_env`` is set
    throttle : RequestThrottle | None
        Minimum request spacing shared by all requests of this client
    timeout : float
        Request timeout in seconds
    transport : httpx.AsyncBaseTransport | None
        Custom transport (tests use ``httpx.MockTransport``)

    """

    source: ClassVar[str] = "upstream"
    api_key_env: ClassVar[str | None] = None

    def __init__(
        self,
        base_url: str,
        cache: ResponseCache,
        *,
        api_key: str | None = None,
        throttle: RequestThrottle | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.cache = cache
        self.api_key = api_key
        self.throttle = throttle
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={"accept": "application/json"},
        )

    def _auth_headers(self) -> dict[str, str]:
        """Headers carrying credentials. Override in subclasses."""
        return {}

    def _auth_params(self) -> dict[str, str]:
        """Query parameters carrying credentials. Override in subclasses."""
        return {}

    def _check_credentials(self) -> None:
        if self.api_key_env and not self.api_key:
            raise MissingCredentialsError(self.source, self.api_key_env)

    async def fetch_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        Fetch and decode a JSON endpoint.

        Parameters
        ----------
        path : str
            Path relative to ``base_url``
        params : dict[str, Any] | None
            Query parameters, excluding credentials

        Returns
        -------
        Any
            Decoded JSON body, possibly from cache

        Raises
        ------
        MissingCredentialsError
            If the client requires an API key and none is configured
        UpstreamAPIError
            If the request fails and nothing is cached for it
        MalformedResponseError
            If the body is not JSON and nothing is cached for it

        """
        return await self._fetch(path, params, as_json=True)

    async def fetch_text(self, path: str, params: dict[str, Any] | None = None) -> str:
        """Fetch a text endpoint (e.g. a CSV export) through the same pipeline."""
        return await self._fetch(path, params, as_json=False)

    async def _fetch(self, path: str, params: dict[str, Any] | None, *, as_json: bool) -> Any:
        self._check_credentials()

        cached = self.cache.get(path, params)
        if cached is not None:
            return cached

        try:
            payload = await self._request(path, params, as_json=as_json)
        except SourceError as e:
            stale = self.cache.get_stale(path, params)
            if stale is not None:
                logger.warning("%s request %s failed (%s), using stale cache", self.source, path, e)
                return stale
            raise

        self.cache.set(path, params, payload)
        return payload

    async def _request(self, path: str, params: dict[str, Any] | None, *, as_json: bool) -> Any:
        if self.throttle is not None:
            await self.throttle.wait()

        query = {**(params or {}), **self._auth_params()}
        try:
            response = await self.client.get(path, params=query, headers=self._auth_headers())
            response.raise_for_status()
        except httpx.TimeoutException as e:
            msg = f"request timeout on {path}: {e}"
            raise UpstreamAPIError(self.source, msg) from e
        except httpx.HTTPStatusError as e:
            msg = f"HTTP error {e.response.status_code} on {path}"
            raise UpstreamAPIError(self.source, msg, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            msg = f"HTTP request failed on {path}: {e}"
            raise UpstreamAPIError(self.source, msg) from e

        if not as_json:
            return response.text

        try:
            return response.json()
        except ValueError as e:
            msg = f"invalid JSON from {path}"
            raise MalformedResponseError(self.source, msg) from e

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object | None,
    ) -> None:
        """Async context manager exit."""
        await self.aclose()
