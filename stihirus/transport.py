"""HTTP access to stihirus.ru pages and its internal JSON API."""

import logging
from typing import Any

import httpx

from stihirus.config import ClientConfig
from stihirus.errors import NetworkError, NotFound, UpstreamError

logger = logging.getLogger(__name__)

POEMS_ENDPOINT = "pr_read_avtor"
FILTERS_ENDPOINT = "pr_read_avtor_prozv_filter"

# Endpoints that answer with bare arrays and only set "status" on failure.
LENIENT_ENDPOINTS = frozenset({POEMS_ENDPOINT, FILTERS_ENDPOINT})

DENIED_MARKERS = ("denied", "доступ запрещен")


class Transport:
    """GET documents and POST form-encoded API calls.

    Must be used as an async context manager; the underlying
    ``httpx.AsyncClient`` lives for the duration of the ``async with`` block.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "Transport":
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout,
            transport=self._transport,
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *_: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Transport not initialized. Use 'async with transport:'")
        return self._client

    async def fetch_document(self, url: str) -> str:
        """GET ``url`` and return the body text."""
        client = self._require_client()
        logger.debug("Fetching document: %s", url)
        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            raise NetworkError(f"Network error while fetching {url}") from e

        logger.debug("Response status: %s", response.status_code)
        if response.status_code == 404:
            raise NotFound(f"Page not found: {url}")
        if not response.is_success:
            raise UpstreamError(
                f"HTTP {response.status_code} for {url}", status_code=response.status_code
            )
        return response.text

    async def call_api(
        self,
        endpoint: str,
        params: dict[str, Any],
        referer: str | None = None,
    ) -> dict[str, Any]:
        """POST form ``params`` to an internal API endpoint and return the JSON object."""
        client = self._require_client()
        url = f"{self.config.api_base_url}/{endpoint}"
        data = {k: str(v) for k, v in params.items() if v is not None}
        headers = {
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
            "X-Requested-With": "XMLHttpRequest",
            "Referer": referer or self.config.base_url,
            "Origin": self.config.base_url,
        }
        logger.debug("Calling %s with %s", endpoint, data)
        try:
            response = await client.post(url, data=data, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(f"Network error while calling {endpoint}") from e

        if not response.is_success:
            raise UpstreamError(
                f"HTTP {response.status_code} from {endpoint}", status_code=response.status_code
            )

        try:
            result = response.json()
        except ValueError as e:  # JSONDecodeError or UnicodeDecodeError
            raise UpstreamError(
                f"Invalid JSON from {endpoint}",
                status_code=response.status_code,
                malformed=True,
            ) from e
        if not isinstance(result, dict):
            raise UpstreamError(
                f"Unexpected response shape from {endpoint}",
                status_code=response.status_code,
                malformed=True,
            )

        self._check_status(endpoint, result)
        if endpoint == FILTERS_ENDPOINT:
            for key in ("razd", "year_month"):
                if not isinstance(result.get(key), list):
                    raise UpstreamError(
                        f"Missing '{key}' in {endpoint} response",
                        status_code=response.status_code,
                        malformed=True,
                    )
        return result

    def _check_status(self, endpoint: str, result: dict[str, Any]) -> None:
        status = result.get("status")
        if status == "error":
            message = str(result.get("message") or "Unknown API Error")
            if any(marker in message.lower() for marker in DENIED_MARKERS):
                raise NotFound("Access denied or content not found")
            raise UpstreamError(f"API Error: {message}", api_status=status)
        if endpoint not in LENIENT_ENDPOINTS and status != "success":
            raise UpstreamError(
                f"API {endpoint} returned status {status!r}",
                api_status=str(status) if status is not None else None,
            )
