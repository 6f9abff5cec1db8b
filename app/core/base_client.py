from typing import Any

import httpx
from loguru import logger


class BaseClient:
    """
    Base asynchronous HTTP client with a lazily created shared session and logging.

    Requests are issued once. Callers decide how to surface failures; a non-2xx
    response raises ``httpx.HTTPStatusError`` with the response attached.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        client = await self.get_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Request failed ({method} {url}): {str(e)}")
            raise

        if response.is_error:
            logger.warning(f"Request failed ({method} {url}): HTTP {response.status_code}")
        response.raise_for_status()
        return response

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> dict[str, Any]:
        """Perform a GET request and return the JSON response."""
        response = await self._request("GET", url, params=params, **kwargs)
        return response.json()
