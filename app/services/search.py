import httpx
from loguru import logger

from app.core.base_client import BaseClient
from app.core.config import settings
from app.models.chat import WebCitation


class SearchNotConfigured(RuntimeError):
    """SERPAPI_API_KEY is missing."""


class SearchService(BaseClient):
    """Google web search through SerpAPI."""

    def __init__(
        self,
        api_key: str | None = settings.SERPAPI_API_KEY,
        limit: int = settings.SEARCH_RESULT_LIMIT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(base_url="https://serpapi.com", timeout=15.0, transport=transport)
        self.api_key = api_key
        self.limit = limit

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str, limit: int | None = None) -> list[WebCitation]:
        """
        Search the web for `query`.

        Returns at most `limit` results, in ranking order, skipping results without a link.
        Transport and HTTP errors propagate to the caller.
        """
        if not self.api_key:
            raise SearchNotConfigured("SERPAPI_API_KEY is missing")

        data = await self.get(
            "/search.json",
            params={"engine": "google", "q": query, "api_key": self.api_key},
        )

        results: list[WebCitation] = []
        for item in data.get("organic_results") or []:
            link = item.get("link") or ""
            if not link:
                continue
            results.append(
                WebCitation(
                    title=item.get("title") or link or "Untitled",
                    url=link,
                    snippet=item.get("snippet") or "",
                )
            )

        results = results[: limit or self.limit]
        logger.debug(f"Web search returned {len(results)} results for query '{query[:60]}'")
        return results
