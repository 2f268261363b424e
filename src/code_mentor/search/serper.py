# src/code_mentor/search/serper.py
import logging
import httpx
from .base import ContextAugmenter
from code_mentor.errors import AugmentationFailure


logger = logging.getLogger(__name__)


class SerperAugmenter(ContextAugmenter):
    API_URL = "https://google.serper.dev/search"

    def __init__(self, api_key: str, max_results: int = 3, snippet_chars: int = 300, timeout: float = 10.0):
        self.api_key = api_key
        self.max_results = max_results
        self.snippet_chars = snippet_chars
        self.timeout = timeout

    async def search(self, query: str) -> str:
        logger.info(f"Searching the web for: {query}")
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.API_URL,
                    headers={"X-API-KEY": self.api_key},
                    json={"q": query},
                    timeout=self.timeout,
                )
                response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise AugmentationFailure(f"Serper request failed: {e}") from e

        organic = data.get("organic") or []
        return "\n\n---\n\n".join(
            self._format_result(item) for item in organic[: self.max_results]
        )

    def _format_result(self, item: dict) -> str:
        snippet = item.get("snippet", "")
        if len(snippet) > self.snippet_chars:
            snippet = snippet[: self.snippet_chars].rstrip() + "..."
        return f"Title: {item.get('title', '')}\nSnippet: {snippet}\nSource: {item.get('link', '')}"
