# src/code_mentor/search/base.py
import logging
from abc import ABC, abstractmethod


logger = logging.getLogger(__name__)

NO_RESULTS = "No relevant search results found."


class ContextAugmenter(ABC):
    """Best-effort enrichment of a prompt with search snippets.

    Subclasses implement `search`; callers use `augment`, which never raises.
    """

    async def augment(self, query: str) -> str:
        try:
            text = await self.search(query)
        except Exception as e:
            logger.warning(f"Context augmentation failed for {query!r}: {e}")
            return NO_RESULTS
        return text or NO_RESULTS

    @abstractmethod
    async def search(self, query: str) -> str:
        """Return formatted results, or an empty string when nothing matched."""
        pass


class NullAugmenter(ContextAugmenter):
    """Used when no search service is configured."""

    async def search(self, query: str) -> str:
        return ""
