from abc import ABC, abstractmethod
from typing import Any, List, Mapping

from src.models.paper import ArxivCategory


class FeedSource(ABC):
    """Abstract paper feed consumed by the scout

    Implementations return raw feed entries; turning an entry into a paper
    record (and rejecting malformed ones) is the scout's job so one broken
    entry never fails a whole category.
    """

    @abstractmethod
    async def fetch_category_entries(
        self, category: str, max_results: int
    ) -> List[Mapping[str, Any]]:
        """Newest submissions of ``category``, newest first

        Raises:
            SourceError: If the feed cannot be fetched
        """
        pass

    @abstractmethod
    async def fetch_sets(self) -> List[ArxivCategory]:
        """Subject taxonomy of the source"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name for logging and identification"""
        pass
