"""
Capabilities the matching core consumes from external sources.
"""

from typing import Optional, Protocol

from models.matching import MarketplaceHit, ScrapedItem


class MarketplaceSearchAdapter(Protocol):
    """Search one marketplace by product name."""

    name: str

    def search(self, query: str, hint: Optional[str] = None) -> list[MarketplaceHit]:
        """
        Return hits in the marketplace's own relevance order.

        Returns an empty list when nothing matches. Raises
        MarketplaceSearchError only for transport failures.
        """
        ...


class ScraperSource(Protocol):
    """Produce scraped (name, code) records."""

    name: str

    def fetch(self) -> list[ScrapedItem]:
        """
        Raises:
            ScraperUnavailableError: If the source can't be reached
        """
        ...
