"""
External source integrations.

Marketplace search adapters and UPC scrapers. Each receives the
Settings instance explicitly.
"""

from typing import Optional

from config.settings import Settings, get_settings
from models.product import Marketplace
from integrations.base import MarketplaceSearchAdapter, ScraperSource
from integrations.tcgplayer import TCGPlayerSearchAdapter
from integrations.cardtrader import CardTraderSearchAdapter
from integrations.wpn import WPNScraper
from integrations.fixtures import FALLBACK_SCRAPED_ITEMS, fallback_items


_adapters: dict[Marketplace, MarketplaceSearchAdapter] = {}


def _build_adapter(marketplace: Marketplace, settings: Settings) -> MarketplaceSearchAdapter:
    if marketplace == Marketplace.TCGPLAYER:
        return TCGPlayerSearchAdapter(settings)
    return CardTraderSearchAdapter(settings)


def get_marketplace_adapter(
    marketplace: Marketplace,
    settings: Optional[Settings] = None
) -> MarketplaceSearchAdapter:
    """
    Get the search adapter for a marketplace.

    With the configured settings the adapter (and its HTTP session) is
    shared across requests. Explicit settings build a fresh adapter.
    """
    if settings is not None:
        return _build_adapter(marketplace, settings)

    if marketplace not in _adapters:
        _adapters[marketplace] = _build_adapter(marketplace, get_settings())
    return _adapters[marketplace]


__all__ = [
    "MarketplaceSearchAdapter",
    "ScraperSource",
    "TCGPlayerSearchAdapter",
    "CardTraderSearchAdapter",
    "WPNScraper",
    "FALLBACK_SCRAPED_ITEMS",
    "fallback_items",
    "get_marketplace_adapter",
]
