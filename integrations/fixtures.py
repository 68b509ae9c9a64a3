"""
Fixed scrape used when the live scraper is unreachable.

Small and recognizable on purpose: anything staged from it can be
traced back here by its provenance URL.
"""

from models.matching import ScrapedItem

FIXTURE_SOURCE_URL = "fixture://wpn-fallback"

FALLBACK_SCRAPED_ITEMS = [
    ScrapedItem(
        name="MTG Duskmourn Draft Booster Box 36ct",
        code="195166219845",
        set_code="dsk",
        source_url=FIXTURE_SOURCE_URL,
    ),
    ScrapedItem(
        name="Magic Foundations Bundle English",
        code="195166220887",
        set_code="fdn",
        source_url=FIXTURE_SOURCE_URL,
    ),
    ScrapedItem(
        name="OTJ Commander Deck Desert Bloom",
        code="195166218963",
        set_code="otj",
        source_url=FIXTURE_SOURCE_URL,
    ),
    ScrapedItem(
        name="Magic: The Gathering - Dominaria United Draft Booster Pack",
        code="630509620123",
        set_code="dmu",
        source_url=FIXTURE_SOURCE_URL,
    ),
]


def fallback_items() -> list[ScrapedItem]:
    """Fresh copies so callers can't mutate the shared fixture."""
    return [item.model_copy() for item in FALLBACK_SCRAPED_ITEMS]
