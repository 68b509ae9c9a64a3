"""
WPN product page scraper.

Crawls the Wizards Play Network product listing, follows each set
page and collects (name, sku, upc) from its product cards.
"""

import time
from typing import Callable, Optional
from urllib.parse import urljoin

import requests
import structlog
from bs4 import BeautifulSoup

from config.settings import Settings
from exceptions import ScraperUnavailableError
from models.matching import ScrapedItem

logger = structlog.get_logger(__name__)

WPN_ROOT = "https://wpn.wizards.com"
SET_LINK_PREFIX = "/en/products/"

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
}


class WPNScraper:
    """ScraperSource for WPN UPC listings."""

    name = "wpn"

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.sleep = sleep

    def fetch(self) -> list[ScrapedItem]:
        """
        Scrape product cards from the first `wpn_max_pages` listing pages.

        Returns:
            Scraped items with a name and UPC

        Raises:
            ScraperUnavailableError: If the listing can't be read at all
        """
        items: list[ScrapedItem] = []
        listing_ok = False

        for page in range(self.settings.wpn_max_pages):
            try:
                set_links = self.scrape_set_links(page)
                listing_ok = True
            except requests.exceptions.RequestException as e:
                logger.warning("wpn_listing_page_failed", page=page, error=str(e))
                continue

            for link in set_links:
                try:
                    items.extend(self.scrape_product_page(link))
                except requests.exceptions.RequestException as e:
                    logger.warning("wpn_product_page_failed", url=link, error=str(e))
                self.sleep(self.settings.mapping_delay_seconds)

        if not listing_ok:
            raise ScraperUnavailableError(self.name, "WPN product listing unreachable")

        logger.info("wpn_scrape_complete", items=len(items))
        return items

    def scrape_set_links(self, page: int = 0) -> list[str]:
        """Absolute URLs of set pages on one listing page."""
        url = f"{self.settings.wpn_products_url}?page={page}"
        logger.info("wpn_fetching_listing", url=url)

        soup = self._get(url)

        links = []
        for anchor in soup.select("a.card__link"):
            href = anchor.get("href") or ""
            if href.startswith(SET_LINK_PREFIX):
                links.append(urljoin(WPN_ROOT, href))
        return links

    def scrape_product_page(self, url: str) -> list[ScrapedItem]:
        """Product cards with both a title and a UPC on one set page."""
        logger.info("wpn_scraping_set", url=url)

        soup = self._get(url)
        set_code = url.rstrip("/").rsplit("/", 1)[-1]

        items = []
        for card in soup.select(".product-card"):
            name = _text(card, ".product-card__title")
            upc = _text(card, ".product-card__upc")
            if not name or not upc:
                continue
            items.append(ScrapedItem(
                name=name,
                code=upc,
                sku=_text(card, ".product-card__sku") or None,
                set_code=set_code,
                source_url=url,
            ))
        return items

    def _get(self, url: str) -> BeautifulSoup:
        response = self.session.get(url, headers=HEADERS, timeout=self.settings.http_timeout_seconds)
        response.raise_for_status()
        return BeautifulSoup(response.text, "html.parser")


def _text(card, selector: str) -> str:
    node = card.select_one(selector)
    return node.get_text(strip=True) if node else ""
