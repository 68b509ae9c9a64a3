"""
TCGplayer product search.

Three strategies, tried in order until one returns results:

1. Autocomplete endpoint (fast, product-line filtered)
2. Catalog search endpoint (POST with name/set filters)
3. Sealed-product HTML search page (product links parsed with BeautifulSoup)

Transport failures on the primary endpoint raise; the fallbacks are
best-effort and only log.
"""

import uuid
from typing import Any, Optional

import requests
import structlog
from bs4 import BeautifulSoup

from config.settings import Settings
from exceptions import MarketplaceSearchError
from models.matching import MarketplaceHit

logger = structlog.get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PRODUCT_URL = "https://www.tcgplayer.com/product/{product_id}"

SEALED_TERMS = ("booster", "bundle", "box", "deck", "case")

HTML_RESULT_LIMIT = 10


def _to_hit(product_id: Any, product_name: Any, set_name: Any = None) -> Optional[MarketplaceHit]:
    """Build a hit from loose JSON, or None if the id/name are unusable."""
    try:
        external_id = int(product_id)
    except (TypeError, ValueError):
        return None
    if not product_name or not str(product_name).strip():
        return None
    return MarketplaceHit(
        external_id=external_id,
        external_name=str(product_name),
        external_url=PRODUCT_URL.format(product_id=external_id),
        set_name=str(set_name) if set_name else None,
    )


class TCGPlayerSearchAdapter:
    """MarketplaceSearchAdapter for TCGplayer."""

    name = "tcgplayer"

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def search(self, query: str, hint: Optional[str] = None) -> list[MarketplaceHit]:
        """
        Search for a product, optionally narrowed by set code/name.

        Args:
            query: Product name
            hint: Set code or set name

        Returns:
            Hits in TCGplayer's order (may be empty)

        Raises:
            MarketplaceSearchError: If the autocomplete endpoint fails
        """
        logger.info("tcgplayer_search", query=query, hint=hint)

        hits = self.autocomplete(query, hint)
        if hits:
            return hits

        hits = self.catalog_search(query, hint)
        if hits:
            return hits

        return self.html_search(query)

    # ===================
    # STRATEGIES
    # ===================

    def autocomplete(self, query: str, hint: Optional[str] = None) -> list[MarketplaceHit]:
        search_query = f"{query} {hint}" if hint else query
        params = {
            "q": search_query,
            "session-id": str(uuid.uuid4()),
            "product-line-affinity": "All",
            "algorithm": "product_line_affinity",
        }

        try:
            response = self.session.get(
                self.settings.tcgplayer_autocomplete_url,
                params=params,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=self.settings.http_timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("tcgplayer_autocomplete_failed", query=search_query, error=str(e))
            raise MarketplaceSearchError(self.name, f"Autocomplete request failed: {e}")
        except ValueError as e:
            logger.error("tcgplayer_autocomplete_bad_json", query=search_query, error=str(e))
            raise MarketplaceSearchError(self.name, "Autocomplete returned invalid JSON")

        return self._parse_autocomplete(payload)

    def _parse_autocomplete(self, payload: Any) -> list[MarketplaceHit]:
        if not isinstance(payload, dict):
            return []

        hits: list[MarketplaceHit] = []

        # Older payload shape: {"results": [{"productId", "productName"}]}
        for item in payload.get("results") or []:
            if isinstance(item, dict):
                hit = _to_hit(item.get("productId"), item.get("productName"))
                if hit:
                    hits.append(hit)

        # Current shape: {"products": [{"product-id", "product-name", "product-line-name"}]}
        for item in payload.get("products") or []:
            if not isinstance(item, dict):
                continue
            if item.get("product-line-name") != self.settings.tcgplayer_product_line:
                continue
            hit = _to_hit(item.get("product-id"), item.get("product-name"), item.get("set-name"))
            if hit:
                hits.append(hit)

        return hits

    def catalog_search(self, query: str, set_name: Optional[str] = None) -> list[MarketplaceHit]:
        filters = [{"name": "productName", "values": [query.strip()]}]
        if set_name and set_name.strip():
            filters.append({"name": "setName", "values": [set_name.strip()]})

        payload = {
            "sort": "name",
            "limit": 24,
            "offset": 0,
            "filters": filters,
            "context": {"shippingCountry": "US", "language": "en"},
        }

        try:
            response = self.session.post(
                self.settings.tcgplayer_catalog_url,
                json=payload,
                headers={
                    "Accept": "application/json",
                    "Origin": "https://www.tcgplayer.com",
                    "Referer": "https://www.tcgplayer.com/",
                    "User-Agent": USER_AGENT,
                },
                timeout=self.settings.http_timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("tcgplayer_catalog_search_failed", query=query, error=str(e))
            return []

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            return []

        hits = []
        for item in results:
            if not isinstance(item, dict):
                continue
            hit = _to_hit(
                item.get("productId"),
                item.get("name") or item.get("cleanName"),
                item.get("setName"),
            )
            if hit:
                hits.append(hit)
        return hits

    def html_search(self, query: str) -> list[MarketplaceHit]:
        params = {
            "productLineName": "magic",
            "categoryName": "Sealed Products",
            "q": query,
        }

        try:
            response = self.session.get(
                self.settings.tcgplayer_html_search_url,
                params=params,
                headers={
                    "User-Agent": USER_AGENT,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": "en-US,en;q=0.5",
                },
                timeout=self.settings.http_timeout_seconds,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("tcgplayer_html_search_failed", query=query, error=str(e))
            return []

        soup = BeautifulSoup(response.text, "html.parser")

        hits = []
        seen = set()
        for link in soup.select('a[href^="/product/"]'):
            # /product/123456/slug
            product_id = link["href"].split("/")[2]
            name = link.get_text(" ", strip=True)
            if not name:
                continue
            if not any(term in name.lower() for term in SEALED_TERMS):
                continue
            hit = _to_hit(product_id, name)
            if hit and hit.external_id not in seen:
                seen.add(hit.external_id)
                hits.append(hit)
            if len(hits) >= HTML_RESULT_LIMIT:
                break

        logger.info("tcgplayer_html_results", query=query, count=len(hits))
        return hits
