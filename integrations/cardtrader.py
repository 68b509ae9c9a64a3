"""
CardTrader blueprint search.

CardTrader has no free-text search, so a query is answered by loading
the blueprints of the expansion matching the set code and ranking them
by name similarity.
"""

from typing import Any, Optional

import requests
import structlog

from config.settings import Settings
from exceptions import MarketplaceSearchError
from models.matching import MarketplaceHit
from services.similarity_service import SimilarityScorer

logger = structlog.get_logger(__name__)

BLUEPRINT_URL = "https://www.cardtrader.com/cards/{blueprint_id}"


class CardTraderSearchAdapter:
    """MarketplaceSearchAdapter for CardTrader."""

    name = "cardtrader"

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        scorer: Optional[SimilarityScorer] = None
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.scorer = scorer or SimilarityScorer.from_settings(settings)
        self._expansions: Optional[list[dict]] = None

    def search(self, query: str, hint: Optional[str] = None) -> list[MarketplaceHit]:
        """
        Find blueprints named like `query` in the expansion `hint`.

        Args:
            query: Product name
            hint: Set code, e.g. "DSK" (required to pick an expansion)

        Returns:
            Hits above the similarity floor, best first

        Raises:
            MarketplaceSearchError: If the API is unreachable or not configured
        """
        if not hint:
            logger.info("cardtrader_search_skipped_no_set_code", query=query)
            return []

        expansion = self._find_expansion(hint)
        if expansion is None:
            logger.info("cardtrader_expansion_not_found", set_code=hint)
            return []

        blueprints = self._call("/blueprints/export", {"expansion_id": expansion["id"]})
        if not isinstance(blueprints, list):
            return []

        scored: list[tuple[float, MarketplaceHit]] = []
        for blueprint in blueprints:
            hit = self._to_hit(blueprint)
            if hit is None:
                continue
            similarity = self.scorer.score(query, hit.external_name)
            if similarity >= self.settings.cardtrader_min_similarity:
                scored.append((similarity, hit))

        # sorted() is stable: equal scores keep CardTrader's order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

        logger.info(
            "cardtrader_search_complete",
            query=query,
            set_code=hint,
            blueprints=len(blueprints),
            hits=len(scored)
        )

        return [hit for _, hit in scored]

    # ===================
    # HELPERS
    # ===================

    def _find_expansion(self, set_code: str) -> Optional[dict]:
        if self._expansions is None:
            expansions = self._call("/expansions", {"game_id": self.settings.cardtrader_game_id})
            self._expansions = [e for e in expansions if isinstance(e, dict)] if isinstance(expansions, list) else []

        wanted = set_code.strip().lower()
        for expansion in self._expansions:
            code = expansion.get("code")
            if code and str(code).lower() == wanted and expansion.get("id") is not None:
                return expansion
        return None

    def _to_hit(self, blueprint: Any) -> Optional[MarketplaceHit]:
        if not isinstance(blueprint, dict):
            return None
        try:
            blueprint_id = int(blueprint.get("id"))
        except (TypeError, ValueError):
            return None
        name = blueprint.get("name")
        if not name or not str(name).strip():
            return None
        return MarketplaceHit(
            external_id=blueprint_id,
            external_name=str(name),
            external_url=BLUEPRINT_URL.format(blueprint_id=blueprint_id),
        )

    def _call(self, endpoint: str, params: dict) -> Any:
        if not self.settings.cardtrader_configured:
            raise MarketplaceSearchError(self.name, "CardTrader JWT not configured")

        url = f"{self.settings.cardtrader_api_url}{endpoint}"

        try:
            response = self.session.get(
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {self.settings.cardtrader_jwt}",
                    "Content-Type": "application/json",
                },
                timeout=self.settings.http_timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error("cardtrader_request_failed", endpoint=endpoint, error=str(e))
            raise MarketplaceSearchError(self.name, f"CardTrader API error: {e}", details={"endpoint": endpoint})
        except ValueError as e:
            logger.error("cardtrader_bad_json", endpoint=endpoint, error=str(e))
            raise MarketplaceSearchError(self.name, "CardTrader returned invalid JSON", details={"endpoint": endpoint})
