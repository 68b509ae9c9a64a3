"""
Candidate ranking.

Two policies, kept deliberately different:

- Catalog-vs-catalog (UPC reconciliation): score every pool entry,
  keep the best, and require it to clear a threshold.
- Catalog-vs-marketplace (bulk mapping): accept the marketplace's own
  top result without re-scoring it.
"""

from typing import Optional, Sequence
import structlog

from models.matching import ConfidenceTier, MarketplaceHit, MatchCandidate, ScrapedItem
from models.product import CatalogEntry
from services.similarity_service import SimilarityScorer, classify_confidence

logger = structlog.get_logger(__name__)

DEFAULT_UPC_THRESHOLD = 0.30


class CandidateRanker:
    """Picks best matches and labels their confidence."""

    def __init__(self, scorer: Optional[SimilarityScorer] = None):
        self.scorer = scorer or SimilarityScorer()

    def rank(
        self,
        item: ScrapedItem,
        pool: Sequence[CatalogEntry],
        threshold: float = DEFAULT_UPC_THRESHOLD
    ) -> MatchCandidate:
        """
        Find the pool entry most similar to a scraped item.

        Ties keep the first entry encountered, so callers control the
        outcome through pool ordering (the catalog is read sorted by name).

        Args:
            item: Scraped record
            pool: Candidate catalog entries
            threshold: Minimum score for a match

        Returns:
            Best MatchCandidate, or the no-match sentinel if the best
            score is below threshold (or the pool is empty)
        """
        best: Optional[CatalogEntry] = None
        best_score = 0.0

        for entry in pool:
            current = self.scorer.score(item.name, entry.name)
            if current > best_score:
                best, best_score = entry, current

        if best is None or best_score < threshold:
            logger.debug(
                "no_candidate_above_threshold",
                scraped_name=item.name,
                best_score=round(best_score, 3),
                threshold=threshold
            )
            return MatchCandidate.no_match(item)

        return MatchCandidate(
            product_id=best.id,
            product_name=best.name,
            scraped_name=item.name,
            scraped_code=item.code,
            source_url=item.source_url,
            score=round(best_score, 4),
            confidence=classify_confidence(item.name, best.name),
        )

    def pick_top_hit(
        self,
        name: str,
        hits: Sequence[MarketplaceHit]
    ) -> Optional[tuple[MarketplaceHit, ConfidenceTier]]:
        """
        Accept the marketplace's first result for a catalog name.

        No minimum score: relevance is the marketplace's job here.

        Returns:
            (hit, confidence) or None when there are no hits
        """
        if not hits:
            return None
        top = hits[0]
        return top, classify_confidence(name, top.external_name)
