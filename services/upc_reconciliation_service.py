"""
UPC reconciliation.

Matches scraped (name, UPC) records against catalog entries that have
no verified UPC yet, and stages every match for review.
"""

from typing import Optional, Sequence
import structlog

from config.settings import Settings, get_settings
from exceptions import AppError, ScraperUnavailableError
from integrations import ScraperSource, WPNScraper, fallback_items
from models.matching import ReconcileResult, ScrapedItem
from services.catalog_service import CatalogService
from services.ranking_service import CandidateRanker
from services.similarity_service import SimilarityScorer
from services.upc_staging_service import UPCStagingService

logger = structlog.get_logger(__name__)


class UPCReconciliationService:
    """
    One reconciliation run: scrape, rank in memory, stage.

    The catalog pool is loaded once per run; ranking makes no external
    calls.
    """

    def __init__(
        self,
        scraper: Optional[ScraperSource] = None,
        catalog: Optional[CatalogService] = None,
        staging: Optional[UPCStagingService] = None,
        ranker: Optional[CandidateRanker] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.scraper = scraper or WPNScraper(self.settings)
        self.catalog = catalog or CatalogService()
        self.staging = staging or UPCStagingService(db=self.catalog.db, catalog=self.catalog)
        self.ranker = ranker or CandidateRanker(SimilarityScorer.from_settings(self.settings))

    def load_items(self) -> tuple[list[ScrapedItem], bool]:
        """
        Scrape items, falling back to the fixed fixture set.

        Returns:
            (items, used_fallback)
        """
        try:
            return self.scraper.fetch(), False
        except ScraperUnavailableError as e:
            logger.warning(
                "scraper_unavailable_using_fallback",
                source=getattr(self.scraper, "name", "unknown"),
                error=e.message
            )
            return fallback_items(), True

    def reconcile(self, items: Optional[Sequence[ScrapedItem]] = None) -> ReconcileResult:
        """
        Match scraped items to unverified entries and stage the matches.

        Args:
            items: Pre-scraped items; scraped from the source when None

        Returns:
            ReconcileResult with one MatchCandidate per item

        Raises:
            CatalogQueryError: If the catalog pool can't be loaded
        """
        used_fallback = False
        if items is None:
            items, used_fallback = self.load_items()

        pool = self.catalog.list_upc_unverified()
        threshold = self.settings.upc_match_threshold

        logger.info(
            "upc_reconciliation_starting",
            items=len(items),
            pool=len(pool),
            threshold=threshold,
            used_fallback=used_fallback
        )

        result = ReconcileResult(total_scraped=len(items), used_fallback=used_fallback)

        for item in items:
            candidate = self.ranker.rank(item, pool, threshold)
            result.matches.append(candidate)

            if not candidate.is_match:
                logger.debug("upc_no_match", scraped_name=item.name)
                continue

            result.total_matched += 1

            if not item.code:
                logger.info("upc_match_without_code", scraped_name=item.name)
                continue

            try:
                outcome = self.staging.create(
                    candidate.product_id,
                    item.code,
                    name=item.name,
                    provenance=item.source_url
                )
            except AppError as e:
                result.errors += 1
                logger.error(
                    "upc_staging_failed",
                    product_id=candidate.product_id,
                    upc=item.code,
                    error=e.message
                )
                continue

            if outcome.created:
                result.total_staged += 1

        logger.info(
            "upc_reconciliation_complete",
            total_scraped=result.total_scraped,
            total_matched=result.total_matched,
            total_staged=result.total_staged,
            errors=result.errors
        )

        return result


# Singleton instance for convenience
_upc_reconciliation_service: Optional[UPCReconciliationService] = None

def get_upc_reconciliation_service() -> UPCReconciliationService:
    """Get or create UPCReconciliationService instance."""
    global _upc_reconciliation_service
    if _upc_reconciliation_service is None:
        _upc_reconciliation_service = UPCReconciliationService()
    return _upc_reconciliation_service
