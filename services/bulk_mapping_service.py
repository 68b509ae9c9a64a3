"""
Bulk marketplace mapping.

Walks unverified catalog entries one at a time, asks the marketplace
for each name, and applies the flow's trust policy to the top hit.
Calls are strictly sequential with a fixed pause between them to stay
within marketplace rate limits.
"""

import time
from typing import Callable, Iterable, Optional
import structlog

from config.settings import MappingPolicy, Settings, get_settings
from integrations import MarketplaceSearchAdapter, get_marketplace_adapter
from models.matching import BatchResult, BatchRunSummary, MappedProduct
from models.product import CatalogEntry, Marketplace
from services.catalog_service import CatalogService
from services.product_mapping_service import ProductMappingService
from services.ranking_service import CandidateRanker

logger = structlog.get_logger(__name__)


class BulkMappingService:
    """
    Batch orchestrator for one marketplace.

    Per-item failures (search errors, timeouts, write errors) are
    counted and skipped. Only a failed working-set query aborts a
    batch, as CatalogQueryError.
    """

    def __init__(
        self,
        marketplace: Marketplace,
        adapter: Optional[MarketplaceSearchAdapter] = None,
        catalog: Optional[CatalogService] = None,
        proposals: Optional[ProductMappingService] = None,
        ranker: Optional[CandidateRanker] = None,
        settings: Optional[Settings] = None,
        policy: Optional[MappingPolicy] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.marketplace = marketplace
        self.settings = settings or get_settings()
        self.adapter = adapter or get_marketplace_adapter(marketplace, settings)
        self.catalog = catalog or CatalogService()
        self.proposals = proposals or ProductMappingService(db=self.catalog.db, catalog=self.catalog)
        self.ranker = ranker or CandidateRanker()
        self.policy = policy or self._configured_policy()
        self.sleep = sleep

    def _configured_policy(self) -> MappingPolicy:
        if self.marketplace == Marketplace.TCGPLAYER:
            return self.settings.tcgplayer_mapping_policy
        return self.settings.cardtrader_mapping_policy

    # ===================
    # SINGLE BATCH
    # ===================

    def run_batch(
        self,
        batch_size: Optional[int] = None,
        exclude_ids: Optional[Iterable[str]] = None
    ) -> BatchResult:
        """
        Map up to `batch_size` unverified entries.

        Args:
            batch_size: Entries to process (defaults to settings)
            exclude_ids: Entries already handled in this run

        Returns:
            BatchResult with total/processed/mapped/errors

        Raises:
            CatalogQueryError: If the working set can't be loaded
        """
        batch_size = batch_size or self.settings.default_batch_size

        logger.info(
            "mapping_batch_starting",
            marketplace=self.marketplace.value,
            batch_size=batch_size,
            policy=self.policy.value
        )

        entries = self.catalog.list_unverified(self.marketplace, batch_size, exclude_ids)

        result = BatchResult(marketplace=self.marketplace, total=len(entries))

        for index, entry in enumerate(entries):
            result.product_ids.append(entry.id)

            try:
                mapped = self._map_entry(entry)
                if mapped:
                    result.mapped += 1
                    result.mapped_products.append(mapped)
            except Exception as e:
                result.errors += 1
                logger.error(
                    "mapping_entry_failed",
                    marketplace=self.marketplace.value,
                    product_id=entry.id,
                    product_name=entry.name,
                    error=str(e),
                    error_type=type(e).__name__
                )

            result.processed += 1

            if index < len(entries) - 1:
                self.sleep(self.settings.mapping_delay_seconds)

        logger.info(
            "mapping_batch_complete",
            marketplace=self.marketplace.value,
            total=result.total,
            processed=result.processed,
            mapped=result.mapped,
            errors=result.errors
        )

        return result

    def _map_entry(self, entry: CatalogEntry) -> Optional[MappedProduct]:
        """Search one entry and apply the trust policy. None if no hits."""
        logger.debug("mapping_entry", product_id=entry.id, product_name=entry.name)

        hits = self.adapter.search(entry.name, hint=entry.set_code)
        picked = self.ranker.pick_top_hit(entry.name, hits)

        if picked is None:
            logger.info(
                "no_marketplace_hits",
                marketplace=self.marketplace.value,
                product_name=entry.name
            )
            return None

        hit, confidence = picked

        if self.policy == MappingPolicy.AUTO_VERIFY:
            self.catalog.set_marketplace_id(entry.id, self.marketplace, hit.external_id, verified=True)
        elif self.policy == MappingPolicy.STAGE_FOR_REVIEW:
            self.proposals.propose(entry.id, self.marketplace, hit)

        logger.info(
            "marketplace_match_found",
            marketplace=self.marketplace.value,
            product_name=entry.name,
            external_id=hit.external_id,
            external_name=hit.external_name,
            confidence=confidence.value,
            policy=self.policy.value
        )

        return MappedProduct(
            product_id=entry.id,
            product_name=entry.name,
            external_id=hit.external_id,
            external_name=hit.external_name,
            confidence=confidence,
        )

    # ===================
    # MULTI BATCH
    # ===================

    def run_until_complete(
        self,
        batch_size: Optional[int] = None,
        max_batches: int = 3
    ) -> BatchRunSummary:
        """
        Run batches until the working set is exhausted.

        Entries seen earlier in the run are excluded from later batches,
        so entries left unverified (no hits, review policy) are not
        retried in a loop. `max_batches` is clamped to
        `max_batches_ceiling` and always ends the run.

        Raises:
            CatalogQueryError: If a working-set query fails
        """
        batch_size = batch_size or self.settings.default_batch_size
        limit = max(1, min(max_batches, self.settings.max_batches_ceiling))

        summary = BatchRunSummary(marketplace=self.marketplace)
        seen: list[str] = []

        while summary.batches_processed < limit:
            batch = self.run_batch(batch_size, exclude_ids=seen)

            summary.total += batch.total
            summary.processed += batch.processed
            summary.mapped += batch.mapped
            summary.errors += batch.errors
            summary.batches_processed += 1
            seen.extend(batch.product_ids)

            if batch.total < batch_size:
                summary.complete = True
                break

            if summary.batches_processed < limit:
                self.sleep(self.settings.batch_delay_seconds)

        if summary.complete:
            summary.message = (
                f"Mapping complete: {summary.mapped} mapped, "
                f"{summary.processed} processed, {summary.errors} errors"
            )
        else:
            summary.message = (
                f"Processed {summary.batches_processed} batches: {summary.mapped} mapped, "
                f"{summary.errors} errors. Run again to continue."
            )

        logger.info(
            "mapping_run_complete",
            marketplace=self.marketplace.value,
            batches=summary.batches_processed,
            complete=summary.complete,
            mapped=summary.mapped
        )

        return summary


# One instance per marketplace, sharing its adapter session
_bulk_mapping_services: dict[Marketplace, BulkMappingService] = {}

def get_bulk_mapping_service(marketplace: Marketplace) -> BulkMappingService:
    """Get or create the BulkMappingService for a marketplace."""
    if marketplace not in _bulk_mapping_services:
        _bulk_mapping_services[marketplace] = BulkMappingService(marketplace)
    return _bulk_mapping_services[marketplace]
