"""
Catalog store access for the matching flows.

Reads working sets of unverified entries (always ordered by name so
batch runs are deterministic) and writes mapped identifiers back.
"""

from typing import Any, Iterable, Optional
import pydantic
import structlog

from config import get_supabase_client
from models.product import CatalogEntry, Marketplace
from exceptions import (
    CatalogQueryError,
    DatabaseError,
    ProductNotFoundError,
)

logger = structlog.get_logger(__name__)

CATALOG_COLUMNS = (
    "id, name, set_code, type, language, release_date, active, "
    "tcgplayer_product_id, tcg_is_verified, "
    "cardtrader_blueprint_id, cardtrader_is_verified, "
    "upc, upc_is_verified, created_at, updated_at"
)


def _parse_entries(rows: list[dict]) -> list[CatalogEntry]:
    """
    Build entries from working-set rows, skipping rows that fail validation.

    Skipped rows are logged with their id and left for the catalog import to fix.
    """
    entries = []
    for row in rows:
        try:
            entries.append(CatalogEntry(**row))
        except pydantic.ValidationError as e:
            logger.warning(
                "catalog_entry_invalid",
                product_id=row.get("id"),
                error=str(e)
            )
    return entries


class CatalogService:
    """
    Catalog entry reads and writes.

    Entries are never created or deleted here; that belongs to the
    catalog import.
    """

    def __init__(self, db=None):
        self.db = db or get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def list_unverified(
        self,
        marketplace: Marketplace,
        limit: int,
        exclude_ids: Optional[Iterable[str]] = None
    ) -> list[CatalogEntry]:
        """
        Active entries still missing a verified mapping for a marketplace.

        Args:
            marketplace: Target marketplace
            limit: Maximum entries returned
            exclude_ids: Entries to skip (already handled this run)

        Returns:
            Entries ordered by name

        Raises:
            CatalogQueryError: If the query fails
        """
        logger.info(
            "listing_unverified_entries",
            marketplace=marketplace.value,
            limit=limit
        )

        try:
            query = (
                self.db.table(self.table)
                .select(CATALOG_COLUMNS)
                .eq(marketplace.verified_column, False)
                .eq("active", True)
            )
            excluded = list(exclude_ids or [])
            if excluded:
                query = query.not_.in_("id", excluded)

            result = query.order("name").limit(limit).execute()

        except Exception as e:
            logger.error(
                "list_unverified_failed",
                marketplace=marketplace.value,
                error=str(e)
            )
            raise CatalogQueryError(str(e), details={"marketplace": marketplace.value})

        return _parse_entries(result.data)

    def list_upc_unverified(self, limit: Optional[int] = None) -> list[CatalogEntry]:
        """
        Active entries without a verified UPC, ordered by name.

        Verified entries are excluded so reconciliation never proposes
        overwriting a confirmed code.

        Raises:
            CatalogQueryError: If the query fails
        """
        logger.info("listing_upc_unverified_entries", limit=limit)

        try:
            query = (
                self.db.table(self.table)
                .select(CATALOG_COLUMNS)
                .eq("upc_is_verified", False)
                .eq("active", True)
                .order("name")
            )
            if limit:
                query = query.limit(limit)

            result = query.execute()

        except Exception as e:
            logger.error("list_upc_unverified_failed", error=str(e))
            raise CatalogQueryError(str(e))

        return _parse_entries(result.data)

    def get_by_id(self, product_id: str) -> CatalogEntry:
        """
        Get a single entry by ID.

        Raises:
            ProductNotFoundError: If the entry doesn't exist
            DatabaseError: If the query fails
        """
        logger.debug("getting_catalog_entry", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select(CATALOG_COLUMNS)
                .eq("id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_catalog_entry_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        return CatalogEntry(**result.data[0])

    # ===================
    # WRITE OPERATIONS
    # ===================

    def update_fields(self, product_id: str, fields: dict[str, Any]) -> CatalogEntry:
        """
        Write fields onto an entry.

        Args:
            product_id: Entry UUID
            fields: Column values to set

        Returns:
            Updated entry

        Raises:
            ProductNotFoundError: If no row was updated
            DatabaseError: If the update fails
        """
        logger.info(
            "updating_catalog_entry",
            product_id=product_id,
            fields=sorted(fields)
        )

        try:
            result = (
                self.db.table(self.table)
                .update(fields)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "update_catalog_entry_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e), details={"product_id": product_id})

        if not result.data:
            raise ProductNotFoundError(product_id)

        return CatalogEntry(**result.data[0])

    def set_marketplace_id(
        self,
        product_id: str,
        marketplace: Marketplace,
        external_id: int,
        verified: bool
    ) -> CatalogEntry:
        """Record a marketplace identifier, optionally marking it verified."""
        return self.update_fields(product_id, {
            marketplace.id_column: external_id,
            marketplace.verified_column: verified,
        })

    def set_verified_upc(self, product_id: str, upc: str) -> CatalogEntry:
        """Record a reviewer-approved UPC."""
        return self.update_fields(product_id, {
            "upc": upc,
            "upc_is_verified": True,
        })


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None

def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
