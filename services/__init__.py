"""
Business logic services.

Each service handles one domain area. The batch orchestrators
(bulk_mapping_service, upc_reconciliation_service) depend on
integrations and are imported from their modules directly.
"""

from services.similarity_service import (
    SimilarityScorer,
    calculate_similarity,
    classify_confidence,
)
from services.ranking_service import CandidateRanker
from services.catalog_service import CatalogService, get_catalog_service
from services.upc_staging_service import UPCStagingService, get_upc_staging_service
from services.product_mapping_service import (
    ProductMappingService,
    get_product_mapping_service,
)

__all__ = [
    "SimilarityScorer",
    "calculate_similarity",
    "classify_confidence",
    "CandidateRanker",
    "CatalogService",
    "get_catalog_service",
    "UPCStagingService",
    "get_upc_staging_service",
    "ProductMappingService",
    "get_product_mapping_service",
]
