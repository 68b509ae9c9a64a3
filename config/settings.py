"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Constructed once at startup and handed to adapters and services;
matching logic never reads the environment directly.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional
from enum import Enum


class MappingPolicy(str, Enum):
    """What a bulk mapping flow does with an accepted marketplace hit."""
    AUTO_VERIFY = "auto_verify"            # Write id and mark verified
    STAGE_FOR_REVIEW = "stage_for_review"  # Create a mapping proposal
    PREVIEW = "preview"                    # Report only, no writes


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (automation flows)"
    )

    # ===================
    # MARKETPLACES
    # ===================
    cardtrader_jwt: Optional[str] = Field(
        None,
        description="CardTrader API bearer token"
    )
    cardtrader_api_url: str = Field(
        default="https://api.cardtrader.com/api/v2",
        description="CardTrader API base URL"
    )
    cardtrader_game_id: int = Field(
        default=1,
        ge=1,
        description="CardTrader game id for Magic: The Gathering"
    )
    cardtrader_min_similarity: float = Field(
        default=0.6,
        ge=0,
        le=1,
        description="Minimum blueprint name similarity returned by CardTrader search"
    )
    tcgplayer_autocomplete_url: str = Field(
        default="https://data.tcgplayer.com/autocomplete",
        description="TCGplayer autocomplete endpoint"
    )
    tcgplayer_catalog_url: str = Field(
        default="https://www.tcgplayer.com/api/catalog/categories/1/search",
        description="TCGplayer catalog search endpoint"
    )
    tcgplayer_html_search_url: str = Field(
        default="https://www.tcgplayer.com/search/magic/product",
        description="TCGplayer HTML search page (fallback)"
    )
    tcgplayer_product_line: str = Field(
        default="Magic: The Gathering",
        description="Product line kept from autocomplete results"
    )
    wpn_products_url: str = Field(
        default="https://wpn.wizards.com/en/products",
        description="WPN product listing used for UPC scraping"
    )
    wpn_max_pages: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Listing pages crawled per scrape"
    )
    http_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Per-request timeout for external calls"
    )

    # ===================
    # RATE LIMITING
    # ===================
    mapping_delay_seconds: float = Field(
        default=1.5,
        ge=0,
        le=10,
        description="Delay between marketplace searches within a batch"
    )
    batch_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        le=30,
        description="Delay between batches in a multi-batch run"
    )
    default_batch_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Entries per mapping batch"
    )
    max_batches_ceiling: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Hard ceiling on batches per multi-batch run"
    )

    # ===================
    # MATCHING
    # ===================
    upc_match_threshold: float = Field(
        default=0.30,
        ge=0,
        le=1,
        description="Minimum similarity to stage a UPC candidate"
    )
    containment_score: float = Field(
        default=0.9,
        ge=0,
        le=1,
        description="Score when one name contains the other"
    )
    keyword_boost: float = Field(
        default=0.2,
        ge=0,
        le=1,
        description="Bonus when both names share a product keyword"
    )
    product_keywords: list[str] = Field(
        default=[
            "booster", "box", "bundle", "deck",
            "commander", "draft", "collector", "set",
        ],
        description="Product-category vocabulary for the keyword boost"
    )
    tcgplayer_mapping_policy: MappingPolicy = Field(
        default=MappingPolicy.AUTO_VERIFY,
        description="Trust policy for TCGplayer bulk mapping"
    )
    cardtrader_mapping_policy: MappingPolicy = Field(
        default=MappingPolicy.STAGE_FOR_REVIEW,
        description="Trust policy for CardTrader bulk mapping"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:5173",
            "http://localhost:8080",
        ],
        description="Admin dashboard origins allowed to call the API"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)

    @property
    def cardtrader_configured(self) -> bool:
        return bool(self.cardtrader_jwt)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
