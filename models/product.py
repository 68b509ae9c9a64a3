"""
Catalog entry schemas.

A catalog entry is one canonical sealed product (booster box, bundle,
commander deck...) in the `products` table, with its external
marketplace identifiers and per-source verification flags.
"""

from pydantic import Field, model_validator
from typing import Optional
from enum import Enum
from datetime import date

from models.base import BaseSchema, TimestampMixin


class Marketplace(str, Enum):
    """External listing sources catalog entries are mapped against."""
    TCGPLAYER = "tcgplayer"
    CARDTRADER = "cardtrader"

    @property
    def id_column(self) -> str:
        """`products` column holding this marketplace's identifier."""
        return MARKETPLACE_COLUMNS[self][0]

    @property
    def verified_column(self) -> str:
        """`products` column holding this marketplace's verified flag."""
        return MARKETPLACE_COLUMNS[self][1]


MARKETPLACE_COLUMNS = {
    Marketplace.TCGPLAYER: ("tcgplayer_product_id", "tcg_is_verified"),
    Marketplace.CARDTRADER: ("cardtrader_blueprint_id", "cardtrader_is_verified"),
}

# (identifier, verified flag) pairs checked by the validator below
VERIFIED_PAIRS = [
    ("tcgplayer_product_id", "tcg_is_verified"),
    ("cardtrader_blueprint_id", "cardtrader_is_verified"),
    ("upc", "upc_is_verified"),
]


class CatalogEntry(BaseSchema, TimestampMixin):
    """
    Canonical product row.

    Invariant: a verified flag may only be true when its identifier
    is set. Rows violating it are rejected at parse time.
    """

    id: str = Field(..., description="Product UUID")
    name: str = Field(..., min_length=1, description="Display name")
    set_code: Optional[str] = Field(None, description="Set/edition code, e.g. DSK")
    type: Optional[str] = Field(None, description="Product category, e.g. Draft Booster Box")
    language: Optional[str] = Field(None, description="Product language")
    release_date: Optional[date] = Field(None, description="Release date")
    active: bool = Field(default=True, description="Whether product is active")

    tcgplayer_product_id: Optional[int] = Field(None, description="TCGplayer product id")
    tcg_is_verified: bool = Field(default=False)
    cardtrader_blueprint_id: Optional[int] = Field(None, description="CardTrader blueprint id")
    cardtrader_is_verified: bool = Field(default=False)
    upc: Optional[str] = Field(None, description="UPC barcode")
    upc_is_verified: bool = Field(default=False)

    @model_validator(mode="after")
    def verified_requires_identifier(self) -> "CatalogEntry":
        """A verified flag without its identifier is a corrupt row."""
        for id_field, flag_field in VERIFIED_PAIRS:
            if getattr(self, flag_field) and getattr(self, id_field) is None:
                raise ValueError(f"{flag_field} is true but {id_field} is null")
        return self

    def is_verified_for(self, marketplace: Marketplace) -> bool:
        return bool(getattr(self, marketplace.verified_column))
