"""
Text utilities for product name comparison.

Scraped names arrive with mixed case, stray whitespace and the odd
accented character ("Pokémon"); everything is folded to one form
before scoring.
"""

import re
import unicodedata
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_product_name(name: Optional[str]) -> str:
    """
    Normalize a product name for comparison.

    - "  Foundations   BUNDLE " → "foundations bundle"
    - "Pokémon Booster Box" → "pokemon booster box"

    Args:
        name: Raw product name (may be None)

    Returns:
        Lowercase ASCII-folded string with single spaces, or "" if empty
    """
    if not name:
        return ""

    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize("NFD", name)
    folded = "".join(c for c in normalized if unicodedata.category(c) != "Mn")

    return _WHITESPACE.sub(" ", folded).strip().lower()


def tokenize_product_name(name: str, min_length: int = 3) -> list[str]:
    """
    Split a normalized name on whitespace, dropping noise tokens.

    Tokens shorter than `min_length` ("of", "-", "2") are discarded.
    Duplicates are removed, order kept.

    Args:
        name: Name already passed through normalize_product_name
        min_length: Shortest token kept

    Returns:
        Ordered list of distinct tokens
    """
    seen: dict[str, None] = {}
    for token in name.split():
        if len(token) >= min_length:
            seen.setdefault(token, None)
    return list(seen)
