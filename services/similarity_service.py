"""
Name similarity scoring for sealed products.

Two independent measures live here:

- `SimilarityScorer.score()` gives a number in [0, 1] used to rank
  catalog entries against a scraped name.
- `classify_confidence()` gives the coarse high/medium/low label shown
  to reviewers, based only on equality and containment.

They answer different questions and are never derived from each other.
"""

from typing import Iterable, Optional

from config.settings import Settings
from models.matching import ConfidenceTier
from utils.text_utils import normalize_product_name, tokenize_product_name


DEFAULT_PRODUCT_KEYWORDS = (
    "booster", "box", "bundle", "deck",
    "commander", "draft", "collector", "set",
)
DEFAULT_CONTAINMENT_SCORE = 0.9
DEFAULT_KEYWORD_BOOST = 0.2


def _tokens_overlap(left: str, right: str) -> bool:
    return left == right or left in right or right in left


class SimilarityScorer:
    """
    Token-overlap similarity with a product-keyword boost.

    Scoring, on normalized names (trimmed, lowercased, single-spaced,
    accents folded):

        either side empty          -> 0.0
        equal                      -> 1.0
        one contains the other     -> containment_score (0.9)
        otherwise                  -> common / max(len(A), len(B))
                                      (+ keyword_boost, capped at 1.0)

    `common` counts tokens of `a` that fuzzily occur in `b`. Because the
    count iterates `a`, score(a, b) can differ from score(b, a) when
    several tokens of one side hit the same token of the other, e.g.
    "draft drafts" vs "drafts booster". Every other branch is symmetric.
    """

    def __init__(
        self,
        containment_score: float = DEFAULT_CONTAINMENT_SCORE,
        keyword_boost: float = DEFAULT_KEYWORD_BOOST,
        keywords: Optional[Iterable[str]] = None,
    ):
        self.containment_score = containment_score
        self.keyword_boost = keyword_boost
        self.keywords = tuple(
            k.lower() for k in (keywords if keywords is not None else DEFAULT_PRODUCT_KEYWORDS)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SimilarityScorer":
        return cls(
            containment_score=settings.containment_score,
            keyword_boost=settings.keyword_boost,
            keywords=settings.product_keywords,
        )

    def score(self, a: Optional[str], b: Optional[str]) -> float:
        """
        Score how alike two product names are.

        Args:
            a: Scraped/external name
            b: Catalog name

        Returns:
            Similarity in [0, 1]
        """
        left = normalize_product_name(a)
        right = normalize_product_name(b)

        # Empty input is ambiguous; never let it look like a match
        if not left or not right:
            return 0.0

        if left == right:
            return 1.0

        if left in right or right in left:
            return self.containment_score

        tokens_a = tokenize_product_name(left)
        tokens_b = tokenize_product_name(right)
        if not tokens_a or not tokens_b:
            return 0.0

        common = sum(
            1 for ta in tokens_a
            if any(_tokens_overlap(ta, tb) for tb in tokens_b)
        )
        if common == 0:
            return 0.0

        raw = common / max(len(tokens_a), len(tokens_b))

        if self.shares_keyword(left, right):
            raw += self.keyword_boost

        return min(raw, 1.0)

    def shares_keyword(self, left: str, right: str) -> bool:
        """True if both normalized names mention the same product keyword."""
        return any(k in left and k in right for k in self.keywords)


def classify_confidence(a: Optional[str], b: Optional[str]) -> ConfidenceTier:
    """
    Label how trustworthy a name pairing looks to a reviewer.

    Equal ignoring case -> HIGH, containment -> MEDIUM, otherwise LOW.
    Empty input -> NONE.
    """
    left = normalize_product_name(a)
    right = normalize_product_name(b)

    if not left or not right:
        return ConfidenceTier.NONE
    if left == right:
        return ConfidenceTier.HIGH
    if left in right or right in left:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


_default_scorer = SimilarityScorer()


def calculate_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Score two names with the default vocabulary and weights."""
    return _default_scorer.score(a, b)
