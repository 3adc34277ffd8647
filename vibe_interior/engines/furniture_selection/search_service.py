"""
Search Service for candidate retrieval

Finds catalog candidates for one target category using three tiers:
1. category-exact: category field equals the target or a resolved keyword
2. keyword + cross-check: keyword match whose category overlaps the target
3. keyword-only: keyword match without the category check
Retrieval stops at the first tier that leaves any candidate after exclusions.
"""
import logging
from typing import List, Optional, Tuple

from vibe_interior.config.taxonomy import Taxonomy, get_taxonomy
from vibe_interior.core.config import settings

from .catalog import CatalogClient, CatalogError
from .filtering_service import ExclusionFilter
from .keyword_resolver import CategoryKeywordResolver
from .schemas import Candidate, MatchTier, Product

logger = logging.getLogger(__name__)


def text_overlaps(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction; blank strings never overlap"""
    a = (a or "").strip().lower()
    b = (b or "").strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


class CandidateRetriever:
    """Service for tiered catalog retrieval"""

    def __init__(
        self,
        catalog: CatalogClient,
        resolver: Optional[CategoryKeywordResolver] = None,
        exclusion_filter: Optional[ExclusionFilter] = None,
        taxonomy: Optional[Taxonomy] = None,
    ):
        self.catalog = catalog
        self.taxonomy = taxonomy or get_taxonomy()
        self.resolver = resolver or CategoryKeywordResolver(self.taxonomy)
        self.exclusion_filter = exclusion_filter or ExclusionFilter(self.taxonomy)
        logger.info("CandidateRetriever initialized")

    def query_limits(self, category: str) -> Tuple[int, int]:
        """(category query limit, keyword query limit) for a target category"""
        category_limit = settings.category_query_limit
        keyword_limit = settings.keyword_query_limit

        override = self.taxonomy.retrieval_limits.get(category)
        if override:
            category_limit = override.category or category_limit
            keyword_limit = override.keyword or keyword_limit

        return category_limit, keyword_limit

    async def retrieve(self, category: str) -> List[Candidate]:
        """
        Retrieve candidates for one target category

        Args:
            category: Target category as requested

        Returns:
            Candidates from the first non-empty tier (may be empty)
        """
        keywords = self.resolver.resolve(category)
        category_limit, keyword_limit = self.query_limits(category)

        # Tier A: category-exact
        category_values = [category] + [k for k in keywords if k != category]
        products = await self._safe_query("category", self.catalog.find_by_categories, category_values, category_limit)
        products = self.exclusion_filter.apply(products, category)
        if products:
            logger.info(f"Tier A (category-exact) for '{category}': {len(products)} candidates")
            return self._wrap(products, category, MatchTier.CATEGORY_EXACT, category_match=True)

        # Tiers B and C share one keyword query
        keyword_products = await self._safe_query("keyword", self.catalog.find_by_keywords, keywords, keyword_limit)
        keyword_products = self.exclusion_filter.apply(keyword_products, category)

        # Tier B: keyword + category cross-check
        cross_checked = [p for p in keyword_products if self._category_overlaps(p, category, keywords)]
        if cross_checked:
            logger.info(f"Tier B (keyword+category) for '{category}': {len(cross_checked)} candidates")
            return self._wrap(cross_checked, category, MatchTier.KEYWORD_CROSS_CHECK, category_match=True)

        # Tier C: keyword-only
        if keyword_products:
            logger.info(f"Tier C (keyword-only) for '{category}': {len(keyword_products)} candidates")
            return self._wrap(keyword_products, category, MatchTier.KEYWORD_ONLY, category_match=False)

        logger.info(f"No candidates found for '{category}' at any tier")
        return []

    async def _safe_query(self, label: str, query, values: List[str], limit: int) -> List[Product]:
        try:
            return await query(values, limit)
        except CatalogError as e:
            logger.error(f"Catalog {label} query failed for {values[:5]}: {e}")
            return []

    def _category_overlaps(self, product: Product, category: str, keywords: List[str]) -> bool:
        return any(text_overlaps(product.category, term) for term in [category] + keywords)

    def _wrap(self, products: List[Product], category: str, tier: MatchTier, category_match: bool) -> List[Candidate]:
        return [
            Candidate(product=product, target_category=category, tier=tier, category_match=category_match)
            for product in products
        ]
