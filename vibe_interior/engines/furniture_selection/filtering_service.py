"""
Filtering Service for candidate products

Holds the negative-keyword exclusion filter and the ceiling-light classifier.
"""
import logging
from typing import List, Optional

from vibe_interior.config.taxonomy import Taxonomy, get_taxonomy

from .schemas import Product

logger = logging.getLogger(__name__)


class ExclusionFilter:
    """Rejects products that contain a negative keyword for the target category"""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        taxonomy = taxonomy or get_taxonomy()
        self.exclusions = {
            category: [term.lower() for term in terms if term] for category, terms in taxonomy.exclusions.items()
        }
        logger.info(f"ExclusionFilter initialized with {len(self.exclusions)} categories")

    def negative_keywords(self, target_category: str) -> List[str]:
        key = (target_category or "").strip()
        return self.exclusions.get(key) or self.exclusions.get(key.lower()) or []

    def is_excluded(self, product: Product, target_category: str) -> bool:
        """
        Check whether a product must not satisfy a target category

        Args:
            product: Candidate product
            target_category: Category the product was retrieved for

        Returns:
            True if a negative keyword appears in the product name, category or keywords
        """
        negatives = self.negative_keywords(target_category)
        if not negatives:
            return False

        text = product.search_text()
        for term in negatives:
            if term in text:
                logger.debug(f"Excluded '{product.name}' for '{target_category}' (matched '{term}')")
                return True
        return False

    def apply(self, products: List[Product], target_category: str) -> List[Product]:
        kept = [p for p in products if not self.is_excluded(p, target_category)]
        if len(kept) != len(products):
            logger.info(f"Exclusion filter for '{target_category}': {len(products)} -> {len(kept)} products")
        return kept


class CeilingLightClassifier:
    """Classifies ceiling-mounted light fixtures (at most one is allowed per room)"""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        taxonomy = taxonomy or get_taxonomy()
        self.positive = [term.lower() for term in taxonomy.ceiling_light.positive if term]
        self.negative = [term.lower() for term in taxonomy.ceiling_light.negative if term]

    def is_ceiling_light(self, product: Product) -> bool:
        text = product.search_text()
        if not any(term in text for term in self.positive):
            return False
        # Negative terms (floor lamps, desk lamps) override a positive match
        return not any(term in text for term in self.negative)
