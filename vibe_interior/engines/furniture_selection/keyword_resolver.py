"""
Category Keyword Resolver

Maps a requested item category (legacy item code or free-form label) to the
catalog search terms used for retrieval.
"""
import logging
from typing import List, Optional

from vibe_interior.config.taxonomy import Taxonomy, get_taxonomy

logger = logging.getLogger(__name__)


class CategoryKeywordResolver:
    """Resolves target categories to ordered catalog keywords"""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        self.taxonomy = taxonomy or get_taxonomy()

    def _lookup(self, table: dict, category: str) -> List[str]:
        hits = table.get(category)
        if hits is None:
            hits = table.get(category.lower())
        return list(hits or [])

    def resolve(self, category: str) -> List[str]:
        """
        Resolve a category into search keywords, most specific first

        Args:
            category: Requested category (e.g. "lighting", "照明", "sofa")

        Returns:
            Non-empty list of keywords; the literal category when no table knows it
        """
        key = (category or "").strip()

        keywords = self._lookup(self.taxonomy.legacy_codes, key)
        keywords += self._lookup(self.taxonomy.category_labels, key)

        resolved = []
        for keyword in keywords:
            if keyword and keyword not in resolved:
                resolved.append(keyword)

        if not resolved:
            logger.debug(f"No taxonomy entry for category '{key}', using it literally")
            return [key]

        return resolved
