"""
Image detection matcher

Binds furniture detected in a generated room image to catalog products so the
UI can place numbered markers over the image.
"""
import logging
from typing import Dict, List, Optional, Set

from vibe_interior.config.taxonomy import Taxonomy, get_taxonomy

from .filtering_service import CeilingLightClassifier
from .ranking_service import RelevanceScorer, review_reason
from .schemas import DetectedItem, SelectedFurniture
from .search_service import CandidateRetriever

logger = logging.getLogger(__name__)


class ImageDetectionMatcher:
    """
    Matches detected items to catalog products, one product per canonical category.

    At most one ceiling-mounted light is bound per image.
    """

    def __init__(
        self,
        retriever: CandidateRetriever,
        scorer: Optional[RelevanceScorer] = None,
        taxonomy: Optional[Taxonomy] = None,
        classifier: Optional[CeilingLightClassifier] = None,
    ):
        self.taxonomy = taxonomy or get_taxonomy()
        self.retriever = retriever
        self.scorer = scorer or RelevanceScorer(self.taxonomy)
        self.classifier = classifier or CeilingLightClassifier(self.taxonomy)
        self.synonyms: Dict[str, str] = {
            key.strip().lower(): value for key, value in self.taxonomy.detection_synonyms.items()
        }

    def canonical_category(self, category: str) -> str:
        key = (category or "").strip().lower()
        return self.synonyms.get(key, key)

    def unique_detections(self, detected_items: List[DetectedItem]) -> List[DetectedItem]:
        """First detection per canonical category, ordered by (number, y, x)"""
        ordered = sorted(detected_items, key=lambda item: (item.number, item.position.y, item.position.x))
        seen: Set[str] = set()
        unique = []
        for item in ordered:
            category = self.canonical_category(item.category)
            if not category or category in seen:
                continue
            seen.add(category)
            unique.append(item)
        return unique

    async def match(self, detected_items: List[DetectedItem], style: Optional[str] = None) -> List[SelectedFurniture]:
        """
        Bind detected items to catalog products

        Args:
            detected_items: Items detected in the image
            style: Optional design style used for scoring

        Returns:
            One SelectedFurniture per matched detection, carrying its number and position
        """
        if not detected_items:
            return []

        used: Set[str] = set()
        has_ceiling_light = False
        matched: List[SelectedFurniture] = []

        for item in self.unique_detections(detected_items):
            category = self.canonical_category(item.category)
            candidates = await self.retriever.retrieve(category)
            if not candidates:
                logger.info(f"No catalog match for detected item #{item.number} ({item.category})")
                continue

            ranked = self.scorer.score(self.scorer.deduplicate(candidates), style)
            unused = [c for c in ranked if c.product_id not in used]
            if not unused:
                logger.info(f"All candidates for detected item #{item.number} ({category}) already used")
                continue

            best = next(
                (c for c in unused if not (has_ceiling_light and self.classifier.is_ceiling_light(c.product))), None
            )
            if best is None:
                logger.info(f"Detected item #{item.number} ({category}) left unmatched: only ceiling lights remain")
                continue

            used.add(best.product_id)
            if self.classifier.is_ceiling_light(best.product):
                has_ceiling_light = True
            matched.append(
                SelectedFurniture.from_candidate(
                    best,
                    reason=review_reason(best, style),
                    item_number=item.number,
                    position=item.position,
                )
            )

        logger.info(f"Matched {len(matched)}/{len(detected_items)} detected items to catalog products")
        return matched
