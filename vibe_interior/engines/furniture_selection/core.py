"""
Furniture Selection Engine Core

Main orchestration class for catalog-constrained furniture selection.
"""
import logging
from datetime import datetime
from typing import List, Optional

from vibe_interior.config.taxonomy import Taxonomy, get_taxonomy

from .catalog import CatalogClient
from .chooser import ConstraintAwareChooser
from .detection_matcher import ImageDetectionMatcher
from .filtering_service import CeilingLightClassifier, ExclusionFilter
from .keyword_resolver import CategoryKeywordResolver
from .ranking_service import CoverageSelector, RelevanceScorer, review_reason
from .schemas import Candidate, DetectedItem, DetectionMatchResult, SelectedFurniture, SelectionRequest, SelectionResult
from .search_service import CandidateRetriever

logger = logging.getLogger(__name__)


class FurnitureSelectionEngine:
    """
    Main Furniture Selection Engine

    Orchestrates retrieval, exclusion, scoring, coverage pooling, the optional
    vision-model selection and the constraint-aware final choice.
    """

    def __init__(self, catalog: CatalogClient, vision_service=None, taxonomy: Optional[Taxonomy] = None):
        """
        Args:
            catalog: Product catalog backend
            vision_service: Optional FurnitureVisionService used for image-based selection and detection
            taxonomy: Lookup tables; defaults to the configured taxonomy file
        """
        self.taxonomy = taxonomy or get_taxonomy()
        self.vision_service = vision_service

        self.resolver = CategoryKeywordResolver(self.taxonomy)
        self.exclusion_filter = ExclusionFilter(self.taxonomy)
        self.retriever = CandidateRetriever(catalog, self.resolver, self.exclusion_filter, self.taxonomy)
        self.scorer = RelevanceScorer(self.taxonomy)
        self.coverage_selector = CoverageSelector()
        self.classifier = CeilingLightClassifier(self.taxonomy)
        self.chooser = ConstraintAwareChooser(self.classifier)
        self.detection_matcher = ImageDetectionMatcher(self.retriever, self.scorer, self.taxonomy, self.classifier)

        logger.info("FurnitureSelectionEngine initialized with all services")

    @property
    def vision_available(self) -> bool:
        return self.vision_service is not None and self.vision_service.is_configured

    async def select_furniture(self, request: SelectionRequest) -> SelectionResult:
        """
        Select furniture for a room

        Args:
            request: Selection request with style, target categories and optional room image

        Returns:
            SelectionResult with the chosen items and any uncovered categories
        """
        start_time = datetime.now()
        categories = list(dict.fromkeys(c.strip() for c in request.categories if c and c.strip()))

        try:
            if not categories:
                logger.info("No target categories requested")
                return self._empty_result(start_time)

            # Step 1: Retrieve candidates per category (sequential, request order)
            candidates: List[Candidate] = []
            for category in categories:
                candidates.extend(await self.retriever.retrieve(category))

            logger.info(f"Retrieved {len(candidates)} candidates for {len(categories)} categories")

            # Step 2: De-duplicate and score
            candidates = self.scorer.deduplicate(candidates)
            candidates = self.scorer.score(candidates, request.style)

            # Step 3: Coverage-first pool
            pool = self.coverage_selector.build_pool(candidates, categories)

            # Step 4: Optional vision-model selection
            selection = []
            strategy = "local_ranking"
            if request.room_image and self.vision_available and pool:
                selection = await self.vision_service.select_products(
                    room_image=request.room_image,
                    candidates=pool,
                    style=request.style,
                    max_items=request.max_items,
                    required_categories=categories,
                )
                if selection:
                    strategy = "vision_selection"
                else:
                    logger.info("Vision selection empty, falling back to local ranking")

            # Step 5: Constraint-aware choice
            choice = self.chooser.choose(pool, categories, request.max_items, selection)

            items = [
                SelectedFurniture.from_candidate(
                    chosen.candidate, reason=chosen.reason or review_reason(chosen.candidate, request.style)
                )
                for chosen in choice.items
            ]

            processing_time = (datetime.now() - start_time).total_seconds()
            logger.info(
                f"Returning {len(items)} items (processing time: {processing_time:.2f}s, strategy: {strategy}, "
                f"uncovered: {[u.category for u in choice.uncovered]})"
            )

            return SelectionResult(
                items=items,
                uncovered=choice.uncovered,
                strategy=strategy,
                total_candidates=len(candidates),
                processing_time=processing_time,
            )

        except Exception as e:
            logger.error(f"Error in furniture selection engine: {e}", exc_info=True)
            return self._empty_result(start_time)

    async def match_detected_furniture(
        self, detected_items: List[DetectedItem], style: Optional[str] = None
    ) -> DetectionMatchResult:
        """Bind detected items to catalog products"""
        try:
            items = await self.detection_matcher.match(detected_items, style)
        except Exception as e:
            logger.error(f"Error matching detected furniture: {e}", exc_info=True)
            items = []
        return DetectionMatchResult(items=items, detected_count=len(detected_items))

    async def detect_and_match(self, image: str, style: Optional[str] = None) -> DetectionMatchResult:
        """Detect furniture in a generated image, then bind it to catalog products"""
        if not self.vision_available:
            logger.warning("Detection requested but the vision service is not configured")
            return DetectionMatchResult()

        detected_items = await self.vision_service.detect_furniture(image)
        return await self.match_detected_furniture(detected_items, style)

    def _empty_result(self, start_time: datetime) -> SelectionResult:
        """Generate empty result for error/no input cases"""
        processing_time = (datetime.now() - start_time).total_seconds()
        return SelectionResult(items=[], uncovered=[], strategy="local_ranking", processing_time=processing_time)
