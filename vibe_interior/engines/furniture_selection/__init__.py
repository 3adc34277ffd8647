"""
Furniture Selection Engine

Chooses a small, category-covering set of catalog products for a room design.
"""

from .catalog import CatalogClient, CatalogError, FirestoreCatalog, InMemoryCatalog, build_catalog
from .chooser import ChoiceResult, ChosenItem, ConstraintAwareChooser
from .core import FurnitureSelectionEngine
from .detection_matcher import ImageDetectionMatcher
from .filtering_service import CeilingLightClassifier, ExclusionFilter
from .keyword_resolver import CategoryKeywordResolver
from .ranking_service import CoverageSelector, RelevanceScorer
from .schemas import (
    Candidate,
    DetectedItem,
    DetectionMatchResult,
    ExternalPick,
    MatchTier,
    Position,
    Product,
    PurchaseLink,
    SelectedFurniture,
    SelectionRequest,
    SelectionResult,
    UncoveredCategory,
    UncoveredReason,
)
from .search_service import CandidateRetriever

__all__ = [
    "FurnitureSelectionEngine",
    "CatalogClient",
    "CatalogError",
    "FirestoreCatalog",
    "InMemoryCatalog",
    "build_catalog",
    "CategoryKeywordResolver",
    "CandidateRetriever",
    "ExclusionFilter",
    "CeilingLightClassifier",
    "RelevanceScorer",
    "CoverageSelector",
    "ConstraintAwareChooser",
    "ChoiceResult",
    "ChosenItem",
    "ImageDetectionMatcher",
    "Candidate",
    "DetectedItem",
    "DetectionMatchResult",
    "ExternalPick",
    "MatchTier",
    "Position",
    "Product",
    "PurchaseLink",
    "SelectedFurniture",
    "SelectionRequest",
    "SelectionResult",
    "UncoveredCategory",
    "UncoveredReason",
]
