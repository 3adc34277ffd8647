"""
Pydantic schemas and request-scoped records for the Furniture Selection Engine
"""
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from vibe_interior.core.config import settings

DesignStyle = Literal["scandinavian", "modern", "vintage", "industrial"]

# Catalog vibe/style values (legacy documents use Japanese labels)
STYLE_MAP: Dict[str, str] = {
    "scandinavian": "scandinavian",
    "modern": "modern",
    "vintage": "vintage",
    "industrial": "industrial",
    "北欧": "scandinavian",
    "モダン": "modern",
    "ヴィンテージ": "vintage",
    "インダストリアル": "industrial",
}


def normalize_style(value: Optional[str]) -> str:
    """Map a catalog style/vibe value onto a design style, defaulting to modern"""
    if not value:
        return "modern"
    return STYLE_MAP.get(value.strip().lower()) or STYLE_MAP.get(value.strip(), "modern")


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


# ==================== Catalog products ====================


class ReviewStats(BaseModel):
    """Review summary taken from a purchase link"""

    average: float = 0.0
    count: int = 0


class PurchaseLink(BaseModel):
    """A sales channel where a product can be bought"""

    source: str = ""
    url: str = ""
    affiliate_url: Optional[str] = None
    price: Optional[float] = None
    review_average: Optional[float] = None
    review_count: Optional[int] = None

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "PurchaseLink":
        return cls(
            source=data.get("source") or "",
            url=data.get("url") or data.get("affiliateUrl") or "",
            affiliate_url=data.get("affiliateUrl"),
            price=_to_float(data.get("price")),
            review_average=_to_float(data.get("reviewAverage")),
            review_count=_to_int(data.get("reviewCount")),
        )


class Product(BaseModel):
    """
    Catalog product.

    Catalog documents come in two shapes: the current one with a
    ``purchaseLinks`` array and the legacy flat one with ``price``,
    ``affiliateUrl`` and review fields at the top level. ``from_document``
    turns both into the same model so the rest of the engine only uses the
    accessors below.
    """

    id: str
    name: str = ""
    description: str = ""
    category: str = ""
    style: str = "modern"
    keywords: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    brand: str = ""
    status: str = ""
    purchase_links: List[PurchaseLink] = Field(default_factory=list)

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Product":
        """
        Build a Product from a raw catalog document

        Args:
            doc_id: Document identifier
            data: Raw document fields (either schema)

        Returns:
            Normalized Product
        """
        images: List[str] = []
        if data.get("images"):
            images.extend(data["images"])
        elif data.get("imageUrls"):
            images.extend(data["imageUrls"])
        elif data.get("imageUrl"):
            images.append(data["imageUrl"])
        elif data.get("thumbnailUrl"):
            images.append(data["thumbnailUrl"])

        raw_links = data.get("purchaseLinks") or []
        links = [PurchaseLink.from_document(link) for link in raw_links if isinstance(link, dict)]

        if not links:
            # Legacy flat document
            url = data.get("affiliateUrl") or data.get("affiliateLink") or data.get("url") or ""
            has_flat_fields = any(data.get(k) is not None for k in ("price", "reviewAverage", "reviewCount")) or url
            if has_flat_fields:
                links.append(
                    PurchaseLink(
                        source=data.get("source") or "",
                        url=url,
                        affiliate_url=data.get("affiliateUrl") or data.get("affiliateLink"),
                        price=_to_float(data.get("price")),
                        review_average=_to_float(data.get("reviewAverage")),
                        review_count=_to_int(data.get("reviewCount")),
                    )
                )

        keywords = data.get("keywords") or data.get("tags") or []

        return cls(
            id=str(doc_id),
            name=data.get("name") or "",
            description=data.get("description") or "",
            category=data.get("category") or "",
            style=normalize_style(data.get("style") or data.get("vibe")),
            keywords=[str(k) for k in keywords if k],
            images=[str(i) for i in images if i],
            brand=data.get("brand") or "",
            status=data.get("status") or "",
            purchase_links=links,
        )

    def best_link(self) -> Optional[PurchaseLink]:
        """Purchase link with the most reviews (first link on ties)"""
        if not self.purchase_links:
            return None
        return max(self.purchase_links, key=lambda link: link.review_count or 0)

    def best_review(self) -> ReviewStats:
        link = self.best_link()
        if link is None:
            return ReviewStats()
        return ReviewStats(average=link.review_average or 0.0, count=link.review_count or 0)

    def purchase_url(self) -> str:
        link = self.best_link()
        if link is None:
            return ""
        return link.affiliate_url or link.url or ""

    def price(self) -> float:
        link = self.best_link()
        if link is None or link.price is None:
            return 0.0
        return link.price

    def image_url(self) -> str:
        return self.images[0] if self.images else ""

    def source(self) -> Optional[str]:
        link = self.best_link()
        return link.source if link and link.source else None

    def search_text(self) -> str:
        """Lowercased name, category and keyword text used for keyword checks"""
        return " ".join([self.name, self.category, " ".join(self.keywords)]).lower()


# ==================== Request-scoped records ====================


class MatchTier(IntEnum):
    """Precision level a candidate was retrieved at (lower is more precise)"""

    CATEGORY_EXACT = 1
    KEYWORD_CROSS_CHECK = 2
    KEYWORD_ONLY = 3


@dataclass
class Candidate:
    """A catalog product retrieved for one target category, plus its scoring data"""

    product: Product
    target_category: str
    tier: MatchTier
    category_match: bool
    style_affinity: int = 0
    score: float = 0.0
    # Other target categories the same product was retrieved for
    also_matches: List[str] = field(default_factory=list)

    @property
    def product_id(self) -> str:
        return self.product.id

    def matches(self, category: str) -> bool:
        return self.target_category == category or category in self.also_matches


# ==================== API schemas ====================


class Position(BaseModel):
    """Position in an image as percentages (0-100, top-left origin)"""

    x: float = 50.0
    y: float = 50.0

    @field_validator("x", "y", mode="before")
    @classmethod
    def clamp_percentage(cls, value: Any) -> float:
        number = _to_float(value)
        if number is None:
            return 50.0
        return min(max(number, 0.0), 100.0)


class DetectedItem(BaseModel):
    """Furniture item detected in a generated image"""

    number: int
    category: str
    description: str = ""
    color: Optional[str] = None
    style: Optional[str] = None
    position: Position = Field(default_factory=Position)


class ExternalPick(BaseModel):
    """One product chosen by the vision model"""

    id: str
    reason: str = ""


class SelectionRequest(BaseModel):
    """Request for furniture selection"""

    style: DesignStyle
    categories: List[str] = Field(default_factory=list)
    room_image: Optional[str] = None  # base64 or data URL
    max_items: int = Field(default_factory=lambda: settings.default_max_items, ge=1, le=20)

    class Config:
        json_schema_extra = {
            "example": {
                "style": "scandinavian",
                "categories": ["照明", "ラグ", "クッション", "観葉植物"],
                "room_image": "data:image/jpeg;base64,...",
                "max_items": 4,
            }
        }


class SelectedFurniture(BaseModel):
    """Single furniture item in a selection result"""

    product_id: str
    category: str
    name: str
    image_url: str = ""
    purchase_url: str = ""
    price: float = 0.0
    source: Optional[str] = None
    reason: str = ""
    item_number: Optional[int] = None
    position: Optional[Position] = None

    @classmethod
    def from_candidate(
        cls,
        candidate: Candidate,
        reason: str = "",
        item_number: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> "SelectedFurniture":
        product = candidate.product
        return cls(
            product_id=product.id,
            category=candidate.target_category,
            name=product.name,
            image_url=product.image_url(),
            purchase_url=product.purchase_url(),
            price=product.price(),
            source=product.source(),
            reason=reason,
            item_number=item_number,
            position=position,
        )


class UncoveredReason(str, Enum):
    """Why a requested category is missing from a result"""

    NO_CANDIDATES = "no_candidates"
    CANDIDATES_ALREADY_USED = "candidates_already_used"
    BLOCKED_BY_CEILING_LIGHT = "blocked_by_ceiling_light"
    MAX_ITEMS_REACHED = "max_items_reached"


class UncoveredCategory(BaseModel):
    category: str
    reason: UncoveredReason


class SelectionResult(BaseModel):
    """Complete selection response"""

    items: List[SelectedFurniture] = Field(default_factory=list)
    uncovered: List[UncoveredCategory] = Field(default_factory=list)
    strategy: str = "local_ranking"
    total_candidates: int = Field(default=0, ge=0)
    processing_time: float = Field(default=0.0, ge=0.0)


class DetectionMatchResult(BaseModel):
    """Detected items bound to catalog products"""

    items: List[SelectedFurniture] = Field(default_factory=list)
    detected_count: int = Field(default=0, ge=0)
