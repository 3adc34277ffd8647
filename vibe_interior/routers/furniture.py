"""
Furniture selection API routes
"""
import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from vibe_interior.engines.furniture_selection import (
    DetectedItem,
    DetectionMatchResult,
    FurnitureSelectionEngine,
    SelectionRequest,
    SelectionResult,
    build_catalog,
)
from vibe_interior.engines.furniture_selection.schemas import DesignStyle
from vibe_interior.services.google_ai_service import furniture_vision_service

logger = logging.getLogger(__name__)
router = APIRouter()  # No prefix here - it's added in main.py


class DetectionMatchRequest(BaseModel):
    """Request model for binding detected furniture to catalog products"""

    items: Optional[List[DetectedItem]] = None
    generated_image: Optional[str] = None  # base64 or data URL; detection runs when items are absent
    style: Optional[DesignStyle] = None

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {
                        "number": 1,
                        "category": "pendant light",
                        "description": "brass pendant",
                        "position": {"x": 50, "y": 12},
                    },
                    {"number": 2, "category": "rug", "description": "beige wool rug", "position": {"x": 45, "y": 80}},
                ],
                "style": "scandinavian",
            }
        }


@lru_cache(maxsize=1)
def get_selection_engine() -> FurnitureSelectionEngine:
    """Engine shared by all requests (it holds no request state)"""
    return FurnitureSelectionEngine(build_catalog(), furniture_vision_service)


@router.post("/select", response_model=SelectionResult)
async def select_furniture(
    request: SelectionRequest,
    engine: FurnitureSelectionEngine = Depends(get_selection_engine),
):
    """Select catalog furniture for a room design"""
    logger.info(
        f"Selection request: style={request.style}, categories={request.categories}, "
        f"max_items={request.max_items}, room_image={'yes' if request.room_image else 'no'}"
    )
    return await engine.select_furniture(request)


@router.post("/match", response_model=DetectionMatchResult)
async def match_furniture(
    request: DetectionMatchRequest,
    engine: FurnitureSelectionEngine = Depends(get_selection_engine),
):
    """Bind furniture detected in a generated image to catalog products"""
    if request.items is not None:
        logger.info(f"Match request with {len(request.items)} detected items")
        return await engine.match_detected_furniture(request.items, request.style)

    if not request.generated_image:
        raise HTTPException(status_code=422, detail="Either items or generated_image is required")

    logger.info("Match request with generated image, running detection")
    return await engine.detect_and_match(request.generated_image, request.style)
