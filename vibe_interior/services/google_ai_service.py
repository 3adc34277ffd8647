"""
Google AI service for vision-based furniture selection and furniture detection
"""
import asyncio
import base64
import binascii
import io
import json
import logging
import re
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types
from PIL import Image, ImageOps, UnidentifiedImageError

from vibe_interior.core.config import settings
from vibe_interior.engines.furniture_selection.schemas import Candidate, DetectedItem, ExternalPick, Position

logger = logging.getLogger(__name__)


class FurnitureVisionService:
    """Service for Gemini selection and detection calls"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize the Gemini client if an API key is configured"""
        self.api_key = api_key if api_key is not None else settings.google_ai_api_key
        self.model = model or settings.google_ai_model
        self.temperature = settings.google_ai_temperature
        self.max_image_size = settings.google_ai_max_image_size

        if self.api_key:
            self.genai_client = genai.Client(api_key=self.api_key)
            self.genai_configured = True

            if len(self.api_key) > 12:
                masked_key = f"{self.api_key[:8]}...{self.api_key[-4:]}"
                logger.info(f"Google AI API Key loaded: {masked_key}")

            logger.info(f"Google GenAI Client initialized for model {self.model}")
        else:
            self.genai_configured = False
            self.genai_client = None
            logger.warning("Google AI API key not configured - vision selection and detection will not be available")

    @property
    def is_configured(self) -> bool:
        return self.genai_configured

    def _prepare_image(self, image_data: str) -> Optional[bytes]:
        """Decode a base64 image (optionally a data URL) and shrink it to JPEG bytes"""
        try:
            if image_data.startswith("data:image"):
                image_data = image_data.split(",", 1)[1]

            image_bytes = base64.b64decode(image_data)
            image = Image.open(io.BytesIO(image_bytes))
            image = ImageOps.exif_transpose(image)

            if image.mode != "RGB":
                image = image.convert("RGB")

            max_size = self.max_image_size
            if image.width > max_size or image.height > max_size:
                image.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=90, optimize=True)
            return buffer.getvalue()

        except (binascii.Error, UnidentifiedImageError, OSError, ValueError) as e:
            logger.error(f"Error preprocessing image: {e}")
            return None

    def _parse_json_response(self, text_response: str) -> Optional[Dict[str, Any]]:
        """Parse a model JSON object, tolerating code fences and trailing commas"""
        if not text_response:
            return None

        cleaned_response = re.sub(r",(\s*[}\]])", r"\1", text_response.strip())
        cleaned_response = re.sub(r"^```(?:json)?\s*", "", cleaned_response)
        cleaned_response = re.sub(r"\s*```$", "", cleaned_response)

        try:
            data = json.loads(cleaned_response)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON response: {e}")
            logger.warning(f"Raw response text (first 500 chars): {text_response[:500]}...")
            json_match = re.search(r"\{[\s\S]*\}", text_response)
            if not json_match:
                return None
            try:
                data = json.loads(re.sub(r",(\s*[}\]])", r"\1", json_match.group()))
                logger.info("Successfully parsed JSON after aggressive cleanup")
            except json.JSONDecodeError:
                logger.warning("Both JSON parsing attempts failed")
                return None

        return data if isinstance(data, dict) else None

    def _json_list(self, data: Dict[str, Any], key: str) -> List[Any]:
        """List value under key; any other shape counts as empty"""
        value = data.get(key)
        if not isinstance(value, list):
            if value is not None:
                logger.warning(f"Expected a list under '{key}', got {type(value).__name__}")
            return []
        return value

    async def _generate_json(self, prompt: str, image_bytes: bytes) -> Optional[Dict[str, Any]]:
        """Run one image + text request and parse the JSON reply"""
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_text(text=prompt),
                    types.Part(inline_data=types.Blob(mime_type="image/jpeg", data=image_bytes)),
                ],
            )
        ]
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            response_mime_type="application/json",
        )

        def _run_generate():
            response = self.genai_client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
            return response.text or ""

        loop = asyncio.get_event_loop()
        text_response = await loop.run_in_executor(None, _run_generate)
        logger.info(f"Gemini response: {text_response[:200]}...")
        return self._parse_json_response(text_response)

    def _build_selection_prompt(
        self, candidates: List[Candidate], style: str, max_items: int, required_categories: List[str]
    ) -> str:
        catalog = [
            {
                "id": c.product_id,
                "name": c.product.name,
                "category": c.product.category,
                "targetCategory": c.target_category,
                "price": c.product.price(),
                "description": c.product.description[:200],
                "keywords": c.product.keywords[:10],
            }
            for c in candidates
        ]

        return f"""You are an interior designer. Look at the room photo and choose furniture from the catalog below.

Design style: {style}
Required categories (cover each one if the catalog allows): {", ".join(required_categories)}
Choose at most {max_items} products.

RULES:
- Only choose products from the catalog, by their "id"
- Never choose the same product twice
- Choose AT MOST ONE ceiling light (ceiling, pendant or chandelier fixture) - a room has one ceiling outlet
- Prefer products that match the style and fit the room

CATALOG:
{json.dumps(catalog, ensure_ascii=False)}

Return ONLY valid JSON:
{{"selectedProducts": [{{"id": "product id", "reason": "one short sentence"}}]}}"""

    async def select_products(
        self,
        room_image: str,
        candidates: List[Candidate],
        style: str,
        max_items: int,
        required_categories: List[str],
    ) -> List[ExternalPick]:
        """
        Ask the vision model to pick products for a room photo

        Args:
            room_image: Base64 image or data URL of the user's room
            candidates: Candidate pool the model may choose from
            style: Requested design style
            max_items: Maximum number of picks
            required_categories: Categories the selection should cover

        Returns:
            Ordered picks; empty when the service is not configured or the call fails
        """
        if not self.is_configured or not candidates:
            return []

        image_bytes = self._prepare_image(room_image)
        if image_bytes is None:
            return []

        prompt = self._build_selection_prompt(candidates, style, max_items, required_categories)

        try:
            data = await self._generate_json(prompt, image_bytes)
        except Exception as e:
            logger.warning(f"Vision selection call failed: {e}")
            return []

        if not data:
            logger.warning("Vision selection returned no usable JSON")
            return []

        picks = []
        for entry in self._json_list(data, "selectedProducts"):
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            picks.append(ExternalPick(id=str(entry["id"]), reason=str(entry.get("reason") or "")))

        logger.info(f"Vision selection returned {len(picks)} picks")
        return picks

    async def detect_furniture(self, image: str) -> List[DetectedItem]:
        """
        Detect furniture and decor items in a generated room image

        Args:
            image: Base64 image or data URL

        Returns:
            Detected items with positions in percent; empty on failure
        """
        if not self.is_configured:
            return []

        image_bytes = self._prepare_image(image)
        if image_bytes is None:
            return []

        prompt = """Detect the furniture and decor items placed in this room image.

For EACH item provide:
- number: ordinal starting at 1, numbered left to right, top to bottom
- category: short English name (sofa, rug, pendant light, floor lamp, plant, cushion, curtain, ...)
- description: a short description
- color and style
- position: center of the item as percentages, x from the left edge (0-100), y from the top edge (0-100)

Return ONLY valid JSON:
{"items": [{"number": 1, "category": "sofa", "description": "grey fabric sofa", "color": "grey", "style": "modern", "position": {"x": 40, "y": 65}}]}"""

        try:
            data = await self._generate_json(prompt, image_bytes)
        except Exception as e:
            logger.warning(f"Furniture detection call failed: {e}")
            return []

        if not data:
            logger.warning("Furniture detection returned no usable JSON")
            return []

        items = []
        for index, entry in enumerate(self._json_list(data, "items"), start=1):
            if not isinstance(entry, dict) or not entry.get("category"):
                continue
            position = entry.get("position") if isinstance(entry.get("position"), dict) else {}
            try:
                number = int(entry.get("number") or index)
            except (TypeError, ValueError):
                number = index
            items.append(
                DetectedItem(
                    number=number,
                    category=str(entry["category"]),
                    description=str(entry.get("description") or ""),
                    color=str(entry["color"]) if entry.get("color") else None,
                    style=str(entry["style"]) if entry.get("style") else None,
                    position=Position(x=position.get("x"), y=position.get("y")),
                )
            )

        logger.info(f"Detected {len(items)} furniture items")
        return items


# Global service instance
furniture_vision_service = FurnitureVisionService()
