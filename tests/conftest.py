"""
Shared pytest fixtures and configuration for all tests
"""
import base64
import io
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest
from PIL import Image

from vibe_interior.config.taxonomy import Taxonomy, load_taxonomy
from vibe_interior.engines.furniture_selection.catalog import InMemoryCatalog
from vibe_interior.engines.furniture_selection.schemas import Candidate, MatchTier, Product


def make_document(doc_id: str, name: str, category: str, keywords=None, review_count=0, **extra) -> Dict[str, Any]:
    """Catalog document in the current (purchaseLinks) shape"""
    document = {
        "id": doc_id,
        "name": name,
        "category": category,
        "keywords": keywords or [],
        "style": extra.pop("style", "modern"),
        "status": extra.pop("status", "approved"),
        "images": [f"https://img.example.com/{doc_id}.jpg"],
        "purchaseLinks": [
            {
                "source": "rakuten",
                "url": f"https://item.example.com/{doc_id}",
                "affiliateUrl": f"https://aff.example.com/{doc_id}",
                "price": extra.pop("price", 9800),
                "reviewAverage": extra.pop("review_average", 4.2),
                "reviewCount": review_count,
            }
        ],
    }
    document.update(extra)
    return document


def make_candidate(
    doc_id: str,
    category: str,
    target_category: str = None,
    name: str = None,
    tier: MatchTier = MatchTier.CATEGORY_EXACT,
    score: float = 0.0,
    keywords=None,
    also_matches=None,
) -> Candidate:
    """Candidate built directly, for chooser/ranking tests that skip retrieval"""
    product = Product(id=doc_id, name=name or doc_id, category=category, keywords=keywords or [])
    return Candidate(
        product=product,
        target_category=target_category or category,
        tier=tier,
        category_match=tier != MatchTier.KEYWORD_ONLY,
        score=score,
        also_matches=list(also_matches or []),
    )


@pytest.fixture(scope="session")
def taxonomy() -> Taxonomy:
    """Bundled taxonomy tables"""
    return load_taxonomy()


@pytest.fixture
def catalog_documents() -> List[Dict[str, Any]]:
    """Small catalog covering every retrieval tier and exclusion case"""
    return [
        # Sofas (category-exact); the 150-review one should rank first
        make_document("sofa-popular", "3人掛けファブリックソファ", "ソファ", ["ソファ", "モダン"], review_count=150),
        make_document("sofa-nordic", "北欧ソファ 2人掛け", "ソファ", ["ソファ", "北欧"], review_count=5),
        make_document("sofa-cover", "ストレッチ ソファカバー", "ソファ", ["ソファカバー"], review_count=900),
        # Lighting
        make_document("light-pendant", "ペンダントライト 北欧 木製", "ペンダントライト", ["照明", "北欧"], review_count=40),
        make_document("light-ceiling", "LEDシーリングライト 6畳", "シーリングライト", ["照明"], review_count=300),
        make_document("light-floor", "フロアランプ スタンドライト", "フロアランプ", ["間接照明", "照明"], review_count=12),
        make_document("light-bulb", "LED電球 E26", "照明", ["照明"], review_count=2000),
        # Rugs; bath mat must be excluded
        make_document("rug-wool", "ウールラグ 140x200", "ラグ", ["ラグ", "北欧", "ナチュラル"], review_count=80),
        make_document("rug-bathmat", "珪藻土バスマット", "ラグ", ["マット"], review_count=5000),
        # Cushion found by keyword with a category cross-check (Tier B)
        make_document("cushion-cover", "リネン クッションカバー", "クッションカバー", ["クッション"], review_count=20),
        # Plant found by keyword only (Tier C)
        make_document("plant-fake", "フェイクグリーン モンステラ", "インテリア雑貨", ["フェイクグリーン"], review_count=0),
        # Not approved
        make_document("sofa-pending", "未承認ソファ", "ソファ", ["ソファ"], status="pending", review_count=9999),
        # English catalog entries
        make_document("en-pendant", "Brass Pendant Light", "pendant light", ["pendant light", "lighting"], review_count=30),
        make_document("en-ceiling", "Glass Ceiling Light", "ceiling light", ["ceiling light", "lighting"], review_count=60),
        make_document("en-floor", "Oak Floor Lamp", "floor lamp", ["floor lamp", "lighting"], review_count=15),
        # Legacy flat document
        {
            "id": "legacy-rug",
            "name": "ヴィンテージ キリムラグ",
            "category": "カーペット",
            "tags": ["ラグ", "ヴィンテージ"],
            "vibe": "ヴィンテージ",
            "status": "approved",
            "price": "12800",
            "imageUrl": "https://img.example.com/legacy-rug.jpg",
            "affiliateUrl": "https://aff.example.com/legacy-rug",
            "reviewAverage": 4.6,
            "reviewCount": 42,
            "source": "rakuten",
        },
    ]


@pytest.fixture
def catalog(catalog_documents) -> InMemoryCatalog:
    """In-memory catalog over the sample documents"""
    return InMemoryCatalog(catalog_documents)


@pytest.fixture
def mock_google_ai_client():
    """Mock Google GenAI client for testing without API calls"""
    mock = Mock()
    mock.models = Mock()
    mock.models.generate_content = Mock()
    return mock


@pytest.fixture
def sample_base64_image():
    """Small JPEG as a data URL"""
    img = Image.new("RGB", (64, 48), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode()


@pytest.fixture
def candidate_factory():
    """Factory for hand-built candidates"""
    return make_candidate


@pytest.fixture
def document_factory():
    """Factory for catalog documents"""
    return make_document
