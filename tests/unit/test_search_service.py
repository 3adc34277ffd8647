"""
Unit tests for tiered candidate retrieval
"""
from unittest.mock import AsyncMock

import pytest

from vibe_interior.engines.furniture_selection.catalog import CatalogError, InMemoryCatalog
from vibe_interior.engines.furniture_selection.schemas import MatchTier
from vibe_interior.engines.furniture_selection.search_service import CandidateRetriever, text_overlaps


class TestTextOverlaps:
    """Tests for the substring overlap helper"""

    @pytest.mark.unit
    def test_either_direction(self):
        assert text_overlaps("クッション", "クッションカバー")
        assert text_overlaps("Pendant Light", "pendant")

    @pytest.mark.unit
    def test_blank_never_overlaps(self):
        assert not text_overlaps("", "ソファ")
        assert not text_overlaps("ソファ", "  ")


class TestCandidateRetriever:
    """Test suite for CandidateRetriever"""

    @pytest.fixture
    def retriever(self, catalog, taxonomy):
        return CandidateRetriever(catalog, taxonomy=taxonomy)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_category_exact_tier(self, retriever):
        """Test that category-equal products come back at Tier A, minus exclusions and unapproved"""
        candidates = await retriever.retrieve("ソファ")

        assert [c.product_id for c in candidates] == ["sofa-popular", "sofa-nordic"]
        assert all(c.tier == MatchTier.CATEGORY_EXACT for c in candidates)
        assert all(c.category_match for c in candidates)
        assert all(c.target_category == "ソファ" for c in candidates)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exclusions_applied(self, retriever):
        """Test that bath mats are never rug candidates"""
        candidates = await retriever.retrieve("ラグ")

        ids = [c.product_id for c in candidates]
        assert "rug-bathmat" not in ids
        assert ids == ["rug-wool", "legacy-rug"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exclusions_applied_to_keyword_only_tier(self, taxonomy, document_factory):
        """Test that a pet bed found only by keyword never satisfies ベッド"""
        catalog = InMemoryCatalog(
            [
                document_factory("pet-bed", "ペット ベッド 洗える", "ペット用品", ["ベッド"], review_count=900),
                document_factory("bed-kw", "シングルベッド 北欧", "家具", ["ベッド"], review_count=3),
            ]
        )
        retriever = CandidateRetriever(catalog, taxonomy=taxonomy)

        candidates = await retriever.retrieve("ベッド")

        assert [c.product_id for c in candidates] == ["bed-kw"]
        assert candidates[0].tier == MatchTier.KEYWORD_ONLY

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exclusions_applied_to_keyword_cross_check_tier(self, taxonomy, document_factory):
        catalog = InMemoryCatalog(
            [
                document_factory("pet-bed", "Cozy Pet Bed", "pet beds", ["bed"], review_count=900),
                document_factory("bed-frame", "Oak Bed Frame", "bedroom furniture", ["bed"], review_count=3),
            ]
        )
        retriever = CandidateRetriever(catalog, taxonomy=taxonomy)

        candidates = await retriever.retrieve("bed")

        assert [c.product_id for c in candidates] == ["bed-frame"]
        assert candidates[0].tier == MatchTier.KEYWORD_CROSS_CHECK

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("category", ["bed", "ベッド"])
    async def test_only_pet_beds_gives_no_candidates(self, taxonomy, document_factory, category):
        catalog = InMemoryCatalog(
            [
                document_factory("pet-bed-en", "Cozy Pet Bed", "pet supplies", ["bed"]),
                document_factory("pet-bed-ja", "ペット ベッド 洗える", "ペット用品", ["ベッド"]),
            ]
        )
        retriever = CandidateRetriever(catalog, taxonomy=taxonomy)

        assert await retriever.retrieve(category) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keyword_cross_check_tier(self, retriever):
        """Test that keyword matches with an overlapping category come back at Tier B"""
        candidates = await retriever.retrieve("cushion")

        assert [c.product_id for c in candidates] == ["cushion-cover"]
        assert candidates[0].tier == MatchTier.KEYWORD_CROSS_CHECK
        assert candidates[0].category_match is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keyword_only_tier(self, retriever):
        """Test that keyword matches without a category overlap come back at Tier C"""
        candidates = await retriever.retrieve("観葉植物")

        assert [c.product_id for c in candidates] == ["plant-fake"]
        assert candidates[0].tier == MatchTier.KEYWORD_ONLY
        assert candidates[0].category_match is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_match_returns_empty(self, retriever):
        assert await retriever.retrieve("テレビ台") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stops_at_first_non_empty_tier(self, taxonomy, document_factory):
        """Test that keyword tiers are not queried when Tier A has results"""
        catalog = InMemoryCatalog([document_factory("sofa-1", "ソファ", "ソファ", ["ソファ"])])
        catalog.find_by_keywords = AsyncMock(return_value=[])
        retriever = CandidateRetriever(catalog, taxonomy=taxonomy)

        candidates = await retriever.retrieve("ソファ")

        assert len(candidates) == 1
        catalog.find_by_keywords.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_catalog_failure_is_treated_as_empty(self, catalog, taxonomy):
        """Test that a failing category query falls through to the keyword tiers"""
        catalog.find_by_categories = AsyncMock(side_effect=CatalogError("unavailable"))
        retriever = CandidateRetriever(catalog, taxonomy=taxonomy)

        candidates = await retriever.retrieve("ラグ")

        # Only documents carrying a "ラグ"-family keyword remain reachable
        assert [c.product_id for c in candidates] == ["rug-wool"]
        assert candidates[0].tier == MatchTier.KEYWORD_CROSS_CHECK

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_limits_passed_to_catalog(self, taxonomy):
        """Test that per-category retrieval limits override the defaults"""
        catalog = AsyncMock()
        catalog.find_by_categories.return_value = []
        catalog.find_by_keywords.return_value = []
        retriever = CandidateRetriever(catalog, taxonomy=taxonomy)

        await retriever.retrieve("照明")

        assert catalog.find_by_categories.call_args.args[1] == 40
        assert catalog.find_by_keywords.call_args.args[1] == 30

    @pytest.mark.unit
    def test_default_limits(self, retriever):
        assert retriever.query_limits("ソファ") == (30, 20)
        assert retriever.query_limits("lighting") == (40, 30)
