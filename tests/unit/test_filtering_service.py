"""
Unit tests for the exclusion filter and ceiling-light classifier
"""
import pytest

from vibe_interior.engines.furniture_selection.filtering_service import CeilingLightClassifier, ExclusionFilter
from vibe_interior.engines.furniture_selection.schemas import Product


def product(name, category="", keywords=None):
    return Product(id=name, name=name, category=category, keywords=keywords or [])


class TestExclusionFilter:
    """Tests for negative-keyword exclusion"""

    @pytest.fixture
    def exclusion_filter(self, taxonomy):
        return ExclusionFilter(taxonomy)

    @pytest.mark.unit
    def test_pet_bed_excluded_for_bed(self, exclusion_filter):
        """Test that a pet bed never satisfies the bed category"""
        assert exclusion_filter.is_excluded(product("ペット用ベッド 犬用", "ベッド"), "ベッド")
        assert exclusion_filter.is_excluded(product("Cozy Dog Bed", "bed"), "bed")

    @pytest.mark.unit
    def test_real_bed_kept(self, exclusion_filter):
        assert not exclusion_filter.is_excluded(product("すのこベッド シングル", "ベッド"), "ベッド")

    @pytest.mark.unit
    def test_keywords_are_checked(self, exclusion_filter):
        """Test that negative keywords in the keyword list also exclude"""
        assert exclusion_filter.is_excluded(product("マット 60x90", "ラグ", ["バスマット"]), "ラグ")

    @pytest.mark.unit
    def test_category_without_exclusions(self, exclusion_filter):
        assert exclusion_filter.negative_keywords("テレビ台") == []
        assert not exclusion_filter.is_excluded(product("ペット用テレビ台"), "テレビ台")

    @pytest.mark.unit
    def test_apply_keeps_order(self, exclusion_filter):
        products = [
            product("ウールラグ", "ラグ"),
            product("珪藻土バスマット", "ラグ"),
            product("キリムラグ", "ラグ"),
        ]

        kept = exclusion_filter.apply(products, "ラグ")

        assert [p.name for p in kept] == ["ウールラグ", "キリムラグ"]


class TestCeilingLightClassifier:
    """Tests for ceiling-mounted fixture classification"""

    @pytest.fixture
    def classifier(self, taxonomy):
        return CeilingLightClassifier(taxonomy)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "name,category",
        [
            ("LEDシーリングライト 6畳", "シーリングライト"),
            ("ペンダントライト 北欧", "照明"),
            ("Brass Pendant Light", "pendant light"),
            ("Crystal Chandelier", "lighting"),
        ],
    )
    def test_ceiling_fixtures(self, classifier, name, category):
        assert classifier.is_ceiling_light(product(name, category))

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "name,category",
        [
            ("フロアランプ スタンドライト", "フロアランプ"),
            ("Oak Floor Lamp", "floor lamp"),
            ("デスクライト", "照明"),
            ("ウールラグ", "ラグ"),
        ],
    )
    def test_other_items(self, classifier, name, category):
        assert not classifier.is_ceiling_light(product(name, category))

    @pytest.mark.unit
    def test_negative_term_wins(self, classifier):
        """Test that a floor lamp described as pendant style is not a ceiling fixture"""
        assert not classifier.is_ceiling_light(product("Pendant-style Floor Lamp", "floor lamp"))
