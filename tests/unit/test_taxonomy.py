"""
Unit tests for taxonomy loading
"""
import json

import pytest

from vibe_interior.config.taxonomy import TaxonomyError, load_taxonomy


class TestLoadTaxonomy:
    """Tests for the taxonomy file loader"""

    @pytest.mark.unit
    def test_bundled_taxonomy(self, taxonomy):
        assert "lighting" in taxonomy.legacy_codes
        assert "ベッド" in taxonomy.exclusions
        assert set(taxonomy.style_keywords) == {"scandinavian", "modern", "vintage", "industrial"}
        assert taxonomy.ceiling_light.positive
        assert taxonomy.detection_synonyms["fake greenery"] == "plant"
        assert taxonomy.retrieval_limits["照明"].category == 40

    @pytest.mark.unit
    def test_custom_file(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text(json.dumps({"category_labels": {"desk": ["desk", "デスク"]}}), encoding="utf-8")

        taxonomy = load_taxonomy(str(path))

        assert taxonomy.category_labels == {"desk": ["desk", "デスク"]}
        assert taxonomy.exclusions == {}

    @pytest.mark.unit
    def test_missing_file(self, tmp_path):
        with pytest.raises(TaxonomyError):
            load_taxonomy(str(tmp_path / "missing.json"))

    @pytest.mark.unit
    def test_invalid_json(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(TaxonomyError):
            load_taxonomy(str(path))

    @pytest.mark.unit
    def test_schema_mismatch(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text(json.dumps({"retrieval_limits": {"ラグ": {"category": 0}}}), encoding="utf-8")

        with pytest.raises(TaxonomyError):
            load_taxonomy(str(path))
