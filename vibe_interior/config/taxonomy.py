"""
Category taxonomy tables for furniture selection.

The tables (legacy item codes, free-form category labels, exclusion keywords,
style keywords, ceiling-light terms, detection synonyms and per-category
retrieval limits) live in taxonomy.json next to this module so they can be
edited without touching code. Set TAXONOMY_PATH to load a different file.
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from vibe_interior.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY_PATH = Path(__file__).parent / "taxonomy.json"


class TaxonomyError(Exception):
    """Raised when the taxonomy file cannot be read or is malformed"""


class CeilingLightTerms(BaseModel):
    """Terms used to classify ceiling-mounted light fixtures"""

    positive: List[str] = Field(default_factory=list)
    negative: List[str] = Field(default_factory=list)


class RetrievalLimit(BaseModel):
    """Per-category override of the catalog query limits"""

    category: Optional[int] = Field(default=None, ge=1)
    keyword: Optional[int] = Field(default=None, ge=1)


class Taxonomy(BaseModel):
    """All static lookup tables used by the selection engine"""

    legacy_codes: Dict[str, List[str]] = Field(default_factory=dict)
    category_labels: Dict[str, List[str]] = Field(default_factory=dict)
    exclusions: Dict[str, List[str]] = Field(default_factory=dict)
    style_keywords: Dict[str, List[str]] = Field(default_factory=dict)
    ceiling_light: CeilingLightTerms = Field(default_factory=CeilingLightTerms)
    detection_synonyms: Dict[str, str] = Field(default_factory=dict)
    retrieval_limits: Dict[str, RetrievalLimit] = Field(default_factory=dict)


def load_taxonomy(path: Optional[str] = None) -> Taxonomy:
    """
    Load taxonomy tables from a JSON file

    Args:
        path: Optional path to a taxonomy file; defaults to the bundled taxonomy.json

    Returns:
        Parsed Taxonomy

    Raises:
        TaxonomyError: If the file is missing, is not valid JSON or does not match the schema
    """
    taxonomy_path = Path(path) if path else DEFAULT_TAXONOMY_PATH

    try:
        with open(taxonomy_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise TaxonomyError(f"Failed to read taxonomy file {taxonomy_path}: {e}") from e

    try:
        taxonomy = Taxonomy.model_validate(raw)
    except ValidationError as e:
        raise TaxonomyError(f"Invalid taxonomy file {taxonomy_path}: {e}") from e

    logger.info(
        f"Loaded taxonomy from {taxonomy_path}: {len(taxonomy.legacy_codes)} legacy codes, "
        f"{len(taxonomy.category_labels)} labels, {len(taxonomy.exclusions)} exclusion lists"
    )
    return taxonomy


@lru_cache(maxsize=1)
def get_taxonomy() -> Taxonomy:
    """Taxonomy loaded once per process from the configured path"""
    return load_taxonomy(settings.taxonomy_path)
