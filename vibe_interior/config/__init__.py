"""
Static configuration data for the selection engine.
"""
from vibe_interior.config.taxonomy import Taxonomy, TaxonomyError, get_taxonomy, load_taxonomy

__all__ = ["Taxonomy", "TaxonomyError", "get_taxonomy", "load_taxonomy"]
