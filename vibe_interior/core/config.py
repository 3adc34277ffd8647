"""
Configuration settings for the furniture selection API
"""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Vibe Interior API"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = True

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    # Google AI Studio (vision model used for selection and detection)
    google_ai_api_key: str = ""
    google_ai_model: str = "gemini-2.5-pro"
    google_ai_temperature: float = 0.3
    google_ai_max_image_size: int = 1024

    # Product catalog
    catalog_backend: str = "firestore"  # firestore | memory
    firestore_project: Optional[str] = None
    catalog_collection: str = "products"
    catalog_status_field: str = "status"
    catalog_approved_status: str = "approved"
    catalog_keyword_field: str = "keywords"
    catalog_fixture_path: Optional[str] = None

    # Retrieval and selection
    category_query_limit: int = 30
    keyword_query_limit: int = 20
    candidate_pool_limit: int = 50
    default_max_items: int = 4
    tier_bonus_category_exact: int = 20
    tier_bonus_keyword_cross_check: int = 10
    tier_bonus_keyword_only: int = 0

    # Taxonomy tables (defaults to the bundled config/taxonomy.json)
    taxonomy_path: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env


# Global settings instance
settings = Settings()
