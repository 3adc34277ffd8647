"""
FastAPI main application for the Vibe Interior furniture selection API
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vibe_interior.config.taxonomy import get_taxonomy
from vibe_interior.core.config import settings
from vibe_interior.core.logging import setup_logging
from vibe_interior.middleware import RequestLoggingMiddleware
from vibe_interior.routers import furniture

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting {settings.app_name}...")

    # Fail fast on a broken taxonomy file
    taxonomy = get_taxonomy()
    logger.info(f"Taxonomy ready: {len(taxonomy.category_labels)} category labels")

    if settings.google_ai_api_key:
        logger.info("✅ GOOGLE_AI_API_KEY is set - vision selection enabled")
    else:
        logger.warning("GOOGLE_AI_API_KEY is NOT set - selection falls back to local ranking")

    logger.info(f"Catalog backend: {settings.catalog_backend}")
    logger.info("Application started")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Catalog-constrained furniture selection for AI room designs",
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.version,
        "catalog_backend": settings.catalog_backend,
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "description": "Catalog-constrained furniture selection for AI room designs",
        "docs": "/docs" if settings.environment == "development" else None,
        "endpoints": {
            "select": "/api/furniture/select",
            "match": "/api/furniture/match",
        },
    }


app.include_router(furniture.router, prefix="/api/furniture", tags=["furniture"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vibe_interior.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_config=None,  # Use our custom logging
        access_log=False,  # We handle this in middleware
    )
