"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router
from .services import OCRService
from .config import get_settings
from . import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    logger.info("Starting Calibration Certificate Extraction API...")
    settings = get_settings()

    # Keep the OCR engine warm when scanned-page fallback is enabled
    if settings.ocr_enabled:
        if OCRService().initialize():
            logger.info("OCR engine initialized and ready")
        else:
            logger.warning("OCR engine failed to initialize - will retry on first scanned page")

    logger.info(f"API ready - Version {__version__}")

    yield

    logger.info("Shutting down Calibration Certificate Extraction API...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="""
## Calibration Certificate Extraction API

Turns calibration certificate PDFs into structured records.

### Features
- **Single upload**: `/extract` reads page 1 of a certificate PDF
- **Raw text**: `/extract/text` runs the extraction rules on page text
- **Batch**: `/extract/batch` processes many certificates, reporting per-file errors
- **OCR fallback**: scanned pages are read with EasyOCR when enabled
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": settings.app_name,
            "version": __version__,
            "docs": "/docs"
        }

    return app


# Create app instance
app = create_app()
