"""Application configuration."""

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Calibration Certificate Extraction API"
    debug: bool = False

    # CORS - Allow all origins for prototype (restrict in production)
    cors_origins: list[str] = ["*"]

    # Upload limits
    max_upload_size_mb: int = 50
    allowed_extensions: set = {"pdf", "txt"}
    min_text_length: int = 10  # Shorter page text is treated as unreadable

    # OCR fallback for scanned certificates (off by default, needs easyocr)
    ocr_enabled: bool = False
    ocr_lang: str = "en"
    ocr_render_dpi: int = 200
    ocr_confidence_threshold: float = 0.30  # Boxes below this are dropped
    ocr_max_concurrent: int = 1  # CPU-bound, no benefit from concurrency
    ocr_model_dir: Optional[str] = None
    min_page_dimension: int = 1000  # Below this, upscale before OCR

    # Batch processing
    max_batch_size: int = 50
    max_workers: int = 1  # Sequential unless raised

    # JSON export of extracted certificates
    export_enabled: bool = False
    export_dir: str = "exports"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
