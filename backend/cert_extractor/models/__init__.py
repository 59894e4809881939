"""Pydantic models for request/response schemas."""

from .schemas import (
    CertificateRecordModel,
    TextExtractionRequest,
    CertificateResponse,
    BatchExtractionResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "CertificateRecordModel",
    "TextExtractionRequest",
    "CertificateResponse",
    "BatchExtractionResponse",
    "ErrorResponse",
    "HealthResponse",
]
