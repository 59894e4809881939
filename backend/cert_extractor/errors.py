"""
Custom exceptions for the certificate extraction service.

A missing field is never an error: extractors report it as an empty
string (or the "N/A" model sentinel). Exceptions here describe failures
of a whole document or of the persistence step.
"""

from typing import Any, Optional


class CertificateExtractionError(Exception):
    """Base exception for all extraction errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NoTextExtractedError(CertificateExtractionError):
    """The document yielded no usable page text."""

    pass


class DocumentValidationError(CertificateExtractionError):
    """The document is malformed or not an accepted file type."""

    def __init__(self, filename: str, reason: str) -> None:
        """Initialize with the rejected filename."""
        super().__init__(f"Invalid file: {filename} ({reason})")
        self.filename = filename
        self.reason = reason


class PersistenceError(CertificateExtractionError):
    """Saving extracted records failed."""

    pass
