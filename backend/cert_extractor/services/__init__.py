"""Services for text normalization, field extraction, document loading and batch processing."""

from .tables import ExtractionTables, get_tables, build_default_tables
from .normalizer import normalize_text
from .records import CertificateRecord, MODEL_NOT_FOUND
from .disambiguation import Candidate, choose_candidate
from .overrides import KnownValueOverride
from .extraction import CertificateExtractor
from .ocr import OCRService, OCRResult, OCRBox
from .preprocessing import PagePreprocessor
from .ingestion import DocumentTextLoader, DocumentText
from .export import JsonExporter
from .batch import ExtractionOrchestrator, ExtractionBatchResult

__all__ = [
    "ExtractionTables",
    "get_tables",
    "build_default_tables",
    "normalize_text",
    "CertificateRecord",
    "MODEL_NOT_FOUND",
    "Candidate",
    "choose_candidate",
    "KnownValueOverride",
    "CertificateExtractor",
    "OCRService",
    "OCRResult",
    "OCRBox",
    "PagePreprocessor",
    "DocumentTextLoader",
    "DocumentText",
    "JsonExporter",
    "ExtractionOrchestrator",
    "ExtractionBatchResult",
]
