"""API route definitions."""

import time
from fastapi import APIRouter, UploadFile, File, HTTPException
from typing import List
import logging

from ..models import (
    CertificateRecordModel,
    TextExtractionRequest,
    CertificateResponse,
    BatchExtractionResponse,
    ErrorResponse,
    HealthResponse,
)
from ..services import (
    CertificateExtractor,
    CertificateRecord,
    DocumentTextLoader,
    ExtractionOrchestrator,
    JsonExporter,
    OCRService,
)
from ..config import get_settings
from ..errors import CertificateExtractionError
from .. import __version__

logger = logging.getLogger(__name__)
router = APIRouter()

# Initialize services
settings = get_settings()
ocr_service = OCRService()
document_loader = DocumentTextLoader(ocr_service=ocr_service)
certificate_extractor = CertificateExtractor()
orchestrator = ExtractionOrchestrator(
    extractor=certificate_extractor,
    loader=document_loader,
    exporter=JsonExporter(settings.export_dir) if settings.export_enabled else None,
)


def _to_model(record: CertificateRecord) -> CertificateRecordModel:
    return CertificateRecordModel(**record.to_dict())


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health and OCR readiness."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        ocr_ready=ocr_service.is_ready
    )


@router.post(
    "/extract",
    response_model=CertificateResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
    },
    tags=["Extraction"]
)
async def extract_certificate(
    file: UploadFile = File(..., description="Certificate PDF (or plain-text page)"),
):
    """
    Extract certificate fields from a single uploaded document.

    Only the first page is read.
    """
    start_time = time.time()

    try:
        data = await file.read()
    except Exception as e:
        logger.error(f"Failed to read uploaded file: {e}")
        raise HTTPException(status_code=400, detail="Failed to read uploaded file")

    filename = file.filename or "unknown"
    is_valid, reason = document_loader.validate_document(data, filename)
    if not is_valid:
        return CertificateResponse(success=False, error=f"Invalid file: {filename} ({reason})")

    try:
        document = document_loader.load_text(data, filename)
        record = certificate_extractor.extract(document.text, from_ocr=document.from_ocr)
    except CertificateExtractionError as e:
        logger.warning(f"Error processing {filename}: {e}")
        return CertificateResponse(success=False, error=f"Error processing {filename}: {e}")
    except Exception as e:
        logger.exception(f"Error processing {filename}: {e}")
        return CertificateResponse(success=False, error=f"Error processing {filename}: {str(e)}")

    total_time = int((time.time() - start_time) * 1000)
    return CertificateResponse(success=True, certificate=_to_model(record), processing_time_ms=total_time)


@router.post(
    "/extract/text",
    response_model=CertificateResponse,
    tags=["Extraction"]
)
async def extract_from_text(request: TextExtractionRequest):
    """
    Extract certificate fields from already-extracted page text.

    Useful for testing the extraction rules without a PDF.
    """
    start_time = time.time()

    try:
        record = certificate_extractor.extract(request.text, from_ocr=request.from_ocr)
    except CertificateExtractionError as e:
        return CertificateResponse(success=False, error=str(e))
    except Exception as e:
        logger.exception(f"Error processing submitted text: {e}")
        return CertificateResponse(success=False, error=f"Error processing text: {str(e)}")

    total_time = int((time.time() - start_time) * 1000)
    return CertificateResponse(success=True, certificate=_to_model(record), processing_time_ms=total_time)


@router.post(
    "/extract/batch",
    response_model=BatchExtractionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
    },
    tags=["Extraction"]
)
async def extract_batch(
    files: List[UploadFile] = File(..., description="Certificate PDFs"),
):
    """
    Extract certificates from multiple documents.

    Each file is processed independently: invalid or unreadable files are
    reported in `errors` and the rest of the batch still completes.
    """
    start_time = time.time()

    if len(files) > settings.max_batch_size:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum batch size is {settings.max_batch_size} files."
        )

    documents = []
    read_errors = []
    for upload_file in files:
        filename = upload_file.filename or "unknown"
        try:
            documents.append((filename, await upload_file.read()))
        except Exception as e:
            logger.error(f"Failed to read {filename}: {e}")
            read_errors.append(f"Error processing {filename}: failed to read upload")

    result = orchestrator.process_batch(documents)
    total_time = int((time.time() - start_time) * 1000)

    return BatchExtractionResponse(
        success=result.has_results,
        processed_files=result.processed_files,
        has_results=result.has_results,
        certificates=[_to_model(record) for record in result.certificates],
        errors=read_errors + list(result.errors),
        saved_file=result.saved_file,
        processing_time_ms=total_time,
    )
