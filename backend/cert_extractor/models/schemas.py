"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class CertificateRecordModel(BaseModel):
    """Extracted calibration certificate (camelCase on the wire)."""
    certificate_no: str = ""
    equipment_type: str = ""
    serial_no: str = ""
    manufacturer: str = ""
    model_no: str = "N/A"
    range: str = ""
    units: str = ""
    accuracy_grade: str = ""
    calibration_date: str = ""
    next_cal_date: str = ""
    location: str = ""
    status: str = "PASS"
    max_deviation: str = ""
    acceptance_criteria: str = ""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "certificateNo": "PHO-CC-56386",
                "equipmentType": "PRESSURE GAUGE",
                "serialNo": "E2119930387",
                "manufacturer": "AQUATROL INC",
                "modelNo": "EN837-1",
                "range": "0-230",
                "units": "psi",
                "accuracyGrade": "1A (1%)",
                "calibrationDate": "12-03-2025",
                "nextCalDate": "12-03-2026",
                "location": "AIR TANK-1 ENGINE ROOM",
                "status": "PASS",
                "maxDeviation": "1.00",
                "acceptanceCriteria": "+/- 1.00 % of FS"
            }
        }


class TextExtractionRequest(BaseModel):
    """Page text submitted for extraction."""
    text: str = Field(..., description="Page text of one certificate")
    from_ocr: bool = Field(False, description="Whether the text was produced by OCR")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "CERTIFICATE NO: PHO-CC-56386 EQUIPMENT : PRESSURE GAUGE ...",
                "from_ocr": False
            }
        }


class CertificateResponse(BaseModel):
    """Response for a single document."""
    success: bool
    certificate: Optional[CertificateRecordModel] = None
    error: Optional[str] = None
    processing_time_ms: int = 0


class BatchExtractionResponse(BaseModel):
    """Response for a batch of documents."""
    success: bool
    processed_files: int
    has_results: bool
    certificates: list[CertificateRecordModel]
    errors: list[str]
    saved_file: Optional[str] = None
    processing_time_ms: int

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "processed_files": 2,
                "has_results": True,
                "certificates": [],
                "errors": ["Invalid file: notes.docx (must be PDF or TXT)"],
                "saved_file": None,
                "processing_time_ms": 840
            }
        }


class ErrorResponse(BaseModel):
    """Error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    ocr_ready: bool
