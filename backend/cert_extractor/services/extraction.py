"""Certificate extraction engine.

Runs one document's page text through the full pipeline:

1. Normalize the text (with OCR fix-ups when the text came from OCR)
2. Extract the certificate number, the anchor for everything below
3. Extract the remaining fields, preferring known values for the anchor
4. Disambiguate the manufacturer by context score
5. Derive range/units, maximum deviation and status
6. Finalize the record's surface form
"""

from typing import Optional
import logging

from .derived import collect_document_numbers, derive_max_deviation, derive_range_and_units, determine_status
from .disambiguation import choose_candidate, find_reference_spans
from .extractors import (
    extract_acceptance_criteria,
    extract_accuracy_grade,
    extract_calibration_date,
    extract_certificate_no,
    extract_equipment_type,
    extract_location,
    extract_manufacturer,
    extract_model_no,
    extract_next_cal_date,
    extract_serial_no,
    first_value,
)
from .finalizer import finalize_record
from .normalizer import normalize_text
from .overrides import KnownValueOverride
from .records import CertificateRecord, MODEL_NOT_FOUND
from .tables import ExtractionTables, get_tables
from ..config import get_settings
from ..errors import NoTextExtractedError

logger = logging.getLogger(__name__)


class CertificateExtractor:
    """Extracts a CertificateRecord from the text of one certificate page."""

    def __init__(self, tables: Optional[ExtractionTables] = None):
        self.settings = get_settings()
        self.tables = tables or get_tables()
        self.serial_override = KnownValueOverride("serial", self.tables.known_serials)
        self.model_override = KnownValueOverride("model", self.tables.known_models)

    def extract(self, text: str, from_ocr: bool = False) -> CertificateRecord:
        """
        Extract all fields from page text.

        Args:
            text: Raw page text (PDF text layer or OCR output)
            from_ocr: True when the text was produced by OCR

        Returns:
            Finalized CertificateRecord

        Raises:
            NoTextExtractedError: If the text is empty or too short to process
        """
        text = normalize_text(text, from_ocr=from_ocr, tables=self.tables)
        if len(text) < self.settings.min_text_length:
            raise NoTextExtractedError(
                "No text could be extracted",
                {"length": len(text), "min_length": self.settings.min_text_length},
            )

        tables = self.tables
        spans = find_reference_spans(text, tables)

        certificate_no = first_value(extract_certificate_no(text, tables, spans))
        if not certificate_no:
            logger.warning("Certificate number not found")

        equipment_type = first_value(extract_equipment_type(text, tables, spans))
        serial_no = self._extract_serial(text, certificate_no, spans)
        manufacturer = self._extract_manufacturer(text, spans)
        model_no = self._extract_model(text, certificate_no, spans)
        accuracy_grade = first_value(extract_accuracy_grade(text, tables, spans))
        calibration_date = first_value(extract_calibration_date(text, tables, spans))
        next_cal_date = first_value(extract_next_cal_date(text, tables, spans))
        location = first_value(extract_location(text, tables, spans))
        acceptance_criteria = first_value(extract_acceptance_criteria(text, tables, spans))

        excluded = collect_document_numbers(certificate_no, model_no, (calibration_date, next_cal_date))
        range_value, units = derive_range_and_units(text, equipment_type, excluded, tables)
        if not range_value:
            logger.warning(f"Range not found for {certificate_no or 'unknown certificate'}")

        max_deviation = derive_max_deviation(text, tables)
        status = determine_status(acceptance_criteria, max_deviation, tables)

        record = CertificateRecord(
            certificate_no=certificate_no,
            equipment_type=equipment_type,
            serial_no=serial_no,
            manufacturer=manufacturer,
            model_no=model_no,
            range=range_value,
            units=units,
            accuracy_grade=accuracy_grade,
            calibration_date=calibration_date,
            next_cal_date=next_cal_date,
            location=location,
            status=status,
            max_deviation=max_deviation,
            acceptance_criteria=acceptance_criteria,
        )
        record = finalize_record(record, tables)
        logger.info(
            f"Extracted {record.certificate_no or 'unknown certificate'}: "
            f"{record.equipment_type or '-'} / {record.manufacturer or '-'} / {record.model_no} -> {record.status}"
        )
        return record

    def _extract_serial(self, text: str, certificate_no: str, spans) -> str:
        known = self.serial_override.lookup(certificate_no, text)
        if known:
            return known
        serial_no = first_value(extract_serial_no(text, self.tables, spans))
        if not serial_no:
            logger.warning(f"Serial number not found for {certificate_no or 'unknown certificate'}")
        return serial_no

    def _extract_manufacturer(self, text: str, spans) -> str:
        candidates = extract_manufacturer(text, self.tables, spans)
        best = choose_candidate(candidates, text, self.tables.manufacturer_scoring)
        if best is None:
            logger.debug(f"No manufacturer among {len(candidates)} candidates")
            return ""
        logger.debug(f"Manufacturer '{best.value}' chosen ({best.pattern})")
        return best.value

    def _extract_model(self, text: str, certificate_no: str, spans) -> str:
        known = self.model_override.lookup(certificate_no, text)
        if known:
            return known
        model_no = first_value(extract_model_no(text, self.tables, spans), MODEL_NOT_FOUND)
        if model_no == MODEL_NOT_FOUND:
            logger.warning(f"Model number not found for {certificate_no or 'unknown certificate'}")
        return model_no
