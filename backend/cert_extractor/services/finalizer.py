"""Surface cleanup applied to every record before it is returned."""

import re
from dataclasses import replace
from typing import Optional
import logging

from .records import CertificateRecord, MODEL_NOT_FOUND, STATUS_FAIL, STATUS_PASS
from .tables import ExtractionTables, get_tables

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_field(value: str) -> str:
    """Strip colons and collapse whitespace."""
    return WHITESPACE_PATTERN.sub(" ", value.replace(":", "")).strip()


def _shape_or_empty(value: str, pattern) -> str:
    return value if pattern.match(value) else ""


def finalize_record(record: CertificateRecord, tables: Optional[ExtractionTables] = None) -> CertificateRecord:
    """
    Normalize a record's surface form.

    - Identity fields lose stray colons, are whitespace-collapsed and upper-cased
    - Trailing field labels that leaked into the manufacturer are removed
    - Units are lower-cased
    - The model falls back to "N/A"
    - Certificate numbers and dates not in their fixed shape are blanked
    """
    tables = tables or get_tables()

    manufacturer = clean_field(record.manufacturer).upper()
    manufacturer = tables.leaked_labels.sub("", manufacturer).strip()

    model_no = clean_field(record.model_no).upper()
    if not model_no or model_no == MODEL_NOT_FOUND:
        model_no = MODEL_NOT_FOUND

    certificate_no = _shape_or_empty(clean_field(record.certificate_no).upper(), tables.certificate_shape)
    calibration_date = _shape_or_empty(record.calibration_date.strip(), tables.date_shape)
    next_cal_date = _shape_or_empty(record.next_cal_date.strip(), tables.date_shape)

    status = record.status.strip().upper()
    if status not in (STATUS_PASS, STATUS_FAIL):
        status = STATUS_PASS

    return replace(
        record,
        certificate_no=certificate_no,
        equipment_type=clean_field(record.equipment_type).upper(),
        serial_no=clean_field(record.serial_no).upper(),
        manufacturer=manufacturer,
        model_no=model_no,
        range=record.range.strip(),
        units=record.units.strip().lower(),
        accuracy_grade=clean_field(record.accuracy_grade),
        calibration_date=calibration_date,
        next_cal_date=next_cal_date,
        location=clean_field(record.location).upper(),
        status=status,
        max_deviation=record.max_deviation.strip(),
        acceptance_criteria=WHITESPACE_PATTERN.sub(" ", record.acceptance_criteria).strip(),
    )
