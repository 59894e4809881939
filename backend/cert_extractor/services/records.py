"""Certificate record produced for each processed document."""

from dataclasses import dataclass, asdict
from typing import Dict

MODEL_NOT_FOUND = "N/A"
STATUS_PASS = "PASS"
STATUS_FAIL = "FAIL"

# Field name -> exported (camelCase) key
EXPORT_KEYS = {
    "certificate_no": "certificateNo",
    "equipment_type": "equipmentType",
    "serial_no": "serialNo",
    "manufacturer": "manufacturer",
    "model_no": "modelNo",
    "range": "range",
    "units": "units",
    "accuracy_grade": "accuracyGrade",
    "calibration_date": "calibrationDate",
    "next_cal_date": "nextCalDate",
    "location": "location",
    "status": "status",
    "max_deviation": "maxDeviation",
    "acceptance_criteria": "acceptanceCriteria",
}


@dataclass
class CertificateRecord:
    """Structured fields of one calibration certificate.

    Every field is a string; a field that could not be found is empty,
    except ``model_no`` which falls back to ``"N/A"``.
    """
    certificate_no: str = ""
    equipment_type: str = ""
    serial_no: str = ""
    manufacturer: str = ""
    model_no: str = MODEL_NOT_FOUND
    range: str = ""
    units: str = ""
    accuracy_grade: str = ""
    calibration_date: str = ""
    next_cal_date: str = ""
    location: str = ""
    status: str = STATUS_PASS
    max_deviation: str = ""
    acceptance_criteria: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to the exported camelCase form."""
        return {EXPORT_KEYS[name]: value for name, value in asdict(self).items()}
