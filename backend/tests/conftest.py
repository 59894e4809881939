"""Shared fixtures: sample certificate pages and an in-memory PDF builder."""

import fitz  # PyMuPDF
import pytest


GAUGE_CERTIFICATE = """CALIBRATION CERTIFICATE
CERTIFICATE NO: PHO-CC-56386
CUSTOMER : ACME MARINE SERVICES
EQUIPMENT : PRESSURE GAUGE
MANUFACTURER : AQUATROL INC
MODEL NO: EN837-1
SERIAL NO: E2119930387
CALIBRATED RANGE : 0-230 psi
LOCATION : AIR TANK-1 ENGINE ROOM
ACCURACY GRADE : 1A (1%)
DATE OF CALIBRATION : 12-03-2025
RECOMMENDED CALIBRATION DATE : 12-03-2026
STANDARD EQUIPMENT USED
DIGITAL PRESSURE GAUGE WIKA SERIAL NO: 7654321
ENVIRONMENTAL CONDITIONS
TEMPERATURE 25 C
CALIBRATION RESULTS
Applied (psi) Measured (psi) Deviation (psi)
0 0 0.00
100 101 1.00
230 230 0.00
ACCEPTANCE CRITERIA: +/- 1.00 % of FS
REMARKS: SATISFACTORY
"""

RELIEF_VALVE_CERTIFICATE = """CERTIFICATE NO: PHO-CC-56387
EQUIPMENT : PRESSURE RELIEF VALVE
SAFETY VALVE
MODEL NO: S10 SERIAL NO: 103-PRV-05
SET PRESSURE 150 psi
LOCATION : ENGINE ROOM
"""


@pytest.fixture
def gauge_certificate() -> str:
    """Page text of a pressure gauge certificate."""
    return GAUGE_CERTIFICATE


@pytest.fixture
def relief_valve_certificate() -> str:
    """Page text of a pressure relief valve certificate."""
    return RELIEF_VALVE_CERTIFICATE


@pytest.fixture
def make_pdf():
    """Build a PDF in memory, one list of text lines per page."""
    def build(*pages):
        doc = fitz.open()
        for lines in pages:
            page = doc.new_page()
            y = 72
            for line in lines:
                page.insert_text((72, y), line, fontsize=10)
                y += 14
        data = doc.tobytes()
        doc.close()
        return data

    return build
