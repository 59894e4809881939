"""Tests for per-field candidate extractors."""

import pytest

from cert_extractor.services.extractors import (
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
    is_valid_company_name,
)
from cert_extractor.services.normalizer import normalize_text


@pytest.fixture
def gauge_text(gauge_certificate):
    """Normalized gauge certificate text."""
    return normalize_text(gauge_certificate)


def values(candidates):
    return [c.value for c in candidates]


class TestCertificateNumber:
    """Test certificate number extraction."""

    def test_labelled(self, gauge_text):
        """Test labelled certificate number."""
        assert first_value(extract_certificate_no(gauge_text)) == "PHO-CC-56386"

    def test_spaced_token_rebuilt(self):
        """Test spaced token is rebuilt in canonical form."""
        assert first_value(extract_certificate_no("REF PHO CC 56390 ISSUED")) == "PHO-CC-56390"

    def test_other_prefix_when_labelled(self):
        """Test an unknown prefix is accepted after the label."""
        assert first_value(extract_certificate_no("CERTIFICATE NO: ABC-QA-12345")) == "ABC-QA-12345"

    def test_six_digits_rejected(self):
        """Test a six-digit group is not a certificate number."""
        assert extract_certificate_no("PHO-CC-123456") == []


class TestEquipmentType:
    """Test equipment type extraction."""

    def test_labelled_gauge(self, gauge_text):
        """Test labelled pressure gauge."""
        assert first_value(extract_equipment_type(gauge_text)) == "PRESSURE GAUGE"

    def test_relief_valve(self):
        """Test pressure relief valve."""
        text = "EQUIPMENT: PRESSURE RELIEF VALVE SET 150 psi"
        assert first_value(extract_equipment_type(text)) == "PRESSURE RELIEF VALVE"

    def test_reference_gauge_ignored(self):
        """Test the reference gauge in the standard equipment block is skipped."""
        text = "STANDARD EQUIPMENT USED DIGITAL PRESSURE GAUGE ENVIRONMENTAL CONDITIONS 25 C"
        assert extract_equipment_type(text) == []


class TestSerialNumber:
    """Test serial number extraction."""

    def test_shape_patterns_before_label(self):
        """Test a serial shape is preferred over the label pattern."""
        text = "SERIAL NO: ABC123 TAG E2119930387"
        assert values(extract_serial_no(text))[0] == "E2119930387"

    def test_spaced_prv_serial(self):
        """Test OCR spacing inside a PRV serial is removed."""
        assert first_value(extract_serial_no("SERIAL NO: 103 - PRV - 04")) == "103-PRV-04"

    def test_year_like_serial_rejected(self):
        """Test values containing a known year are rejected."""
        assert extract_serial_no("SERIAL NO: 2025") == []

    def test_label_word_rejected(self):
        """Test a label word is never a serial."""
        assert extract_serial_no("SERIAL NO: EQUIPMENT") == []


class TestManufacturer:
    """Test manufacturer candidates."""

    def test_label_stops_at_next_field(self):
        """Test the labelled value ends before the next label."""
        candidates = extract_manufacturer("MANUFACTURER : NOSHOK SERIAL NO: 1404137M")
        assert candidates
        assert set(values(candidates)) == {"NOSHOK"}

    def test_known_name_prefers_longest(self, gauge_text):
        """Test AQUATROL INC wins over AQUATROL in the dictionary pass."""
        known = [c for c in extract_manufacturer(gauge_text) if c.is_known_value]
        assert values(known) == ["AQUATROL INC"]

    def test_reference_section_candidates_dropped(self, gauge_text):
        """Test WIKA inside the standard equipment block is not a candidate."""
        assert "WIKA" not in values(extract_manufacturer(gauge_text))

    def test_label_word_rejected(self):
        """Test a label captured as a value is rejected."""
        assert extract_manufacturer("MANUFACTURER : MODEL NO: X1") == []

    def test_safety_valve_placeholder(self, relief_valve_certificate):
        """Test SAFETY VALVE is offered as a placeholder candidate."""
        candidates = extract_manufacturer(normalize_text(relief_valve_certificate))
        assert [(c.value, c.source) for c in candidates] == [("SAFETY VALVE", "placeholder")]

    def test_company_name_rules(self):
        """Test company-name validation."""
        assert is_valid_company_name("AQUATROL INC")
        assert is_valid_company_name("NAGMAN")
        assert not is_valid_company_name("CO INC")
        assert not is_valid_company_name("MODEL")
        assert not is_valid_company_name("X")


class TestModelNumber:
    """Test model number candidates."""

    def test_known_models_in_table_order(self):
        """Test dictionary models come first, in table order."""
        text = "MODEL NO: 314 ALT S10"
        assert values(extract_model_no(text))[:2] == ["S10", "314"]

    def test_spaced_known_model(self):
        """Test OCR-spaced model is mapped to its canonical form."""
        assert first_value(extract_model_no("MODEL NO: EN 837-1")) == "EN837-1"

    def test_labelled_model(self):
        """Test an unknown model from its label."""
        assert first_value(extract_model_no("MODEL NO: CPG500 SERIAL")) == "CPG500"

    def test_standard_reference_rejected(self):
        """Test a technical standard is not a model."""
        assert extract_model_no("MODEL NO: ISO5171") == []


class TestOtherFields:
    """Test accuracy, dates, location and acceptance criteria."""

    def test_accuracy_grade(self, gauge_text):
        """Test labelled accuracy grade."""
        assert first_value(extract_accuracy_grade(gauge_text)) == "1A (1%)"

    def test_accuracy_grade_before_standard(self):
        """Test accuracy grade ending at STANDARD."""
        assert first_value(extract_accuracy_grade("ACCURACY GRADE: 1.6 STANDARD RIG")) == "1.6"

    def test_accuracy_grade_word_rejected(self):
        """Test the word GRADE alone is rejected."""
        assert extract_accuracy_grade("ACCURACY GRADE : GRADE STANDARD") == []

    def test_dates(self, gauge_text):
        """Test calibration and next calibration dates."""
        assert first_value(extract_calibration_date(gauge_text)) == "12-03-2025"
        assert first_value(extract_next_cal_date(gauge_text)) == "12-03-2026"

    def test_slash_date_normalized(self):
        """Test slash-separated dates become dash-separated."""
        assert first_value(extract_calibration_date("DATE OF CALIBRATION: 05/11/2024")) == "05-11-2024"

    def test_partial_date_rejected(self):
        """Test a bare year is not a date."""
        assert extract_calibration_date("DATE OF CALIBRATION: 2024") == []

    def test_location(self, gauge_text):
        """Test labelled location."""
        assert first_value(extract_location(gauge_text)) == "AIR TANK-1 ENGINE ROOM"

    def test_location_fallback(self):
        """Test location found without its label."""
        assert first_value(extract_location("TAG AIR TANK-2 ENGINE ROOM")) == "AIR TANK-2 ENGINE ROOM"

    def test_acceptance_with_oem_clause(self):
        """Test tolerance with the OEM instructions clause."""
        text = "ACCEPTANCE CRITERIA: +/- 3.0 % of SP and as per OEM Instructions UP DOWN"
        assert first_value(extract_acceptance_criteria(text)) == "+/- 3.0 % of SP and as per OEM Instructions"

    def test_acceptance_noise_removed(self):
        """Test table-header noise is stripped from labelled criteria."""
        text = "ACCEPTANCE CRITERIA: WITHIN TOLERANCE UP DOWN REMARKS"
        assert first_value(extract_acceptance_criteria(text)) == "WITHIN TOLERANCE"
