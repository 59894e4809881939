"""Fields computed from other fields and from the results table."""

import re
from typing import Iterable, List, Optional, Sequence, Tuple
import logging

from .records import STATUS_FAIL, STATUS_PASS
from .tables import ExtractionTables, get_tables

logger = logging.getLogger(__name__)

DASH_PATTERN = re.compile(r"[–—]")
NUMBER_RUN_PATTERN = re.compile(r"\d{3,}")


def _clean_range(value: str) -> str:
    return DASH_PATTERN.sub("-", re.sub(r"\s+", "", value))


def collect_document_numbers(
    certificate_no: str = "",
    model_no: str = "",
    dates: Iterable[str] = (),
) -> Tuple[str, ...]:
    """
    Numbers already accounted for elsewhere on the certificate.

    Certificate digits, model number digits and date years are never a
    measurement range, so range candidates containing them are rejected.
    """
    numbers: List[str] = []
    numbers.extend(NUMBER_RUN_PATTERN.findall(certificate_no))
    numbers.extend(NUMBER_RUN_PATTERN.findall(model_no))
    for date in dates:
        if len(date) >= 4 and date[-4:].isdigit():
            numbers.append(date[-4:])
    # Keep order, drop duplicates
    return tuple(dict.fromkeys(numbers))


def is_valid_range(value: str, excluded_numbers: Sequence[str], tables: Optional[ExtractionTables] = None) -> bool:
    """Check a range value against the length limit and excluded numbers."""
    tables = tables or get_tables()
    if not value or len(value) > tables.range_max_length:
        return False
    return not any(number in value for number in excluded_numbers)


def derive_range_and_units(
    text: str,
    equipment_type: str,
    excluded_numbers: Sequence[str] = (),
    tables: Optional[ExtractionTables] = None,
) -> Tuple[str, str]:
    """
    Find the calibrated range and its unit.

    Equipment-specific ranges are tried first (a gauge's full-scale span,
    a relief valve's set pressure), then generic range patterns.

    Args:
        text: Normalized document text
        equipment_type: Extracted equipment type (may be empty)
        excluded_numbers: Document numbers that must not be read as a range
        tables: Extraction tables (defaults to the shared tables)

    Returns:
        Tuple of (range, lower-case unit), both empty if nothing matched
    """
    tables = tables or get_tables()
    equipment = equipment_type.upper()
    exclusions = tuple(tables.range_exclusions) + tuple(excluded_numbers)

    for keyword, pattern in tables.range_shortcuts:
        if keyword in equipment:
            match = pattern.search(text)
            if match:
                return _clean_range(match.group(1)), match.group(2).lower()

    for rule in tables.range_rules:
        for match in rule.pattern.finditer(text):
            value = _clean_range(match.group(1))
            if is_valid_range(value, exclusions, tables):
                return value, match.group(2).lower()
            logger.debug(f"Rejected range candidate {value!r} ({rule.name})")

    return "", ""


def _deviation_values(text: str, tables: ExtractionTables) -> List[float]:
    return [float(value) for value in tables.deviation_pattern.findall(text)]


def derive_max_deviation(text: str, tables: Optional[ExtractionTables] = None) -> str:
    """
    Largest admissible deviation, formatted with two decimals.

    The results table (between the Applied/Measured/Deviation header and
    the next section) is scanned first; if it is missing or its maximum is
    not above zero the whole text is scanned. "0.00" when none is found.
    """
    tables = tables or get_tables()

    region = tables.results_region.search(text)
    if region:
        table_max = max(_deviation_values(region.group(1), tables), default=0.0)
        if table_max > 0:
            return f"{table_max:.2f}"
        logger.debug("Results table holds no non-zero deviation, scanning whole text")

    return f"{max(_deviation_values(text, tables), default=0.0):.2f}"


def determine_status(
    acceptance_criteria: str,
    max_deviation: str,
    tables: Optional[ExtractionTables] = None,
) -> str:
    """
    PASS/FAIL verdict.

    The percentage in the acceptance criteria is compared directly with
    the maximum deviation in pressure units. PASS whenever either side is
    missing or not a number.
    """
    tables = tables or get_tables()
    if not acceptance_criteria or not max_deviation:
        return STATUS_PASS

    match = tables.tolerance_pattern.search(acceptance_criteria)
    if not match:
        return STATUS_PASS

    try:
        allowed = float(match.group(1))
        deviation = float(max_deviation)
    except ValueError:
        logger.debug(f"Unparseable status inputs: {acceptance_criteria!r}, {max_deviation!r}")
        return STATUS_PASS

    return STATUS_PASS if deviation <= allowed else STATUS_FAIL
