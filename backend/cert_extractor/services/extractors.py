"""Per-field candidate extractors.

Each extractor is a pure function of the normalized text. It runs the
field's rule chain from ``tables.py`` in priority order and returns every
candidate that survives validation, ordered by rule and then by position
in the document. Callers take the first candidate, or hand the list to
the disambiguator when a field has competing matches.
"""

import re
from typing import Callable, Iterator, List, Optional, Sequence, Tuple
import logging

from .disambiguation import Candidate, Span, find_reference_spans, in_reference_section
from .tables import ExtractionTables, FieldTable, PatternRule, get_tables

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")
CRITERIA_NOISE_PATTERN = re.compile(r"\b(?:UP\s+DOWN|REMARKS)\b", re.IGNORECASE)

ValueBuilder = Callable[[PatternRule, re.Match], Optional[str]]


def collapse(value: str) -> str:
    """Collapse whitespace runs and trim."""
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def is_acceptable(value: str, table: FieldTable) -> bool:
    """Check a candidate value against a field's validation limits."""
    if not table.min_length <= len(value) <= table.max_length:
        return False
    upper = value.upper()
    if upper in table.exclusions:
        return False
    if any(fragment in upper for fragment in table.forbidden_substrings):
        return False
    if any(pattern.search(value) for pattern in table.reject_patterns):
        return False
    return True


def first_value(candidates: Sequence[Candidate], default: str = "") -> str:
    """Value of the highest-priority candidate."""
    return candidates[0].value if candidates else default


def _iter_matches(
    text: str,
    table: FieldTable,
    reference_spans: Sequence[Span],
) -> Iterator[Tuple[PatternRule, re.Match]]:
    for rule in table.rules:
        for match in rule.pattern.finditer(text):
            if table.skip_reference_sections and in_reference_section(match.start(), reference_spans):
                logger.debug(f"Skipping '{match.group(0)}' inside reference section ({rule.name})")
                continue
            yield rule, match


def _raw_value(rule: PatternRule, match: re.Match) -> Optional[str]:
    if rule.value is not None:
        return rule.value
    return match.group(rule.group)


def _collect(
    field_name: str,
    text: str,
    table: FieldTable,
    tables: ExtractionTables,
    reference_spans: Optional[Sequence[Span]],
    build: ValueBuilder,
    validate: Optional[Callable[[str, PatternRule], bool]] = None,
) -> List[Candidate]:
    """Run a field's rule chain and keep the candidates that validate."""
    if reference_spans is None:
        reference_spans = find_reference_spans(text, tables) if table.skip_reference_sections else ()

    candidates = []
    for rule, match in _iter_matches(text, table, reference_spans):
        value = build(rule, match)
        if not value or not is_acceptable(value, table):
            logger.debug(f"Rejected {field_name} candidate {value!r} ({rule.name})")
            continue
        if validate is not None and not validate(value, rule):
            logger.debug(f"Rejected {field_name} candidate {value!r} ({rule.name})")
            continue
        candidates.append(Candidate(value=value, offset=match.start(), pattern=rule.name, source=rule.source))
    return candidates


def _upper_value(rule: PatternRule, match: re.Match) -> Optional[str]:
    raw = _raw_value(rule, match)
    return collapse(raw).upper() if raw else None


def _plain_value(rule: PatternRule, match: re.Match) -> Optional[str]:
    raw = _raw_value(rule, match)
    return collapse(raw) if raw else None


def extract_certificate_no(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    """Certificate number candidates, rebuilt as PREFIX-SERIES-DIGITS."""
    tables = tables or get_tables()

    def build(rule: PatternRule, match: re.Match) -> Optional[str]:
        parts = match.groupdict()
        if not parts.get("digits"):
            return None
        return f"{parts['prefix']}-{parts['series']}-{parts['digits']}".upper()

    return _collect("certificate_no", text, tables.certificate_no, tables, reference_spans, build)


def extract_equipment_type(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    tables = tables or get_tables()
    return _collect("equipment_type", text, tables.equipment_type, tables, reference_spans, _upper_value)


def extract_serial_no(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    """Serial number candidates; OCR spacing inside the serial is removed."""
    tables = tables or get_tables()

    def build(rule: PatternRule, match: re.Match) -> Optional[str]:
        raw = _raw_value(rule, match)
        return WHITESPACE_PATTERN.sub("", raw).upper() if raw else None

    return _collect("serial_no", text, tables.serial_no, tables, reference_spans, build)


def is_valid_company_name(name: str, tables: Optional[ExtractionTables] = None) -> bool:
    """
    Check that a labelled manufacturer value looks like a company name.

    Rejects field-label words, and a legal suffix (INC, LLC, ...) must
    follow a real name of at least three characters.
    """
    tables = tables or get_tables()
    upper = collapse(name).upper()
    if not 2 <= len(upper) <= 30 or upper in tables.manufacturer.exclusions:
        return False

    words = upper.split()
    if len(words) > 1 and words[-1].rstrip(".") in tables.company_suffixes:
        main = " ".join(words[:-1])
        return len(main) >= 3 and main not in tables.manufacturer.exclusions
    return True


def extract_manufacturer(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    """
    Manufacturer candidates from labels, the known-name dictionary and the
    safety-valve placeholder. Candidates inside reference-equipment blocks
    are dropped; selection among the rest is left to the disambiguator.
    """
    tables = tables or get_tables()

    def validate(value: str, rule: PatternRule) -> bool:
        if rule.source != "labelled":
            return True
        return is_valid_company_name(value, tables)

    return _collect(
        "manufacturer", text, tables.manufacturer, tables, reference_spans, _upper_value, validate
    )


def extract_model_no(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    tables = tables or get_tables()
    return _collect("model_no", text, tables.model_no, tables, reference_spans, _upper_value)


def extract_accuracy_grade(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    tables = tables or get_tables()
    return _collect("accuracy_grade", text, tables.accuracy_grade, tables, reference_spans, _plain_value)


def _date_builder(tables: ExtractionTables) -> ValueBuilder:
    def build(rule: PatternRule, match: re.Match) -> Optional[str]:
        raw = _raw_value(rule, match) or ""
        found = tables.date_value.search(raw)
        if not found:
            return None
        day, month, year = found.groups()
        return f"{day}-{month}-{year}"

    return build


def extract_calibration_date(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    """Calibration date candidates in DD-MM-YYYY form."""
    tables = tables or get_tables()
    return _collect(
        "calibration_date", text, tables.calibration_date, tables, reference_spans, _date_builder(tables)
    )


def extract_next_cal_date(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    """Next (recommended) calibration date candidates in DD-MM-YYYY form."""
    tables = tables or get_tables()
    return _collect(
        "next_cal_date", text, tables.next_cal_date, tables, reference_spans, _date_builder(tables)
    )


def extract_location(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    tables = tables or get_tables()
    return _collect("location", text, tables.location, tables, reference_spans, _upper_value)


def extract_acceptance_criteria(
    text: str,
    tables: Optional[ExtractionTables] = None,
    reference_spans: Optional[Sequence[Span]] = None,
) -> List[Candidate]:
    """Acceptance criteria candidates with table-header noise removed."""
    tables = tables or get_tables()

    def build(rule: PatternRule, match: re.Match) -> Optional[str]:
        raw = _raw_value(rule, match)
        if not raw:
            return None
        return collapse(CRITERIA_NOISE_PATTERN.sub(" ", raw))

    return _collect(
        "acceptance_criteria", text, tables.acceptance_criteria, tables, reference_spans, build
    )
