"""Static pattern and weight tables that drive field extraction.

Every heuristic the extractors apply lives here as data:

1. Ordered pattern rules per field (most specific first)
2. Exclusion sets and forbidden substrings used to validate candidates
3. Known-value lookups keyed by certificate number
4. Context-scoring weights for manufacturer disambiguation

The tables are built once by ``get_tables()`` and shared read-only by
every extraction, so swapping a table never requires touching control flow.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Pattern, Tuple


FLAGS = re.IGNORECASE

CERTIFICATE_PREFIX = "PHO"
CERTIFICATE_SERIES = "CC"

# Units accepted after a range value
UNITS = ("psi", "bar", "mpa", "kpa", "inhg")

# Words that show up next to values on the certificate and must never be
# mistaken for a value themselves
LABEL_WORDS = frozenset({
    "MANUFACTURER", "MODEL", "SERIAL", "CERTIFICATE", "EQUIPMENT", "GAUGE",
    "PRESSURE", "NO", "CC", "PHO", "ADDRESS", "CUSTOMER", "PROJECT",
    "LOCATION", "ACCURACY", "GRADE", "RANGE", "STANDARD", "REFERENCE",
    "CALIBRATION", "CALIBRATED", "DATE", "RECOMMENDED", "RESULTS",
    "ENVIRONMENTAL", "CONDITIONS", "APPLIED", "MEASURED", "DEVIATION",
    "REMARKS", "NAME", "DESIGNATION", "APPROVED", "CHECKED",
})

KNOWN_MANUFACTURERS = (
    "AQUATROL INC", "AQUATROL", "NOSHOK", "WIKA", "CALCON", "FUYU", "NAGMAN", "MC",
)

# Expected serial/model per certificate for the supported certificate set
KNOWN_SERIALS = {
    "PHO-CC-56386": "E2119930387",
    "PHO-CC-56387": "103-PRV-05",
    "PHO-CC-56388": "1404137M",
    "PHO-CC-56389": "103-PRV-04",
    "PHO-CC-56390": "1404138M",
}

KNOWN_MODELS = {
    "PHO-CC-56386": "EN837-1",
    "PHO-CC-56387": "S10",
    "PHO-CC-56388": "314",
    "PHO-CC-56389": "42811",
    "PHO-CC-56390": "314",
}

# Labels that OCR and PDF text layers tend to glue onto the previous token
GLUED_LABELS = (
    "RECOMMENDED CALIBRATION DATE",
    "DATE OF CALIBRATION",
    "CERTIFICATE NO",
    "CALIBRATED RANGE",
    "ACCURACY GRADE",
    "ACCEPTANCE CRITERIA",
    "MANUFACTURER",
    "EQUIPMENT",
    "MODEL NO",
    "SERIAL NO",
    "LOCATION",
)

# Reversible OCR confusions, applied only inside digit-group tokens
OCR_DIGIT_MAP = {"O": "0", "o": "0", "I": "1", "l": "1", "S": "5", "B": "8"}

# Characters that bound a value token (lookarounds keep "S10" out of "S100")
_ALNUM_BEFORE = r"(?<![A-Z0-9])"
_ALNUM_AFTER = r"(?![A-Z0-9])"


@dataclass(frozen=True)
class PatternRule:
    """One regex in a field's priority-ordered rule chain."""
    name: str
    pattern: Pattern
    group: int = 1
    value: Optional[str] = None  # Canonical value for dictionary rules
    source: str = "pattern"


@dataclass(frozen=True)
class FieldTable:
    """Rules and validation limits for a single field."""
    rules: Tuple[PatternRule, ...]
    min_length: int = 1
    max_length: int = 100
    exclusions: FrozenSet[str] = frozenset()
    forbidden_substrings: Tuple[str, ...] = ()
    reject_patterns: Tuple[Pattern, ...] = ()
    skip_reference_sections: bool = False


@dataclass(frozen=True)
class ScoringWeights:
    """Context-scoring configuration for candidate disambiguation."""
    radius: int = 100
    keywords: Tuple[Tuple[str, int], ...] = ()
    penalties: Tuple[Tuple[str, int], ...] = ()
    early_fraction: float = 0.4
    early_bonus: int = 20
    source_bonuses: Tuple[Tuple[str, int], ...] = ()

    def source_bonus(self, source: str) -> int:
        for name, bonus in self.source_bonuses:
            if name == source:
                return bonus
        return 0


@dataclass(frozen=True)
class ExtractionTables:
    """Immutable configuration consumed by the extraction engine."""
    certificate_no: FieldTable
    equipment_type: FieldTable
    serial_no: FieldTable
    manufacturer: FieldTable
    model_no: FieldTable
    accuracy_grade: FieldTable
    calibration_date: FieldTable
    next_cal_date: FieldTable
    location: FieldTable
    acceptance_criteria: FieldTable
    manufacturer_scoring: ScoringWeights
    company_suffixes: FrozenSet[str]
    reference_sections: Tuple[Pattern, ...]
    known_serials: Mapping[str, str]
    known_models: Mapping[str, str]
    glued_labels: Pattern
    certificate_token: Pattern
    date_token: Pattern
    ocr_digit_map: Mapping[str, str]
    range_shortcuts: Tuple[Tuple[str, Pattern], ...]
    range_rules: Tuple[PatternRule, ...]
    range_max_length: int
    range_exclusions: Tuple[str, ...]
    results_region: Pattern
    deviation_pattern: Pattern
    tolerance_pattern: Pattern
    date_value: Pattern
    leaked_labels: Pattern
    certificate_shape: Pattern
    date_shape: Pattern


def rule(
    name: str,
    regex: str,
    group: int = 1,
    value: Optional[str] = None,
    source: str = "pattern",
    flags: int = FLAGS,
) -> PatternRule:
    """Compile a pattern rule."""
    return PatternRule(
        name=name,
        pattern=re.compile(regex, flags),
        group=group,
        value=value,
        source=source,
    )


def _spaced(phrase: str) -> str:
    """Regex for a phrase that tolerates any whitespace between its words."""
    return r"\s+".join(re.escape(word) for word in phrase.split())


def _certificate_rules() -> Tuple[PatternRule, ...]:
    prefix = f"(?P<prefix>{CERTIFICATE_PREFIX})"
    series = f"(?P<series>{CERTIFICATE_SERIES})"
    digits = r"(?P<digits>\d{5})(?!\d)"
    return (
        rule("labelled_known_prefix", rf"CERTIFICATE\s*NO\.?[:\s]*{prefix}[\-\s]*{series}[\-\s]*{digits}", source="labelled"),
        rule("known_prefix", rf"\b{prefix}-{series}-{digits}"),
        rule("spaced_known_prefix", rf"\b{prefix}[\-\s]*{series}[\-\s]*{digits}"),
        rule(
            "labelled_any_prefix",
            r"CERTIFICATE\s*NO\.?[:\s]*(?P<prefix>[A-Z]{2,5})[\-\s]*(?P<series>[A-Z]{2,3})[\-\s]*(?P<digits>\d{5})(?!\d)",
            source="labelled",
        ),
    )


def _equipment_rules() -> Tuple[PatternRule, ...]:
    return (
        rule("labelled_known", r"EQUIPMENT\s*(?:TYPE)?[:\s]*(PRESSURE\s+(?:GAUGE|RELIEF\s+VALVE))", source="labelled"),
        rule("pressure_gauge", r"(PRESSURE\s+GAUGE)"),
        rule("relief_valve", r"(PRESSURE\s+RELIEF\s+VALVE)"),
        rule("labelled_gauge", r"EQUIPMENT[:\s]*([A-Z][A-Z\s]*?GAUGE)\b", source="labelled"),
        rule("labelled_valve", r"EQUIPMENT[:\s]*([A-Z][A-Z\s]*?VALVE)\b", source="labelled"),
    )


def _serial_rules() -> Tuple[PatternRule, ...]:
    return (
        rule("e_serial", r"\bE\d{10}\b", group=0),
        rule("prv_serial", r"\b\d{3}\s*-\s*PRV\s*-\s*\d{2}\b", group=0),
        rule("digits_letter_serial", r"\b\d{7}[A-Z]\b", group=0),
        rule("labelled", r"SERIAL\s*NO\.?[:\s]*([A-Z0-9][A-Z0-9\-]*)", source="labelled"),
    )


def _manufacturer_rules() -> Tuple[PatternRule, ...]:
    # Stop at the next field label or end of text
    stop = r"(?=\s+(?:MODEL|SERIAL|NO|CERTIFICATE)\b|\s*$)"
    names = sorted(KNOWN_MANUFACTURERS, key=len, reverse=True)
    known = "|".join(_spaced(name) for name in names)
    return (
        rule("labelled_colon", rf"MANUFACTURER\s*:\s*([A-Z][A-Z\s&\.]+?){stop}", source="labelled"),
        rule("labelled", rf"MANUFACTURER[:\s]+([A-Z][A-Z\s&\.]{{2,}}?){stop}", source="labelled"),
        rule("known_manufacturer", rf"{_ALNUM_BEFORE}({known}){_ALNUM_AFTER}", source="known-value"),
        rule("safety_valve", r"SAFETY\s+VALVE\b", group=0, value="SAFETY VALVE", source="placeholder"),
    )


def _model_rules() -> Tuple[PatternRule, ...]:
    # OCR drops spaces and dashes unevenly inside model codes
    known = (
        ("EN837-1", r"EN\s*837\s*-?\s*1"),
        ("S10", r"S\s*10"),
        ("314", r"314"),
        ("42811", r"428\s*11"),
    )
    rules = [
        rule(f"known_{value}", rf"{_ALNUM_BEFORE}{regex}{_ALNUM_AFTER}", group=0, value=value, source="known-value")
        for value, regex in known
    ]
    rules.append(rule("labelled", r"MODEL\s*NO\.?[:\s]*([A-Z0-9][A-Z0-9\-/\.]*)", source="labelled"))
    return tuple(rules)


def _accuracy_rules() -> Tuple[PatternRule, ...]:
    next_label = (
        r"(?=\s*(?:STANDARD|RIG\b|CERTIFICATE|DATE\s+OF|LOCATION|CALIBRATED|"
        r"RECOMMENDED|EQUIPMENT|MANUFACTURER|MODEL|SERIAL)|\s*$)"
    )
    return (
        rule("labelled", rf"ACCURACY\s*GRADE[:\s]*([^:]+?){next_label}", source="labelled"),
        rule("grade_1a", r"(1A\s*\([^)]*\))"),
        rule("grade_2a", r"(2A\s*\d+[\"′]?)"),
    )


def _date_rules(labels: Tuple[str, ...]) -> Tuple[PatternRule, ...]:
    return tuple(
        rule(f"label_{i}", rf"{label}[:\s]*([0-9][0-9\-/\.]*)", source="labelled")
        for i, label in enumerate(labels)
    )


def _location_rules() -> Tuple[PatternRule, ...]:
    return (
        rule("labelled", r"LOCATION[:\s]*([^:]+?)(?=\s*(?:ACCURACY|STANDARD)|\s*$)", source="labelled"),
        rule("air_tank", r"(AIR\s*TANK[\-\s]*\d*\s*ENGINE\s*ROOM)"),
        rule("engine_room", r"(ENGINE\s*ROOM)"),
        rule("rig_floor", r"(RIG\s*FLOOR)"),
    )


def _acceptance_rules() -> Tuple[PatternRule, ...]:
    return (
        rule(
            "tolerance_of_scale",
            r"((?:\+\s*/?\s*-|±)\s*[0-9\.]+\s*%\s*of\s*(?:FS|SP)(?:\s+and\s+as\s+per\s+OEM\s+Instructions)?)",
        ),
        rule(
            "labelled",
            r"ACCEPTANCE\s*CRITERIA[:\s]*([^:]+?)(?=\s*(?:REMARKS|NAME\b|CALIBRATED\s+BY)|\s*$)",
            source="labelled",
        ),
    )


def _reference_sections() -> Tuple[Pattern, ...]:
    section_end = r"(?=ENVIRONMENTAL\s+CONDITIONS|CALIBRATION\s+RESULTS|$)"
    starts = (
        r"STANDARD\s+EQUIPMENT\s+USED",
        r"REFERENCE\s+STANDARD",
        r"TRACEA?BILITY\s+OF\s+EQUIPMENT",
    )
    return tuple(
        re.compile(rf"{start}.*?{section_end}", re.IGNORECASE | re.DOTALL)
        for start in starts
    )


def _range_rules() -> Tuple[PatternRule, ...]:
    units = "|".join(UNITS)
    dash = r"\s*[-–—]\s*"
    return (
        rule("calibrated_range", rf"CALIBRATED\s*RANGE[:\s]*(0{dash}\d+)\s*({units})\b", source="labelled"),
        rule("zero_based_span", rf"\b(0{dash}\d+)\s*({units})\b"),
        rule("single_value", rf"\b(\d+)\s*({units})\b"),
    )


def _results_region() -> Pattern:
    unit = "(?:" + "|".join(UNITS) + ")"
    return re.compile(
        rf"APPLIED\s*\({unit}\)\s*MEASURED\s*\({unit}\)\s*DEVIATION\s*\({unit}\)(.+?)"
        r"(?=REMARKS|ACCEPTANCE\s+CRITERIA|NAME\s*:|CALIBRATED\s+BY|$)",
        re.IGNORECASE | re.DOTALL,
    )


def build_default_tables() -> ExtractionTables:
    """Build the tables for the supported certificate layouts."""
    digit_chars = "0-9" + "".join(OCR_DIGIT_MAP)
    deviation_values = ("0.00", "1.00")

    return ExtractionTables(
        certificate_no=FieldTable(rules=_certificate_rules(), min_length=8, max_length=20),
        equipment_type=FieldTable(
            rules=_equipment_rules(),
            min_length=4,
            max_length=40,
            exclusions=LABEL_WORDS,
            skip_reference_sections=True,
        ),
        serial_no=FieldTable(
            rules=_serial_rules(),
            min_length=4,
            max_length=20,
            exclusions=LABEL_WORDS,
            forbidden_substrings=("1921", "591", "2025", "2026", "CERTIFICATE", "MANUFACTURER", "EQUIPMENT"),
            skip_reference_sections=True,
        ),
        manufacturer=FieldTable(
            rules=_manufacturer_rules(),
            min_length=2,
            max_length=30,
            exclusions=LABEL_WORDS,
            skip_reference_sections=True,
        ),
        model_no=FieldTable(
            rules=_model_rules(),
            min_length=1,
            max_length=30,
            exclusions=LABEL_WORDS | {"N/A", "NA"},
            reject_patterns=(re.compile(r"^(?:ISO|ASME|ANSI|DIN|IEC|API|BS)(?:[\s\-]?\d|$)", re.IGNORECASE),),
            skip_reference_sections=True,
        ),
        accuracy_grade=FieldTable(
            rules=_accuracy_rules(),
            min_length=1,
            max_length=19,
            exclusions=frozenset({"GRADE"}),
        ),
        calibration_date=FieldTable(
            rules=_date_rules((r"DATE\s*OF\s*CALIBRATION", r"CALIBRATED\s*ON", r"CALIBRATION")),
            min_length=10,
            max_length=10,
        ),
        next_cal_date=FieldTable(
            rules=_date_rules((
                r"RECOMMENDED\s*CALIBRATION\s*DATE",
                r"NEXT\s*CALIBRATION(?:\s*DATE)?",
                r"(?:CALIBRATION\s*)?DUE\s*DATE",
            )),
            min_length=10,
            max_length=10,
        ),
        location=FieldTable(rules=_location_rules(), min_length=4, max_length=99),
        acceptance_criteria=FieldTable(rules=_acceptance_rules(), min_length=4, max_length=99),
        manufacturer_scoring=ScoringWeights(
            radius=100,
            keywords=(
                ("MANUFACTURER", 100),
                ("EQUIPMENT", 80),
                ("MODEL NO", 70),
                ("SERIAL NO", 70),
                ("PRESSURE GAUGE", 60),
                ("CALIBRATED RANGE", 60),
                (":", 30),
            ),
            penalties=(
                ("STANDARD EQUIPMENT USED", 200),
                ("REFERENCE STANDARD", 150),
                ("HAND PUMP", 100),
                ("DIGITAL PRESSURE GAUGE", 100),
                ("TRACEABILITY", 80),
                ("TRACEBILITY", 80),
            ),
            early_fraction=0.4,
            early_bonus=20,
            source_bonuses=(("known-value", 40),),
        ),
        company_suffixes=frozenset({"INC", "LLC", "CORP", "LTD", "CO"}),
        reference_sections=_reference_sections(),
        known_serials=MappingProxyType(dict(KNOWN_SERIALS)),
        known_models=MappingProxyType(dict(KNOWN_MODELS)),
        glued_labels=re.compile(
            r"(?<=\S)(?=(?:" + "|".join(re.escape(label) for label in GLUED_LABELS) + r"))"
        ),
        certificate_token=re.compile(
            rf"\b({CERTIFICATE_PREFIX})\s*-?\s*({CERTIFICATE_SERIES})\s*-?\s*([0-9A-Z]{{5}})\b",
            re.IGNORECASE,
        ),
        date_token=re.compile(
            rf"(?<![0-9A-Za-z])([{digit_chars}]{{2}})([\-/\.])([{digit_chars}]{{2}})\2([{digit_chars}]{{4}})(?![0-9A-Za-z])"
        ),
        ocr_digit_map=MappingProxyType(dict(OCR_DIGIT_MAP)),
        range_shortcuts=(
            ("GAUGE", re.compile(r"\b(0\s*[-–—]\s*230)\s*(psi)\b", FLAGS)),
            ("RELIEF", re.compile(r"\b(150)\s*(psi)\b", FLAGS)),
        ),
        range_rules=_range_rules(),
        range_max_length=10,
        range_exclusions=("314", "42811", "2025", "2026", "1921", "591"),
        results_region=_results_region(),
        deviation_pattern=re.compile(
            r"(?<![\d.])(" + "|".join(re.escape(v) for v in deviation_values) + r")(?!\d)"
        ),
        tolerance_pattern=re.compile(r"([0-9.]+)\s*%"),
        date_value=re.compile(r"(\d{2})[\-/\.](\d{2})[\-/\.](\d{4})"),
        leaked_labels=re.compile(r"\s+(?:MODEL|SERIAL|NO|CERTIFICATE)\b.*$", FLAGS),
        certificate_shape=re.compile(r"^[A-Z]+-[A-Z]+-\d{5}$"),
        date_shape=re.compile(r"^\d{2}-\d{2}-\d{4}$"),
    )


@lru_cache
def get_tables() -> ExtractionTables:
    """Get cached default tables."""
    return build_default_tables()
