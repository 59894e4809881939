"""Text normalization applied before any field extraction."""

import re
from typing import Optional
import logging

from .tables import ExtractionTables, get_tables

logger = logging.getLogger(__name__)

LINE_BREAK_PATTERN = re.compile(r"\r\n?|\n")
WHITESPACE_PATTERN = re.compile(r"\s+")


def _translate_digits(token: str, digit_map) -> Optional[str]:
    """Apply OCR digit confusions to a token; None if it is still not all digits."""
    translated = "".join(digit_map.get(ch, ch) for ch in token)
    if not translated.isdigit():
        return None
    return translated


def _fix_certificate_tokens(text: str, tables: ExtractionTables) -> str:
    def repair(match: re.Match) -> str:
        digits = _translate_digits(match.group(3), tables.ocr_digit_map)
        if digits is None:
            return match.group(0)
        return f"{match.group(1).upper()}-{match.group(2).upper()}-{digits}"

    return tables.certificate_token.sub(repair, text)


def _fix_date_tokens(text: str, tables: ExtractionTables) -> str:
    def repair(match: re.Match) -> str:
        if not any(ch.isdigit() for ch in match.group(0)):
            return match.group(0)
        parts = [_translate_digits(match.group(i), tables.ocr_digit_map) for i in (1, 3, 4)]
        if None in parts:
            return match.group(0)
        separator = match.group(2)
        return separator.join(parts)

    return tables.date_token.sub(repair, text)


def normalize_text(
    text: str,
    from_ocr: bool = False,
    tables: Optional[ExtractionTables] = None,
) -> str:
    """
    Normalize raw page text into a single searchable line.

    - Line breaks become spaces
    - Whitespace runs collapse to one space
    - Field labels glued to the previous token get a separating space
    - OCR text gets digit fix-ups inside certificate-number and date
      tokens only, never across the whole text

    Args:
        text: Raw page text
        from_ocr: True when the text was produced by OCR
        tables: Extraction tables (defaults to the shared tables)

    Returns:
        Normalized text (empty string for empty input)
    """
    if not text:
        return ""
    tables = tables or get_tables()

    normalized = LINE_BREAK_PATTERN.sub(" ", text)
    normalized = WHITESPACE_PATTERN.sub(" ", normalized)
    normalized = tables.glued_labels.sub(" ", normalized)
    normalized = normalized.strip()

    if from_ocr:
        normalized = _fix_certificate_tokens(normalized, tables)
        normalized = _fix_date_tokens(normalized, tables)

    return normalized
