"""Known-value overrides keyed by certificate number.

For certificates in the supported set the expected serial and model are
known in advance. When the certificate number is recognized and the
expected value actually appears in the text (exactly, or with the usual
OCR digit/letter confusions), it wins over any generic pattern.
"""

import re
from typing import Dict, Mapping, Optional, Pattern, Tuple
import logging

logger = logging.getLogger(__name__)

# Characters OCR commonly swaps for one another
CONFUSABLE_CHARS = {
    "0": "0O", "O": "O0",
    "1": "1IL", "I": "I1L", "L": "L1I",
    "5": "5S", "S": "S5",
    "8": "8B", "B": "B8",
    "2": "2Z", "Z": "Z2",
}

_BEFORE = r"(?<![A-Z0-9])"
_AFTER = r"(?![A-Z0-9])"


def exact_pattern(value: str) -> Pattern:
    """Case-insensitive pattern for the value as a standalone token."""
    return re.compile(f"{_BEFORE}{re.escape(value)}{_AFTER}", re.IGNORECASE)


def fuzzy_pattern(value: str) -> Pattern:
    """
    Pattern tolerating OCR confusions in a known value.

    Each confusable character becomes a small character class and dashes
    may be spaced or missing, e.g. ``103-PRV-05`` also matches ``1O3 PRV 05``.
    """
    parts = []
    for ch in value.upper():
        if ch == "-":
            parts.append(r"[\-\s]*")
        elif ch in CONFUSABLE_CHARS:
            parts.append(f"[{CONFUSABLE_CHARS[ch]}]")
        else:
            parts.append(re.escape(ch))
    return re.compile(f"{_BEFORE}{''.join(parts)}{_AFTER}", re.IGNORECASE)


class KnownValueOverride:
    """Anchor-keyed lookup confirmed against the document text."""

    def __init__(self, field_name: str, known_values: Mapping[str, str]):
        self.field_name = field_name
        self._patterns: Dict[str, Tuple[str, Pattern, Pattern]] = {
            anchor: (value, exact_pattern(value), fuzzy_pattern(value))
            for anchor, value in known_values.items()
        }

    def lookup(self, anchor: str, text: str) -> Optional[str]:
        """
        Return the expected value for an anchor if it appears in the text.

        Args:
            anchor: Extracted certificate number (may be empty)
            text: Normalized document text

        Returns:
            The canonical known value, or None to fall through to extraction
        """
        if not anchor or anchor not in self._patterns:
            return None

        value, exact, fuzzy = self._patterns[anchor]
        if exact.search(text):
            logger.info(f"Known {self.field_name} for {anchor}: {value}")
            return value
        if fuzzy.search(text):
            logger.info(f"Known {self.field_name} for {anchor} (fuzzy match): {value}")
            return value

        logger.debug(f"Known {self.field_name} {value} for {anchor} not present in text")
        return None
