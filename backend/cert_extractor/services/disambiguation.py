"""Candidate scoring and selection.

Some fields (manufacturer above all) have several plausible matches on a
page: the device's own manufacturer in the header and the reference
gauge's manufacturer in the "standard equipment used" block. Candidates
are scored on the keywords around them and the best one is picked with a
deterministic tie-break.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging

from .tables import ExtractionTables, ScoringWeights

logger = logging.getLogger(__name__)

Span = Tuple[int, int]


@dataclass(frozen=True)
class Candidate:
    """A possible value for a field, with where and how it was found."""
    value: str
    offset: int
    pattern: str
    source: str = "pattern"

    @property
    def is_known_value(self) -> bool:
        return self.source == "known-value"


@dataclass(frozen=True)
class ScoredCandidate:
    """Candidate with its context score."""
    candidate: Candidate
    score: int


def find_reference_spans(text: str, tables: ExtractionTables) -> Tuple[Span, ...]:
    """
    Locate reference-equipment blocks in the text.

    These blocks describe the calibration standard (reference gauge, hand
    pump) rather than the device under test. Span ends are inclusive.
    """
    spans = []
    for pattern in tables.reference_sections:
        for match in pattern.finditer(text):
            spans.append((match.start(), match.end()))
    return tuple(sorted(spans))


def in_reference_section(offset: int, spans: Sequence[Span]) -> bool:
    """Check whether an offset falls inside any reference block."""
    return any(start <= offset <= end for start, end in spans)


def context_window(text: str, offset: int, radius: int) -> str:
    """Upper-cased text within ``radius`` characters of an offset."""
    start = max(0, offset - radius)
    return text[start:offset + radius].upper()


def score_candidate(candidate: Candidate, text: str, weights: ScoringWeights) -> int:
    """
    Score a candidate from the keywords surrounding it.

    Args:
        candidate: Candidate to score
        text: Normalized document text the candidate was found in
        weights: Keyword weights, penalties and bonuses

    Returns:
        Integer score; only positive scores are eligible for selection
    """
    window = context_window(text, candidate.offset, weights.radius)
    score = 0

    for keyword, weight in weights.keywords:
        if keyword in window:
            score += weight
    for keyword, penalty in weights.penalties:
        if keyword in window:
            score -= penalty

    if candidate.offset < len(text) * weights.early_fraction:
        score += weights.early_bonus

    score += weights.source_bonus(candidate.source)
    return score


def select_best(scored: Sequence[ScoredCandidate]) -> Optional[Candidate]:
    """
    Pick the winning candidate.

    Non-positive scores are dropped; the rest are ordered by score
    (descending) then offset (ascending), so equal scores resolve to the
    earlier candidate.
    """
    eligible = [s for s in scored if s.score > 0]
    if not eligible:
        return None
    eligible.sort(key=lambda s: (-s.score, s.candidate.offset))
    return eligible[0].candidate


def choose_candidate(
    candidates: Sequence[Candidate],
    text: str,
    weights: ScoringWeights,
) -> Optional[Candidate]:
    """Score candidates against the text and return the best one, if any."""
    scored: List[ScoredCandidate] = [
        ScoredCandidate(candidate=c, score=score_candidate(c, text, weights))
        for c in candidates
    ]
    for item in scored:
        logger.debug(
            f"Candidate '{item.candidate.value}' at {item.candidate.offset} "
            f"({item.candidate.pattern}) scored {item.score}"
        )
    return select_best(scored)
