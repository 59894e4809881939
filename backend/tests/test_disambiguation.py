"""Tests for candidate scoring and reference-section detection."""

from cert_extractor.services.disambiguation import (
    Candidate,
    ScoredCandidate,
    choose_candidate,
    context_window,
    find_reference_spans,
    in_reference_section,
    score_candidate,
    select_best,
)
from cert_extractor.services.tables import get_tables


class TestReferenceSpans:
    """Test detection of reference-equipment blocks."""

    def test_block_ends_at_environmental_conditions(self):
        """Test the block stops before the environmental conditions."""
        text = "HEADER STANDARD EQUIPMENT USED HAND PUMP WIKA ENVIRONMENTAL CONDITIONS 25 C"
        spans = find_reference_spans(text, get_tables())

        assert len(spans) == 1
        start, end = spans[0]
        assert start == text.index("STANDARD")
        assert end == text.index("ENVIRONMENTAL")

    def test_unterminated_block_runs_to_end(self):
        """Test a block without a terminator extends to the end of text."""
        text = "REFERENCE STANDARD DIGITAL GAUGE CPG500"
        assert find_reference_spans(text, get_tables()) == ((0, len(text)),)

    def test_no_blocks(self):
        """Test text without reference blocks."""
        assert find_reference_spans("MANUFACTURER : WIKA", get_tables()) == ()

    def test_span_bounds_inclusive(self):
        """Test both span ends count as inside."""
        spans = ((10, 20),)
        assert in_reference_section(10, spans)
        assert in_reference_section(20, spans)
        assert not in_reference_section(9, spans)
        assert not in_reference_section(21, spans)


class TestScoring:
    """Test context scoring of candidates."""

    def test_context_window_clipped_at_start(self):
        """Test the window never starts before the text."""
        assert context_window("abc def", 2, 100) == "ABC DEF"

    def test_labelled_known_value(self):
        """Test label, colon and dictionary bonuses add up."""
        text = "MANUFACTURER : WIKA"
        candidate = Candidate("WIKA", 15, "known_manufacturer", "known-value")
        # MANUFACTURER 100 + colon 30 + known value 40, not in the first 40%
        assert score_candidate(candidate, text, get_tables().manufacturer_scoring) == 170

    def test_early_bonus_only(self):
        """Test a bare candidate near the top earns only the position bonus."""
        text = "WIKA " + "x" * 100
        candidate = Candidate("WIKA", 0, "labelled")
        assert score_candidate(candidate, text, get_tables().manufacturer_scoring) == 20

    def test_reference_context_penalized(self):
        """Test a candidate next to reference-equipment wording scores below zero."""
        text = "STANDARD EQUIPMENT USED HAND PUMP WIKA"
        candidate = Candidate("WIKA", text.index("WIKA"), "known_manufacturer", "known-value")
        assert score_candidate(candidate, text, get_tables().manufacturer_scoring) < 0


class TestSelection:
    """Test winner selection."""

    def test_highest_score_wins(self):
        """Test the best score is selected."""
        low = Candidate("NOSHOK", 5, "labelled")
        high = Candidate("WIKA", 50, "labelled")
        result = select_best([ScoredCandidate(low, 30), ScoredCandidate(high, 90)])
        assert result == high

    def test_tie_goes_to_earlier_offset(self):
        """Test equal scores resolve to the earlier candidate."""
        later = Candidate("WIKA", 80, "labelled")
        earlier = Candidate("NOSHOK", 12, "labelled")
        result = select_best([ScoredCandidate(later, 60), ScoredCandidate(earlier, 60)])
        assert result == earlier

    def test_non_positive_scores_dropped(self):
        """Test nothing is selected when every score is zero or negative."""
        candidates = [
            ScoredCandidate(Candidate("WIKA", 0, "labelled"), 0),
            ScoredCandidate(Candidate("FUYU", 9, "labelled"), -40),
        ]
        assert select_best(candidates) is None

    def test_choose_candidate_prefers_header_over_reference(self):
        """Test the device manufacturer beats the reference gauge manufacturer."""
        text = (
            "EQUIPMENT : PRESSURE GAUGE MANUFACTURER : NOSHOK MODEL NO: 314 "
            "STANDARD EQUIPMENT USED DIGITAL PRESSURE GAUGE WIKA"
        )
        header = Candidate("NOSHOK", text.index("NOSHOK"), "known_manufacturer", "known-value")
        reference = Candidate("WIKA", text.index("WIKA"), "known_manufacturer", "known-value")

        chosen = choose_candidate([reference, header], text, get_tables().manufacturer_scoring)
        assert chosen == header

    def test_choose_candidate_empty(self):
        """Test no candidates gives no choice."""
        assert choose_candidate([], "TEXT", get_tables().manufacturer_scoring) is None
