"""Tests for constants module."""
from core_extractor.constants import (
    EXIT_ERROR,
    EXIT_ISSUES,
    EXIT_SUCCESS,
    LEGAL_DISCLAIMER,
    LICENSED_THRESHOLD,
)


class TestLegalDisclaimer:
    """Tests for LEGAL_DISCLAIMER constant."""

    def test_disclaimer_is_non_empty(self) -> None:
        """Test LEGAL_DISCLAIMER is a non-empty string."""
        assert isinstance(LEGAL_DISCLAIMER, str)
        assert len(LEGAL_DISCLAIMER) > 0

    def test_disclaimer_contains_not_legal_advice(self) -> None:
        """Test LEGAL_DISCLAIMER contains 'not' and 'legal advice'."""
        disclaimer_lower = LEGAL_DISCLAIMER.lower()
        assert "not" in disclaimer_lower
        assert "legal advice" in disclaimer_lower


class TestThresholds:
    """Tests for classification and exit code constants."""

    def test_licensed_threshold(self) -> None:
        """Test that the licensed threshold is 95% similarity."""
        assert LICENSED_THRESHOLD == 0.95

    def test_exit_codes_distinct(self) -> None:
        """Test that exit codes are distinct and ordered by severity."""
        assert EXIT_SUCCESS < EXIT_ISSUES < EXIT_ERROR
