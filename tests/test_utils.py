"""Tests for shared utility functions."""

from eleganza_booking.utils import normalize_phone, slots_needed


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("5555 1234") == "55551234"

    def test_strips_dashes(self):
        assert normalize_phone("5555-1234") == "55551234"

    def test_strips_parentheses(self):
        assert normalize_phone("(502) 5555 1234") == "50255551234"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+502 5555 1234") == "+50255551234"

    def test_clean_number_unchanged(self):
        assert normalize_phone("55551234") == "55551234"

    def test_strips_whitespace(self):
        assert normalize_phone("  55551234  ") == "55551234"


class TestSlotsNeeded:
    def test_exact_multiple(self):
        assert slots_needed(90, 30) == 3

    def test_partial_slot_rounds_up(self):
        assert slots_needed(45, 30) == 2

    def test_single_minute_needs_one_slot(self):
        assert slots_needed(1, 30) == 1

    def test_zero_duration_needs_none(self):
        assert slots_needed(0, 30) == 0

    def test_negative_duration_needs_none(self):
        assert slots_needed(-15, 30) == 0
