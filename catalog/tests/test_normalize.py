"""Tests for cell normalization helpers."""

import math

import pytest

from catalog.normalize import extract_number, is_truthy_flag, normalize, normalize_lower, split_tags


class TestNormalize:
    def test_none_becomes_empty(self):
        assert normalize(None) == ""

    def test_nan_becomes_empty(self):
        assert normalize(float("nan")) == ""

    def test_strips_whitespace(self):
        assert normalize("  Acme \t") == "Acme"

    def test_numbers_are_stringified(self):
        assert normalize(42) == "42"

    def test_lower(self):
        assert normalize_lower("  Blue ") == "blue"


class TestExtractNumber:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("£1,999.00", 1999.0),
            ("1999", 1999.0),
            ("500 Wh", 500.0),
            ("  85Nm", 85.0),
            ("-12.5", -12.5),
            ("approx 24.5 kg", 24.5),
            ("1,234,567", 1234567.0),
        ],
    )
    def test_extracts_first_numeric_token(self, raw, expected):
        assert extract_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "N/A", None, "£"])
    def test_no_number_gives_none(self, raw):
        assert extract_number(raw) is None

    def test_numbers_pass_through(self):
        assert extract_number(750) == 750.0
        assert extract_number(2.5) == 2.5

    def test_non_finite_numbers_are_none(self):
        assert extract_number(float("nan")) is None
        assert extract_number(math.inf) is None

    def test_bool_is_not_a_number(self):
        assert extract_number(True) is None


class TestFlagsAndTags:
    @pytest.mark.parametrize("raw", ["true", "TRUE", " True "])
    def test_truthy(self, raw):
        assert is_truthy_flag(raw) is True

    @pytest.mark.parametrize("raw", ["false", "", None, "yes", "1"])
    def test_not_truthy(self, raw):
        assert is_truthy_flag(raw) is False

    def test_split_tags_trims_and_lowercases(self):
        assert split_tags("Commuting, Leisure ,,touring") == ["commuting", "leisure", "touring"]

    def test_split_tags_empty(self):
        assert split_tags(None) == []
        assert split_tags("") == []
