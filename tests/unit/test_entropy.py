"""Tests for entropy and encoding analysis."""

from __future__ import annotations

import math

import pytest

from keysentry.core.entropy import (
    WARN_LOW_ENTROPY,
    WARN_VERY_LOW_ENTROPY,
    WARN_VERY_SHORT,
    Encoding,
    analyze_entropy,
    detect_encoding,
    entropy_warning,
    shannon_entropy,
)


class TestShannonEntropy:
    """Tests for shannon_entropy."""

    def test_empty_is_zero(self):
        assert shannon_entropy("") == 0.0
        assert shannon_entropy(b"") == 0.0

    def test_single_symbol_is_zero(self):
        assert shannon_entropy("aaaaaaaaaa") == 0.0
        assert shannon_entropy(b"\x00" * 16) == 0.0

    def test_not_negative_zero(self):
        assert math.copysign(1.0, shannon_entropy("zzzz")) == 1.0

    def test_two_symbols_equal_frequency(self):
        assert shannon_entropy("abababab") == pytest.approx(1.0)

    def test_distinct_symbols(self):
        assert shannon_entropy("0123456789abcdef") == pytest.approx(4.0)

    def test_positive_for_mixed_input(self):
        assert shannon_entropy("ab") > 0


class TestDetectEncoding:
    """Tests for detect_encoding rule order."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("deadbeef0123", Encoding.HEX),
            ("DEADBEEF", Encoding.HEX),
            ("aGVsbG8gd29ybGQ=", Encoding.BASE64),
            ("ab+cd/ef", Encoding.BASE64),
            ("AbCdEfGhXyZ123", Encoding.BASE62),
            ("sk_live_abc-def", Encoding.ALPHANUMERIC),
            ("p@ss word!", Encoding.MIXED),
        ],
    )
    def test_detect(self, value, expected):
        assert detect_encoding(value) is expected

    def test_hex_wins_over_base62(self):
        """Pure hex is reported as hex even though it is also base62."""
        assert detect_encoding("0123456789") is Encoding.HEX


class TestEntropyWarning:
    """Tests for warning thresholds."""

    def test_very_short(self):
        assert entropy_warning(5.0, 7) == WARN_VERY_SHORT

    def test_very_low(self):
        assert entropy_warning(2.4, 30) == WARN_VERY_LOW_ENTROPY

    def test_low_and_short(self):
        assert entropy_warning(3.0, 19) == WARN_LOW_ENTROPY

    def test_low_but_long_has_no_warning(self):
        assert entropy_warning(3.0, 20) is None

    def test_high_entropy_has_no_warning(self):
        assert entropy_warning(4.5, 32) is None


class TestAnalyzeEntropy:
    """Tests for analyze_entropy."""

    def test_repeated_character(self):
        profile = analyze_entropy("aaaaaaaaaa")

        assert profile.shannon_entropy == 0.0
        assert profile.length == 10
        assert profile.encoding is Encoding.HEX
        assert profile.warning == WARN_VERY_LOW_ENTROPY

    def test_trims_whitespace(self):
        profile = analyze_entropy("  abcdef0123456789\n")
        assert profile.length == 16

    def test_normalized_entropy(self):
        profile = analyze_entropy("0123456789abcdef")

        assert profile.max_possible_entropy == 4.0
        assert profile.normalized_entropy == 1.0

    def test_accepts_bytes(self):
        assert analyze_entropy(b"0123456789abcdef").shannon_entropy == 4.0

    def test_empty_input(self):
        profile = analyze_entropy("")

        assert profile.shannon_entropy == 0.0
        assert profile.length == 0
        assert profile.warning == WARN_VERY_SHORT

    def test_exact_entropy_is_unrounded(self):
        profile = analyze_entropy("abc")

        assert profile.shannon_entropy == 1.585
        assert profile.exact_entropy == pytest.approx(math.log2(3))
        assert profile.exact_entropy != profile.shannon_entropy
