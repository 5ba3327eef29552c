"""
Unit tests for rating scales and unit conversions.

The 1-5 / 1-10 conversions are deliberately not inverses of each other;
the asymmetric cases are pinned here.
"""

import math

import pytest

from suivi_natation.core.training.scales import (
    km_to_meters,
    meters_to_km,
    round_half_up,
    safe_int,
    safe_optional_int,
    to_five_scale,
    to_ten_scale,
)


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

class TestRoundHalfUp:
    """Halves always go up, unlike the built-in round()."""

    @pytest.mark.parametrize("value, expected", [(4.5, 5), (2.5, 3), (3.49, 3), (0.5, 1)])
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected


# ---------------------------------------------------------------------------
# Rating scales
# ---------------------------------------------------------------------------

class TestFiveScale:
    """Normalization of ratings to 1-5."""

    def test_five_scale_values_pass_through(self):
        assert to_five_scale(3) == 3

    def test_ten_scale_values_are_halved(self):
        assert to_five_scale(8) == 4
        assert to_five_scale(10) == 5

    def test_odd_ten_scale_values_round_up(self):
        assert to_five_scale(7) == 4

    def test_floor_is_one(self):
        assert to_five_scale(0) == 1

    @pytest.mark.parametrize("value", [None, "abc", math.nan, math.inf])
    def test_unusable_input_is_none(self, value):
        assert to_five_scale(value) is None


class TestTenScale:
    """Expansion of ratings to 1-10."""

    def test_five_scale_values_double(self):
        assert to_ten_scale(3) == 6

    def test_ten_scale_values_pass_through(self):
        assert to_ten_scale(9) == 9

    def test_conversion_is_lossy_on_odd_values(self):
        """7 on the 10-scale comes back as 8 after a round trip."""
        assert to_ten_scale(to_five_scale(7)) == 8


# ---------------------------------------------------------------------------
# Distances and coercions
# ---------------------------------------------------------------------------

class TestDistances:

    def test_meters_to_km_keeps_two_decimals(self):
        assert meters_to_km(1234) == 1.23
        assert meters_to_km(2500) == 2.5

    def test_km_to_meters(self):
        assert km_to_meters(1.5) == 1500

    def test_missing_distance_is_none(self):
        assert meters_to_km(None) is None


class TestCoercions:

    def test_safe_int_falls_back(self):
        assert safe_int("12") == 12
        assert safe_int("x", fallback=7) == 7
        assert safe_int(None) == 0

    def test_booleans_are_not_numbers(self):
        assert safe_optional_int(True) is None


class TestScaleRoundTrip:
    """Going to the 10-scale and back."""

    @pytest.mark.parametrize("value, expected", [(1, 2), (2, 4), (3, 3), (4, 4), (5, 5)])
    def test_five_to_ten_and_back(self, value, expected):
        """1 and 2 double to values still read as 1-5 ratings."""
        assert to_five_scale(to_ten_scale(value)) == expected

    @pytest.mark.parametrize("value", range(1, 11))
    def test_five_scale_stays_in_range(self, value):
        assert 1 <= to_five_scale(value) <= 5

    @pytest.mark.parametrize("value", [1, 2, 3, 4, 6, 7, 8, 9])
    def test_five_scale_never_decreases_within_a_band(self, value):
        """1-5 and 6-10 are read as different scales; 5 -> 5 but 6 -> 3."""
        assert to_five_scale(value) <= to_five_scale(value + 1)

    def test_band_boundary(self):
        assert (to_five_scale(5), to_five_scale(6)) == (5, 3)
