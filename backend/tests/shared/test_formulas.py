"""
Tests for shared formulas module.

Pace, season identifier and time formatting.
"""

from datetime import date, datetime

import pytest

from pbdash.shared.formulas import pace_per_500m, season_identifier, format_tenths


# =============================================================================
# Test Pace per 500m
# =============================================================================

class TestPacePer500m:
    """Tests for pace_per_500m function."""

    def test_documented_example(self):
        """12000 tenths over 2000m is a 1:30.0 pace (300 tenths)."""
        assert pace_per_500m(12000, 2000) == 300

    def test_rounds_to_nearest_tenth(self):
        # 4801 * 50 / 2000 = 120.025
        assert pace_per_500m(4801, 2000) == 120

    def test_zero_distance(self):
        assert pace_per_500m(4800, 0) is None

    def test_negative_distance(self):
        assert pace_per_500m(4800, -100) is None

    @pytest.mark.parametrize("time_tenths,distance,expected", [
        (4800, 2000, 120),
        (36000, 15000, 120),
        (1000, 500, 100),
    ])
    def test_examples(self, time_tenths, distance, expected):
        assert pace_per_500m(time_tenths, distance) == expected


# =============================================================================
# Test Season Identifier
# =============================================================================

class TestSeasonIdentifier:
    """Seasons run May 1 - April 30 and are named by their end year."""

    def test_april_30_belongs_to_current_year(self):
        assert season_identifier(date(2025, 4, 30)) == "2025"

    def test_may_1_belongs_to_next_year(self):
        assert season_identifier(date(2025, 5, 1)) == "2026"

    def test_boundary_with_datetimes(self):
        assert season_identifier(datetime(2025, 4, 30, 23, 59, 59)) == "2025"
        assert season_identifier(datetime(2025, 5, 1, 0, 0, 0)) == "2026"

    def test_january(self):
        assert season_identifier(date(2024, 1, 1)) == "2024"

    def test_december(self):
        assert season_identifier(date(2024, 12, 31)) == "2025"


# =============================================================================
# Test Time Formatting
# =============================================================================

class TestFormatTenths:

    def test_minutes(self):
        assert format_tenths(4800) == "8:00.0"

    def test_tenths_kept(self):
        assert format_tenths(1234) == "2:03.4"

    def test_hours(self):
        assert format_tenths(36000) == "1:00:00.0"
