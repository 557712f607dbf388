"""
Tests for scope labels and pure scope assignment.
"""

from dataclasses import dataclass
from datetime import datetime

import pytest

from pbdash.features.records.scopes import (
    AllTime,
    Season,
    Year,
    parse_scope_label,
    assign_scopes,
    best_event,
)
from pbdash.shared.constants import MetricType
from pbdash.shared.exceptions import ValidationError
from pbdash.shared.formulas import season_identifier


@dataclass
class Ev:
    results_id: int
    metric_value: int
    achieved_at: datetime
    season_identifier: str = ""

    def __post_init__(self):
        if not self.season_identifier:
            self.season_identifier = season_identifier(self.achieved_at)


# =============================================================================
# Test Labels
# =============================================================================

class TestScopeLabels:

    def test_render(self):
        assert AllTime().label == "all-time"
        assert Season("2025").label == "season-2025"
        assert Year(2024).label == "year-2024"

    @pytest.mark.parametrize("label,expected", [
        ("all-time", AllTime()),
        ("season-2025", Season("2025")),
        ("year-2024", Year(2024)),
    ])
    def test_parse(self, label, expected):
        assert parse_scope_label(label) == expected
        assert parse_scope_label(label).label == label

    @pytest.mark.parametrize("label", ["", "alltime", "season-", "year-20x4", "month-2024-01"])
    def test_parse_rejects_unknown(self, label):
        with pytest.raises(ValidationError):
            parse_scope_label(label)


# =============================================================================
# Test Assignment
# =============================================================================

class TestAssignScopes:

    def test_empty(self):
        assert assign_scopes([], MetricType.TIME) == {}

    def test_two_results_same_season(self):
        """4750 beats 4800: it takes every label, the slower one gets none."""
        slow = Ev(1, 4800, datetime(2024, 2, 1))
        fast = Ev(2, 4750, datetime(2024, 3, 1))

        scopes = assign_scopes([slow, fast], MetricType.TIME)

        assert scopes[2] == ["all-time", "season-2024", "year-2024"]
        assert scopes[1] == []

    def test_exactly_one_all_time_holder(self):
        events = [
            Ev(i, 4700 + (i * 37) % 200, datetime(2020 + i % 5, 1 + i % 12, 1))
            for i in range(1, 40)
        ]

        scopes = assign_scopes(events, MetricType.TIME)

        holders = [rid for rid, labels in scopes.items() if "all-time" in labels]
        assert len(holders) == 1

    def test_distance_metric_higher_wins(self):
        short = Ev(1, 14000, datetime(2024, 1, 5))
        long = Ev(2, 15200, datetime(2024, 1, 6))

        scopes = assign_scopes([short, long], MetricType.DISTANCE)

        assert "all-time" in scopes[2]
        assert scopes[1] == []

    def test_tie_goes_to_earliest(self):
        later = Ev(1, 4800, datetime(2024, 3, 2))
        earlier = Ev(2, 4800, datetime(2024, 3, 1))

        scopes = assign_scopes([later, earlier], MetricType.TIME)

        assert scopes[2] == ["all-time", "season-2024", "year-2024"]
        assert scopes[1] == []

    def test_full_tie_goes_to_lowest_results_id(self):
        when = datetime(2024, 3, 1)
        scopes = assign_scopes([Ev(9, 4800, when), Ev(3, 4800, when)], MetricType.TIME)

        assert "all-time" in scopes[3]
        assert scopes[9] == []

    def test_season_and_year_split(self):
        """Season and calendar year disagree across the May 1 boundary."""
        spring = Ev(1, 4800, datetime(2024, 4, 30))  # season 2024, year 2024
        summer = Ev(2, 4900, datetime(2024, 5, 1))   # season 2025, year 2024
        winter = Ev(3, 4950, datetime(2025, 1, 10))  # season 2025, year 2025

        scopes = assign_scopes([spring, summer, winter], MetricType.TIME)

        assert scopes[1] == ["all-time", "season-2024", "year-2024"]
        assert scopes[2] == ["season-2025"]
        assert scopes[3] == ["year-2025"]

    def test_season_scope_transfer(self):
        """A new season best takes season-X only; other labels stay put."""
        old_best = Ev(1, 4700, datetime(2023, 3, 1))     # all-time holder
        season_holder = Ev(2, 4900, datetime(2024, 6, 1))
        events = [old_best, season_holder]

        before = assign_scopes(events, MetricType.TIME)
        assert before[2] == ["season-2025", "year-2024"]

        newcomer = Ev(3, 4850, datetime(2025, 2, 1))
        after = assign_scopes(events + [newcomer], MetricType.TIME)

        assert after[1] == before[1] == ["all-time", "season-2023", "year-2023"]
        assert after[2] == ["year-2024"]
        assert after[3] == ["season-2025", "year-2025"]

    def test_best_event(self):
        events = [Ev(1, 4800, datetime(2024, 1, 1)), Ev(2, 4700, datetime(2024, 1, 2))]

        assert best_event(events, MetricType.TIME).results_id == 2
        assert best_event(events, MetricType.DISTANCE).results_id == 1
        assert best_event([], MetricType.TIME) is None
