"""
Record scopes.

A scope is the grouping a record is best within:

    AllTime          -> "all-time"
    Season("2025")   -> "season-2025"   (May 1, 2024 - April 30, 2025)
    Year(2024)       -> "year-2024"     (calendar year of achieved_at)

assign_scopes() is pure: give it every event of one activity and it
returns the labels each event wins. Ties go to the earliest achieved_at,
then the lowest results_id.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Hashable, Iterable, Protocol, Union

from pbdash.shared.constants import MetricType
from pbdash.shared.exceptions import ValidationError

ALL_TIME_LABEL = "all-time"
SEASON_PREFIX = "season-"
YEAR_PREFIX = "year-"


@dataclass(frozen=True)
class AllTime:
    @property
    def label(self) -> str:
        return ALL_TIME_LABEL


@dataclass(frozen=True)
class Season:
    id: str

    @property
    def label(self) -> str:
        return f"{SEASON_PREFIX}{self.id}"


@dataclass(frozen=True)
class Year:
    year: int

    @property
    def label(self) -> str:
        return f"{YEAR_PREFIX}{self.year}"


ScopeLabel = Union[AllTime, Season, Year]


def parse_scope_label(label: str) -> ScopeLabel:
    """
    Parse a stored or requested label.

    Raises:
        ValidationError: If the label is not one of the three forms
    """
    if label == ALL_TIME_LABEL:
        return AllTime()
    if label.startswith(SEASON_PREFIX):
        season_id = label[len(SEASON_PREFIX):]
        if season_id.isdigit():
            return Season(season_id)
    if label.startswith(YEAR_PREFIX):
        year = label[len(YEAR_PREFIX):]
        if year.isdigit():
            return Year(int(year))
    raise ValidationError(f"Unknown scope label: {label!r}")


class ScopedEvent(Protocol):
    """What scope assignment needs to know about an event."""
    results_id: int
    metric_value: int
    achieved_at: datetime
    season_identifier: str


def _rank_key(metric_type: MetricType) -> Callable[[ScopedEvent], tuple]:
    if metric_type.lower_is_better:
        return lambda e: (e.metric_value, e.achieved_at, e.results_id)
    return lambda e: (-e.metric_value, e.achieved_at, e.results_id)


def best_event(events: Iterable[ScopedEvent], metric_type: MetricType) -> ScopedEvent | None:
    """Best event: lowest time or highest distance, tie-broken as above."""
    return min(events, key=_rank_key(metric_type), default=None)


def _winners(
    events: list[ScopedEvent],
    metric_type: MetricType,
    group_of: Callable[[ScopedEvent], Hashable],
) -> dict[Hashable, ScopedEvent]:
    key = _rank_key(metric_type)
    best: dict[Hashable, ScopedEvent] = {}
    for event in events:
        group = group_of(event)
        current = best.get(group)
        if current is None or key(event) < key(current):
            best[group] = event
    return best


def assign_scopes(
    events: Iterable[ScopedEvent],
    metric_type: MetricType,
) -> dict[int, list[str]]:
    """
    Compute pr_scope for every event of a single activity.

    Returns:
        results_id -> won labels, in all-time/season/year order.
        Every input event is present, most with an empty list.
    """
    events = list(events)
    scopes: dict[int, list[str]] = {e.results_id: [] for e in events}
    if not events:
        return scopes

    groupings: list[Callable[[ScopedEvent], ScopeLabel]] = [
        lambda e: AllTime(),
        lambda e: Season(e.season_identifier),
        lambda e: Year(e.achieved_at.year),
    ]
    for group_of in groupings:
        for scope, winner in _winners(events, metric_type, group_of).items():
            scopes[winner.results_id].append(scope.label)

    return scopes
