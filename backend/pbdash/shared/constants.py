"""
Unified constants for sports and record metrics.

Single source of truth for the values the Concept2 Logbook uses.
"""

from enum import Enum


class Sport(str, Enum):
    """Concept2 machine types as named by the Logbook API."""
    ROWER = "rower"
    SKIERG = "skierg"
    BIKEERG = "bikeerg"


class MetricType(str, Enum):
    """
    What a record is measured by.

    TIME: fixed distance, fastest time wins (e.g. 2000m row).
    DISTANCE: fixed duration, farthest distance wins (e.g. 60min row).
    """
    TIME = "time"
    DISTANCE = "distance"

    @property
    def lower_is_better(self) -> bool:
        return self is MetricType.TIME
