"""
Ergometer formulas.

Units follow the Concept2 Logbook: time in tenths of a second,
distance in meters.
"""

from datetime import date, datetime
from typing import Optional

# First month (1-based) of an athletic season. Seasons run May 1 - April 30.
SEASON_START_MONTH = 5


def pace_per_500m(time_tenths: int, distance_m: float) -> Optional[int]:
    """
    Calculate pace per 500m.

    Formula: round(time * 50 / distance)

    Args:
        time_tenths: Elapsed time in tenths of a second
        distance_m: Distance in meters

    Returns:
        Pace in tenths of a second per 500m, None if distance <= 0

    Example:
        >>> pace_per_500m(12000, 2000)
        300
    """
    if not distance_m or distance_m <= 0:
        return None
    return round((time_tenths * 50) / distance_m)


def season_identifier(when: date | datetime) -> str:
    """
    Season a date belongs to, identified by the season's end year.

    April 30, 2025 -> "2025"; May 1, 2025 -> "2026".
    """
    if when.month < SEASON_START_MONTH:
        return str(when.year)
    return str(when.year + 1)


def format_tenths(tenths: int) -> str:
    """Format tenths of a second as [h:]mm:ss.t"""
    total_seconds, tenth = divmod(int(tenths), 10)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}.{tenth}"
    return f"{minutes}:{seconds:02d}.{tenth}"
