"""
Shared utilities (NOT business logic).

Usage:
    from pbdash.shared import pace_per_500m, season_identifier
    from pbdash.shared.lease import operation_lease
"""
from .formulas import (
    pace_per_500m,
    season_identifier,
    format_tenths,
    SEASON_START_MONTH,
)
from .exceptions import (
    PBDashError,
    ValidationError,
    OperationTimeoutError,
    OperationInProgressError,
)

__all__ = [
    # Formulas
    "pace_per_500m",
    "season_identifier",
    "format_tenths",
    "SEASON_START_MONTH",
    # Errors
    "PBDashError",
    "ValidationError",
    "OperationTimeoutError",
    "OperationInProgressError",
]

from .constants import Sport, MetricType  # noqa: E402

__all__ += ["Sport", "MetricType"]
