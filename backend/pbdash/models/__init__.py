"""
Database Models

Shared models live here. Feature models live in their feature packages
and are imported lazily to avoid circular imports.
"""

from pbdash.models.base import Base
from pbdash.models.operation_lease import OperationLease


def load_all_models() -> None:
    """Import every feature model so Base.metadata knows all tables."""
    from pbdash.features.concept2 import models as concept2_models  # noqa: F401
    from pbdash.features.records import models as records_models  # noqa: F401


__all__ = ["Base", "OperationLease", "load_all_models"]
