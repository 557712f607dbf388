"""
Concept2 sync services.

Provides:
- Concept2SyncService: Fetch, deduplicate and store Logbook results
- SyncResult: Outcome of one sync run
"""

from .service import Concept2SyncService, SyncResult
from .config import SyncMode, SyncOperation

__all__ = [
    "Concept2SyncService",
    "SyncResult",
    "SyncMode",
    "SyncOperation",
]
