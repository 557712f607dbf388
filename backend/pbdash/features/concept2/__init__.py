"""
Concept2 Logbook integration module.

Usage:
    from pbdash.features.concept2 import Concept2OAuth, Concept2Client
    from pbdash.features.concept2.sync import Concept2SyncService

Components:
- Concept2OAuth: OAuth flow (auth URL, code exchange, refresh)
- Concept2Client: API client (authenticated GET, paginated results)
- Concept2SyncService: Bootstrap and incremental result sync

Models:
- Concept2Token: OAuth tokens + sync bookkeeping
- WorkoutResult: Synced Logbook result
"""

from .models import Concept2Token, WorkoutResult
from .schemas import TokenSet, ResultPayload, Concept2Status, parse_result
from .errors import (
    Concept2Error,
    NotConnectedError,
    TransientNetworkError,
    ApiError,
    PaginationLimitError,
    ReauthRequired,
    InvalidClientCredentials,
    FetchTimeoutError,
)
from .oauth import Concept2OAuth, is_expired
from .client import Concept2Client, AuthenticatedResponse, ResultsPage, FetchResult
from .repository import Concept2TokenRepository, WorkoutResultRepository

__all__ = [
    # Models
    "Concept2Token",
    "WorkoutResult",
    # Schemas
    "TokenSet",
    "ResultPayload",
    "Concept2Status",
    "parse_result",
    # Errors
    "Concept2Error",
    "NotConnectedError",
    "TransientNetworkError",
    "ApiError",
    "PaginationLimitError",
    "ReauthRequired",
    "InvalidClientCredentials",
    "FetchTimeoutError",
    # OAuth
    "Concept2OAuth",
    "is_expired",
    # Client
    "Concept2Client",
    "AuthenticatedResponse",
    "ResultsPage",
    "FetchResult",
    # Repositories
    "Concept2TokenRepository",
    "WorkoutResultRepository",
]
