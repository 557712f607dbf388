"""
Concept2 API errors.

Every error raised while talking to the Logbook carries `tokens`: the most
recent token set at the time of failure when a refresh already happened
during the call, else None. Callers persist it so a rotated refresh token
is never lost.
"""

from typing import Optional

from pbdash.shared.exceptions import PBDashError, OperationTimeoutError
from .schemas import TokenSet


class Concept2Error(PBDashError):
    """Base Concept2 error."""

    def __init__(self, message: str = "", tokens: Optional[TokenSet] = None):
        super().__init__(message)
        self.tokens = tokens


class NotConnectedError(Concept2Error):
    """Athlete has no active token record."""
    pass


class TransientNetworkError(Concept2Error):
    """Connection failed or timed out. The whole operation may be retried later."""
    pass


class ApiError(Concept2Error):
    """Non-auth error reply or unusable success body. Surfaced, never retried automatically."""

    def __init__(self, status: int, body: str = "", tokens: Optional[TokenSet] = None):
        super().__init__(f"API error: {status} - {body[:200]}", tokens=tokens)
        self.status = status
        self.body = body


class PaginationLimitError(ApiError):
    """The API reported more pages than we are willing to walk."""

    def __init__(self, total_pages: int, limit: int, tokens: Optional[TokenSet] = None):
        super().__init__(
            status=200,
            body=f"total_pages={total_pages} exceeds limit of {limit}",
            tokens=tokens,
        )
        self.total_pages = total_pages
        self.limit = limit


class ReauthRequired(Concept2Error):
    """
    Refresh token expired, scope rejected or client credentials refused.

    Fatal for the session: stored tokens must be soft-deleted and the
    athlete sent through the authorization grant again.
    """

    def __init__(self, reason: str, tokens: Optional[TokenSet] = None):
        super().__init__(f"Re-authentication required: {reason}", tokens=tokens)
        self.reason = reason


class InvalidClientCredentials(ReauthRequired):
    """Token endpoint refused our client id/secret (HTTP 401)."""

    def __init__(self, tokens: Optional[TokenSet] = None):
        super().__init__("invalid_client_credentials", tokens=tokens)


class FetchTimeoutError(OperationTimeoutError, Concept2Error):
    """Pagination loop ran past its wall-clock budget."""

    def __init__(self, budget_s: float, tokens: Optional[TokenSet] = None):
        OperationTimeoutError.__init__(self, "results fetch", budget_s)
        self.tokens = tokens
