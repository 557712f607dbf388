"""
Error -> HTTP status mapping shared by the v1 routes.
"""

import logging

from fastapi import HTTPException

from pbdash.shared.exceptions import (
    PBDashError,
    OperationInProgressError,
    OperationTimeoutError,
)
from pbdash.features.concept2.errors import (
    ApiError,
    NotConnectedError,
    ReauthRequired,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: PBDashError) -> HTTPException:
    """Translate a domain error into the response the client sees."""
    if isinstance(error, ReauthRequired):
        return HTTPException(
            status_code=401,
            detail={"error": "reauth_required", "reason": error.reason},
        )
    if isinstance(error, NotConnectedError):
        return HTTPException(status_code=404, detail="Concept2 account not connected")
    if isinstance(error, OperationInProgressError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, OperationTimeoutError):
        return HTTPException(status_code=504, detail=str(error))
    if isinstance(error, TransientNetworkError):
        return HTTPException(status_code=503, detail="Concept2 is unreachable, try again later")
    if isinstance(error, ApiError):
        return HTTPException(
            status_code=502,
            detail={"error": "concept2_api_error", "status": error.status},
        )

    logger.error(f"Unmapped error: {error!r}")
    return HTTPException(status_code=500, detail="Internal error")
