"""
Concept2 OAuth Routes

Endpoints for Concept2 Logbook integration:
- /concept2/authorize - Initiate OAuth flow
- /concept2/callback - Handle OAuth callback
- /athletes/{user_id}/concept2/status - Check connection status
"""

import html
import logging
import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse, HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.config import settings
from pbdash.db.session import get_async_db
from pbdash.features.concept2 import (
    Concept2OAuth,
    Concept2Error,
    Concept2Status,
    Concept2TokenRepository,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Concept2"])

# In-memory state storage (for CSRF protection)
# In production, use Redis or database
_oauth_states: dict[str, dict] = {}

STATE_TTL = timedelta(minutes=10)


def get_oauth() -> Concept2OAuth:
    return Concept2OAuth()


def _prune_states(now: datetime) -> None:
    for state, data in list(_oauth_states.items()):
        if now - data["created_at"] > STATE_TTL:
            _oauth_states.pop(state, None)


# =============================================================================
# OAuth Flow
# =============================================================================

@router.get("/concept2/authorize")
async def concept2_authorize(
    user_id: str = Query(..., min_length=1, description="Athlete ID"),
    oauth: Concept2OAuth = Depends(get_oauth),
):
    """Initiate Concept2 OAuth flow."""
    if not settings.concept2_client_id or not settings.concept2_client_secret:
        raise HTTPException(status_code=503, detail="Concept2 integration not configured")

    now = datetime.utcnow()
    _prune_states(now)

    state = secrets.token_urlsafe(32)
    _oauth_states[state] = {"user_id": user_id, "created_at": now}

    logger.info(f"Concept2 OAuth initiated for user {user_id}")
    return RedirectResponse(url=oauth.get_authorization_url(state))


@router.get("/concept2/callback")
async def concept2_callback(
    code: str = Query(None),
    state: str = Query(None),
    error: str = Query(None),
    db: AsyncSession = Depends(get_async_db),
    oauth: Concept2OAuth = Depends(get_oauth),
):
    """
    Handle Concept2 OAuth callback.

    Exchanges code for tokens and stores them, clearing any
    re-authorization marker.
    """
    if error:
        logger.warning(f"Concept2 OAuth error: {error}")
        return _error_page(f"Authorization was declined: {error}")

    if not state or state not in _oauth_states:
        logger.warning("Invalid OAuth state")
        return _error_page("Invalid session. Please try again.")

    state_data = _oauth_states.pop(state)
    if datetime.utcnow() - state_data["created_at"] > STATE_TTL:
        return _error_page("Session expired. Please try again.")
    user_id = state_data["user_id"]

    if not code:
        return _error_page("No authorization code received.")

    try:
        tokens = await oauth.exchange_code(code)
    except Concept2Error as e:
        logger.error(f"Token exchange failed for user {user_id}: {e}")
        return _error_page("Could not obtain a token from Concept2.")

    await Concept2TokenRepository(db).save_tokens(user_id, tokens)
    await db.commit()

    logger.info(f"Concept2 connected for user {user_id}")
    return _success_page()


# =============================================================================
# Status
# =============================================================================

@router.get("/athletes/{user_id}/concept2/status", response_model=Concept2Status)
async def get_concept2_status(
    user_id: str,
    db: AsyncSession = Depends(get_async_db),
):
    """Check Concept2 connection status for an athlete."""
    token = await Concept2TokenRepository(db).get_by_user_id(user_id)

    if token is None:
        return Concept2Status(connected=False)

    return Concept2Status(
        connected=token.is_active,
        scope=token.scope,
        last_sync_at=token.last_sync_at,
        reauth_required=not token.is_active,
    )


# =============================================================================
# Pages
# =============================================================================

def _page(title: str, message: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1">
        <title>{html.escape(title)}</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                display: flex;
                justify-content: center;
                align-items: center;
                min-height: 100vh;
                margin: 0;
                background: #f5f5f5;
            }}
            .card {{
                background: white;
                border-radius: 16px;
                padding: 40px;
                text-align: center;
                box-shadow: 0 4px 20px rgba(0,0,0,0.1);
                max-width: 400px;
            }}
        </style>
    </head>
    <body>
        <div class="card">
            <h1>{html.escape(title)}</h1>
            <p>{html.escape(message)}</p>
        </div>
    </body>
    </html>
    """


def _success_page() -> HTMLResponse:
    """Return success page after OAuth."""
    return HTMLResponse(
        content=_page("Concept2 connected", "You can close this window and return to the app.")
    )


def _error_page(message: str) -> HTMLResponse:
    """Return error page."""
    return HTMLResponse(content=_page("Error", message), status_code=400)
