"""
Concept2 OAuth flow.

Handles:
- Authorization URL generation
- Code exchange for tokens
- Token refresh
- Expiry check (with a 5 minute safety buffer)
"""

import logging
import time
from typing import Optional
from urllib.parse import urlencode

import httpx

from pbdash.config import settings
from .errors import (
    Concept2Error,
    ApiError,
    ReauthRequired,
    InvalidClientCredentials,
    TransientNetworkError,
)
from .schemas import TokenSet

logger = logging.getLogger(__name__)

# Tokens are treated as expired this long before they really expire
EXPIRY_BUFFER_MS = 5 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def is_expired(tokens: TokenSet, now: Optional[int] = None) -> bool:
    """
    Check whether an access token must be refreshed before use.

    True when issued_at + expires_in*1000 - 5min <= now, or when either
    field is missing.
    """
    expires_at = tokens.expires_at_ms
    if expires_at is None:
        return True
    current = now if now is not None else now_ms()
    return expires_at - EXPIRY_BUFFER_MS <= current


class Concept2OAuth:
    """
    Concept2 OAuth handler.

    The token endpoint wants client credentials both as HTTP Basic auth
    and in the form body.

    Usage:
        oauth = Concept2OAuth()
        auth_url = oauth.get_authorization_url(state="...")
        tokens = await oauth.exchange_code(code)
        tokens = await oauth.refresh_token(tokens.refresh_token, tokens.scope)
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        oauth_url: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        scope: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.client_id = client_id or settings.concept2_client_id
        self.client_secret = client_secret or settings.concept2_client_secret
        self.oauth_url = (oauth_url or settings.concept2_oauth_url).rstrip("/")
        self.redirect_uri = redirect_uri or settings.concept2_redirect_uri
        self.scope = scope or settings.concept2_scope
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.concept2_http_timeout_s

    @property
    def token_url(self) -> str:
        return f"{self.oauth_url}/access_token"

    def get_authorization_url(self, state: Optional[str] = None) -> str:
        """
        Generate Concept2 OAuth authorization URL.

        Args:
            state: Optional state parameter for CSRF protection

        Returns:
            Authorization URL string
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
        }
        if state:
            params["state"] = state

        return f"{self.oauth_url}/authorize?{urlencode(params)}"

    async def exchange_code(self, code: str) -> TokenSet:
        """
        Exchange authorization code for tokens.

        Raises:
            ApiError: If the code was rejected
            InvalidClientCredentials: If our client credentials were refused
            TransientNetworkError: On connection failure
        """
        return await self._request_tokens({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        })

    async def refresh_token(self, refresh_token: str, scope: Optional[str] = None) -> TokenSet:
        """
        Refresh an expired access token.

        Args:
            refresh_token: Current refresh token
            scope: Originally granted scope (the endpoint rejects a mismatch)

        Raises:
            ReauthRequired: Refresh token expired or scope rejected
            InvalidClientCredentials: Client credentials refused
            ApiError: Any other non-2xx response
            TransientNetworkError: On connection failure
        """
        logger.info("Refreshing Concept2 access token")
        return await self._request_tokens({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "scope": scope or self.scope,
        })

    async def _request_tokens(self, data: dict) -> TokenSet:
        if not self.client_id or not self.client_secret:
            raise Concept2Error("Concept2 API credentials not configured")

        body = {
            **data,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(
                    self.token_url,
                    data=body,
                    auth=(self.client_id, self.client_secret),
                    headers={"Accept": "application/json"},
                )
        except httpx.TransportError as e:
            raise TransientNetworkError(f"Token endpoint unreachable: {e}") from e

        if not response.is_success:
            self._raise_token_error(response, data["grant_type"])

        try:
            payload = response.json()
            tokens = TokenSet(
                access_token=payload["access_token"],
                refresh_token=payload["refresh_token"],
                expires_in=payload.get("expires_in"),
                issued_at=now_ms(),
                scope=payload.get("scope") or data.get("scope") or self.scope,
                token_type=payload.get("token_type", "Bearer"),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Concept2 token {data['grant_type']} grant returned a malformed body")
            raise ApiError(response.status_code, f"Malformed token response: {e!r}") from e

        logger.info(f"Concept2 token {data['grant_type']} grant succeeded")
        return tokens

    @staticmethod
    def _raise_token_error(response: httpx.Response, grant_type: str) -> None:
        text = response.text
        logger.error(
            f"Concept2 token {grant_type} grant failed: "
            f"{response.status_code} {text[:500]}"
        )

        if response.status_code == 401:
            raise InvalidClientCredentials()

        if response.status_code == 400 and grant_type == "refresh_token":
            lowered = text.lower()
            if "scope" in lowered:
                raise ReauthRequired("invalid_scope")
            if "invalid_grant" in lowered:
                raise ReauthRequired("refresh_token_expired")

        raise ApiError(response.status_code, text)
