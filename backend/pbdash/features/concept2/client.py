"""
Concept2 Logbook API client.

Provides authenticated, paginated access to an athlete's results.

Token handling:
- Expired tokens (5 min buffer) are refreshed before the request
- A 401 triggers one more refresh and exactly one retry
- Every call returns the token set it ended up using, so the caller
  decides when to persist refreshed credentials

Pagination is sequential and bounded by a page ceiling and a
wall-clock budget.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import httpx

from pbdash.config import settings
from .errors import (
    Concept2Error,
    ApiError,
    PaginationLimitError,
    TransientNetworkError,
    FetchTimeoutError,
)
from .oauth import Concept2OAuth, is_expired
from .schemas import TokenSet, ResultsPageMeta

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedResponse:
    """Response plus the token set that produced it."""
    response: httpx.Response
    tokens: TokenSet
    refreshed: bool = False


@dataclass
class ResultsPage:
    """One page of the results API."""
    results: list[dict]
    current_page: int
    total_pages: int
    tokens: TokenSet
    refreshed: bool = False


@dataclass
class FetchResult:
    """Concatenation of every page of one fetch."""
    results: list[dict] = field(default_factory=list)
    pages: int = 0
    tokens: Optional[TokenSet] = None
    refreshed: bool = False


class Concept2Client:
    """
    Async client for the Concept2 Logbook API.

    Usage:
        client = Concept2Client()
        fetched = await client.fetch_all(tokens, updated_after="2025-01-01T00:00:00")
        if fetched.refreshed:
            ...persist fetched.tokens...
    """

    def __init__(
        self,
        oauth: Optional[Concept2OAuth] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        max_pages: Optional[int] = None,
    ):
        self._transport = transport
        self.oauth = oauth or Concept2OAuth(transport=transport)
        self.api_url = (api_url or settings.concept2_api_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.concept2_http_timeout_s
        self.max_pages = max_pages if max_pages is not None else settings.concept2_max_pages

    # -------------------------------------------------------------------------
    # Authenticated requests
    # -------------------------------------------------------------------------

    async def _get(self, url: str, tokens: TokenSet, params: Optional[dict]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                return await client.get(
                    url,
                    params=params,
                    headers={
                        "Authorization": f"Bearer {tokens.access_token}",
                        "Accept": "application/json",
                    },
                )
        except httpx.TransportError as e:
            raise TransientNetworkError(f"Concept2 API unreachable: {e}") from e

    async def _refresh(self, tokens: TokenSet) -> TokenSet:
        return await self.oauth.refresh_token(tokens.refresh_token, tokens.scope)

    async def authenticated_get(
        self,
        url: str,
        tokens: TokenSet,
        params: Optional[dict] = None,
    ) -> AuthenticatedResponse:
        """
        GET with refresh-on-expiry and a single 401 retry.

        The retried response is returned as-is, success or not.

        Raises:
            ReauthRequired: If a needed refresh was refused
            TransientNetworkError: On connection failure
        """
        current = tokens
        refreshed = False

        try:
            if is_expired(current):
                logger.info("Access token expired, refreshing before request")
                current = await self._refresh(current)
                refreshed = True

            response = await self._get(url, current, params)

            if response.status_code == 401:
                logger.info("Received 401, refreshing token and retrying once")
                current = await self._refresh(current)
                refreshed = True
                response = await self._get(url, current, params)
        except Concept2Error as e:
            if refreshed and e.tokens is None:
                e.tokens = current
            raise

        return AuthenticatedResponse(response=response, tokens=current, refreshed=refreshed)

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    async def fetch_page(
        self,
        tokens: TokenSet,
        page: int = 1,
        updated_after: Optional[str] = None,
    ) -> ResultsPage:
        """
        Fetch one page of the athlete's results.

        Args:
            tokens: Current token set
            page: 1-based page number
            updated_after: ISO8601 timestamp for incremental fetches

        Raises:
            ApiError: Non-2xx response or malformed envelope
        """
        params = {"page": page}
        if updated_after:
            params["updated_after"] = updated_after

        result = await self.authenticated_get(
            f"{self.api_url}/users/me/results",
            tokens,
            params=params,
        )
        response = result.response
        carried = result.tokens if result.refreshed else None

        if not response.is_success:
            raise ApiError(response.status_code, response.text, tokens=carried)

        try:
            payload = response.json()
            data = payload.get("data") or []
            meta = ResultsPageMeta.model_validate(
                (payload.get("meta") or {}).get("pagination") or {}
            )
        except (ValueError, AttributeError) as e:
            raise ApiError(response.status_code, f"Malformed results envelope: {e}", tokens=carried) from e

        if not isinstance(data, list):
            raise ApiError(response.status_code, "Results `data` is not a list", tokens=carried)

        return ResultsPage(
            results=data,
            current_page=meta.current_page,
            total_pages=meta.total_pages,
            tokens=result.tokens,
            refreshed=result.refreshed,
        )

    async def fetch_all(
        self,
        tokens: TokenSet,
        updated_after: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ) -> FetchResult:
        """
        Fetch every page, starting at page 1, while page <= total_pages.

        Args:
            tokens: Current token set
            updated_after: ISO8601 timestamp for incremental fetches
            timeout_s: Wall-clock budget for the whole loop

        Raises:
            PaginationLimitError: If total_pages exceeds max_pages
            FetchTimeoutError: If the budget runs out between pages
        """
        budget = timeout_s if timeout_s is not None else settings.sync_fetch_timeout_s
        deadline = time.monotonic() + budget

        fetched = FetchResult(tokens=tokens)
        page = 1
        total_pages = 1

        while page <= total_pages:
            carried = fetched.tokens if fetched.refreshed else None

            if time.monotonic() > deadline:
                raise FetchTimeoutError(budget, tokens=carried)

            try:
                result = await self.fetch_page(fetched.tokens, page, updated_after)
            except Concept2Error as e:
                if carried is not None and e.tokens is None:
                    e.tokens = carried
                raise

            fetched.results.extend(result.results)
            fetched.pages += 1
            fetched.tokens = result.tokens
            fetched.refreshed = fetched.refreshed or result.refreshed
            total_pages = result.total_pages
            if total_pages > self.max_pages:
                raise PaginationLimitError(total_pages, self.max_pages, tokens=fetched.tokens if fetched.refreshed else None)
            page += 1

        logger.info(
            f"Fetched {len(fetched.results)} results in {fetched.pages} page(s)"
            + (f" updated after {updated_after}" if updated_after else "")
        )
        return fetched
