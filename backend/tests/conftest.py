"""
Shared test fixtures.

- engine/db: fresh in-memory SQLite database per test
- concept2_stub: fake Logbook API behind httpx.MockTransport
- make_result: raw Logbook result payload factory
"""

import itertools

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from pbdash.models import Base, load_all_models
from pbdash.features.concept2 import Concept2Client, Concept2OAuth, TokenSet
from pbdash.features.concept2.oauth import now_ms
from pbdash.features.records import PRTypeTemplate

TEST_API_URL = "https://c2.test/api"
TEST_OAUTH_URL = "https://c2.test/oauth"
TEST_SCOPE = "user:read,results:read"


# =============================================================================
# Database
# =============================================================================

@pytest_asyncio.fixture
async def engine():
    load_all_models()
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# =============================================================================
# Tokens
# =============================================================================

@pytest.fixture
def fresh_tokens():
    """Token set issued just now, valid for an hour."""
    return TokenSet(
        access_token="access-0",
        refresh_token="refresh-0",
        expires_in=3600,
        issued_at=now_ms(),
        scope=TEST_SCOPE,
    )


@pytest.fixture
def expired_tokens():
    """Token set that expired an hour ago."""
    return TokenSet(
        access_token="access-0",
        refresh_token="refresh-0",
        expires_in=3600,
        issued_at=now_ms() - 2 * 3600 * 1000,
        scope=TEST_SCOPE,
    )


# =============================================================================
# Results
# =============================================================================

@pytest.fixture
def make_result():
    """Build a raw Logbook result dict."""
    ids = itertools.count(1000)

    def _make(
        result_id=None,
        sport="rower",
        distance=2000,
        time=4800,
        date="2024-03-01 10:00:00",
        **extra,
    ) -> dict:
        return {
            "id": result_id if result_id is not None else next(ids),
            "type": sport,
            "distance": distance,
            "time": time,
            "date": date,
            "date_utc": None,
            "timezone": "Europe/London",
            "workout_type": "FixedDistanceSplits",
            "source": "ErgData",
            "weight_class": "H",
            "verified": True,
            "ranked": False,
            **extra,
        }

    return _make


# =============================================================================
# Record templates
# =============================================================================

TEMPLATES = [
    dict(activity_key="2k_row", activity_name="2000m row", sport="rower",
         metric_type="time", target_distance=2000, display_order=1),
    dict(activity_key="5k_row", activity_name="5000m row", sport="rower",
         metric_type="time", target_distance=5000, display_order=2),
    dict(activity_key="60min_row", activity_name="60 minute row", sport="rower",
         metric_type="distance", target_time=36000, display_order=3),
    dict(activity_key="1k_ski", activity_name="1000m ski", sport="skierg",
         metric_type="time", target_distance=1000, display_order=4),
]


@pytest_asyncio.fixture
async def templates(db):
    """Global template with a few record definitions."""
    db.add_all([PRTypeTemplate(**values) for values in TEMPLATES])
    await db.commit()
    return TEMPLATES


# =============================================================================
# Fake Concept2 API
# =============================================================================

class Concept2Stub:
    """
    In-process Logbook API.

    - results are served `per_page` at a time from `self.results`
    - queued `result_responses` are returned before any page
    - queued `token_responses` answer the token endpoint; otherwise a
      new token set (access-N / refresh-N) is issued
    """

    def __init__(self):
        self.results: list[dict] = []
        self.per_page = 2
        self.total_pages: int | None = None
        self.result_responses: list = []
        self.token_responses: list = []
        self.requests: list[httpx.Request] = []
        self._issued = 0

    @property
    def result_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/users/me/results")]

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/oauth/access_token")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path.endswith("/oauth/access_token"):
            if self.token_responses:
                return self._next(self.token_responses, request)
            self._issued += 1
            return httpx.Response(200, json={
                "access_token": f"access-{self._issued}",
                "refresh_token": f"refresh-{self._issued}",
                "expires_in": 604800,
                "token_type": "Bearer",
                "scope": TEST_SCOPE,
            })

        if request.url.path.endswith("/users/me/results"):
            if self.result_responses:
                return self._next(self.result_responses, request)
            return self._page(int(request.url.params.get("page", 1)))

        return httpx.Response(404, json={"message": "not found"})

    def _next(self, queue: list, request: httpx.Request) -> httpx.Response:
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    def _page(self, page: int) -> httpx.Response:
        total_pages = self.total_pages or max(1, -(-len(self.results) // self.per_page))
        start = (page - 1) * self.per_page
        data = self.results[start:start + self.per_page]
        return httpx.Response(200, json={
            "data": data,
            "meta": {"pagination": {
                "total": len(self.results),
                "count": len(data),
                "per_page": self.per_page,
                "current_page": page,
                "total_pages": total_pages,
            }},
        })

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def oauth(self) -> Concept2OAuth:
        return Concept2OAuth(
            client_id="cid",
            client_secret="secret",
            oauth_url=TEST_OAUTH_URL,
            redirect_uri="http://localhost:8000/api/v1/concept2/callback",
            scope=TEST_SCOPE,
            transport=self.transport,
        )

    def client(self, **kwargs) -> Concept2Client:
        return Concept2Client(
            oauth=self.oauth(),
            api_url=TEST_API_URL,
            transport=self.transport,
            **kwargs,
        )


@pytest.fixture
def concept2_stub():
    return Concept2Stub()
