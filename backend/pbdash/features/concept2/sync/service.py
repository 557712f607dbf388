"""
Concept2 sync orchestration.

Sync Flow:
1. Load the athlete's active token record
2. Pick the window: bootstrap (entire history) or incremental
   (updated_after = last successful sync, unless a full sync is forced)
3. Fetch every page; persist refreshed tokens right away
4. Validate and deduplicate against stored result ids
5. Write new results in fixed-size chunks and advance last_sync_at,
   all in one transaction

If any chunk fails the transaction rolls back and last_sync_at stays
put, so the next run fetches the same window again.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.config import settings
from pbdash.shared.exceptions import ValidationError
from ..client import Concept2Client
from ..errors import Concept2Error, NotConnectedError, ReauthRequired
from ..repository import Concept2TokenRepository, WorkoutResultRepository
from ..schemas import ResultPayload, parse_result
from .config import SyncMode

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync run."""
    mode: str
    fetched: int = 0
    new_results: int = 0
    duplicates: int = 0
    skipped_invalid: int = 0
    total_results: int = 0
    new_result_ids: list[int] = field(default_factory=list)
    last_sync_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return asdict(self)


def format_updated_after(when: datetime) -> str:
    """ISO8601 UTC form the results API accepts for updated_after."""
    return when.strftime("%Y-%m-%dT%H:%M:%SZ")


class Concept2SyncService:
    """
    Fetches, deduplicates and stores an athlete's Logbook results.

    Usage:
        service = Concept2SyncService(db)
        result = await service.sync(user_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[Concept2Client] = None,
        batch_size: Optional[int] = None,
    ):
        self.db = db
        self.client = client or Concept2Client()
        self.tokens = Concept2TokenRepository(db)
        self.results = WorkoutResultRepository(db)
        self.batch_size = batch_size or settings.sync_write_batch_size

    async def sync(self, user_id: str, force_full_sync: bool = False) -> SyncResult:
        """
        Run one sync for a single athlete.

        Raises:
            NotConnectedError: No active tokens for the athlete
            ReauthRequired: Tokens were soft-deleted; athlete must re-authorize
            Concept2Error: Any other fetch failure
        """
        token = await self.tokens.get_active(user_id)
        if token is None:
            raise NotConnectedError(f"No Concept2 tokens for user {user_id}")

        updated_after = None
        if not force_full_sync and token.last_sync_at:
            updated_after = format_updated_after(token.last_sync_at)
        mode = SyncMode.INCREMENTAL if updated_after else SyncMode.BOOTSTRAP

        started_at = datetime.utcnow()
        logger.info(
            f"Starting {mode} sync for user {user_id}"
            + (f" (updated after {updated_after})" if updated_after else "")
        )

        try:
            fetched = await self.client.fetch_all(token.to_token_set(), updated_after)
        except ReauthRequired as e:
            logger.warning(f"Re-authentication required for user {user_id}: {e.reason}")
            await self.db.rollback()
            await self.tokens.soft_delete(user_id)
            await self.db.commit()
            raise
        except Concept2Error as e:
            if e.tokens is not None:
                await self.tokens.update_tokens(token, e.tokens)
                await self.db.commit()
            logger.error(f"Fetch failed for user {user_id}: {e}")
            raise

        # Tokens first, in their own commit: a failed result write must
        # not lose a rotated refresh token
        if fetched.refreshed:
            await self.tokens.update_tokens(token, fetched.tokens)
            await self.db.commit()

        payloads, skipped = self._validate(user_id, fetched.results)
        new_payloads, duplicates = await self._deduplicate(user_id, payloads)

        await self._store(user_id, token, new_payloads, started_at)

        total = await self.results.count_for_user(user_id)
        result = SyncResult(
            mode=mode,
            fetched=len(fetched.results),
            new_results=len(new_payloads),
            duplicates=duplicates,
            skipped_invalid=skipped,
            total_results=total,
            new_result_ids=[p.id for p in new_payloads],
            last_sync_at=started_at,
        )
        logger.info(
            f"Sync complete for user {user_id}: {result.new_results} new, "
            f"{result.duplicates} already stored, {result.skipped_invalid} invalid, "
            f"{result.total_results} total"
        )
        return result

    def _validate(self, user_id: str, raw_results: list) -> tuple[list[ResultPayload], int]:
        """Parse raw results. Malformed ones are skipped, never fatal."""
        payloads = []
        skipped = 0
        for raw in raw_results:
            try:
                payloads.append(parse_result(raw))
            except ValidationError as e:
                skipped += 1
                logger.warning(f"Skipping result {e.record_id} for user {user_id}: {e}")
        return payloads, skipped

    async def _deduplicate(
        self,
        user_id: str,
        payloads: list[ResultPayload],
    ) -> tuple[list[ResultPayload], int]:
        """Drop results already stored or repeated within this fetch."""
        seen = await self.results.get_result_ids(user_id)
        fresh = []
        for payload in payloads:
            if payload.id in seen:
                continue
            seen.add(payload.id)
            fresh.append(payload)
        return fresh, len(payloads) - len(fresh)

    async def _store(
        self,
        user_id: str,
        token,
        payloads: list[ResultPayload],
        synced_at: datetime,
    ) -> None:
        """Write chunks and advance last_sync_at as one unit."""
        try:
            for start in range(0, len(payloads), self.batch_size):
                chunk = payloads[start:start + self.batch_size]
                await self.results.add_results(user_id, chunk)
                logger.debug(f"Wrote chunk of {len(chunk)} results for user {user_id}")

            await self.tokens.mark_synced(token, synced_at)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error(
                f"Storing {len(payloads)} results failed for user {user_id}; "
                f"last_sync_at not advanced"
            )
            raise
