"""
Concept2 repositories.

Data access layer for Concept2-related models.
"""

from datetime import datetime
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.shared.repository import BaseRepository
from pbdash.shared.formulas import pace_per_500m
from .models import Concept2Token, WorkoutResult
from .schemas import TokenSet, ResultPayload


class Concept2TokenRepository(BaseRepository[Concept2Token]):
    """Repository for Concept2 OAuth tokens."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Concept2Token)

    async def get_by_user_id(self, user_id: str) -> Concept2Token | None:
        """
        Get token record for user, soft-deleted or not.

        Args:
            user_id: Athlete ID

        Returns:
            Concept2Token if found, None otherwise
        """
        return await self.get_by(user_id=user_id)

    async def get_active(self, user_id: str) -> Concept2Token | None:
        """Get token record unless it was soft-deleted."""
        token = await self.get_by_user_id(user_id)
        if token is None or not token.is_active:
            return None
        return token

    async def save_tokens(self, user_id: str, tokens: TokenSet) -> Concept2Token:
        """
        Save or update tokens after an authorization grant.

        Clears the soft-delete marker. last_sync_at is kept so a reconnect
        resumes incremental sync.
        """
        token = await self.get_by_user_id(user_id)
        if token is None:
            token = Concept2Token(user_id=user_id)
            token.apply_token_set(tokens)
            self.db.add(token)
        else:
            token.apply_token_set(tokens)
            token.deleted_at = None
        await self.db.flush()
        return token

    async def update_tokens(self, token: Concept2Token, tokens: TokenSet) -> Concept2Token:
        """Persist a refreshed token set."""
        token.apply_token_set(tokens)
        await self.db.flush()
        return token

    async def mark_synced(self, token: Concept2Token, synced_at: datetime) -> Concept2Token:
        """Advance the last successful sync timestamp."""
        return await self.update(token, last_sync_at=synced_at, updated_at=datetime.utcnow())

    async def soft_delete(self, user_id: str) -> bool:
        """
        Mark tokens deleted to force a fresh authorization grant.

        Returns True if a record was marked.
        """
        token = await self.get_by_user_id(user_id)
        if token is None:
            return False
        now = datetime.utcnow()
        await self.update(token, deleted_at=now, updated_at=now)
        return True


class WorkoutResultRepository(BaseRepository[WorkoutResult]):
    """Repository for stored Logbook results."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, WorkoutResult)

    async def get_result_ids(self, user_id: str) -> set[int]:
        """All stored Logbook result ids for the athlete."""
        result = await self.db.execute(
            select(WorkoutResult.result_id).where(WorkoutResult.user_id == user_id)
        )
        return set(result.scalars().all())

    async def get_for_user(
        self,
        user_id: str,
        result_ids: Iterable[int] | None = None,
    ) -> list[WorkoutResult]:
        """
        Get athlete results, oldest first.

        Args:
            user_id: Athlete ID
            result_ids: Restrict to these Logbook ids

        Returns:
            List of results ordered by achieved_at
        """
        query = select(WorkoutResult).where(WorkoutResult.user_id == user_id)
        if result_ids is not None:
            ids = list(result_ids)
            if not ids:
                return []
            query = query.where(WorkoutResult.result_id.in_(ids))
        query = query.order_by(WorkoutResult.achieved_at, WorkoutResult.result_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(WorkoutResult)
            .where(WorkoutResult.user_id == user_id)
        )
        return result.scalar() or 0

    async def add_results(self, user_id: str, payloads: list[ResultPayload]) -> int:
        """
        Insert one chunk of new results. Flushes, never commits.

        Returns:
            Number of results added
        """
        return await self.add_all(
            build_workout_result(user_id, payload) for payload in payloads
        )


def build_workout_result(user_id: str, payload: ResultPayload) -> WorkoutResult:
    """Map a validated Logbook payload onto a WorkoutResult row."""
    return WorkoutResult(
        user_id=user_id,
        result_id=payload.id,
        sport=payload.type.value,
        distance=payload.distance,
        time=payload.time,
        achieved_at=payload.date,
        pace_per_500m=pace_per_500m(payload.time, payload.distance),
        date_utc=payload.date_utc,
        timezone=payload.timezone,
        workout_type=payload.workout_type,
        source=payload.source,
        weight_class=payload.weight_class,
        verified=payload.verified,
        ranked=payload.ranked,
        raw_data=payload.model_dump(mode="json"),
    )
