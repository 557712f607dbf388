"""
Personal-record repositories.

Data access layer for catalog and record event models.
"""

from typing import Iterable

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.shared.repository import BaseRepository
from pbdash.features.concept2.models import WorkoutResult
from .models import PRTypeTemplate, PRType, PREvent


class PRTypeTemplateRepository(BaseRepository[PRTypeTemplate]):
    """Repository for the global definition template."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PRTypeTemplate)

    async def get_ordered(self) -> list[PRTypeTemplate]:
        result = await self.db.execute(
            select(PRTypeTemplate).order_by(PRTypeTemplate.display_order, PRTypeTemplate.id)
        )
        return list(result.scalars().all())


class PRTypeRepository(BaseRepository[PRType]):
    """Repository for per-athlete record definitions."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PRType)

    async def get_for_user(self, user_id: str, active_only: bool = False) -> list[PRType]:
        """
        Get athlete definitions by ascending display_order.

        Args:
            user_id: Athlete ID
            active_only: Skip definitions the athlete switched off
        """
        query = select(PRType).where(PRType.user_id == user_id)
        if active_only:
            query = query.where(PRType.is_active.is_(True))
        query = query.order_by(PRType.display_order, PRType.id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_key(self, user_id: str, activity_key: str) -> PRType | None:
        return await self.get_by(user_id=user_id, activity_key=activity_key)

    async def has_any(self, user_id: str) -> bool:
        return await self.count(user_id=user_id) > 0


class PREventRepository(BaseRepository[PREvent]):
    """Repository for record events."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PREvent)

    async def get_keys(self, user_id: str) -> set[tuple[int, str]]:
        """Existing (results_id, activity_key) pairs."""
        result = await self.db.execute(
            select(PREvent.results_id, PREvent.activity_key).where(PREvent.user_id == user_id)
        )
        return {(row.results_id, row.activity_key) for row in result}

    async def get_for_activity(self, user_id: str, activity_key: str) -> list[PREvent]:
        result = await self.db.execute(
            select(PREvent)
            .where(PREvent.user_id == user_id, PREvent.activity_key == activity_key)
            .order_by(PREvent.achieved_at, PREvent.results_id)
        )
        return list(result.scalars().all())

    async def get_for_user(
        self,
        user_id: str,
        activity_key: str | None = None,
    ) -> list[PREvent]:
        """Athlete events, newest first."""
        query = select(PREvent).where(PREvent.user_id == user_id)
        if activity_key:
            query = query.where(PREvent.activity_key == activity_key)
        query = query.order_by(PREvent.achieved_at.desc(), PREvent.results_id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_unprocessed_result_ids(self, user_id: str) -> list[int]:
        """Stored results that have no event for any activity."""
        processed = select(PREvent.results_id).where(PREvent.user_id == user_id)
        result = await self.db.execute(
            select(WorkoutResult.result_id)
            .where(
                WorkoutResult.user_id == user_id,
                WorkoutResult.result_id.not_in(processed),
            )
            .order_by(WorkoutResult.achieved_at, WorkoutResult.result_id)
        )
        return list(result.scalars().all())

    async def count_for_user(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(PREvent).where(PREvent.user_id == user_id)
        )
        return result.scalar() or 0

    async def add_events(self, events: Iterable[PREvent]) -> int:
        return await self.add_all(events)

    async def delete_for_user(self, user_id: str) -> int:
        """Delete every event of the athlete. Returns deleted count."""
        result = await self.db.execute(delete(PREvent).where(PREvent.user_id == user_id))
        return result.rowcount or 0
