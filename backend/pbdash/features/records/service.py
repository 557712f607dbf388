"""
Record recalculation.

Three modes, all ending with one commit:

- full: delete every event, extract from every result, rescope all
- incremental: extract for results that have no event yet (optionally
  limited to given result ids), rescope what changed
- smart: like incremental over the whole history, but stops before any
  write when no new event came out of it

Running smart twice on unchanged data writes nothing the second time.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.features.concept2.repository import WorkoutResultRepository
from .assigner import ScopeAssigner
from .catalog import PRTypeCatalog
from .extractor import PREventExtractor, ExtractionResult
from .repository import PREventRepository

logger = logging.getLogger(__name__)


class RecalculationMode:
    FULL = "full"
    INCREMENTAL = "incremental"
    SMART = "smart"

    ALL = (FULL, INCREMENTAL, SMART)


@dataclass
class RecalculationResult:
    mode: str
    results_considered: int = 0
    events_created: int = 0
    activities_rescoped: int = 0
    total_events: int = 0
    skipped_invalid: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class RecalculationOrchestrator:
    """
    Runs extraction and scope assignment for one athlete.

    Usage:
        orchestrator = RecalculationOrchestrator(db)
        result = await orchestrator.smart(user_id)
    """

    def __init__(self, db: AsyncSession, catalog: Optional[PRTypeCatalog] = None):
        self.db = db
        self.catalog = catalog or PRTypeCatalog(db)
        self.extractor = PREventExtractor(db, self.catalog)
        self.assigner = ScopeAssigner(db)
        self.results = WorkoutResultRepository(db)
        self.events = PREventRepository(db)

    async def run(self, user_id: str, mode: str) -> RecalculationResult:
        """Dispatch by mode name."""
        if mode == RecalculationMode.FULL:
            return await self.full_rebuild(user_id)
        if mode == RecalculationMode.INCREMENTAL:
            return await self.incremental(user_id)
        if mode == RecalculationMode.SMART:
            return await self.smart(user_id)
        raise ValueError(f"Unknown recalculation mode: {mode}")

    async def full_rebuild(self, user_id: str) -> RecalculationResult:
        """Delete all events and rebuild them from every stored result."""
        try:
            deleted = await self.events.delete_for_user(user_id)
            logger.info(f"Full rebuild for user {user_id}: deleted {deleted} events")

            results = await self.results.get_for_user(user_id)
            extraction = await self.extractor.extract(user_id, results)
            return await self._finish(user_id, RecalculationMode.FULL, len(results), extraction)
        except Exception:
            await self.db.rollback()
            raise

    async def incremental(
        self,
        user_id: str,
        result_ids: Optional[Iterable[int]] = None,
    ) -> RecalculationResult:
        """
        Extract for results without events, then rescope touched activities.

        Args:
            user_id: Athlete ID
            result_ids: Only consider these results (e.g. ids a sync just stored)
        """
        try:
            pending = await self.events.get_unprocessed_result_ids(user_id)
            if result_ids is not None:
                wanted = set(result_ids)
                pending = [rid for rid in pending if rid in wanted]

            results = await self.results.get_for_user(user_id, pending)
            extraction = await self.extractor.extract(user_id, results)
            return await self._finish(
                user_id, RecalculationMode.INCREMENTAL, len(results), extraction
            )
        except Exception:
            await self.db.rollback()
            raise

    async def smart(self, user_id: str) -> RecalculationResult:
        """Recalculate only what new results could have changed."""
        try:
            pending = await self.events.get_unprocessed_result_ids(user_id)
            results = await self.results.get_for_user(user_id, pending)
            extraction = await self.extractor.extract(user_id, results)

            if extraction.events_created == 0:
                # Still commit: first-use catalog seeding may be pending
                await self.db.commit()
                total = await self.events.count_for_user(user_id)
                logger.info(
                    f"Smart recalculation for user {user_id}: nothing new "
                    f"in {len(results)} unprocessed results"
                )
                return RecalculationResult(
                    mode=RecalculationMode.SMART,
                    results_considered=len(results),
                    total_events=total,
                    skipped_invalid=extraction.skipped_invalid,
                )

            return await self._finish(user_id, RecalculationMode.SMART, len(results), extraction)
        except Exception:
            await self.db.rollback()
            raise

    async def _finish(
        self,
        user_id: str,
        mode: str,
        considered: int,
        extraction: ExtractionResult,
    ) -> RecalculationResult:
        await self.assigner.rescope(user_id, extraction.affected_keys)
        await self.db.commit()

        result = RecalculationResult(
            mode=mode,
            results_considered=considered,
            events_created=extraction.events_created,
            activities_rescoped=len(extraction.affected_keys),
            total_events=await self.events.count_for_user(user_id),
            skipped_invalid=extraction.skipped_invalid,
        )
        logger.info(
            f"Recalculation ({mode}) for user {user_id}: {result.results_considered} results, "
            f"{result.events_created} new events, {result.activities_rescoped} activities "
            f"rescoped, {result.total_events} total events"
        )
        return result
