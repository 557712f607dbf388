"""
Combined sync + record pipelines.

initial_data_load:    bootstrap sync, then full rebuild
sync_and_recalculate: sync, then smart recalculation

Both run under the pipeline wall-clock budget and a single-flight
lease. Sync failures propagate. A records failure after a successful
sync is logged and reported as records_status="error"; the synced
results stay stored and the next smart run picks them up.
"""

import asyncio
import logging
from dataclasses import dataclass, asdict
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.config import settings
from pbdash.shared.exceptions import OperationTimeoutError, OperationInProgressError
from pbdash.shared.lease import operation_lease
from pbdash.features.concept2.sync import Concept2SyncService, SyncResult, SyncOperation
from .service import RecalculationOrchestrator, RecalculationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordsStatus:
    OK = "ok"
    ERROR = "error"
    BUSY = "busy"


@dataclass
class PipelineResult:
    sync: SyncResult
    records: Optional[RecalculationResult] = None
    records_status: str = RecordsStatus.OK
    records_error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class SyncPipeline:
    """
    Usage:
        pipeline = SyncPipeline(db)
        outcome = await pipeline.sync_and_recalculate(user_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        sync_service: Optional[Concept2SyncService] = None,
        orchestrator: Optional[RecalculationOrchestrator] = None,
        timeout_s: Optional[float] = None,
    ):
        self.db = db
        self.sync_service = sync_service or Concept2SyncService(db)
        self.orchestrator = orchestrator or RecalculationOrchestrator(db)
        self.timeout_s = timeout_s if timeout_s is not None else settings.pipeline_timeout_s

    async def initial_data_load(self, user_id: str) -> PipelineResult:
        """First load after connecting: entire history, records from scratch."""

        async def steps() -> PipelineResult:
            synced = await self.sync_service.sync(user_id, force_full_sync=True)
            return await self._recalculate(
                user_id, synced, lambda: self.orchestrator.full_rebuild(user_id)
            )

        return await self._guarded(user_id, "initial data load", steps)

    async def sync_and_recalculate(
        self,
        user_id: str,
        force_full_sync: bool = False,
    ) -> PipelineResult:
        """Regular refresh: sync new results, then smart recalculation."""

        async def steps() -> PipelineResult:
            synced = await self.sync_service.sync(user_id, force_full_sync=force_full_sync)
            return await self._recalculate(
                user_id, synced, lambda: self.orchestrator.smart(user_id)
            )

        return await self._guarded(user_id, "sync and recalculate", steps)

    async def _guarded(
        self,
        user_id: str,
        label: str,
        steps: Callable[[], Awaitable[T]],
    ) -> T:
        async with operation_lease(self.db, user_id, SyncOperation.SYNC):
            try:
                return await asyncio.wait_for(steps(), timeout=self.timeout_s)
            except asyncio.TimeoutError:
                logger.error(f"{label} for user {user_id} exceeded {self.timeout_s:.0f}s")
                raise OperationTimeoutError(label, self.timeout_s)

    async def _recalculate(
        self,
        user_id: str,
        synced: SyncResult,
        recalculate: Callable[[], Awaitable[RecalculationResult]],
    ) -> PipelineResult:
        outcome = PipelineResult(sync=synced)
        try:
            async with operation_lease(self.db, user_id, SyncOperation.RECALCULATE):
                outcome.records = await recalculate()
        except OperationInProgressError as e:
            logger.warning(f"Skipping records step for user {user_id}: {e}")
            outcome.records_status = RecordsStatus.BUSY
            outcome.records_error = str(e)
        except Exception as e:
            logger.exception(f"Records step failed for user {user_id} after sync")
            outcome.records_status = RecordsStatus.ERROR
            outcome.records_error = str(e)
        return outcome
