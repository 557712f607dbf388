"""
Sync & Recalculation Routes

- POST /athletes/{user_id}/sync/initial - Bootstrap sync + full rebuild
- POST /athletes/{user_id}/sync - Sync + smart recalculation
- POST /athletes/{user_id}/records/recalculate - Recalculate records only
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.db.session import get_async_db
from pbdash.shared.exceptions import PBDashError
from pbdash.shared.lease import operation_lease
from pbdash.features.concept2.sync import SyncOperation
from pbdash.features.records import (
    RecalculationOrchestrator,
    RecalculationMode,
    SyncPipeline,
)
from ..errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/athletes/{user_id}", tags=["Sync"])


@router.post("/sync/initial")
async def initial_data_load(
    user_id: str,
    db: AsyncSession = Depends(get_async_db),
):
    """First load after connecting: entire history, records from scratch."""
    try:
        outcome = await SyncPipeline(db).initial_data_load(user_id)
    except PBDashError as e:
        raise to_http_exception(e)
    return outcome.to_dict()


@router.post("/sync")
async def sync_and_recalculate(
    user_id: str,
    force_full_sync: bool = Query(default=False, description="Ignore last_sync_at"),
    db: AsyncSession = Depends(get_async_db),
):
    """Fetch new results, then run smart recalculation."""
    try:
        outcome = await SyncPipeline(db).sync_and_recalculate(user_id, force_full_sync)
    except PBDashError as e:
        raise to_http_exception(e)
    return outcome.to_dict()


@router.post("/records/recalculate")
async def recalculate_records(
    user_id: str,
    mode: str = Query(
        default=RecalculationMode.SMART,
        pattern=f"^({'|'.join(RecalculationMode.ALL)})$",
    ),
    db: AsyncSession = Depends(get_async_db),
):
    """Recalculate records from stored results without syncing."""
    try:
        async with operation_lease(db, user_id, SyncOperation.RECALCULATE):
            result = await RecalculationOrchestrator(db).run(user_id, mode)
    except PBDashError as e:
        raise to_http_exception(e)
    return result.to_dict()
