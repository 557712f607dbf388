"""
Personal Record Routes

- GET /athletes/{user_id}/records - Record events, optionally by scope
- GET /athletes/{user_id}/pr-types - Athlete's record definitions
- PATCH /athletes/{user_id}/pr-types/{activity_key} - Customize one
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.db.session import get_async_db
from pbdash.shared.exceptions import ValidationError
from pbdash.features.records import (
    PRTypeCatalog,
    PRTypeResponse,
    PRTypeUpdate,
    PREventResponse,
    parse_scope_label,
)
from pbdash.features.records.repository import PREventRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/athletes/{user_id}", tags=["Records"])


@router.get("/records", response_model=list[PREventResponse])
async def list_records(
    user_id: str,
    scope: Optional[str] = Query(default=None, description="all-time, season-YYYY or year-YYYY"),
    activity_key: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_async_db),
):
    """Record events, newest first. With a scope, only the events holding it."""
    label = None
    if scope:
        try:
            label = parse_scope_label(scope).label
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=str(e))

    events = await PREventRepository(db).get_for_user(user_id, activity_key)
    if label is not None:
        events = [e for e in events if label in (e.pr_scope or [])]

    return [PREventResponse.model_validate(e) for e in events]


@router.get("/pr-types", response_model=list[PRTypeResponse])
async def list_pr_types(
    user_id: str,
    db: AsyncSession = Depends(get_async_db),
):
    """Athlete's record definitions, seeded from the template on first use."""
    rows = await PRTypeCatalog(db).get_definitions(user_id)
    await db.commit()
    return [PRTypeResponse.model_validate(row) for row in rows]


@router.patch("/pr-types/{activity_key}", response_model=PRTypeResponse)
async def update_pr_type(
    user_id: str,
    activity_key: str,
    changes: PRTypeUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    """Toggle or reorder a record definition."""
    row = await PRTypeCatalog(db).update_definition(user_id, activity_key, changes)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Unknown record type: {activity_key}")
    await db.commit()

    logger.info(f"User {user_id} updated record type {activity_key}: {changes.model_dump(exclude_none=True)}")
    return PRTypeResponse.model_validate(row)
