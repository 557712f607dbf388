"""
Internal API routes for operators.

Protected by X-API-Key header (shared secret).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Header
from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.config import settings
from pbdash.db.session import get_async_db
from pbdash.features.records import PRTypeCatalog, PRTypeDefinition, PRTypeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", tags=["Internal"])


# =============================================================================
# API Key Dependency
# =============================================================================

async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """Verify internal API key."""
    if not settings.internal_api_key:
        raise HTTPException(status_code=503, detail="Internal API not configured")
    if x_api_key != settings.internal_api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return x_api_key


# =============================================================================
# Endpoints
# =============================================================================

@router.put(
    "/pr-type-templates/{activity_key}",
    response_model=PRTypeResponse,
    dependencies=[Depends(verify_api_key)],
)
async def upsert_pr_type_template(
    activity_key: str,
    definition: PRTypeDefinition,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Add or replace a template record definition.

    Only catalogs seeded afterwards see the change.
    """
    if definition.activity_key != activity_key:
        raise HTTPException(status_code=422, detail="activity_key in path and body differ")

    template = await PRTypeCatalog(db).upsert_template(definition)
    await db.commit()

    logger.info(f"Template record type {activity_key} saved")
    return PRTypeResponse.model_validate(template)
