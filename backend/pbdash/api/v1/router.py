"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from pbdash.api.v1.routes import concept2, sync, records, internal

api_router = APIRouter()

api_router.include_router(concept2.router)
api_router.include_router(sync.router)
api_router.include_router(records.router)
api_router.include_router(internal.router)
