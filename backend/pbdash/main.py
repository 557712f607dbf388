"""
PB Dash API

FastAPI application for Concept2 personal-record tracking.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pbdash import __version__
from pbdash.config import settings
from pbdash.db.session import init_db
from pbdash.api.v1.router import api_router


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting PB Dash API...")
    await init_db()
    logger.info("Database initialized")

    if not (settings.concept2_client_id and settings.concept2_client_secret):
        logger.warning("Concept2 credentials not set; authorization and sync will fail")
    else:
        logger.info(f"Concept2 environment: {settings.concept2_environment}")

    yield

    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="PB Dash API",
    description="Concept2 Logbook sync and personal records",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
