"""
Personal records module.

Usage:
    from pbdash.features.records import RecalculationOrchestrator, SyncPipeline

Components:
- PRTypeCatalog: Per-athlete record definitions seeded from a template
- PREventExtractor: Turns matching results into record events
- ScopeAssigner: Marks all-time / season / year bests
- RecalculationOrchestrator: full, incremental and smart recalculation
- SyncPipeline: Sync followed by recalculation

Models:
- PRTypeTemplate, PRType, PREvent
"""

from .models import PRTypeTemplate, PRType, PREvent
from .schemas import (
    PRTypeDefinition,
    PRTypeUpdate,
    PRTypeResponse,
    PREventResponse,
    parse_definition,
)
from .scopes import AllTime, Season, Year, ScopeLabel, parse_scope_label, assign_scopes
from .catalog import PRTypeCatalog
from .extractor import PREventExtractor, ExtractionResult
from .assigner import ScopeAssigner
from .service import RecalculationOrchestrator, RecalculationResult, RecalculationMode
from .pipeline import SyncPipeline, PipelineResult, RecordsStatus

__all__ = [
    # Models
    "PRTypeTemplate",
    "PRType",
    "PREvent",
    # Schemas
    "PRTypeDefinition",
    "PRTypeUpdate",
    "PRTypeResponse",
    "PREventResponse",
    "parse_definition",
    # Scopes
    "AllTime",
    "Season",
    "Year",
    "ScopeLabel",
    "parse_scope_label",
    "assign_scopes",
    # Services
    "PRTypeCatalog",
    "PREventExtractor",
    "ExtractionResult",
    "ScopeAssigner",
    "RecalculationOrchestrator",
    "RecalculationResult",
    "RecalculationMode",
    "SyncPipeline",
    "PipelineResult",
    "RecordsStatus",
]
