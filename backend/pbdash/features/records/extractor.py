"""
Record event extraction.

Matches stored results against record definitions:

- time records qualify when distance == target_distance (metric: time)
- distance records qualify when time == target_time (metric: distance)

Events are keyed by (results_id, activity_key). Pairs that already
exist are left untouched, so extraction can be re-run freely.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.features.concept2.models import WorkoutResult
from pbdash.shared.constants import MetricType
from pbdash.shared.formulas import pace_per_500m, season_identifier
from .catalog import PRTypeCatalog
from .models import PREvent
from .repository import PREventRepository
from .schemas import PRTypeDefinition

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    events_created: int = 0
    affected_keys: set[str] = field(default_factory=set)
    skipped_invalid: int = 0


def matches(definition: PRTypeDefinition, result: WorkoutResult) -> bool:
    """Whether a result qualifies for a definition."""
    if result.sport != definition.sport.value:
        return False
    if definition.metric_type is MetricType.TIME:
        return result.distance == definition.target_distance
    return result.time == definition.target_time


def build_event(user_id: str, definition: PRTypeDefinition, result: WorkoutResult) -> PREvent:
    """New event for a qualifying result, with an empty pr_scope."""
    if definition.metric_type is MetricType.TIME:
        metric_value = result.time
    else:
        metric_value = result.distance

    return PREvent(
        user_id=user_id,
        results_id=result.result_id,
        activity_key=definition.activity_key,
        sport=definition.sport.value,
        metric_type=definition.metric_type.value,
        metric_value=metric_value,
        achieved_at=result.achieved_at,
        season_identifier=season_identifier(result.achieved_at),
        pace_per_500m=pace_per_500m(result.time, result.distance),
        pr_scope=[],
    )


def _is_usable(result: WorkoutResult) -> bool:
    """Guards rows stored without going through parse_result (direct model inserts)."""
    return (
        result.achieved_at is not None
        and result.time is not None and result.time > 0
        and result.distance is not None and result.distance >= 0
    )


class PREventExtractor:
    """
    Creates record events from stored results.

    Usage:
        extractor = PREventExtractor(db)
        extraction = await extractor.extract(user_id, results)
    """

    def __init__(self, db: AsyncSession, catalog: Optional[PRTypeCatalog] = None):
        self.db = db
        self.catalog = catalog or PRTypeCatalog(db)
        self.events = PREventRepository(db)

    async def extract(
        self,
        user_id: str,
        results: list[WorkoutResult],
        definitions: Optional[list[PRTypeDefinition]] = None,
    ) -> ExtractionResult:
        """
        Match results against the athlete's active definitions.

        Flushes new events; the caller commits.
        """
        extraction = ExtractionResult()
        if not results:
            return extraction

        if definitions is None:
            definitions = await self.catalog.get_active_definitions(user_id)
        if not definitions:
            logger.info(f"No active record definitions for user {user_id}")
            return extraction

        existing = await self.events.get_keys(user_id)
        new_events = []

        for result in results:
            if not _is_usable(result):
                extraction.skipped_invalid += 1
                logger.warning(f"Skipping unusable result {result.result_id} for user {user_id}")
                continue

            for definition in definitions:
                if not matches(definition, result):
                    continue
                key = (result.result_id, definition.activity_key)
                if key in existing:
                    continue
                existing.add(key)
                new_events.append(build_event(user_id, definition, result))
                extraction.affected_keys.add(definition.activity_key)

        extraction.events_created = await self.events.add_events(new_events)
        logger.debug(
            f"Extracted {extraction.events_created} events from {len(results)} results "
            f"for user {user_id}"
        )
        return extraction
