"""
Scope assignment over stored events.

Loads every event of an activity, runs the pure assign_scopes() and
overwrites pr_scope on each event. Only rows whose scope changed are
written.
"""

import logging
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.shared.constants import MetricType
from .repository import PREventRepository
from .scopes import assign_scopes

logger = logging.getLogger(__name__)


class ScopeAssigner:
    """
    Usage:
        assigner = ScopeAssigner(db)
        changed = await assigner.rescope(user_id, {"2k_row", "60min_row"})
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = PREventRepository(db)

    async def rescope_activity(self, user_id: str, activity_key: str) -> int:
        """
        Recompute pr_scope for one activity.

        Returns:
            Number of events whose pr_scope changed
        """
        events = await self.events.get_for_activity(user_id, activity_key)
        if not events:
            return 0

        metric_type = MetricType(events[0].metric_type)
        scopes = assign_scopes(events, metric_type)

        changed = 0
        for event in events:
            new_scope = scopes[event.results_id]
            if list(event.pr_scope or []) != new_scope:
                event.pr_scope = new_scope
                changed += 1

        if changed:
            await self.db.flush()
        logger.debug(f"Rescoped {activity_key} for user {user_id}: {changed} events changed")
        return changed

    async def rescope(self, user_id: str, activity_keys: Iterable[str]) -> int:
        """Rescope several activities. Flushes; the caller commits."""
        changed = 0
        for activity_key in sorted(set(activity_keys)):
            changed += await self.rescope_activity(user_id, activity_key)
        return changed
