"""
Per-athlete record definition catalog.

Seeding copies the global template into an athlete's catalog once: if
the athlete already has any definition the template is not consulted,
so customizations survive. Seeding and updates flush; the caller commits.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.shared.exceptions import ValidationError
from .models import PRType, PRTypeTemplate
from .repository import PRTypeRepository, PRTypeTemplateRepository
from .schemas import PRTypeDefinition, PRTypeUpdate, parse_definition

logger = logging.getLogger(__name__)


class PRTypeCatalog:
    """
    Record definitions for one athlete at a time.

    Usage:
        catalog = PRTypeCatalog(db)
        definitions = await catalog.get_active_definitions(user_id)
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.templates = PRTypeTemplateRepository(db)
        self.types = PRTypeRepository(db)

    async def seed_from_template(self, user_id: str) -> int:
        """
        Copy the template into an empty catalog.

        Returns:
            Number of definitions copied (0 if the catalog was non-empty)
        """
        if await self.types.has_any(user_id):
            return 0

        copies = []
        for template in await self.templates.get_ordered():
            try:
                definition = parse_definition(template)
            except ValidationError as e:
                logger.warning(f"Skipping template {e.record_id}: {e}")
                continue
            copies.append(PRType(user_id=user_id, **definition.model_dump(mode="json")))

        copied = await self.types.add_all(copies)
        if copied:
            logger.info(f"Seeded {copied} record definitions for user {user_id}")
        return copied

    async def get_definitions(self, user_id: str) -> list[PRType]:
        """All athlete definitions, active or not, seeding on first use."""
        await self.seed_from_template(user_id)
        return await self.types.get_for_user(user_id)

    async def get_active_definitions(self, user_id: str) -> list[PRTypeDefinition]:
        """
        Validated active definitions by ascending display_order.

        Seeds on first use. Malformed rows are skipped with a warning.
        """
        await self.seed_from_template(user_id)

        definitions = []
        for row in await self.types.get_for_user(user_id, active_only=True):
            try:
                definitions.append(parse_definition(row))
            except ValidationError as e:
                logger.warning(f"Skipping definition {e.record_id} for user {user_id}: {e}")
        return definitions

    async def update_definition(
        self,
        user_id: str,
        activity_key: str,
        changes: PRTypeUpdate,
    ) -> PRType | None:
        """Apply an athlete customization. Returns None for unknown keys."""
        await self.seed_from_template(user_id)
        row = await self.types.get_by_key(user_id, activity_key)
        if row is None:
            return None
        return await self.types.update(row, **changes.model_dump(exclude_none=True))

    async def upsert_template(self, definition: PRTypeDefinition) -> PRTypeTemplate:
        """
        Add or replace a global template entry.

        Existing athlete catalogs are not touched.
        """
        values = definition.model_dump(mode="json")
        template = await self.templates.get_by(activity_key=definition.activity_key)
        if template is None:
            return await self.templates.create(**values)
        return await self.templates.update(template, **values)
