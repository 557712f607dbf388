"""
Single-flight guard.

Prevents two overlapping requests from running the same operation for
the same athlete (e.g. a double-triggered sync racing on extraction).

Usage:
    async with operation_lease(db, user_id, "sync"):
        ...
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator

from sqlalchemy import select, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pbdash.config import settings
from pbdash.models.operation_lease import OperationLease
from .exceptions import OperationInProgressError

logger = logging.getLogger(__name__)


class LeaseManager:
    """Acquire and release OperationLease rows. Commits its own writes."""

    def __init__(self, db: AsyncSession, ttl_s: int | None = None):
        self.db = db
        self.ttl = timedelta(seconds=ttl_s if ttl_s is not None else settings.lease_ttl_s)

    async def acquire(self, user_id: str, operation: str) -> str:
        """
        Take the lease or raise OperationInProgressError.

        Returns:
            Holder token needed to release the lease
        """
        holder = str(uuid.uuid4())
        now = datetime.utcnow()

        result = await self.db.execute(
            select(OperationLease).where(
                OperationLease.user_id == user_id,
                OperationLease.operation == operation,
            )
            .execution_options(populate_existing=True)
        )
        lease = result.scalar_one_or_none()

        if lease is not None:
            if not lease.is_expired(now):
                raise OperationInProgressError(user_id, operation)
            stale_holder = lease.holder
            # Conditional on the holder we read: only one of several
            # concurrent takeovers can match
            taken = await self.db.execute(
                update(OperationLease)
                .where(
                    OperationLease.user_id == user_id,
                    OperationLease.operation == operation,
                    OperationLease.holder == stale_holder,
                    OperationLease.expires_at <= now,
                )
                .values(holder=holder, acquired_at=now, expires_at=now + self.ttl)
                .execution_options(synchronize_session=False)
            )
            if taken.rowcount == 0:
                raise OperationInProgressError(user_id, operation)
            logger.warning(
                f"Took over expired {operation} lease for user {user_id} "
                f"(held by {stale_holder} since {lease.acquired_at})"
            )
            await self.db.refresh(lease)
        else:
            self.db.add(OperationLease(
                user_id=user_id,
                operation=operation,
                holder=holder,
                acquired_at=now,
                expires_at=now + self.ttl,
            ))

        try:
            await self.db.commit()
        except IntegrityError:
            # Another request inserted the row between our read and write
            await self.db.rollback()
            raise OperationInProgressError(user_id, operation)

        return holder

    async def release(self, user_id: str, operation: str, holder: str) -> None:
        """Drop the lease if we still hold it."""
        await self.db.execute(
            delete(OperationLease).where(
                OperationLease.user_id == user_id,
                OperationLease.operation == operation,
                OperationLease.holder == holder,
            )
        )
        await self.db.commit()


@asynccontextmanager
async def operation_lease(
    db: AsyncSession,
    user_id: str,
    operation: str,
    ttl_s: int | None = None,
) -> AsyncIterator[str]:
    """Hold a single-flight lease for the duration of the block."""
    manager = LeaseManager(db, ttl_s)
    holder = await manager.acquire(user_id, operation)
    try:
        yield holder
    except BaseException:
        # Discard whatever the failed block left pending before releasing
        if db.in_transaction():
            await db.rollback()
        raise
    finally:
        await manager.release(user_id, operation, holder)
