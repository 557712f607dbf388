"""
Tests for single-flight operation leases.
"""

import pytest
from sqlalchemy import select, func

from pbdash.models import OperationLease
from pbdash.shared.exceptions import OperationInProgressError
from pbdash.shared.lease import LeaseManager, operation_lease


async def _lease_count(db) -> int:
    result = await db.execute(select(func.count()).select_from(OperationLease))
    return result.scalar()


class TestLeaseManager:

    @pytest.mark.asyncio
    async def test_second_acquire_is_refused(self, db):
        manager = LeaseManager(db, ttl_s=600)
        await manager.acquire("athlete-1", "sync")

        with pytest.raises(OperationInProgressError) as exc_info:
            await manager.acquire("athlete-1", "sync")

        assert exc_info.value.operation == "sync"
        assert exc_info.value.user_id == "athlete-1"

    @pytest.mark.asyncio
    async def test_other_athlete_and_operation_are_independent(self, db):
        manager = LeaseManager(db, ttl_s=600)
        await manager.acquire("athlete-1", "sync")

        await manager.acquire("athlete-2", "sync")
        await manager.acquire("athlete-1", "recalculate")

        assert await _lease_count(db) == 3

    @pytest.mark.asyncio
    async def test_expired_lease_is_taken_over(self, db):
        stale = await LeaseManager(db, ttl_s=-1).acquire("athlete-1", "sync")

        holder = await LeaseManager(db, ttl_s=600).acquire("athlete-1", "sync")

        assert holder != stale
        assert await _lease_count(db) == 1

    @pytest.mark.asyncio
    async def test_expired_lease_taken_over_once(self, session_factory):
        """Two requests reclaiming the same abandoned lease: one wins."""
        async with session_factory() as first, session_factory() as second:
            await LeaseManager(first, ttl_s=-1).acquire("athlete-1", "sync")
            # second has already seen the expired row
            seen = await second.execute(select(OperationLease))
            assert seen.scalar_one().is_expired()

            winner = await LeaseManager(first, ttl_s=600).acquire("athlete-1", "sync")
            with pytest.raises(OperationInProgressError):
                await LeaseManager(second, ttl_s=600).acquire("athlete-1", "sync")

            current = await first.execute(select(OperationLease.holder))
            assert current.scalar_one() == winner

    @pytest.mark.asyncio
    async def test_takeover_requires_row_still_expired(self, db, monkeypatch):
        """A takeover decided on a stale read must not overwrite a live lease."""
        live = await LeaseManager(db, ttl_s=600).acquire("athlete-1", "sync")
        monkeypatch.setattr(OperationLease, "is_expired", lambda self, now=None: True)

        with pytest.raises(OperationInProgressError):
            await LeaseManager(db, ttl_s=600).acquire("athlete-1", "sync")

        current = await db.execute(select(OperationLease.holder))
        assert current.scalar_one() == live

    @pytest.mark.asyncio
    async def test_release_with_wrong_holder_keeps_lease(self, db):
        manager = LeaseManager(db, ttl_s=600)
        await manager.acquire("athlete-1", "sync")

        await manager.release("athlete-1", "sync", "someone-else")

        assert await _lease_count(db) == 1


class TestOperationLease:

    @pytest.mark.asyncio
    async def test_released_after_block(self, db):
        async with operation_lease(db, "athlete-1", "sync", ttl_s=600) as holder:
            assert holder
            assert await _lease_count(db) == 1

        assert await _lease_count(db) == 0

    @pytest.mark.asyncio
    async def test_released_after_error(self, db):
        with pytest.raises(RuntimeError):
            async with operation_lease(db, "athlete-1", "sync", ttl_s=600):
                raise RuntimeError("boom")

        assert await _lease_count(db) == 0

    @pytest.mark.asyncio
    async def test_nested_same_operation_is_refused(self, db):
        async with operation_lease(db, "athlete-1", "sync", ttl_s=600):
            with pytest.raises(OperationInProgressError):
                async with operation_lease(db, "athlete-1", "sync", ttl_s=600):
                    pass
