"""
WriterID Portal Backend — Repository Tests
===========================================

What:  GenericRepository against a real (in-memory SQLite) database.

What we test:
    ✅ Soft-deleted rows are hidden from get/find/first/count
    ✅ include_inactive=True exposes them again
    ✅ find() orders newest first by default
    ✅ update() bumps updated_at
    ✅ Failed flush/commit → DatabaseError after rollback
"""

from datetime import datetime, timedelta

import pytest

from writerid_portal.exceptions import DatabaseError
from writerid_portal.models import Dataset, ProcessingStatus, User
from writerid_portal.repository import UnitOfWork


class TestActivePredicate:

    @pytest.mark.asyncio
    async def test_soft_deleted_dataset_is_hidden(self, uow, user, dataset_factory):
        dataset = await dataset_factory()
        await uow.datasets.soft_delete(dataset)
        await uow.commit()

        assert await uow.datasets.get_by_id(dataset.id) is None
        assert await uow.datasets.find(Dataset.user_id == user.id) == []
        assert await uow.datasets.first_or_default(Dataset.id == dataset.id) is None
        assert await uow.datasets.count(Dataset.user_id == user.id) == 0

    @pytest.mark.asyncio
    async def test_include_inactive_returns_deleted_rows(self, uow, user, dataset_factory):
        dataset = await dataset_factory()
        await uow.datasets.soft_delete(dataset)
        await uow.commit()

        found = await uow.datasets.get_by_id(dataset.id, include_inactive=True)
        assert found is not None
        assert found.is_active is False
        assert await uow.datasets.count(Dataset.user_id == user.id, include_inactive=True) == 1

    @pytest.mark.asyncio
    async def test_count_applies_extra_predicates(self, uow, user, dataset_factory):
        await dataset_factory(status=ProcessingStatus.COMPLETED)
        await dataset_factory(status=ProcessingStatus.CREATED)

        completed = await uow.datasets.count(
            Dataset.user_id == user.id,
            Dataset.status == ProcessingStatus.COMPLETED,
        )
        assert completed == 1

    @pytest.mark.asyncio
    async def test_find_filters_by_owner(self, uow, user, other_user, dataset_factory):
        mine = await dataset_factory()
        await dataset_factory(owner=other_user)

        found = await uow.datasets.find(Dataset.user_id == user.id)
        assert [d.id for d in found] == [mine.id]


class TestOrderingAndUpdates:

    @pytest.mark.asyncio
    async def test_find_orders_newest_first(self, uow, dataset_factory):
        older = await dataset_factory(name="older")
        newer = await dataset_factory(name="newer")
        older.created_at = datetime(2024, 1, 1)
        newer.created_at = datetime(2024, 6, 1)
        await uow.datasets.update(older)
        await uow.datasets.update(newer)
        await uow.commit()

        names = [d.name for d in await uow.datasets.find()]
        assert names == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_update_bumps_updated_at(self, uow, dataset_factory):
        dataset = await dataset_factory()
        dataset.updated_at = dataset.updated_at - timedelta(hours=1)
        stale = dataset.updated_at

        dataset.name = "renamed"
        await uow.datasets.update(dataset)
        await uow.commit()

        assert dataset.updated_at > stale

    @pytest.mark.asyncio
    async def test_generic_repository_accessor(self, uow, dataset_factory):
        dataset = await dataset_factory()
        repo = uow.repository(Dataset)
        assert (await repo.get_by_id(dataset.id)).id == dataset.id


class TestWriteFailures:

    @pytest.mark.asyncio
    async def test_failed_flush_raises_database_error(self, session_factory, user):
        async with session_factory() as session:
            uow = UnitOfWork(session)
            duplicate = User(
                email=user.email,
                first_name="Copy",
                last_name="Tester",
                password_hash="!unusable",
            )

            with pytest.raises(DatabaseError) as exc_info:
                await uow.users.add(duplicate)

            assert exc_info.value.context["operation"] == "flush"
            # Rolled back, so the session stays usable
            assert await uow.users.count() == 1

    @pytest.mark.asyncio
    async def test_failed_commit_raises_database_error(self, session_factory, user):
        async with session_factory() as session:
            uow = UnitOfWork(session)
            session.add(User(
                email=user.email,
                first_name="Copy",
                last_name="Tester",
                password_hash="!unusable",
            ))

            with pytest.raises(DatabaseError) as exc_info:
                await uow.commit()

            assert exc_info.value.context["operation"] == "commit"
            assert await uow.users.count() == 1
