"""
WriterID Portal Backend — Dashboard Service Tests
==================================================
"""

import pytest

from writerid_portal.models import ProcessingStatus
from writerid_portal.services.dashboard_service import DashboardService


class TestDashboardStats:

    def setup_method(self):
        self.service = DashboardService()

    @pytest.mark.asyncio
    async def test_empty_account(self, uow, user):
        stats = await self.service.get_stats(uow, user.id)
        assert stats.model_dump() == {
            "total_tasks": 0,
            "completed_tasks": 0,
            "total_datasets": 0,
            "total_models": 0,
        }

    @pytest.mark.asyncio
    async def test_counts_only_own_active_rows(
        self, uow, user, other_user, dataset_factory, model_factory, task_factory
    ):
        dataset = await dataset_factory(status=ProcessingStatus.COMPLETED)
        deleted_dataset = await dataset_factory()
        await model_factory(dataset)
        await task_factory(dataset, status=ProcessingStatus.COMPLETED)
        await task_factory(dataset, status=ProcessingStatus.FAILED)
        deleted_task = await task_factory(dataset, status=ProcessingStatus.COMPLETED)

        foreign = await dataset_factory(owner=other_user)
        await task_factory(foreign, owner=other_user, status=ProcessingStatus.COMPLETED)

        await uow.datasets.soft_delete(deleted_dataset)
        await uow.tasks.soft_delete(deleted_task)
        await uow.commit()

        stats = await self.service.get_stats(uow, user.id)

        assert stats.total_tasks == 2
        assert stats.completed_tasks == 1
        assert stats.total_datasets == 1
        assert stats.total_models == 1

    @pytest.mark.asyncio
    async def test_mixed_account(self, uow, dataset_factory, model_factory, task_factory):
        dataset = await dataset_factory(status=ProcessingStatus.COMPLETED)
        await dataset_factory()
        await model_factory(dataset)
        await task_factory(dataset, status=ProcessingStatus.COMPLETED)
        await task_factory(dataset, status=ProcessingStatus.COMPLETED)
        await task_factory(dataset, status=ProcessingStatus.PROCESSING)

        stats = await self.service.get_stats(uow, dataset.user_id)

        assert (stats.total_tasks, stats.completed_tasks, stats.total_datasets, stats.total_models) == (3, 2, 2, 1)
