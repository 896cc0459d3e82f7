"""Per-user dashboard counts, recomputed on every request."""

import uuid

from writerid_portal.models import Dataset, ProcessingStatus, Task, WriterModel
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.dashboard import DashboardStats


class DashboardService:

    async def get_stats(self, uow: UnitOfWork, user_id: uuid.UUID) -> DashboardStats:
        # count() applies the active predicate, so deleted rows never show up here
        return DashboardStats(
            total_tasks=await uow.tasks.count(Task.user_id == user_id),
            completed_tasks=await uow.tasks.count(
                Task.user_id == user_id,
                Task.status == ProcessingStatus.COMPLETED,
            ),
            total_datasets=await uow.datasets.count(Dataset.user_id == user_id),
            total_models=await uow.models.count(WriterModel.user_id == user_id),
        )
