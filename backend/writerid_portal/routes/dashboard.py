"""Dashboard route."""

from fastapi import APIRouter, Depends

from writerid_portal.dependencies import get_current_user, get_dashboard_service, get_unit_of_work
from writerid_portal.models import User
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.dashboard import DashboardStats
from writerid_portal.services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats, summary="Counts of your active tasks, datasets and models")
async def get_stats(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStats:
    return await service.get_stats(uow, user.id)
