"""
WriterID Portal Backend — External Callback Routes
===================================================

What:  API consumed by the executor service, under /api/external.
How:   Every route requires the static `X-API-Key` header. No user context
       exists here, so ownership is never checked.
Who:   The executor, while analyzing datasets, training models and running
       prediction tasks.

Callback flow for a queued job:
    queue message ──▶ executor ──▶ PUT .../{id}/status {"status": "Processing"}
                                   ... work ...
                               ──▶ PUT .../{id}/status {"status": "Completed"}

Statuses only move forward (Created → Processing → Completed/Failed).
Repeating the current status is accepted and ignored, so retried callbacks
are harmless.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from writerid_portal.dependencies import (
    get_dataset_service,
    get_model_service,
    get_task_service,
    get_unit_of_work,
    require_api_key,
)
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.common import ErrorResponse
from writerid_portal.schemas.external import (
    EntityStatusResponse,
    StatusUpdateRequest,
    TaskExecutionInfo,
    TaskStatusUpdateRequest,
)
from writerid_portal.schemas.task import TaskPredictionResult, TaskResponse
from writerid_portal.services.dataset_service import DatasetService
from writerid_portal.services.model_service import ModelService
from writerid_portal.services.task_service import TaskService

router = APIRouter(
    prefix="/api/external",
    tags=["External"],
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"description": "Illegal status transition", "model": ErrorResponse},
        401: {"description": "Missing or invalid API key", "model": ErrorResponse},
        404: {"description": "Resource not found", "model": ErrorResponse},
    },
)


# ── Datasets ──────────────────────────────────────────────────────────────

@router.put(
    "/datasets/{dataset_id}/status",
    response_model=EntityStatusResponse,
    summary="Report dataset analysis progress",
)
async def update_dataset_status(
    dataset_id: UUID,
    body: StatusUpdateRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> EntityStatusResponse:
    dataset = await service.update_status(uow, dataset_id, body.status, body.message)
    return EntityStatusResponse.model_validate(dataset)


@router.get("/datasets/{dataset_id}/status", response_model=EntityStatusResponse)
async def get_dataset_status(
    dataset_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> EntityStatusResponse:
    return EntityStatusResponse.model_validate(await service.get_status(uow, dataset_id))


# ── Models ────────────────────────────────────────────────────────────────

@router.put(
    "/models/{model_id}/status",
    response_model=EntityStatusResponse,
    summary="Report model training progress",
)
async def update_model_status(
    model_id: UUID,
    body: StatusUpdateRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> EntityStatusResponse:
    model = await service.update_status(uow, model_id, body.status, body.message)
    return EntityStatusResponse.model_validate(model)


@router.get("/models/{model_id}/status", response_model=EntityStatusResponse)
async def get_model_status(
    model_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> EntityStatusResponse:
    return EntityStatusResponse.model_validate(await service.get_status(uow, model_id))


# ── Tasks ─────────────────────────────────────────────────────────────────

@router.put(
    "/tasks/{task_id}/status",
    response_model=EntityStatusResponse,
    summary="Report task progress, optionally with results",
)
async def update_task_status(
    task_id: UUID,
    body: TaskStatusUpdateRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> EntityStatusResponse:
    task = await service.update_task_results(uow, task_id, body.status, body.results, body.message)
    return EntityStatusResponse.model_validate(task)


@router.get("/tasks/{task_id}/status", response_model=EntityStatusResponse)
async def get_task_status(
    task_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> EntityStatusResponse:
    return EntityStatusResponse.model_validate(await service.get_status(uow, task_id))


@router.get(
    "/tasks/{task_id}/execution-info",
    response_model=TaskExecutionInfo,
    response_model_by_alias=True,
    summary="Everything needed to run a task",
    description="Container names, writer selection and model choice, in camelCase.",
)
async def get_task_execution_info(
    task_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> TaskExecutionInfo:
    return await service.get_task_execution_info(uow, task_id)


@router.post(
    "/tasks/{task_id}/prediction",
    response_model=TaskResponse,
    summary="Deliver a prediction and complete the task",
)
async def submit_task_prediction(
    task_id: UUID,
    body: TaskPredictionResult,
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await service.submit_task_prediction(uow, task_id, body)
    return TaskResponse.from_entity(task)
