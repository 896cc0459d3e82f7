"""
WriterID Portal Backend — Task Routes
======================================

What:  Internal prediction task API under /api/v1/tasks (bearer auth).

Typical client flow:
    1. GET  /api/v1/tasks/dataset/{dataset_id}/analysis  → pick writers
    2. POST /api/v1/tasks                                → runs the prediction
    3. GET  /api/v1/tasks/{id}                           → prediction_result

POST /api/v1/tasks answers 201 when the prediction completed and 400 when
it failed after the task row was created. Both bodies carry the task, so
the client can show the Failed record.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from writerid_portal.dependencies import get_current_user, get_task_service, get_unit_of_work
from writerid_portal.models import User
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.common import ErrorResponse
from writerid_portal.schemas.task import (
    DatasetWritersResponse,
    PredictionResultsResponse,
    TaskCreate,
    TaskCreateResponse,
    TaskPredictionResult,
    TaskResponse,
    TaskResultsUpdate,
)
from writerid_portal.services.task_service import TaskService

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["Tasks"],
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Resource owned by another user", "model": ErrorResponse},
        404: {"description": "Task, dataset or model not found", "model": ErrorResponse},
    },
)


@router.get(
    "/dataset/{dataset_id}/analysis",
    response_model=DatasetWritersResponse,
    responses={400: {"description": "Dataset analysis not complete", "model": ErrorResponse}},
    summary="List the writers of an analyzed dataset",
)
async def get_dataset_analysis(
    dataset_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> DatasetWritersResponse:
    return await service.get_dataset_analysis(uow, dataset_id, user.id)


@router.post(
    "",
    response_model=TaskCreateResponse,
    status_code=201,
    responses={400: {"description": "Invalid task input, or the prediction failed", "model": TaskCreateResponse}},
    summary="Create a task and run its prediction",
)
async def create_task(
    body: TaskCreate,
    response: Response,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> TaskCreateResponse:
    result = await service.create_task(uow, body, user.id)
    if not result.success:
        response.status_code = 400
    return result


@router.get("", response_model=List[TaskResponse], summary="List your tasks")
async def list_tasks(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> List[TaskResponse]:
    return await service.list_tasks(uow, user.id)


@router.get("/{task_id}", response_model=TaskResponse, summary="Get a task")
async def get_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await service.get_task(uow, task_id, user.id)
    return TaskResponse.from_entity(task)


@router.post(
    "/{task_id}/execute",
    response_model=TaskResponse,
    status_code=202,
    responses={400: {"description": "Task is not in Created state", "model": ErrorResponse}},
    summary="Mark a task as started",
)
async def start_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await service.start_task(uow, task_id, user.id)
    return TaskResponse.from_entity(task)


@router.post(
    "/{task_id}/results",
    response_model=TaskResponse,
    summary="Submit a prediction result",
)
async def submit_results(
    task_id: UUID,
    body: TaskResultsUpdate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    result = TaskPredictionResult(query_image=body.query_image, prediction=body.prediction)
    task = await service.submit_task_prediction(uow, task_id, result, user.id)
    return TaskResponse.from_entity(task)


@router.get(
    "/{task_id}/results",
    response_model=PredictionResultsResponse,
    summary="Get the prediction result",
)
async def get_results(
    task_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> PredictionResultsResponse:
    return await service.get_task_prediction_results(uow, task_id, user.id)


@router.delete("/{task_id}", status_code=204, response_class=Response, summary="Delete a task")
async def delete_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: TaskService = Depends(get_task_service),
) -> Response:
    await service.delete_task(uow, task_id, user.id)
    return Response(status_code=204)
