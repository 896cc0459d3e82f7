"""Internal writer-identification model API under /api/v1/models (bearer auth)."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from writerid_portal.dependencies import get_current_user, get_model_service, get_unit_of_work
from writerid_portal.models import User
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.common import ErrorResponse
from writerid_portal.schemas.model import ModelCreate, ModelResponse, TrainingResultsResponse
from writerid_portal.services.model_service import ModelService

router = APIRouter(
    prefix="/api/v1/models",
    tags=["Models"],
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Model or dataset owned by another user", "model": ErrorResponse},
        404: {"description": "Model or dataset not found", "model": ErrorResponse},
    },
)


@router.post(
    "",
    response_model=ModelResponse,
    status_code=201,
    summary="Create a model and queue its training",
)
async def create_model(
    body: ModelCreate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> ModelResponse:
    return await service.create_model(uow, body.name, body.training_dataset_id, user.id)


@router.get("", response_model=List[ModelResponse], summary="List your models")
async def list_models(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> List[ModelResponse]:
    return await service.list_models(uow, user.id)


@router.get("/{model_id}", response_model=ModelResponse, summary="Get a model")
async def get_model(
    model_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> ModelResponse:
    return await service.get_model(uow, model_id, user.id)


@router.post(
    "/{model_id}/train",
    response_model=ModelResponse,
    status_code=202,
    responses={400: {"description": "Model is not in Created state", "model": ErrorResponse}},
    summary="Start training",
)
async def start_training(
    model_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> ModelResponse:
    return await service.start_training(uow, model_id, user.id)


@router.get(
    "/{model_id}/training-results",
    response_model=TrainingResultsResponse,
    summary="Get the training report",
)
async def get_training_results(
    model_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> TrainingResultsResponse:
    return await service.get_training_results(uow, model_id, user.id)


@router.delete("/{model_id}", status_code=204, response_class=Response, summary="Delete a model")
async def delete_model(
    model_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: ModelService = Depends(get_model_service),
) -> Response:
    await service.delete_model(uow, model_id, user.id)
    return Response(status_code=204)
