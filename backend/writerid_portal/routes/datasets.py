"""
WriterID Portal Backend — Dataset Routes
=========================================

What:  Internal dataset API under /api/v1/datasets (bearer auth).

Upload flow from the client's point of view:
    1. POST /api/v1/datasets             → dataset + access.upload_url
    2. PUT sample files to upload_url    (directly to blob storage)
    3. POST /api/v1/datasets/{id}/analyze
    4. GET  /api/v1/datasets/{id}/analysis-results until available=true
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from writerid_portal.dependencies import get_current_user, get_dataset_service, get_unit_of_work
from writerid_portal.models import User
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.common import ErrorResponse
from writerid_portal.schemas.dataset import (
    AnalysisResultsResponse,
    ContainerAccess,
    DatasetCreate,
    DatasetCreateResponse,
    DatasetResponse,
    DatasetUpdate,
)
from writerid_portal.services.dataset_service import DatasetService

router = APIRouter(
    prefix="/api/v1/datasets",
    tags=["Datasets"],
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Dataset owned by another user", "model": ErrorResponse},
        404: {"description": "Dataset not found", "model": ErrorResponse},
    },
)


@router.post(
    "",
    response_model=DatasetCreateResponse,
    status_code=201,
    summary="Create a dataset and get upload access",
    description=(
        "Creates the dataset record, provisions its blob container and returns "
        "time-limited URLs the client uses to upload samples directly."
    ),
)
async def create_dataset(
    body: DatasetCreate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> DatasetCreateResponse:
    return await service.create_dataset(uow, body.name, user.id)


@router.get("", response_model=List[DatasetResponse], summary="List your datasets")
async def list_datasets(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> List[DatasetResponse]:
    return await service.list_datasets(uow, user.id)


@router.get("/{dataset_id}", response_model=DatasetResponse, summary="Get a dataset")
async def get_dataset(
    dataset_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> DatasetResponse:
    dataset = await service.get_dataset(uow, dataset_id, user.id)
    return DatasetResponse.model_validate(dataset)


@router.put("/{dataset_id}", response_model=DatasetResponse, summary="Rename a dataset")
async def rename_dataset(
    dataset_id: UUID,
    body: DatasetUpdate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> DatasetResponse:
    dataset = await service.rename_dataset(uow, dataset_id, body.name, user.id)
    return DatasetResponse.model_validate(dataset)


@router.get(
    "/{dataset_id}/access",
    response_model=ContainerAccess,
    summary="Issue fresh upload/download URLs",
)
async def get_dataset_access(
    dataset_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> ContainerAccess:
    return await service.get_access(uow, dataset_id, user.id)


@router.post(
    "/{dataset_id}/analyze",
    response_model=DatasetResponse,
    status_code=202,
    responses={400: {"description": "Dataset already analyzed or in progress", "model": ErrorResponse}},
    summary="Start dataset analysis",
)
async def analyze_dataset(
    dataset_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> DatasetResponse:
    dataset = await service.analyze_dataset(uow, dataset_id, user.id)
    return DatasetResponse.model_validate(dataset)


@router.get(
    "/{dataset_id}/analysis-results",
    response_model=AnalysisResultsResponse,
    summary="Get dataset analysis results",
    description="Returns available=false while the executor is still analyzing.",
)
async def get_analysis_results(
    dataset_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> AnalysisResultsResponse:
    return await service.get_analysis_results(uow, dataset_id, user.id)


@router.delete("/{dataset_id}", status_code=204, response_class=Response, summary="Delete a dataset")
async def delete_dataset(
    dataset_id: UUID,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    service: DatasetService = Depends(get_dataset_service),
) -> Response:
    await service.delete_dataset(uow, dataset_id, user.id)
    return Response(status_code=204)
