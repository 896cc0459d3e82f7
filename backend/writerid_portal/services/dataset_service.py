"""
WriterID Portal Backend — Dataset Service
==========================================

What:  Dataset lifecycle: create + provision container, analyze, fetch
       analysis results, executor status callbacks, soft delete.
How:   Composes the repository (UnitOfWork), the blob storage gateway and
       the work-queue gateway. Every step that another system may observe
       is committed before the next external call.

Lifecycle:
    create ──▶ Created ──/analyze──▶ Processing ──callback──▶ Completed | Failed
                 │                                          │
                 └── client uploads samples via SAS URL     └── analysis-results.json

Failure between the commit and the container call leaves a row whose
container does not exist yet; create_container() is idempotent, so a
retry of the same operation by an operator repairs it.
"""

import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from writerid_portal.exceptions import InvalidStatusTransitionError, StorageError
from writerid_portal.models import Dataset, ProcessingStatus, ensure_transition
from writerid_portal.models.dataset import CONTAINER_PREFIX
from writerid_portal.models.mixins import container_name_for
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.dataset import (
    AnalysisResultsResponse,
    ContainerAccess,
    DatasetAnalysisResult,
    DatasetCreateResponse,
    DatasetResponse,
)
from writerid_portal.schemas.messages import AnalyzeDatasetMessage, AnalyzeDatasetParameters
from writerid_portal.services.ownership import check_owner, get_active_entity
from writerid_portal.services.queue_base import QueueService
from writerid_portal.services.storage_base import StorageService

logger = logging.getLogger(__name__)

RESOURCE = "Dataset"

# Written by the executor into the dataset container when analysis finishes
ANALYSIS_RESULTS_BLOB = "analysis-results.json"


def parse_analysis_results(raw: bytes, container_name: str) -> DatasetAnalysisResult:
    """Validates the analysis results file; a malformed file is a storage fault."""
    try:
        return DatasetAnalysisResult.model_validate_json(raw)
    except PydanticValidationError as e:
        logger.error("Malformed %s in %s: %s", ANALYSIS_RESULTS_BLOB, container_name, str(e))
        raise StorageError(
            "Dataset analysis results are malformed",
            context={"container": container_name, "blob": ANALYSIS_RESULTS_BLOB},
        ) from e


class DatasetService:

    def __init__(self, storage: StorageService, queue: QueueService):
        self.storage = storage
        self.queue = queue

    # ── Create / Read ─────────────────────────────────────────────────────

    async def create_dataset(
        self,
        uow: UnitOfWork,
        name: str,
        user_id: uuid.UUID,
    ) -> DatasetCreateResponse:
        """
        Creates the dataset row, provisions `dataset-<id>` and returns a
        time-limited access descriptor for the client's direct upload.
        """
        dataset_id = uuid.uuid4()
        dataset = Dataset(
            id=dataset_id,
            name=name,
            user_id=user_id,
            container_name=container_name_for(CONTAINER_PREFIX, dataset_id),
            status=ProcessingStatus.CREATED,
        )
        await uow.datasets.add(dataset)
        await uow.commit()
        logger.info("Dataset %s created for user %s", dataset.id, user_id)

        await self.storage.create_container(dataset.container_name)
        access = await self.storage.generate_container_access(dataset.container_name)

        return DatasetCreateResponse(
            dataset=DatasetResponse.model_validate(dataset),
            access=access,
        )

    async def list_datasets(self, uow: UnitOfWork, user_id: uuid.UUID) -> List[DatasetResponse]:
        datasets = await uow.datasets.find(Dataset.user_id == user_id)
        return [DatasetResponse.model_validate(d) for d in datasets]

    async def get_dataset(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> Dataset:
        return await get_active_entity(uow.datasets, dataset_id, RESOURCE, user_id)

    async def rename_dataset(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        name: str,
        user_id: uuid.UUID,
    ) -> Dataset:
        dataset = await self.get_dataset(uow, dataset_id, user_id)
        dataset.name = name
        await uow.datasets.update(dataset)
        await uow.commit()
        return dataset

    async def get_access(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> ContainerAccess:
        """Issues fresh access URLs once the ones returned at creation expired."""
        dataset = await self.get_dataset(uow, dataset_id, user_id)
        return await self.storage.generate_container_access(dataset.container_name)

    # ── Analysis ──────────────────────────────────────────────────────────

    async def analyze_dataset(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> Dataset:
        """
        Moves the dataset to Processing and enqueues an analysis request.

        Only a freshly created dataset can be analyzed; a dataset that is
        already Processing (or finished) raises InvalidStatusTransitionError
        instead of enqueueing a duplicate message.
        """
        dataset = await self.get_dataset(uow, dataset_id, user_id)
        if dataset.status != ProcessingStatus.CREATED:
            raise InvalidStatusTransitionError(
                resource=RESOURCE,
                resource_id=str(dataset.id),
                current=dataset.status.value,
                target=ProcessingStatus.PROCESSING.value,
            )

        dataset.status = ProcessingStatus.PROCESSING
        await uow.datasets.update(dataset)
        await uow.commit()

        await self.queue.send(
            AnalyzeDatasetMessage(
                parameters=AnalyzeDatasetParameters(
                    dataset_id=dataset.id,
                    dataset_container_name=dataset.container_name,
                )
            )
        )
        logger.info("Dataset %s analysis requested (container=%s)", dataset.id, dataset.container_name)
        return dataset

    async def get_analysis_results(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> AnalysisResultsResponse:
        """
        Reads `analysis-results.json` from the dataset container.

        Analysis is asynchronous, so a missing file is reported as
        available=False rather than as an error. Found results are cached
        on the row.
        """
        dataset = await self.get_dataset(uow, dataset_id, user_id)
        raw = await self.storage.download_blob(dataset.container_name, ANALYSIS_RESULTS_BLOB)
        if raw is None:
            return AnalysisResultsResponse(
                dataset_id=dataset.id,
                status=dataset.status,
                available=False,
            )

        results = parse_analysis_results(raw, dataset.container_name)
        payload = results.model_dump()
        if dataset.analysis_result != payload:
            dataset.analysis_result = payload
            await uow.datasets.update(dataset)
            await uow.commit()

        return AnalysisResultsResponse(
            dataset_id=dataset.id,
            status=dataset.status,
            available=True,
            results=results,
        )

    # ── Executor Callbacks ────────────────────────────────────────────────

    async def get_status(self, uow: UnitOfWork, dataset_id: uuid.UUID) -> Dataset:
        return await self.get_dataset(uow, dataset_id)

    async def update_status(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        status: ProcessingStatus,
        message: Optional[str] = None,
    ) -> Dataset:
        dataset = await self.get_dataset(uow, dataset_id)
        ensure_transition(RESOURCE, dataset.id, dataset.status, status)
        if dataset.status == status:
            logger.info("Dataset %s already %s; callback ignored", dataset.id, status.value)
            return dataset

        previous = dataset.status
        dataset.status = status
        await uow.datasets.update(dataset)
        await uow.commit()
        logger.info(
            "Dataset %s status %s -> %s%s",
            dataset.id, previous.value, status.value, f" ({message})" if message else "",
        )
        return dataset

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_dataset(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        Removes the backing container and soft-deletes the row.

        Missing or already-deleted datasets are a no-op.
        """
        dataset = await uow.datasets.get_by_id(dataset_id)
        if dataset is None:
            logger.debug("Dataset %s already deleted or never existed", dataset_id)
            return
        check_owner(dataset, RESOURCE, user_id)

        await self.storage.delete_container(dataset.container_name)
        await uow.datasets.soft_delete(dataset)
        await uow.commit()
        logger.info("Dataset %s deleted", dataset.id)
