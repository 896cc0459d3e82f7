"""
WriterID Portal Backend — Model Service
========================================

What:  Writer-identification model lifecycle: create (provision + enqueue
       training), explicit start-training, training reports, executor
       status callbacks and soft delete.

Known gap: start_training() commits Processing before the queue send, so a
crash in between leaves the model Processing with no work queued. Nothing
here reconciles that; an operator re-creates the model.
"""

import logging
import uuid
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from writerid_portal.exceptions import InvalidStatusTransitionError, StorageError
from writerid_portal.models import Dataset, ProcessingStatus, WriterModel, ensure_transition
from writerid_portal.models.mixins import container_name_for
from writerid_portal.models.writer_model import CONTAINER_PREFIX
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.messages import TrainModelMessage, TrainModelParameters
from writerid_portal.schemas.model import (
    UNKNOWN_DATASET_NAME,
    ModelResponse,
    ModelTrainingResult,
    TrainingResultsResponse,
)
from writerid_portal.services.ownership import check_owner, get_active_entity
from writerid_portal.services.queue_base import QueueService
from writerid_portal.services.storage_base import StorageService

logger = logging.getLogger(__name__)

RESOURCE = "Model"

TRAINING_RESULTS_BLOB = "training-results.json"


def to_model_response(model: WriterModel, dataset_name: Optional[str]) -> ModelResponse:
    response = ModelResponse.model_validate(model)
    response.training_dataset_name = dataset_name or UNKNOWN_DATASET_NAME
    return response


class ModelService:

    def __init__(self, storage: StorageService, queue: QueueService):
        self.storage = storage
        self.queue = queue

    def _training_message(self, model: WriterModel, dataset: Dataset) -> TrainModelMessage:
        return TrainModelMessage(
            parameters=TrainModelParameters(
                model_id=model.id,
                dataset_container_name=dataset.container_name,
                model_container_name=model.container_name,
            )
        )

    async def _dataset_names(self, uow: UnitOfWork, dataset_ids: List[uuid.UUID]) -> Dict[uuid.UUID, str]:
        # Deleted datasets still name the models trained on them
        if not dataset_ids:
            return {}
        datasets = await uow.datasets.find(Dataset.id.in_(dataset_ids), include_inactive=True)
        return {d.id: d.name for d in datasets}

    # ── Create / Read ─────────────────────────────────────────────────────

    async def create_model(
        self,
        uow: UnitOfWork,
        name: str,
        training_dataset_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> ModelResponse:
        """
        Creates the model, provisions `model-<id>` and enqueues training.

        Raises:
            NotFoundError: training dataset missing or deleted
            UnauthorizedError: training dataset owned by another user
        """
        dataset = await get_active_entity(uow.datasets, training_dataset_id, "Dataset", user_id)

        model_id = uuid.uuid4()
        model = WriterModel(
            id=model_id,
            name=name,
            user_id=user_id,
            training_dataset_id=dataset.id,
            container_name=container_name_for(CONTAINER_PREFIX, model_id),
            status=ProcessingStatus.CREATED,
        )
        await uow.models.add(model)
        await uow.commit()
        logger.info("Model %s created on dataset %s", model.id, dataset.id)

        await self.storage.create_container(model.container_name)
        await self.queue.send(self._training_message(model, dataset))

        return to_model_response(model, dataset.name)

    async def list_models(self, uow: UnitOfWork, user_id: uuid.UUID) -> List[ModelResponse]:
        models = await uow.models.find(WriterModel.user_id == user_id)
        names = await self._dataset_names(uow, list({m.training_dataset_id for m in models}))
        return [to_model_response(m, names.get(m.training_dataset_id)) for m in models]

    async def get_model_entity(
        self,
        uow: UnitOfWork,
        model_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> WriterModel:
        return await get_active_entity(uow.models, model_id, RESOURCE, user_id)

    async def get_model(
        self,
        uow: UnitOfWork,
        model_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> ModelResponse:
        model = await self.get_model_entity(uow, model_id, user_id)
        names = await self._dataset_names(uow, [model.training_dataset_id])
        return to_model_response(model, names.get(model.training_dataset_id))

    # ── Training ──────────────────────────────────────────────────────────

    async def start_training(
        self,
        uow: UnitOfWork,
        model_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> ModelResponse:
        model = await self.get_model_entity(uow, model_id, user_id)
        if model.status != ProcessingStatus.CREATED:
            raise InvalidStatusTransitionError(
                resource=RESOURCE,
                resource_id=str(model.id),
                current=model.status.value,
                target=ProcessingStatus.PROCESSING.value,
            )
        dataset = await get_active_entity(uow.datasets, model.training_dataset_id, "Dataset")

        model.status = ProcessingStatus.PROCESSING
        await uow.models.update(model)
        await uow.commit()

        await self.queue.send(self._training_message(model, dataset))
        logger.info("Model %s training started", model.id)
        return to_model_response(model, dataset.name)

    async def get_training_results(
        self,
        uow: UnitOfWork,
        model_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> TrainingResultsResponse:
        """Reads `training-results.json`; available=False until the executor writes it."""
        model = await self.get_model_entity(uow, model_id, user_id)
        raw = await self.storage.download_blob(model.container_name, TRAINING_RESULTS_BLOB)
        if raw is None:
            return TrainingResultsResponse(model_id=model.id, status=model.status, available=False)

        try:
            results = ModelTrainingResult.model_validate_json(raw)
        except PydanticValidationError as e:
            raise StorageError(
                "Model training results are malformed",
                context={"container": model.container_name, "blob": TRAINING_RESULTS_BLOB},
            ) from e

        payload = results.model_dump()
        if model.training_result != payload:
            model.training_result = payload
            await uow.models.update(model)
            await uow.commit()

        return TrainingResultsResponse(
            model_id=model.id,
            status=model.status,
            available=True,
            results=results,
        )

    # ── Executor Callbacks ────────────────────────────────────────────────

    async def get_status(self, uow: UnitOfWork, model_id: uuid.UUID) -> WriterModel:
        return await self.get_model_entity(uow, model_id)

    async def update_status(
        self,
        uow: UnitOfWork,
        model_id: uuid.UUID,
        status: ProcessingStatus,
        message: Optional[str] = None,
    ) -> WriterModel:
        model = await self.get_model_entity(uow, model_id)
        ensure_transition(RESOURCE, model.id, model.status, status)
        if model.status == status:
            logger.info("Model %s already %s; callback ignored", model.id, status.value)
            return model

        previous = model.status
        model.status = status
        await uow.models.update(model)
        await uow.commit()
        logger.info(
            "Model %s status %s -> %s%s",
            model.id, previous.value, status.value, f" ({message})" if message else "",
        )
        return model

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_model(
        self,
        uow: UnitOfWork,
        model_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> None:
        model = await uow.models.get_by_id(model_id)
        if model is None:
            logger.debug("Model %s already deleted or never existed", model_id)
            return
        check_owner(model, RESOURCE, user_id)

        await self.storage.delete_container(model.container_name)
        await uow.models.soft_delete(model)
        await uow.commit()
        logger.info("Model %s deleted", model.id)
