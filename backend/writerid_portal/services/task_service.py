"""
WriterID Portal Backend — Task Service
=======================================

What:  Prediction task lifecycle, the most involved of the three entities.
How:   Composes the repository, blob storage and the executor client.

Creation Flow (POST /api/v1/tasks):
    ┌──────────┐   ┌──────────────┐   ┌────────────────┐   ┌──────────────┐
    │ validate │──▶│ persist task │──▶│ task-<id>      │──▶│ Processing + │
    │ image,   │   │ (Created)    │   │ + query.png    │   │ executor call│
    │ refs     │   │ commit       │   │ commit         │   │ commit       │
    └──────────┘   └──────────────┘   └────────────────┘   └──────┬───────┘
                                                                  │
                                         Completed + results ◀────┤ success
                                         Failed             ◀─────┘ any error

    Each arrow is committed separately because the executor reads the task
    (GET /api/external/tasks/{id}/execution-info) while the portal is still
    waiting on its response. Once the row exists, failures never propagate:
    the task's status is the durable record of the outcome.

Asynchronous variant:
    start_task() and submit_task_prediction() split the same transitions
    into separate calls for executors that call back instead of answering
    synchronously.
"""

import base64
import binascii
import logging
import uuid
from typing import List, Optional

from writerid_portal.config import settings
from writerid_portal.exceptions import InvalidStatusTransitionError, ValidationError
from writerid_portal.models import ProcessingStatus, Task, ensure_transition
from writerid_portal.models.mixins import container_name_for, utcnow
from writerid_portal.models.task import CONTAINER_PREFIX, QUERY_IMAGE_BLOB
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.external import TaskExecutionInfo
from writerid_portal.schemas.task import (
    DatasetWritersResponse,
    PredictionResultsResponse,
    TaskCreate,
    TaskCreateResponse,
    TaskPredictionResult,
    TaskResponse,
    WriterSummary,
)
from writerid_portal.services.dataset_service import ANALYSIS_RESULTS_BLOB, parse_analysis_results
from writerid_portal.services.executor_client import ExecutorClient
from writerid_portal.services.ownership import check_owner, get_active_entity
from writerid_portal.services.storage_base import StorageService

logger = logging.getLogger(__name__)

RESOURCE = "Task"


def decode_query_image(payload: str, max_size: Optional[int] = None) -> bytes:
    """
    Decodes a base64 query image, stripping a `data:<mime>;base64,` prefix.

    Raises:
        ValidationError: not base64, empty, or larger than max_size
    """
    data = payload.strip()
    if data.startswith("data:"):
        _, _, data = data.partition(",")
    data = "".join(data.split())

    try:
        image = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(
            message="query_image is not valid base64 content",
            field="query_image",
        ) from e

    if not image:
        raise ValidationError(message="query_image is empty", field="query_image")

    limit = max_size or settings.max_query_image_size
    if len(image) > limit:
        raise ValidationError(
            message=f"query_image exceeds the maximum of {limit // (1024 * 1024)}MB",
            field="query_image",
            context={"max_size": limit, "actual_size": len(image)},
        )
    return image


class TaskService:

    def __init__(self, storage: StorageService, executor: ExecutorClient):
        self.storage = storage
        self.executor = executor

    # ── Writer Selection ──────────────────────────────────────────────────

    async def get_dataset_analysis(
        self,
        uow: UnitOfWork,
        dataset_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> DatasetWritersResponse:
        """
        Lists the writers of an analyzed dataset so the user can pick which
        ones a task compares against.

        Raises:
            NotFoundError: dataset missing or deleted
            ValidationError: dataset analysis has not completed
        """
        dataset = await get_active_entity(uow.datasets, dataset_id, "Dataset", user_id)
        if dataset.status != ProcessingStatus.COMPLETED:
            raise ValidationError(
                message="Dataset analysis is not complete",
                field="dataset_id",
                context={"status": dataset.status.value},
            )

        raw = await self.storage.download_blob(dataset.container_name, ANALYSIS_RESULTS_BLOB)
        if raw is None:
            logger.warning(
                "Dataset %s is Completed but %s is missing from %s",
                dataset.id, ANALYSIS_RESULTS_BLOB, dataset.container_name,
            )
            return DatasetWritersResponse(dataset_id=dataset.id, dataset_name=dataset.name, writers=[])

        analysis = parse_analysis_results(raw, dataset.container_name)
        names = analysis.writer_names or list(analysis.writer_counts)
        writers = [
            WriterSummary(id=name, name=name, sample_count=analysis.writer_counts.get(name, 0))
            for name in names
        ]
        return DatasetWritersResponse(dataset_id=dataset.id, dataset_name=dataset.name, writers=writers)

    # ── Create ────────────────────────────────────────────────────────────

    async def create_task(
        self,
        uow: UnitOfWork,
        data: TaskCreate,
        user_id: uuid.UUID,
    ) -> TaskCreateResponse:
        """
        Creates a task and runs its prediction synchronously.

        Raises (before anything is persisted):
            ValidationError: bad query image
            NotFoundError: dataset or custom model missing/deleted
            UnauthorizedError: custom model owned by another user

        Returns:
            TaskCreateResponse with success=False when the prediction failed;
            the task is then persisted as Failed.
        """
        image = decode_query_image(data.query_image)
        await get_active_entity(uow.datasets, data.dataset_id, "Dataset")
        if not data.use_default_model:
            await get_active_entity(uow.models, data.model_id, "Model", user_id)

        task_id = uuid.uuid4()
        task = Task(
            id=task_id,
            name=data.name,
            description=data.description,
            use_default_model=data.use_default_model,
            model_id=None if data.use_default_model else data.model_id,
            dataset_id=data.dataset_id,
            selected_writers=list(data.selected_writers),
            container_name=container_name_for(CONTAINER_PREFIX, task_id),
            status=ProcessingStatus.CREATED,
            user_id=user_id,
        )
        await uow.tasks.add(task)
        await uow.commit()
        logger.info("Task %s created for user %s", task.id, user_id)

        try:
            await self.storage.create_container(task.container_name)
            task.query_image_path = await self.storage.upload_blob(
                task.container_name, QUERY_IMAGE_BLOB, image
            )
            await uow.tasks.update(task)
            await uow.commit()

            task.status = ProcessingStatus.PROCESSING
            await uow.tasks.update(task)
            await uow.commit()

            result = await self.executor.predict(task.id)

            self._record_prediction(task, result)
            await uow.tasks.update(task)
            await uow.commit()
        except Exception as e:
            logger.error("Prediction for task %s failed: %s", task_id, str(e), exc_info=True)
            task = await self._mark_failed(uow, task_id)
            return TaskCreateResponse(
                success=False,
                message="Task created but prediction failed",
                task=TaskResponse.from_entity(task),
            )

        logger.info("Task %s completed", task.id)
        return TaskCreateResponse(
            success=True,
            message="Task created and prediction completed successfully",
            task=TaskResponse.from_entity(task),
        )

    async def _mark_failed(self, uow: UnitOfWork, task_id: uuid.UUID) -> Task:
        # Anything not yet committed is discarded; reload the committed row
        await uow.rollback()
        task = await uow.tasks.get_by_id(task_id, include_inactive=True)
        task.status = ProcessingStatus.FAILED
        task.completed_at = utcnow()
        await uow.tasks.update(task)
        await uow.commit()
        return task

    def _record_prediction(self, task: Task, result: TaskPredictionResult) -> None:
        result.task_id = str(task.id)
        task.results = result.model_dump(mode="json")
        task.status = ProcessingStatus.COMPLETED
        task.completed_at = utcnow()

    # ── Read ──────────────────────────────────────────────────────────────

    async def list_tasks(self, uow: UnitOfWork, user_id: uuid.UUID) -> List[TaskResponse]:
        tasks = await uow.tasks.find(Task.user_id == user_id)
        return [TaskResponse.from_entity(t) for t in tasks]

    async def get_task(
        self,
        uow: UnitOfWork,
        task_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> Task:
        return await get_active_entity(uow.tasks, task_id, RESOURCE, user_id)

    async def get_task_prediction_results(
        self,
        uow: UnitOfWork,
        task_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> PredictionResultsResponse:
        task = await self.get_task(uow, task_id, user_id)
        if task.status != ProcessingStatus.COMPLETED or not task.results:
            return PredictionResultsResponse(task_id=task.id, status=task.status, available=False)
        return PredictionResultsResponse(
            task_id=task.id,
            status=task.status,
            available=True,
            result=TaskPredictionResult.model_validate(task.results),
        )

    # ── Asynchronous Workflow ─────────────────────────────────────────────

    async def start_task(
        self,
        uow: UnitOfWork,
        task_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> Task:
        task = await self.get_task(uow, task_id, user_id)
        if task.status != ProcessingStatus.CREATED:
            raise InvalidStatusTransitionError(
                resource=RESOURCE,
                resource_id=str(task.id),
                current=task.status.value,
                target=ProcessingStatus.PROCESSING.value,
            )
        task.status = ProcessingStatus.PROCESSING
        await uow.tasks.update(task)
        await uow.commit()
        logger.info("Task %s started", task.id)
        return task

    async def submit_task_prediction(
        self,
        uow: UnitOfWork,
        task_id: uuid.UUID,
        result: TaskPredictionResult,
        user_id: Optional[uuid.UUID] = None,
    ) -> Task:
        """Stores a prediction delivered after the fact and marks the task Completed."""
        task = await self.get_task(uow, task_id, user_id)
        ensure_transition(RESOURCE, task.id, task.status, ProcessingStatus.COMPLETED)
        self._record_prediction(task, result)
        await uow.tasks.update(task)
        await uow.commit()
        logger.info("Task %s prediction submitted: writer=%s", task.id, result.prediction.writer_id)
        return task

    # ── Executor Callbacks ────────────────────────────────────────────────

    async def get_task_execution_info(self, uow: UnitOfWork, task_id: uuid.UUID) -> TaskExecutionInfo:
        """
        Everything the executor needs to run the task without further
        portal queries. Referenced dataset/model rows are read even if they
        were deleted after the task was created.
        """
        task = await self.get_task(uow, task_id)
        dataset = await uow.datasets.get_by_id(task.dataset_id, include_inactive=True)
        if dataset is None:
            raise ValidationError(
                message="Task references a dataset that no longer exists",
                context={"dataset_id": str(task.dataset_id)},
            )

        model_container_name = None
        if not task.use_default_model and task.model_id is not None:
            model = await uow.models.get_by_id(task.model_id, include_inactive=True)
            model_container_name = model.container_name if model else None

        return TaskExecutionInfo(
            task_id=task.id,
            task_name=task.name,
            task_container_name=task.container_name,
            dataset_container_name=dataset.container_name,
            model_container_name=model_container_name,
            use_default_model=task.use_default_model,
            selected_writers=list(task.selected_writers or []),
            query_image_file_name=QUERY_IMAGE_BLOB if task.query_image_path else None,
            status=task.status,
        )

    async def get_status(self, uow: UnitOfWork, task_id: uuid.UUID) -> Task:
        return await self.get_task(uow, task_id)

    async def update_task_results(
        self,
        uow: UnitOfWork,
        task_id: uuid.UUID,
        status: ProcessingStatus,
        results: Optional[TaskPredictionResult] = None,
        message: Optional[str] = None,
    ) -> Task:
        """
        Executor callback setting the final status (and optionally results).

        Omitting results keeps whatever is already stored.
        """
        task = await self.get_task(uow, task_id)
        ensure_transition(RESOURCE, task.id, task.status, status)

        previous = task.status
        if results is not None:
            results.task_id = str(task.id)
            task.results = results.model_dump(mode="json")
        task.status = status
        if status.is_terminal and task.completed_at is None:
            task.completed_at = utcnow()
        await uow.tasks.update(task)
        await uow.commit()
        logger.info(
            "Task %s status %s -> %s%s",
            task.id, previous.value, status.value, f" ({message})" if message else "",
        )
        return task

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_task(
        self,
        uow: UnitOfWork,
        task_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Removes `task-<id>` and soft-deletes the row; repeated calls are no-ops."""
        task = await uow.tasks.get_by_id(task_id)
        if task is None:
            logger.debug("Task %s already deleted or never existed", task_id)
            return
        check_owner(task, RESOURCE, user_id)

        if task.container_name:
            await self.storage.delete_container(task.container_name)
        await uow.tasks.soft_delete(task)
        await uow.commit()
        logger.info("Task %s deleted", task.id)
