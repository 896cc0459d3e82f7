"""
WriterID Portal Backend — Task Schemas
=======================================

What:  API contracts for prediction tasks, the writer list used to build a
       task, and the prediction payload exchanged with the executor.

Executor prediction payload (response to POST /predict and body of the
prediction callback):
    {
        "task_id": "3f0c...",
        "query_image": "query.png",
        "prediction": {"writer_id": "w2", "confidence": 0.91}
    }
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from writerid_portal.models.status import ProcessingStatus
from writerid_portal.models.task import QUERY_IMAGE_BLOB


# ══════════════════════════════════════════════════════════════════════════
# Executor Prediction Contract
# ══════════════════════════════════════════════════════════════════════════

class WriterPrediction(BaseModel):
    writer_id: str = Field(min_length=1, description="Predicted writer identifier")
    confidence: float = Field(ge=0.0, le=1.0, description="Prediction confidence in [0, 1]")


class TaskPredictionResult(BaseModel):
    task_id: Optional[str] = None
    query_image: str = Field(default=QUERY_IMAGE_BLOB)
    prediction: WriterPrediction

    model_config = {"extra": "ignore"}


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════

class TaskCreate(BaseModel):
    """
    Body of POST /api/v1/tasks.

    query_image is base64 PNG content, optionally prefixed with a data URL
    header (`data:image/png;base64,`), exactly as browsers produce it.
    """
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    use_default_model: bool = Field(default=True)
    model_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Custom model to use; required when use_default_model is false",
    )
    dataset_id: uuid.UUID
    selected_writers: List[str] = Field(min_length=1, description="Writers to compare against")
    query_image: str = Field(min_length=1, description="Base64-encoded query image")

    model_config = {"protected_namespaces": ()}

    @model_validator(mode="after")
    def check_model_choice(self) -> "TaskCreate":
        if self.use_default_model:
            self.model_id = None
        elif self.model_id is None:
            raise ValueError("model_id is required when use_default_model is false")
        return self


class TaskResultsUpdate(BaseModel):
    """Body of POST /api/v1/tasks/{id}/results."""
    prediction: WriterPrediction
    query_image: str = Field(default=QUERY_IMAGE_BLOB)


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════

class TaskResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    status: ProcessingStatus
    use_default_model: bool
    model_id: Optional[uuid.UUID] = None
    dataset_id: uuid.UUID
    selected_writers: List[str]
    query_image_path: Optional[str] = None
    prediction_result: Optional[TaskPredictionResult] = Field(
        default=None,
        description="Present only once the task is Completed",
    )
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "protected_namespaces": ()}

    @classmethod
    def from_entity(cls, task) -> "TaskResponse":
        prediction = None
        if task.status == ProcessingStatus.COMPLETED and task.results:
            prediction = TaskPredictionResult.model_validate(task.results)
        response = cls.model_validate(task)
        response.prediction_result = prediction
        return response


class TaskCreateResponse(BaseModel):
    """
    Outcome of task creation.

    success is False when the executor call failed; the task itself is then
    persisted with status Failed.
    """
    success: bool
    message: str
    task: TaskResponse


class WriterSummary(BaseModel):
    id: str
    name: str
    sample_count: int = 0


class DatasetWritersResponse(BaseModel):
    dataset_id: uuid.UUID
    dataset_name: str
    writers: List[WriterSummary]


class PredictionResultsResponse(BaseModel):
    task_id: uuid.UUID
    status: ProcessingStatus
    available: bool
    result: Optional[TaskPredictionResult] = None
