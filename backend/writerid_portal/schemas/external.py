"""
Schemas for the executor-facing callback API (/api/external).

TaskExecutionInfo is the hand-off contract: it carries everything the
executor needs to run a task without database access, and it is serialized
in camelCase because that is what the executor deserializes.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from writerid_portal.models.status import ProcessingStatus
from writerid_portal.schemas.task import TaskPredictionResult


class StatusUpdateRequest(BaseModel):
    status: ProcessingStatus
    message: Optional[str] = Field(default=None, max_length=2000, description="Free-form note from the executor")


class TaskStatusUpdateRequest(StatusUpdateRequest):
    results: Optional[TaskPredictionResult] = Field(
        default=None,
        description="Prediction payload; omitted keeps whatever results are already stored",
    )


class EntityStatusResponse(BaseModel):
    id: uuid.UUID
    status: ProcessingStatus
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskExecutionInfo(BaseModel):
    task_id: uuid.UUID
    task_name: str
    task_container_name: str
    dataset_container_name: str
    model_container_name: Optional[str] = None
    use_default_model: bool
    selected_writers: List[str]
    query_image_file_name: Optional[str] = None
    status: ProcessingStatus

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "protected_namespaces": (),
    }
