"""Writer-identification model schemas and the training report contract."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from writerid_portal.models.status import ProcessingStatus

UNKNOWN_DATASET_NAME = "Unknown Dataset"


class ModelCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    training_dataset_id: uuid.UUID = Field(description="Dataset the model is trained on")


class ModelResponse(BaseModel):
    id: uuid.UUID
    name: str
    container_name: str
    status: ProcessingStatus
    training_dataset_id: uuid.UUID
    training_dataset_name: str = Field(
        default=UNKNOWN_DATASET_NAME,
        description="Display name of the training dataset",
    )
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ModelTrainingResult(BaseModel):
    """
    Contents of `training-results.json` in the model container.

    Every metric is optional: a failed run may only carry `error`. Unknown
    keys are preserved so newer executor versions do not break the portal.
    """
    accuracy: Optional[float] = None
    f1_score: Optional[float] = None
    precision: Optional[float] = None
    recall: Optional[float] = None
    confusion_matrix: Optional[List[List[float]]] = None
    time: Optional[float] = Field(default=None, description="Training wall time in seconds")
    requested_episodes: Optional[int] = None
    actual_episodes_run: Optional[int] = None
    optimal_val_episode: Optional[int] = None
    best_val_accuracy: Optional[float] = None
    backbone: Optional[str] = None
    error: Optional[str] = None
    optimal_threshold: Optional[float] = None
    threshold_accuracy: Optional[float] = None

    model_config = {"extra": "allow"}


class TrainingResultsResponse(BaseModel):
    model_id: uuid.UUID
    status: ProcessingStatus
    available: bool
    results: Optional[ModelTrainingResult] = None

    model_config = {"protected_namespaces": ()}
