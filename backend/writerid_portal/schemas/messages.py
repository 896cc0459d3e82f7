"""
WriterID Portal Backend — Work Queue Messages
==============================================

What:  Tagged message variants sent to the executor's work queue.
How:   Every message is a JSON envelope `{"task": <type>, "parameters": {...}}`.
       `task` is the discriminator, so `parse_queue_message()` validates raw
       JSON straight into the right variant and rejects unknown task types.

Wire examples:
    {"task": "analyze_dataset",
     "parameters": {"dataset_id": "...", "dataset_container_name": "dataset-...",
                    "confidence_threshold": 0.8, "preprocess": true,
                    "extract_features": true}}

    {"task": "train",
     "parameters": {"model_id": "...", "dataset_container_name": "dataset-...",
                    "model_container_name": "model-...", "epochs": 100,
                    "batch_size": 32, "learning_rate": 0.001}}
"""

import uuid
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

# Fixed executor parameters; not user-configurable
ANALYSIS_CONFIDENCE_THRESHOLD = 0.8
TRAINING_EPOCHS = 100
TRAINING_BATCH_SIZE = 32
TRAINING_LEARNING_RATE = 0.001


class AnalyzeDatasetParameters(BaseModel):
    dataset_id: uuid.UUID
    dataset_container_name: str = Field(min_length=1)
    confidence_threshold: float = Field(default=ANALYSIS_CONFIDENCE_THRESHOLD, ge=0.0, le=1.0)
    preprocess: bool = True
    extract_features: bool = True


class AnalyzeDatasetMessage(BaseModel):
    task: Literal["analyze_dataset"] = "analyze_dataset"
    parameters: AnalyzeDatasetParameters


class TrainModelParameters(BaseModel):
    model_id: uuid.UUID
    dataset_container_name: str = Field(min_length=1)
    model_container_name: str = Field(min_length=1)
    epochs: int = Field(default=TRAINING_EPOCHS, gt=0)
    batch_size: int = Field(default=TRAINING_BATCH_SIZE, gt=0)
    learning_rate: float = Field(default=TRAINING_LEARNING_RATE, gt=0.0)

    model_config = {"protected_namespaces": ()}


class TrainModelMessage(BaseModel):
    task: Literal["train"] = "train"
    parameters: TrainModelParameters


QueueMessage = Annotated[
    Union[AnalyzeDatasetMessage, TrainModelMessage],
    Field(discriminator="task"),
]

_queue_message_adapter: TypeAdapter[QueueMessage] = TypeAdapter(QueueMessage)


def parse_queue_message(raw: Union[str, bytes]) -> Union[AnalyzeDatasetMessage, TrainModelMessage]:
    """Validates a raw JSON message body into its tagged variant."""
    return _queue_message_adapter.validate_json(raw)
