"""
WriterID Portal Backend — Work Queue Message Tests
===================================================

What we test:
    ✅ Both message variants serialize to the {"task", "parameters"} envelope
    ✅ Fixed executor parameters are filled in
    ✅ parse_queue_message dispatches on the "task" tag
    ✅ Unknown task types and missing parameters are rejected
"""

import json
import uuid

import pytest
from pydantic import ValidationError as PydanticValidationError

from writerid_portal.schemas.messages import (
    AnalyzeDatasetMessage,
    AnalyzeDatasetParameters,
    TrainModelMessage,
    TrainModelParameters,
    parse_queue_message,
)


class TestQueueMessageShape:

    def test_analyze_message_envelope(self):
        dataset_id = uuid.uuid4()
        message = AnalyzeDatasetMessage(
            parameters=AnalyzeDatasetParameters(
                dataset_id=dataset_id,
                dataset_container_name=f"dataset-{dataset_id}",
            )
        )

        body = json.loads(message.model_dump_json())

        assert body["task"] == "analyze_dataset"
        assert body["parameters"] == {
            "dataset_id": str(dataset_id),
            "dataset_container_name": f"dataset-{dataset_id}",
            "confidence_threshold": 0.8,
            "preprocess": True,
            "extract_features": True,
        }

    def test_train_message_envelope(self):
        model_id = uuid.uuid4()
        message = TrainModelMessage(
            parameters=TrainModelParameters(
                model_id=model_id,
                dataset_container_name="dataset-abc",
                model_container_name=f"model-{model_id}",
            )
        )

        body = json.loads(message.model_dump_json())

        assert body["task"] == "train"
        assert body["parameters"]["model_id"] == str(model_id)
        assert body["parameters"]["epochs"] == 100
        assert body["parameters"]["batch_size"] == 32
        assert body["parameters"]["learning_rate"] == 0.001


class TestParseQueueMessage:

    def test_dispatches_analyze(self):
        raw = json.dumps({
            "task": "analyze_dataset",
            "parameters": {"dataset_id": str(uuid.uuid4()), "dataset_container_name": "dataset-x"},
        })
        assert isinstance(parse_queue_message(raw), AnalyzeDatasetMessage)

    def test_dispatches_train(self):
        raw = json.dumps({
            "task": "train",
            "parameters": {
                "model_id": str(uuid.uuid4()),
                "dataset_container_name": "dataset-x",
                "model_container_name": "model-y",
            },
        })
        message = parse_queue_message(raw)
        assert isinstance(message, TrainModelMessage)
        assert message.parameters.model_container_name == "model-y"

    def test_unknown_task_rejected(self):
        with pytest.raises(PydanticValidationError):
            parse_queue_message('{"task": "delete_everything", "parameters": {}}')

    def test_missing_parameters_rejected(self):
        with pytest.raises(PydanticValidationError):
            parse_queue_message('{"task": "train", "parameters": {"model_id": "not-a-uuid"}}')
