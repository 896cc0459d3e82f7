"""
WriterID Portal Backend — External Executor Client
===================================================

What:  Calls the external writer-identification executor to run a
       prediction for one task.
How:   A single POST of `{"task_id": "<id>"}` to EXECUTOR_BASE_URL +
       EXECUTOR_PREDICT_ENDPOINT. The executor fetches everything else it
       needs through GET /api/external/tasks/{id}/execution-info.
When:  Synchronously during task creation.

Failure semantics (no retries):
    timeout                  → ExecutorTimeoutError
    connection/transport     → ExecutorError
    non-2xx status           → ExecutorError (status_code set)
    body not a prediction    → ExecutorError
"""

import json
import logging
import uuid
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from writerid_portal.config import settings
from writerid_portal.exceptions import ExecutorError, ExecutorTimeoutError
from writerid_portal.schemas.task import TaskPredictionResult

logger = logging.getLogger(__name__)


class ExecutorClient:
    """
    Thin httpx wrapper around the executor's prediction endpoint.

    Args:
        predict_url: Override settings.executor_predict_url
        timeout_seconds: Override settings.executor_timeout_seconds
        client: Pre-built AsyncClient (tests pass one with MockTransport)
    """

    def __init__(
        self,
        predict_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.predict_url = predict_url or settings.executor_predict_url
        self.timeout_seconds = float(timeout_seconds or settings.executor_timeout_seconds)
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_seconds))

    async def predict(self, task_id: uuid.UUID) -> TaskPredictionResult:
        """
        Requests a prediction and returns the parsed result.

        The returned task_id always equals the requested one, whatever the
        executor echoed back.
        """
        logger.info("Requesting prediction for task %s from %s", task_id, self.predict_url)
        try:
            response = await self._client.post(
                self.predict_url,
                json={"task_id": str(task_id)},
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            logger.error("Executor timed out after %ss for task %s", self.timeout_seconds, task_id)
            raise ExecutorTimeoutError(
                timeout_seconds=self.timeout_seconds,
                context={"task_id": str(task_id)},
            ) from e
        except httpx.HTTPError as e:
            logger.error("Executor request failed for task %s: %s", task_id, str(e))
            raise ExecutorError(
                message="Could not reach the prediction executor",
                context={"task_id": str(task_id), "error": str(e)},
            ) from e

        if response.is_error:
            logger.error(
                "Executor returned HTTP %d for task %s: %s",
                response.status_code, task_id, response.text[:500],
            )
            raise ExecutorError(
                message=f"Prediction executor returned HTTP {response.status_code}",
                status_code=response.status_code,
                context={"task_id": str(task_id)},
            )

        try:
            result = TaskPredictionResult.model_validate(response.json())
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.error("Executor returned an unparseable prediction for task %s: %s", task_id, str(e))
            raise ExecutorError(
                message="Prediction executor returned a malformed response",
                status_code=response.status_code,
                context={"task_id": str(task_id)},
            ) from e

        result.task_id = str(task_id)
        logger.info(
            "Prediction for task %s: writer=%s confidence=%.3f",
            task_id, result.prediction.writer_id, result.prediction.confidence,
        )
        return result

    async def close(self) -> None:
        await self._client.aclose()
