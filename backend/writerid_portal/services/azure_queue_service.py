"""
Azure Storage Queue gateway.

Messages are serialized with pydantic and, by default, base64-encoded so
Azure Functions queue triggers on the executor side can read them. The
queue is created on first send.
"""

import logging
from typing import Optional

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.queue import TextBase64EncodePolicy
from azure.storage.queue.aio import QueueClient

from writerid_portal.config import settings
from writerid_portal.exceptions import QueueError
from writerid_portal.schemas.messages import QueueMessage
from writerid_portal.services.queue_base import QueueService

logger = logging.getLogger(__name__)


class AzureQueueService(QueueService):

    def __init__(
        self,
        connection_string: Optional[str] = None,
        queue_name: Optional[str] = None,
        base64_encode: Optional[bool] = None,
    ):
        conn = connection_string or settings.azure_storage_connection_string
        if not conn:
            raise QueueError(
                "Azure queue storage is not configured",
                context={"setting": "AZURE_STORAGE_CONNECTION_STRING"},
            )
        self.queue_name = queue_name or settings.queue_name
        encode = settings.queue_base64_encode if base64_encode is None else base64_encode

        client_kwargs = {}
        if encode:
            client_kwargs["message_encode_policy"] = TextBase64EncodePolicy()
        self._client = QueueClient.from_connection_string(conn, self.queue_name, **client_kwargs)
        self._queue_ready = False

    async def _ensure_queue(self) -> None:
        if self._queue_ready:
            return
        try:
            await self._client.create_queue()
            logger.info("Created queue %s", self.queue_name)
        except ResourceExistsError:
            pass
        self._queue_ready = True

    async def send(self, message: QueueMessage) -> None:
        body = message.model_dump_json()
        try:
            await self._ensure_queue()
            await self._client.send_message(body)
        except AzureError as e:
            logger.error("Failed to send %s message to %s: %s", message.task, self.queue_name, str(e))
            raise QueueError(
                context={"queue": self.queue_name, "task": message.task, "error": str(e)},
            ) from e
        logger.info("Sent %s message to queue %s", message.task, self.queue_name)

    async def close(self) -> None:
        await self._client.close()
