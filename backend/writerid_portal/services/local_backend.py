"""
WriterID Portal Backend — Local Filesystem Backend
===================================================

What:  Development stand-ins for Azure: containers are directories under
       STORAGE_ROOT and queue messages are appended to a JSON-lines spool.
How:   Async file I/O through aiofiles so request handlers never block the
       event loop on disk writes.

Directory Structure:
    storage/
    ├── dataset-<id>/
    │   └── analysis-results.json
    ├── task-<id>/
    │   └── query.png
    └── _queues/
        └── writerid-task-queue.jsonl
"""

import logging
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import aiofiles

from writerid_portal.config import settings
from writerid_portal.exceptions import QueueError, StorageError
from writerid_portal.schemas.dataset import ContainerAccess
from writerid_portal.schemas.messages import QueueMessage
from writerid_portal.services.queue_base import QueueService
from writerid_portal.services.storage_base import StorageService, blob_path

logger = logging.getLogger(__name__)

QUEUE_SPOOL_DIR = "_queues"


def _safe_segment(value: str, kind: str) -> str:
    """Rejects names that could escape the storage root."""
    if not value or value in {".", ".."} or "/" in value or "\\" in value:
        raise StorageError(
            f"Invalid {kind} name",
            context={kind: value},
        )
    return value


class LocalStorageService(StorageService):
    """StorageService over the local filesystem."""

    def __init__(self, storage_root: Optional[str] = None, sas_expiry_days: Optional[int] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        self.sas_expiry_days = sas_expiry_days or settings.sas_expiry_days
        logger.info("LocalStorageService initialized with storage_root=%s", self.storage_root)

    def _container_path(self, container_name: str) -> Path:
        return self.storage_root / _safe_segment(container_name, "container")

    async def create_container(self, container_name: str) -> None:
        path = self._container_path(container_name)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create container directory %s: %s", path, str(e))
            raise StorageError(
                "Failed to provision storage container",
                context={"container": container_name, "os_error": str(e)},
            ) from e
        logger.info("Provisioned local container %s", container_name)

    async def generate_container_access(self, container_name: str) -> ContainerAccess:
        uri = self._container_path(container_name).as_uri()
        return ContainerAccess(
            container_name=container_name,
            upload_url=uri,
            download_url=uri,
            expires_at=datetime.now(timezone.utc) + timedelta(days=self.sas_expiry_days),
        )

    async def upload_blob(self, container_name: str, blob_name: str, data: bytes) -> str:
        path = self._container_path(container_name) / _safe_segment(blob_name, "blob")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, str(e))
            raise StorageError(
                "Failed to upload blob",
                context={"container": container_name, "blob": blob_name, "os_error": str(e)},
            ) from e
        logger.info("Stored %s/%s (%d bytes)", container_name, blob_name, len(data))
        return blob_path(container_name, blob_name)

    async def download_blob(self, container_name: str, blob_name: str) -> Optional[bytes]:
        path = self._container_path(container_name) / _safe_segment(blob_name, "blob")
        if not path.is_file():
            return None
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise StorageError(
                "Failed to download blob",
                context={"container": container_name, "blob": blob_name, "os_error": str(e)},
            ) from e

    async def delete_container(self, container_name: str) -> None:
        path = self._container_path(container_name)
        if not path.exists():
            logger.debug("Container %s already gone", container_name)
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise StorageError(
                "Failed to delete storage container",
                context={"container": container_name, "os_error": str(e)},
            ) from e
        logger.info("Deleted local container %s", container_name)

    async def health_check(self) -> bool:
        return self.storage_root.is_dir()


class LocalQueueService(QueueService):
    """Appends each message as one JSON line to <storage_root>/_queues/<queue>.jsonl."""

    def __init__(self, storage_root: Optional[str] = None, queue_name: Optional[str] = None):
        self.queue_name = queue_name or settings.queue_name
        spool_dir = Path(storage_root or settings.storage_root).resolve() / QUEUE_SPOOL_DIR
        spool_dir.mkdir(parents=True, exist_ok=True)
        self.spool_path = spool_dir / f"{_safe_segment(self.queue_name, 'queue')}.jsonl"

    async def send(self, message: QueueMessage) -> None:
        try:
            async with aiofiles.open(self.spool_path, "a", encoding="utf-8") as f:
                await f.write(message.model_dump_json() + "\n")
        except OSError as e:
            raise QueueError(
                context={"queue": self.queue_name, "task": message.task, "os_error": str(e)},
            ) from e
        logger.info("Spooled %s message to %s", message.task, self.spool_path.name)
