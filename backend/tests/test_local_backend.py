"""
WriterID Portal Backend — Local Filesystem Backend Tests
=========================================================

What we test:
    ✅ Containers are directories; create is idempotent
    ✅ Upload/download round trip and missing blobs
    ✅ Delete removes the directory; deleting twice is a no-op
    ✅ Names that would escape the storage root are rejected
    ✅ Queue messages are spooled as JSON lines
"""

import json
import uuid

import pytest

from writerid_portal.exceptions import StorageError
from writerid_portal.schemas.messages import (
    AnalyzeDatasetMessage,
    AnalyzeDatasetParameters,
    parse_queue_message,
)
from writerid_portal.services.local_backend import LocalQueueService, LocalStorageService


class TestLocalStorageService:

    def setup_method(self):
        self.container = f"task-{uuid.uuid4()}"

    @pytest.mark.asyncio
    async def test_create_container_idempotent(self, tmp_path):
        storage = LocalStorageService(storage_root=str(tmp_path))

        await storage.create_container(self.container)
        await storage.create_container(self.container)

        assert (tmp_path / self.container).is_dir()

    @pytest.mark.asyncio
    async def test_upload_and_download(self, tmp_path):
        storage = LocalStorageService(storage_root=str(tmp_path))
        await storage.create_container(self.container)

        path = await storage.upload_blob(self.container, "query.png", b"\x89PNG")

        assert path == f"{self.container}/query.png"
        assert await storage.download_blob(self.container, "query.png") == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_missing_blob_returns_none(self, tmp_path):
        storage = LocalStorageService(storage_root=str(tmp_path))
        assert await storage.download_blob(self.container, "analysis-results.json") is None

    @pytest.mark.asyncio
    async def test_delete_container_twice(self, tmp_path):
        storage = LocalStorageService(storage_root=str(tmp_path))
        await storage.create_container(self.container)
        await storage.upload_blob(self.container, "query.png", b"data")

        await storage.delete_container(self.container)
        await storage.delete_container(self.container)

        assert not (tmp_path / self.container).exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["..", "a/b", "", "..\\evil"])
    async def test_rejects_escaping_names(self, tmp_path, name):
        storage = LocalStorageService(storage_root=str(tmp_path))
        with pytest.raises(StorageError):
            await storage.create_container(name)

    @pytest.mark.asyncio
    async def test_access_descriptor(self, tmp_path):
        storage = LocalStorageService(storage_root=str(tmp_path), sas_expiry_days=3)
        access = await storage.generate_container_access(self.container)

        assert access.container_name == self.container
        assert access.upload_url.startswith("file://")
        assert await storage.health_check() is True


class TestLocalQueueService:

    @pytest.mark.asyncio
    async def test_messages_spooled_as_json_lines(self, tmp_path):
        queue = LocalQueueService(storage_root=str(tmp_path), queue_name="test-queue")
        dataset_id = uuid.uuid4()
        message = AnalyzeDatasetMessage(
            parameters=AnalyzeDatasetParameters(
                dataset_id=dataset_id,
                dataset_container_name=f"dataset-{dataset_id}",
            )
        )

        await queue.send(message)
        await queue.send(message)

        lines = (tmp_path / "_queues" / "test-queue.jsonl").read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["task"] == "analyze_dataset"
        assert parse_queue_message(lines[1]).parameters.dataset_id == dataset_id
