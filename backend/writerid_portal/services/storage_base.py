"""
WriterID Portal Backend — Abstract Blob Storage Interface
==========================================================

What:  Contract for the blob storage gateway: one container per dataset,
       model or task, time-limited access URLs, byte upload/download.
How:   Concrete backends are AzureBlobStorageService (production) and
       LocalStorageService (development, filesystem). Tests use an
       in-memory fake implementing the same interface.
Who:   Dataset, Model and Task services.

Well-known blob names inside containers are the only file contract with the
executor: `analysis-results.json` (dataset), `training-results.json` (model)
and `query.png` (task).
"""

from abc import ABC, abstractmethod
from typing import Optional

from writerid_portal.schemas.dataset import ContainerAccess


class StorageService(ABC):
    """
    Abstract blob storage gateway.

    Contract:
        - create_container() is idempotent
        - delete_container() on a missing container is a no-op
        - download_blob() returns None when the blob does not exist
        - backend-specific failures are raised as StorageError
    """

    @abstractmethod
    async def create_container(self, container_name: str) -> None:
        """Provisions the container if it does not exist yet."""
        ...

    @abstractmethod
    async def generate_container_access(self, container_name: str) -> ContainerAccess:
        """
        Issues read/write/list access to a container that expires after
        the configured number of days.
        """
        ...

    @abstractmethod
    async def upload_blob(self, container_name: str, blob_name: str, data: bytes) -> str:
        """
        Writes `data` to `blob_name`, replacing existing content.

        Returns:
            The blob path `<container>/<blob_name>` recorded on entities.
        """
        ...

    @abstractmethod
    async def download_blob(self, container_name: str, blob_name: str) -> Optional[bytes]:
        ...

    @abstractmethod
    async def delete_container(self, container_name: str) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe used by GET /health."""
        ...

    async def close(self) -> None:
        """Releases network resources; called from the app lifespan."""
        return None


def blob_path(container_name: str, blob_name: str) -> str:
    return f"{container_name}/{blob_name}"
