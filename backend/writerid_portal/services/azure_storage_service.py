"""
WriterID Portal Backend — Azure Blob Storage Gateway
=====================================================

What:  StorageService backed by an Azure Storage account.
How:   Uses the async BlobServiceClient for container and blob operations
       and generate_container_sas() for the client-facing access URLs.
       SAS generation needs the account key, so the connection string must
       be key-based (AccountName=...;AccountKey=...).

Error translation:
    ResourceExistsError on create   → ignored (already provisioned)
    ResourceNotFoundError on read   → None
    ResourceNotFoundError on delete → ignored
    any other AzureError            → StorageError
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import ContainerSasPermissions, generate_container_sas
from azure.storage.blob.aio import BlobServiceClient

from writerid_portal.config import settings
from writerid_portal.exceptions import StorageError
from writerid_portal.schemas.dataset import ContainerAccess
from writerid_portal.services.storage_base import StorageService, blob_path

logger = logging.getLogger(__name__)

# SAS start time is backdated to tolerate clock skew between us and Azure
SAS_CLOCK_SKEW = timedelta(minutes=5)


class AzureBlobStorageService(StorageService):

    def __init__(
        self,
        connection_string: Optional[str] = None,
        sas_expiry_days: Optional[int] = None,
    ):
        conn = connection_string or settings.azure_storage_connection_string
        if not conn:
            raise StorageError(
                "Azure storage is not configured",
                context={"setting": "AZURE_STORAGE_CONNECTION_STRING"},
            )
        self._client = BlobServiceClient.from_connection_string(conn)
        self.sas_expiry_days = sas_expiry_days or settings.sas_expiry_days
        logger.info("AzureBlobStorageService initialized for account=%s", self._client.account_name)

    async def create_container(self, container_name: str) -> None:
        try:
            await self._client.create_container(container_name)
            logger.info("Created blob container %s", container_name)
        except ResourceExistsError:
            logger.info("Blob container %s already exists", container_name)
        except AzureError as e:
            logger.error("Failed to create container %s: %s", container_name, str(e))
            raise StorageError(
                "Failed to provision storage container",
                context={"container": container_name, "error": str(e)},
            ) from e

    async def generate_container_access(self, container_name: str) -> ContainerAccess:
        account_key = getattr(self._client.credential, "account_key", None)
        if not account_key:
            raise StorageError(
                "Container access URLs require a key-based connection string",
                context={"container": container_name},
            )

        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(days=self.sas_expiry_days)
        sas_token = generate_container_sas(
            account_name=self._client.account_name,
            container_name=container_name,
            account_key=account_key,
            permission=ContainerSasPermissions(read=True, write=True, list=True),
            start=now - SAS_CLOCK_SKEW,
            expiry=expires_at,
        )
        url = f"{self._client.url.rstrip('/')}/{container_name}?{sas_token}"
        # One SAS covers both directions; the two URLs keep the client contract explicit
        return ContainerAccess(
            container_name=container_name,
            upload_url=url,
            download_url=url,
            expires_at=expires_at,
        )

    async def upload_blob(self, container_name: str, blob_name: str, data: bytes) -> str:
        try:
            blob = self._client.get_blob_client(container=container_name, blob=blob_name)
            await blob.upload_blob(data, overwrite=True)
        except AzureError as e:
            logger.error("Upload of %s/%s failed: %s", container_name, blob_name, str(e))
            raise StorageError(
                "Failed to upload blob",
                context={"container": container_name, "blob": blob_name, "error": str(e)},
            ) from e
        logger.info("Uploaded %d bytes to %s/%s", len(data), container_name, blob_name)
        return blob_path(container_name, blob_name)

    async def download_blob(self, container_name: str, blob_name: str) -> Optional[bytes]:
        try:
            blob = self._client.get_blob_client(container=container_name, blob=blob_name)
            stream = await blob.download_blob()
            return await stream.readall()
        except ResourceNotFoundError:
            return None
        except AzureError as e:
            logger.error("Download of %s/%s failed: %s", container_name, blob_name, str(e))
            raise StorageError(
                "Failed to download blob",
                context={"container": container_name, "blob": blob_name, "error": str(e)},
            ) from e

    async def delete_container(self, container_name: str) -> None:
        try:
            await self._client.delete_container(container_name)
            logger.info("Deleted blob container %s", container_name)
        except ResourceNotFoundError:
            logger.info("Blob container %s was already gone", container_name)
        except AzureError as e:
            logger.error("Failed to delete container %s: %s", container_name, str(e))
            raise StorageError(
                "Failed to delete storage container",
                context={"container": container_name, "error": str(e)},
            ) from e

    async def health_check(self) -> bool:
        try:
            await self._client.get_account_information()
            return True
        except AzureError as e:
            logger.warning("Azure blob health check failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self._client.close()
