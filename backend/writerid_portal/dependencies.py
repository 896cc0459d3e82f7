"""
WriterID Portal Backend — FastAPI Dependencies
===============================================

What:  Providers for the unit of work, gateways, domain services and the two
       authentication schemes.
How:   Gateways hold network clients, so each is built once per process
       (lru_cache) and closed by the app lifespan. Domain services are cheap
       and built per request around those gateways. Tests replace any of
       these through `app.dependency_overrides`.

Authentication:
    Internal API  → `Authorization: Bearer <jwt>`   → get_current_user
    External API  → `X-API-Key: <static key>`       → require_api_key
"""

import hmac
import logging
from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from writerid_portal.config import settings
from writerid_portal.database import get_db_session
from writerid_portal.exceptions import AuthenticationError
from writerid_portal.models import User
from writerid_portal.repository import UnitOfWork
from writerid_portal.services.auth_service import AuthService
from writerid_portal.services.dashboard_service import DashboardService
from writerid_portal.services.dataset_service import DatasetService
from writerid_portal.services.executor_client import ExecutorClient
from writerid_portal.services.model_service import ModelService
from writerid_portal.services.queue_base import QueueService
from writerid_portal.services.storage_base import StorageService
from writerid_portal.services.task_service import TaskService

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

bearer_scheme = HTTPBearer(auto_error=False)
api_key_scheme = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


# ── Persistence ───────────────────────────────────────────────────────────

async def get_unit_of_work(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[UnitOfWork, None]:
    yield UnitOfWork(session)


# ── Gateways ──────────────────────────────────────────────────────────────

@lru_cache
def get_storage_service() -> StorageService:
    if settings.storage_backend == "azure":
        from writerid_portal.services.azure_storage_service import AzureBlobStorageService
        return AzureBlobStorageService()
    from writerid_portal.services.local_backend import LocalStorageService
    return LocalStorageService()


@lru_cache
def get_queue_service() -> QueueService:
    if settings.storage_backend == "azure":
        from writerid_portal.services.azure_queue_service import AzureQueueService
        return AzureQueueService()
    from writerid_portal.services.local_backend import LocalQueueService
    return LocalQueueService()


@lru_cache
def get_executor_client() -> ExecutorClient:
    return ExecutorClient()


async def close_gateways() -> None:
    """Closes whichever gateways were instantiated during the process lifetime."""
    for provider in (get_storage_service, get_queue_service, get_executor_client):
        if provider.cache_info().currsize:
            await provider().close()
            provider.cache_clear()


# ── Domain Services ───────────────────────────────────────────────────────

def get_dataset_service(
    storage: StorageService = Depends(get_storage_service),
    queue: QueueService = Depends(get_queue_service),
) -> DatasetService:
    return DatasetService(storage=storage, queue=queue)


def get_model_service(
    storage: StorageService = Depends(get_storage_service),
    queue: QueueService = Depends(get_queue_service),
) -> ModelService:
    return ModelService(storage=storage, queue=queue)


def get_task_service(
    storage: StorageService = Depends(get_storage_service),
    executor: ExecutorClient = Depends(get_executor_client),
) -> TaskService:
    return TaskService(storage=storage, executor=executor)


def get_dashboard_service() -> DashboardService:
    return DashboardService()


def get_auth_service() -> AuthService:
    return AuthService()


# ── Authentication ────────────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    uow: UnitOfWork = Depends(get_unit_of_work),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolves the bearer token to an active user or raises AuthenticationError (401)."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing bearer token")
    user_id = auth.user_id_from_token(credentials.credentials)
    user = await auth.get_user(uow, user_id)
    request.state.user_id = str(user.id)
    return user


async def require_api_key(api_key: Optional[str] = Security(api_key_scheme)) -> None:
    """Guards the executor callback API with the static EXTERNAL_API_KEY."""
    expected = settings.external_api_key
    if not expected:
        logger.error("External API called but EXTERNAL_API_KEY is not configured")
        raise AuthenticationError("External API key authentication is not configured")
    if not api_key or not hmac.compare_digest(api_key, expected):
        raise AuthenticationError("Invalid API key")
