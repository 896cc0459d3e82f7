"""
WriterID Portal Backend — Test Configuration (conftest.py)
===========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite, one
       shared connection through StaticPool) and in-memory fakes for the
       storage, queue and executor gateways. Nothing touches Azure or the
       network.

Fixture Hierarchy (all function-scoped):
    db_engine ── session_factory ── uow ── user / other_user
                                      └── dataset_factory / model_factory / task_factory
    fake_storage, fake_queue, fake_executor
    api_client: httpx AsyncClient over ASGITransport with dependency overrides
    auth_headers / other_auth_headers: bearer headers for the seeded users
    api_key_headers: X-API-Key header for the external API
"""

import os
import tempfile

# Override settings for testing BEFORE any writerid_portal imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="writerid_test_")
os.environ["EXTERNAL_API_KEY"] = "test-external-api-key"
os.environ["JWT_SECRET"] = "test-jwt-secret-with-enough-length-for-hs256"
os.environ["LOG_LEVEL"] = "WARNING"

import base64  # noqa: E402
import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from writerid_portal.database import Base  # noqa: E402
from writerid_portal.dependencies import (  # noqa: E402
    get_executor_client,
    get_queue_service,
    get_storage_service,
    get_unit_of_work,
)
from writerid_portal.exceptions import QueueError, StorageError  # noqa: E402
from writerid_portal.models import Dataset, ProcessingStatus, Task, User, WriterModel  # noqa: E402
from writerid_portal.models.mixins import container_name_for  # noqa: E402
from writerid_portal.repository import UnitOfWork  # noqa: E402
from writerid_portal.schemas.dataset import ContainerAccess  # noqa: E402
from writerid_portal.schemas.task import TaskPredictionResult, WriterPrediction  # noqa: E402
from writerid_portal.services.auth_service import AuthService  # noqa: E402
from writerid_portal.services.queue_base import QueueService  # noqa: E402
from writerid_portal.services.storage_base import StorageService, blob_path  # noqa: E402

# Smallest valid PNG: signature + IHDR + IDAT + IEND for a 1x1 pixel
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

# Not a real bcrypt hash; only the auth tests log in
UNUSABLE_PASSWORD_HASH = "!unusable"


# ══════════════════════════════════════════════════════════════════════════
# Gateway Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakeStorage(StorageService):
    """In-memory StorageService: {container: {blob: bytes}}."""

    def __init__(self):
        self.containers: Dict[str, Dict[str, bytes]] = {}
        self.deleted: List[str] = []
        self.fail_on: set = set()
        self.healthy = True

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StorageError(f"simulated {operation} failure")

    async def create_container(self, container_name: str) -> None:
        self._maybe_fail("create_container")
        self.containers.setdefault(container_name, {})

    async def generate_container_access(self, container_name: str) -> ContainerAccess:
        return ContainerAccess(
            container_name=container_name,
            upload_url=f"https://fake.blob.test/{container_name}?sp=rwl&sig=fake",
            download_url=f"https://fake.blob.test/{container_name}?sp=rl&sig=fake",
            expires_at=datetime.now(timezone.utc) + timedelta(days=3),
        )

    async def upload_blob(self, container_name: str, blob_name: str, data: bytes) -> str:
        self._maybe_fail("upload_blob")
        self.containers.setdefault(container_name, {})[blob_name] = data
        return blob_path(container_name, blob_name)

    async def download_blob(self, container_name: str, blob_name: str) -> Optional[bytes]:
        return self.containers.get(container_name, {}).get(blob_name)

    async def delete_container(self, container_name: str) -> None:
        self._maybe_fail("delete_container")
        self.containers.pop(container_name, None)
        self.deleted.append(container_name)

    async def health_check(self) -> bool:
        return self.healthy


class FakeQueue(QueueService):
    """Records sent messages instead of delivering them."""

    def __init__(self):
        self.messages: list = []
        self.fail = False

    async def send(self, message) -> None:
        if self.fail:
            raise QueueError(context={"task": message.task})
        self.messages.append(message)

    async def close(self) -> None:
        return None


class FakeExecutor:
    """
    Stands in for ExecutorClient.

    `error` is raised from predict() when set. `on_predict` is awaited with
    the task id before answering, so tests can inspect what the executor
    would observe mid-request.
    """

    def __init__(self):
        self.calls: List[uuid.UUID] = []
        self.error: Optional[Exception] = None
        self.on_predict = None
        self.writer_id = "w2"
        self.confidence = 0.91

    async def predict(self, task_id: uuid.UUID) -> TaskPredictionResult:
        self.calls.append(task_id)
        if self.on_predict is not None:
            await self.on_predict(task_id)
        if self.error is not None:
            raise self.error
        return TaskPredictionResult(
            task_id=str(task_id),
            prediction=WriterPrediction(writer_id=self.writer_id, confidence=self.confidence),
        )

    async def close(self) -> None:
        return None


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def uow(session_factory):
    async with session_factory() as session:
        yield UnitOfWork(session)


async def _seed_user(uow: UnitOfWork, email: str, first_name: str) -> User:
    user = User(
        email=email,
        first_name=first_name,
        last_name="Tester",
        password_hash=UNUSABLE_PASSWORD_HASH,
    )
    await uow.users.add(user)
    await uow.commit()
    return user


@pytest_asyncio.fixture
async def user(uow) -> User:
    return await _seed_user(uow, "alice@example.com", "Alice")


@pytest_asyncio.fixture
async def other_user(uow) -> User:
    return await _seed_user(uow, "bob@example.com", "Bob")


# ── Entity Factories ──────────────────────────────────────────────────────

@pytest.fixture
def dataset_factory(uow, user):
    async def create(
        owner: Optional[User] = None,
        status: ProcessingStatus = ProcessingStatus.CREATED,
        name: str = "Samples",
    ) -> Dataset:
        dataset_id = uuid.uuid4()
        dataset = Dataset(
            id=dataset_id,
            name=name,
            user_id=(owner or user).id,
            container_name=container_name_for("dataset", dataset_id),
            status=status,
        )
        await uow.datasets.add(dataset)
        await uow.commit()
        return dataset
    return create


@pytest.fixture
def model_factory(uow, user):
    async def create(
        dataset: Dataset,
        owner: Optional[User] = None,
        status: ProcessingStatus = ProcessingStatus.CREATED,
        name: str = "Writer model",
    ) -> WriterModel:
        model_id = uuid.uuid4()
        model = WriterModel(
            id=model_id,
            name=name,
            user_id=(owner or user).id,
            training_dataset_id=dataset.id,
            container_name=container_name_for("model", model_id),
            status=status,
        )
        await uow.models.add(model)
        await uow.commit()
        return model
    return create


@pytest.fixture
def task_factory(uow, user):
    async def create(
        dataset: Dataset,
        owner: Optional[User] = None,
        status: ProcessingStatus = ProcessingStatus.CREATED,
        model: Optional[WriterModel] = None,
        results: Optional[dict] = None,
    ) -> Task:
        task_id = uuid.uuid4()
        task = Task(
            id=task_id,
            name="Who wrote this?",
            user_id=(owner or user).id,
            dataset_id=dataset.id,
            use_default_model=model is None,
            model_id=model.id if model else None,
            selected_writers=["w1", "w2"],
            container_name=container_name_for("task", task_id),
            query_image_path=f"task-{task_id}/query.png",
            status=status,
            results=results,
        )
        await uow.tasks.add(task)
        await uow.commit()
        return task
    return create


# ══════════════════════════════════════════════════════════════════════════
# Gateway Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_queue() -> FakeQueue:
    return FakeQueue()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def query_image_b64() -> str:
    return base64.b64encode(PNG_BYTES).decode("ascii")


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def api_client(session_factory, fake_storage, fake_queue, fake_executor):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    The lifespan is not run, so logging and gateway shutdown stay untouched.
    Unexpected exceptions are rendered by the app's catch-all handler
    instead of being re-raised into the test.
    """
    from writerid_portal.main import create_app

    app = create_app()

    async def override_unit_of_work():
        async with session_factory() as session:
            try:
                yield UnitOfWork(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_unit_of_work] = override_unit_of_work
    app.dependency_overrides[get_storage_service] = lambda: fake_storage
    app.dependency_overrides[get_queue_service] = lambda: fake_queue
    app.dependency_overrides[get_executor_client] = lambda: fake_executor

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def bearer_headers(user: User) -> Dict[str, str]:
    token, _ = AuthService().create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user) -> Dict[str, str]:
    return bearer_headers(user)


@pytest.fixture
def other_auth_headers(other_user) -> Dict[str, str]:
    return bearer_headers(other_user)


@pytest.fixture
def api_key_headers() -> Dict[str, str]:
    return {"X-API-Key": os.environ["EXTERNAL_API_KEY"]}
