"""
WriterID Portal Backend — Model Service Tests
==============================================

What we test:
    ✅ Create requires an active, owned training dataset
    ✅ Create provisions model-<id> and enqueues a training message
    ✅ start_training only from Created
    ✅ Training report: unavailable until written, extra keys preserved
    ✅ Responses name the training dataset, even after it is deleted
    ✅ Status callbacks and idempotent delete
"""

import json
import uuid

import pytest

from writerid_portal.exceptions import InvalidStatusTransitionError, NotFoundError, UnauthorizedError
from writerid_portal.models import ProcessingStatus
from writerid_portal.schemas.messages import TrainModelMessage
from writerid_portal.schemas.model import UNKNOWN_DATASET_NAME
from writerid_portal.services.model_service import TRAINING_RESULTS_BLOB, ModelService, to_model_response


@pytest.fixture
def service(fake_storage, fake_queue):
    return ModelService(storage=fake_storage, queue=fake_queue)


class TestCreateModel:

    @pytest.mark.asyncio
    async def test_create_enqueues_training(
        self, service, uow, user, dataset_factory, fake_storage, fake_queue
    ):
        dataset = await dataset_factory(status=ProcessingStatus.COMPLETED, name="Letters")

        model = await service.create_model(uow, "Letters v1", dataset.id, user.id)

        assert model.status == ProcessingStatus.CREATED
        assert model.container_name == f"model-{model.id}"
        assert model.training_dataset_name == "Letters"
        assert model.container_name in fake_storage.containers

        assert len(fake_queue.messages) == 1
        message = fake_queue.messages[0]
        assert isinstance(message, TrainModelMessage)
        assert message.parameters.model_id == model.id
        assert message.parameters.dataset_container_name == dataset.container_name
        assert message.parameters.model_container_name == model.container_name

    @pytest.mark.asyncio
    async def test_create_on_missing_dataset(self, service, uow, user, fake_queue):
        with pytest.raises(NotFoundError):
            await service.create_model(uow, "m", uuid.uuid4(), user.id)
        assert fake_queue.messages == []

    @pytest.mark.asyncio
    async def test_create_on_deleted_dataset(self, service, uow, user, dataset_factory):
        dataset = await dataset_factory()
        await uow.datasets.soft_delete(dataset)
        await uow.commit()

        with pytest.raises(NotFoundError):
            await service.create_model(uow, "m", dataset.id, user.id)

    @pytest.mark.asyncio
    async def test_create_on_other_users_dataset(self, service, uow, user, other_user, dataset_factory):
        dataset = await dataset_factory(owner=other_user)
        with pytest.raises(UnauthorizedError):
            await service.create_model(uow, "m", dataset.id, user.id)


class TestTraining:

    @pytest.mark.asyncio
    async def test_start_training(self, service, uow, user, dataset_factory, model_factory, fake_queue):
        dataset = await dataset_factory()
        model = await model_factory(dataset)

        result = await service.start_training(uow, model.id, user.id)

        assert result.status == ProcessingStatus.PROCESSING
        assert isinstance(fake_queue.messages[-1], TrainModelMessage)

    @pytest.mark.asyncio
    async def test_start_training_twice_rejected(self, service, uow, user, dataset_factory, model_factory):
        dataset = await dataset_factory()
        model = await model_factory(dataset, status=ProcessingStatus.PROCESSING)

        with pytest.raises(InvalidStatusTransitionError):
            await service.start_training(uow, model.id, user.id)

    @pytest.mark.asyncio
    async def test_training_results_unavailable(self, service, uow, user, dataset_factory, model_factory):
        model = await model_factory(await dataset_factory())
        result = await service.get_training_results(uow, model.id, user.id)
        assert result.available is False

    @pytest.mark.asyncio
    async def test_training_results_cached_with_extra_keys(
        self, service, uow, user, dataset_factory, model_factory, fake_storage
    ):
        model = await model_factory(await dataset_factory(), status=ProcessingStatus.COMPLETED)
        report = {"accuracy": 0.93, "backbone": "resnet18", "support_set_size": 5}
        fake_storage.containers[model.container_name] = {
            TRAINING_RESULTS_BLOB: json.dumps(report).encode(),
        }

        result = await service.get_training_results(uow, model.id, user.id)

        assert result.available is True
        assert result.results.accuracy == 0.93
        assert model.training_result["support_set_size"] == 5


class TestReadAndDelete:

    @pytest.mark.asyncio
    async def test_deleted_dataset_still_names_model(self, service, uow, user, dataset_factory, model_factory):
        dataset = await dataset_factory(name="Archive")
        model = await model_factory(dataset)
        await uow.datasets.soft_delete(dataset)
        await uow.commit()

        response = await service.get_model(uow, model.id, user.id)
        assert response.training_dataset_name == "Archive"

    @pytest.mark.asyncio
    async def test_unknown_dataset_name_fallback(self, service, uow, user, dataset_factory, model_factory):
        model = await model_factory(await dataset_factory())

        assert await service._dataset_names(uow, [uuid.uuid4()]) == {}
        assert to_model_response(model, None).training_dataset_name == UNKNOWN_DATASET_NAME

    @pytest.mark.asyncio
    async def test_list_models_scoped_to_user(
        self, service, uow, user, other_user, dataset_factory, model_factory
    ):
        dataset = await dataset_factory()
        mine = await model_factory(dataset)
        await model_factory(await dataset_factory(owner=other_user), owner=other_user)

        listed = await service.list_models(uow, user.id)
        assert [m.id for m in listed] == [mine.id]

    @pytest.mark.asyncio
    async def test_status_callback_and_terminal_guard(self, service, uow, dataset_factory, model_factory):
        model = await model_factory(await dataset_factory(), status=ProcessingStatus.PROCESSING)

        await service.update_status(uow, model.id, ProcessingStatus.FAILED, "out of memory")
        with pytest.raises(InvalidStatusTransitionError):
            await service.update_status(uow, model.id, ProcessingStatus.COMPLETED)

        assert (await service.get_status(uow, model.id)).status == ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_delete_model_idempotent(
        self, service, uow, user, dataset_factory, model_factory, fake_storage
    ):
        model = await model_factory(await dataset_factory())

        await service.delete_model(uow, model.id, user.id)
        await service.delete_model(uow, model.id, user.id)

        assert fake_storage.deleted == [model.container_name]
        with pytest.raises(NotFoundError):
            await service.get_model(uow, model.id, user.id)
