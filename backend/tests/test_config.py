"""
WriterID Portal Backend — Configuration Tests
==============================================
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from writerid_portal.config import DEFAULT_JWT_SECRET, Settings
from writerid_portal.database import engine_options


class TestSettings:

    def test_executor_predict_url_joins_cleanly(self):
        settings = Settings(executor_base_url="http://executor:5000/", executor_predict_endpoint="predict")
        assert settings.executor_predict_url == "http://executor:5000/predict"

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="http://a.test, http://b.test ,,")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(PydanticValidationError):
            Settings(log_level="chatty")

    def test_production_checks_list_every_problem(self):
        settings = Settings(
            jwt_secret=DEFAULT_JWT_SECRET,
            external_api_key="",
            storage_backend="azure",
            azure_storage_connection_string="",
        )
        with pytest.raises(ValueError) as exc_info:
            settings.validate_required_for_production()

        message = str(exc_info.value)
        assert "JWT_SECRET" in message
        assert "EXTERNAL_API_KEY" in message
        assert "AZURE_STORAGE_CONNECTION_STRING" in message

    def test_production_checks_pass(self):
        Settings(
            jwt_secret="a-real-secret-value",
            external_api_key="executor-key",
            storage_backend="local",
        ).validate_required_for_production()


class TestEngineOptions:

    def test_sqlite_skips_pool_sizing(self):
        assert "pool_size" not in engine_options("sqlite+aiosqlite:///:memory:")

    def test_postgres_gets_pool_sizing(self):
        options = engine_options("postgresql+asyncpg://u:p@db:5432/writerid")
        assert options["pool_pre_ping"] is True
        assert "pool_size" in options
