# packages/server/tests/unit/di/test_application_container.py
"""
测试应用容器的组装：配置传递、引擎单例与数据连接工厂。
"""

import logging
from unittest.mock import patch

import pytest
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from sessionkit import DataConnection, SessionFactory, SessionKitConfig, dispose_engine
from sessionkit.containers import ApplicationContainer, build_container, register_session_factory
from sessionkit_core.types import IsolationLevel

from tests.helpers.fakes import FakeItemsUnitOfWork


@pytest.fixture
def container(sqlite_config: SessionKitConfig) -> ApplicationContainer:
    return build_container(sqlite_config)


class TestBuildContainer:
    def test_pydantic_config_is_passed_through(self, container, sqlite_config):
        assert container.pydantic_config() is sqlite_config
        assert container.persistence.config() is sqlite_config

    def test_field_level_config_is_populated(self, container):
        assert container.config.logging.level() == "INFO"
        assert container.config.logging.format() == "console"
        assert container.config.service_name() == "sessionkit"

    def test_data_connection_is_new_unopened_instance(self, container):
        first = container.persistence.data_connection()
        second = container.persistence.data_connection()

        assert isinstance(first, DataConnection)
        assert first is not second
        assert first.is_open is False
        assert first.engine is second.engine

    def test_create_data_connection_delegate(self, container):
        create_connection = container.persistence.create_data_connection()
        assert isinstance(create_connection(), DataConnection)

    def test_core_logging_resource_configures_logging(self, container):
        root_logger = logging.getLogger()
        app_logger = logging.getLogger("sessionkit")
        saved = (list(root_logger.handlers), root_logger.level, app_logger.level)
        try:
            with patch("structlog.configure") as mock_configure:
                container.core.logging.init()

            mock_configure.assert_called_once()
            assert structlog.contextvars.get_contextvars()["service"] == "sessionkit"
            assert app_logger.level == logging.INFO
            assert root_logger.handlers != saved[0]

            container.core.logging.shutdown()

            assert root_logger.handlers == saved[0]
            assert structlog.contextvars.get_contextvars() == {}
        finally:
            container.core.logging.shutdown()
            root_logger.handlers[:] = saved[0]
            root_logger.setLevel(saved[1])
            app_logger.setLevel(saved[2])
            structlog.contextvars.clear_contextvars()


@pytest.mark.asyncio
class TestPersistenceContainer:
    async def test_engine_is_singleton(self, container):
        engine = container.persistence.db_engine()
        try:
            assert isinstance(engine, AsyncEngine)
            assert container.persistence.db_engine() is engine
        finally:
            await dispose_engine(engine)

    async def test_reject_overlapping_transactions_flag_is_wired(self, tmp_path):
        cfg = SessionKitConfig(
            database={
                "url": f"sqlite+aiosqlite:///{tmp_path / 'strict.db'}",
                "reject_overlapping_transactions": True,
            }
        )
        container = build_container(cfg)
        connection = container.persistence.data_connection()
        try:
            assert connection._reject_overlapping_transactions is True
        finally:
            await dispose_engine(container.persistence.db_engine())

    async def test_registered_session_factory_uses_real_connection(self, container):
        register_session_factory(
            container,
            "items",
            FakeItemsUnitOfWork,
            data_connection=container.persistence.data_connection,
        )
        factory = container.items_factory()
        assert isinstance(factory, SessionFactory)

        session = await factory.open_session()
        try:
            assert isinstance(session.data_connection, DataConnection)
            assert session.is_initialized is True
            assert session.data_connection.transaction.isolation_level is (
                IsolationLevel.SERIALIZABLE
            )
        finally:
            await session.close()
            await dispose_engine(container.persistence.db_engine())
