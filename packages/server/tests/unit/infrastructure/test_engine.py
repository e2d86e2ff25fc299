# packages/server/tests/unit/infrastructure/test_engine.py
"""测试异步引擎工厂。"""

from unittest.mock import Mock

import pytest
from sqlalchemy import text
from sqlalchemy.pool import NullPool

from sessionkit import DataConnection, SessionKitConfig, create_async_db_engine, dispose_engine
from sessionkit_core.exceptions import ConfigurationError, InvalidArgumentError


def _config(tmp_path, **database) -> SessionKitConfig:
    return SessionKitConfig(
        database={"url": f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}", **database}
    )


def test_none_config_raises():
    with pytest.raises(InvalidArgumentError):
        create_async_db_engine(None)


def test_data_connection_requires_engine():
    with pytest.raises(InvalidArgumentError):
        DataConnection(None)


def test_tracing_without_logger_raises(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        create_async_db_engine(_config(tmp_path, trace_level="INFO"))
    assert "sql_logger" in str(exc_info.value)


@pytest.mark.asyncio
async def test_sqlite_engine_uses_null_pool(tmp_path):
    engine = create_async_db_engine(_config(tmp_path))
    try:
        assert isinstance(engine.pool, NullPool)
    finally:
        await dispose_engine(engine)


@pytest.mark.asyncio
async def test_tracing_is_installed_when_enabled(tmp_path):
    sql_logger = Mock()
    engine = create_async_db_engine(_config(tmp_path, trace_level="INFO"), sql_logger=sql_logger)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    finally:
        await dispose_engine(engine)

    sql_logger.info.assert_any_call("SELECT 1", category="sql.statement")


@pytest.mark.asyncio
async def test_default_config_builds_engine_without_logger(tmp_path):
    engine = create_async_db_engine(_config(tmp_path))
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            assert result.scalar() == 1
    finally:
        await dispose_engine(engine)
