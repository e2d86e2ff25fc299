# packages/server/tests/conftest.py
"""
Pytest 共享夹具

核心 Fixtures:
- fake_connection: 记录调用的假数据连接。
- sqlite_config: 指向临时 SQLite 文件的配置对象。
- db_engine: (函数级) 基于 sqlite_config 的异步引擎，已建好 items 表，测试结束时释放。
- create_connection: 返回新 DataConnection 的零参数工厂。
"""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from sessionkit.config import SessionKitConfig
from sessionkit.infrastructure.db import DataConnection, create_async_db_engine, dispose_engine

from tests.helpers.fakes import FakeDataConnection


@pytest.fixture(autouse=True)
def _reset_structlog():
    """保证每个测试都从 structlog 的默认配置开始。"""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_connection() -> FakeDataConnection:
    return FakeDataConnection()


@pytest.fixture
def sqlite_config(tmp_path: Path) -> SessionKitConfig:
    """提供一个指向临时 SQLite 文件的配置对象。"""
    db_file = tmp_path / "sessionkit_test.db"
    return SessionKitConfig(database={"url": f"sqlite+aiosqlite:///{db_file}"})


@pytest_asyncio.fixture
async def db_engine(sqlite_config: SessionKitConfig) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_db_engine(sqlite_config)
    async with engine.begin() as conn:
        await conn.execute(
            text("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT NOT NULL UNIQUE)")
        )
    yield engine
    await dispose_engine(engine)


@pytest.fixture
def create_connection(db_engine: AsyncEngine) -> Callable[[], DataConnection]:
    return lambda: DataConnection(db_engine)
