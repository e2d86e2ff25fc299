# packages/server/src/sessionkit/infrastructure/db/__init__.py
"""
数据库公共 API（唯一对外入口）

仅从本包导入公共名称，不直接引用内部模块路径。
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from .connection import DataConnection, DataConnectionTransaction
from .engine import create_async_db_engine


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    释放底层连接池资源（异步等待）。
    在测试/进程退出时由上层显式 await 调用。
    """
    await engine.dispose()


__all__ = [
    "DataConnection",
    "DataConnectionTransaction",
    "create_async_db_engine",
    "dispose_engine",
]
