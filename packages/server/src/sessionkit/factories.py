# packages/server/src/sessionkit/factories.py
"""
会话工厂：产出一个可直接使用的会话，并在交付前完成所需的异步初始化
（打开连接、开启事务），且每个会话最多初始化一次。

- SessionFactory：包装一个零参数的解析委托（通常来自 DI 容器）。
- ConnectionSessionFactory：包装一个零参数的连接工厂，自行构造会话。
"""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, TypeVar

import structlog

from sessionkit_core.interfaces import IAsyncInitializable, IDataConnection
from sessionkit_core.types import IsolationLevel

from .sessions.read_only import AsyncReadOnlySession
from .utils import ensure_not_none

logger = structlog.get_logger(__name__)

T = TypeVar("T")
TSession = TypeVar("TSession", bound=AsyncReadOnlySession)


class SessionFactory(Generic[T]):
    """
    通过解析委托获取会话；若会话声明需要异步初始化且尚未初始化，
    则在返回前等待其初始化完成。

    初始化失败时不会自动释放会话，调用方拿不到会话引用，
    由委托的提供方（例如 DI 容器的作用域）负责清理。
    """

    def __init__(self, get_session: Callable[[], T]) -> None:
        self._get_session = ensure_not_none(get_session, "get_session")

    async def open_session(self) -> T:
        session = self._get_session()
        if isinstance(session, IAsyncInitializable) and not session.is_initialized:
            await session.initialize()
            logger.debug("会话已初始化", session=type(session).__name__)
        return session


class ConnectionSessionFactory(Generic[TSession]):
    """
    通过连接工厂构造会话：取得一个新连接，按会话类型声明的隔离级别开启
    事务，再以该连接构造会话。返回的会话已完全初始化。

    开启事务失败（包括被取消）时，工厂会释放它自己创建的连接并原样重新抛出异常。
    """

    def __init__(
        self,
        session_type: type[TSession],
        create_connection: Callable[[], IDataConnection],
    ) -> None:
        self._session_type = ensure_not_none(session_type, "session_type")
        self._create_connection = ensure_not_none(create_connection, "create_connection")

    @property
    def session_type(self) -> type[TSession]:
        return self._session_type

    async def open_session(self) -> TSession:
        connection = ensure_not_none(self._create_connection(), "connection")
        begun_level = None
        try:
            if self._session_type.requires_transaction():
                begun_level = self._transaction_level()
                await connection.begin_transaction(begun_level)
            session = self._session_type(connection)
        except (Exception, asyncio.CancelledError):
            logger.debug(
                "会话打开失败，释放新建的连接",
                session=self._session_type.__name__,
            )
            await connection.close()
            raise
        if begun_level is None:
            logger.debug("会话已打开", session=self._session_type.__name__)
        else:
            logger.debug(
                "会话已打开",
                session=self._session_type.__name__,
                isolation_level=begun_level.value,
            )
        return session

    def _transaction_level(self) -> IsolationLevel:
        return self._session_type.default_transaction_level


async def create_and_open_session(
    create_connection: Callable[[], IDataConnection],
    session_type: type[TSession],
) -> TSession:
    """一次性地用连接工厂创建并打开一个会话。"""
    ensure_not_none(create_connection, "create_connection")
    return await ConnectionSessionFactory(session_type, create_connection).open_session()
