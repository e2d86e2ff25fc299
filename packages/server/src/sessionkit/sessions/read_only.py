# packages/server/src/sessionkit/sessions/read_only.py
"""
只读会话基类。

会话独占一个数据连接；子类通过 `data_connection` 实现具体用例的查询。
默认不需要事务；若以非 UNSPECIFIED 的隔离级别构造，则在异步初始化时
开启一个事务，用于控制读取时的隔离语义。

注意：子类不应再持有其他需要释放的资源，释放会话时只会释放数据连接。
"""

from __future__ import annotations

from typing import ClassVar, Generic, Optional, TypeVar

import structlog

from sessionkit_core.exceptions import ConnectionAlreadyBoundError, ConnectionNotBoundError
from sessionkit_core.interfaces import IDataConnection
from sessionkit_core.types import IsolationLevel

from ..utils import ensure_not_none

logger = structlog.get_logger(__name__)

TConnection = TypeVar("TConnection", bound=IDataConnection)


class AsyncReadOnlySession(Generic[TConnection]):
    """
    通过数据连接访问数据库的异步只读会话。

    不带类型参数直接继承即可用于普通的 `DataConnection`；
    需要自定义连接子类时，以 `AsyncReadOnlySession[MyConnection]` 继承。

    Args:
        data_connection: 会话独占的数据连接，不能为 None。
        transaction_level: 事务隔离级别；None 时使用类属性
            `default_transaction_level`。为 UNSPECIFIED 时不会开启事务。
    """

    default_transaction_level: ClassVar[IsolationLevel] = IsolationLevel.UNSPECIFIED

    _data_connection: Optional[TConnection] = None

    def __init__(
        self,
        data_connection: TConnection,
        transaction_level: Optional[IsolationLevel] = None,
    ) -> None:
        self._transaction_level = (
            self.default_transaction_level
            if transaction_level is None
            else IsolationLevel(transaction_level)
        )
        self._bind_connection(ensure_not_none(data_connection, "data_connection"))

    @classmethod
    def requires_transaction(cls) -> bool:
        """以默认隔离级别构造时，会话在可用前是否需要一个事务。"""
        return cls.default_transaction_level is not IsolationLevel.UNSPECIFIED

    @property
    def data_connection(self) -> TConnection:
        """供子类访问的数据连接；绑定之前访问会抛出 ConnectionNotBoundError。"""
        if self._data_connection is None:
            raise ConnectionNotBoundError(
                "在数据连接绑定到会话之前不能访问它，请检查构造函数的调用顺序。"
            )
        return self._data_connection

    @property
    def transaction_level(self) -> IsolationLevel:
        return self._transaction_level

    def _bind_connection(self, data_connection: TConnection) -> None:
        if self._data_connection is not None:
            raise ConnectionAlreadyBoundError("会话的数据连接只能绑定一次。")
        self._data_connection = data_connection

    # ------------------------------------------------------------------
    # 异步初始化 (IAsyncInitializable)
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return (
            self._transaction_level is IsolationLevel.UNSPECIFIED
            or self.data_connection.transaction is not None
        )

    async def initialize(self) -> None:
        """按会话的隔离级别开启事务；UNSPECIFIED 时什么也不做。"""
        if self._transaction_level is IsolationLevel.UNSPECIFIED:
            return
        await self.data_connection.begin_transaction(self._transaction_level)
        logger.debug(
            "会话事务已开启",
            session=type(self).__name__,
            isolation_level=self._transaction_level.value,
        )

    # ------------------------------------------------------------------
    # 释放
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """释放数据连接；未提交的事务随之回滚。连接尚未绑定时无副作用。"""
        if self._data_connection is None:
            return
        await self._data_connection.close()
        logger.debug("会话已释放", session=type(self).__name__)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
