# packages/server/src/sessionkit/sessions/unit_of_work.py
"""
工作单元 (Unit of Work) 会话。

会话在整个生命周期内持有唯一一个事务：初始化时开启，`save_changes`
时提交一次；释放时若仍未提交，未完成的事务随连接一起回滚。
"""

from __future__ import annotations

from typing import ClassVar, Generic, Optional

import structlog

from sessionkit_core.types import IsolationLevel

from .read_only import AsyncReadOnlySession, TConnection

logger = structlog.get_logger(__name__)


class AsyncSession(AsyncReadOnlySession[TConnection], Generic[TConnection]):
    """
    用于读写用例的异步会话。

    若传入的数据连接上已经开启了事务，会话沿用该事务及其隔离级别；
    否则会话处于未初始化状态，直到会话工厂调用 `initialize` 开启事务。
    """

    default_transaction_level: ClassVar[IsolationLevel] = IsolationLevel.SERIALIZABLE

    def __init__(
        self,
        data_connection: TConnection,
        transaction_level: Optional[IsolationLevel] = None,
    ) -> None:
        super().__init__(data_connection, transaction_level)
        transaction = self.data_connection.transaction
        if transaction is not None:
            self._transaction_level = transaction.isolation_level

    @classmethod
    def requires_transaction(cls) -> bool:
        return True

    @property
    def is_initialized(self) -> bool:
        return self.data_connection.transaction is not None

    async def initialize(self) -> None:
        await self.data_connection.begin_transaction(self._transaction_level)
        logger.debug(
            "工作单元事务已开启",
            session=type(self).__name__,
            isolation_level=self._transaction_level.value,
        )

    async def save_changes(self) -> None:
        """
        提交会话的事务。

        没有活动事务（尚未初始化，或已经提交过）时抛出 NoActiveTransactionError。
        """
        await self.data_connection.commit_transaction()
        logger.debug("工作单元已提交", session=type(self).__name__)
