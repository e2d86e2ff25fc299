# packages/server/src/sessionkit/infrastructure/db/connection.py
"""
数据连接：对 SQLAlchemy `AsyncConnection` 的一层薄封装。

- 连接在第一次使用时才真正打开（构造函数保持同步，便于交给 DI 容器创建）；
- 不在显式事务中执行的语句会逐条自动提交；
- 同一连接上最多只有一个显式事务，释放事务或连接时未提交的变更会被回滚。

应用可以继承 `DataConnection`，为具体用例添加便捷的查询成员。
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import structlog
from sqlalchemy.engine import CursorResult, Result
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncTransaction

from sessionkit_core.exceptions import (
    InvalidSessionStateError,
    NoActiveTransactionError,
    TransactionAlreadyActiveError,
)
from sessionkit_core.types import IsolationLevel

from ...utils import ensure_not_none

logger = structlog.get_logger(__name__)


class DataConnectionTransaction:
    """`DataConnection` 上的一个原生事务。"""

    def __init__(
        self,
        connection: "DataConnection",
        transaction: AsyncTransaction,
        isolation_level: IsolationLevel,
    ) -> None:
        self._connection = connection
        self._transaction = transaction
        self._isolation_level = isolation_level

    @property
    def isolation_level(self) -> IsolationLevel:
        return self._isolation_level

    @property
    def is_active(self) -> bool:
        return self._transaction.is_active

    async def commit(self) -> None:
        """提交事务；底层异常原样向上传播。"""
        try:
            await self._transaction.commit()
        finally:
            self._release_if_finished()
        logger.debug("事务已提交", isolation_level=self._isolation_level.value)

    async def rollback(self) -> None:
        try:
            await self._transaction.rollback()
        finally:
            self._release_if_finished()
        logger.debug("事务已回滚", isolation_level=self._isolation_level.value)

    async def close(self) -> None:
        """释放事务；尚未提交时由 SQLAlchemy 执行回滚。"""
        try:
            if self._transaction.is_active:
                await self._transaction.close()
                logger.debug(
                    "未提交的事务已随释放回滚",
                    isolation_level=self._isolation_level.value,
                )
        finally:
            self._connection._release_transaction(self)

    def _release_if_finished(self) -> None:
        # 提交失败但事务仍活动时保留登记，由连接释放时回滚
        if not self._transaction.is_active:
            self._connection._release_transaction(self)

    async def __aenter__(self) -> "DataConnectionTransaction":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class DataConnection:
    """
    延迟打开的异步数据连接。

    Args:
        engine: 用于打开连接的 SQLAlchemy 异步引擎。
        reject_overlapping_transactions: 为 True 时，在已有活动事务的情况下
            开启新事务会抛出 TransactionAlreadyActiveError；默认 False，
            此时旧事务被回滚丢弃并记录一条警告。
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        reject_overlapping_transactions: bool = False,
    ) -> None:
        self._engine = ensure_not_none(engine, "engine")
        self._reject_overlapping_transactions = reject_overlapping_transactions
        self._connection: Optional[AsyncConnection] = None
        self._transaction: Optional[DataConnectionTransaction] = None
        self._applied_isolation_level: Optional[str] = None
        self._is_closed = False

    # ------------------------------------------------------------------
    # 状态
    # ------------------------------------------------------------------

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    @property
    def transaction(self) -> Optional[DataConnectionTransaction]:
        """当前活动的显式事务；没有时为 None。"""
        return self._transaction

    # ------------------------------------------------------------------
    # 连接生命周期
    # ------------------------------------------------------------------

    async def open(self) -> AsyncConnection:
        """打开底层连接（幂等），返回 SQLAlchemy 的 AsyncConnection。"""
        if self._is_closed:
            raise InvalidSessionStateError("DataConnection 已关闭，不能再次打开。")
        if self._connection is None:
            self._connection = await self._engine.connect().start()
            logger.debug("数据库连接已打开")
        return self._connection

    async def close(self) -> None:
        """释放连接；尚未提交的事务随之回滚。重复调用无副作用。"""
        if self._is_closed:
            return
        self._is_closed = True
        connection, self._connection = self._connection, None
        had_transaction = self._transaction is not None
        self._transaction = None
        if connection is None:
            return
        await connection.close()
        logger.debug("数据库连接已释放", rolled_back_transaction=had_transaction)

    async def __aenter__(self) -> "DataConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # 事务
    # ------------------------------------------------------------------

    async def begin_transaction(
        self, isolation_level: IsolationLevel = IsolationLevel.UNSPECIFIED
    ) -> DataConnectionTransaction:
        """
        在本连接上开启一个新事务。

        已有活动事务时，默认先回滚并丢弃它（记录警告）；启用
        `reject_overlapping_transactions` 时则抛出 TransactionAlreadyActiveError。
        """
        isolation_level = IsolationLevel(isolation_level)
        previous = self._transaction
        if previous is not None:
            if self._reject_overlapping_transactions:
                raise TransactionAlreadyActiveError(
                    "连接上已有一个活动事务，请先提交并释放它再开启新事务。"
                )
            logger.warning(
                "连接上已有活动事务，旧事务将被回滚并丢弃",
                previous_isolation_level=previous.isolation_level.value,
            )
            await previous.close()

        connection = await self.open()
        await self._apply_isolation_level(connection, isolation_level)
        sa_transaction = await connection.begin()
        self._transaction = DataConnectionTransaction(self, sa_transaction, isolation_level)
        logger.debug("事务已开启", isolation_level=isolation_level.value)
        return self._transaction

    async def commit_transaction(self) -> None:
        """提交并释放当前事务。"""
        if self._transaction is None:
            raise NoActiveTransactionError("连接上没有可提交的活动事务。")
        await self._transaction.commit()

    async def rollback_transaction(self) -> None:
        """回滚并释放当前事务。"""
        if self._transaction is None:
            raise NoActiveTransactionError("连接上没有可回滚的活动事务。")
        await self._transaction.rollback()

    def _release_transaction(self, transaction: DataConnectionTransaction) -> None:
        if self._transaction is transaction:
            self._transaction = None

    async def _apply_isolation_level(
        self, connection: AsyncConnection, isolation_level: IsolationLevel
    ) -> None:
        # UNSPECIFIED 回到方言的默认级别，以免沿用上一个事务设置的级别
        if isolation_level is IsolationLevel.UNSPECIFIED:
            if self._applied_isolation_level is None:
                return
            target = connection.dialect.default_isolation_level
            if target is None:
                return
        else:
            target = isolation_level.value
        if target == self._applied_isolation_level:
            return
        await connection.execution_options(isolation_level=target)
        self._applied_isolation_level = target

    # ------------------------------------------------------------------
    # 语句执行（显式事务之外逐条自动提交）
    # ------------------------------------------------------------------

    async def execute(
        self, statement: Any, parameters: Optional[Any] = None
    ) -> CursorResult[Any]:
        connection = await self.open()
        try:
            result = await connection.execute(statement, parameters)
        except (Exception, asyncio.CancelledError):
            await self._rollback_implicit(connection)
            raise
        await self._autocommit(connection)
        return result

    async def scalar(self, statement: Any, parameters: Optional[Any] = None) -> Any:
        connection = await self.open()
        try:
            value = await connection.scalar(statement, parameters)
        except (Exception, asyncio.CancelledError):
            await self._rollback_implicit(connection)
            raise
        await self._autocommit(connection)
        return value

    async def scalars(self, statement: Any, parameters: Optional[Any] = None) -> list[Any]:
        connection = await self.open()
        try:
            result: Result[Any] = await connection.execute(statement, parameters)
            values = list(result.scalars())
        except (Exception, asyncio.CancelledError):
            await self._rollback_implicit(connection)
            raise
        await self._autocommit(connection)
        return values

    async def raw_connection(self) -> Any:
        """
        返回底层的 DBAPI 连接，供需要直接使用驱动命令的场景。
        若存在活动事务，驱动连接就处在该事务之中。
        """
        connection = await self.open()
        return await connection.get_raw_connection()

    async def _autocommit(self, connection: AsyncConnection) -> None:
        if self._transaction is None and connection.in_transaction():
            await connection.commit()

    async def _rollback_implicit(self, connection: AsyncConnection) -> None:
        # 显式事务由持有者处理；这里只结束语句失败时留下的隐式事务
        if self._transaction is None and connection.in_transaction():
            await connection.rollback()
            logger.debug("语句执行失败，隐式事务已回滚")
