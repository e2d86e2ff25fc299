# packages/server/src/sessionkit/sessions/transactional.py
"""
可按需开启多个独立事务的会话。

会话本身不持有事务，也不跟踪它创建的事务句柄：调用方必须在开启下一个
事务之前提交并释放上一个。否则底层连接会丢弃（回滚）仍未完成的旧事务，
或在启用 `reject_overlapping_transactions` 时直接报错。
"""

from __future__ import annotations

from typing import Generic

from sessionkit_core.types import IsolationLevel

from .read_only import AsyncReadOnlySession, TConnection
from .transaction import SessionTransaction


class AsyncTransactionalSession(AsyncReadOnlySession[TConnection], Generic[TConnection]):
    """会话生命周期内可以依次开启、提交多个事务。释放会话同时释放数据连接。"""

    def __init__(self, data_connection: TConnection) -> None:
        super().__init__(data_connection, IsolationLevel.UNSPECIFIED)

    @classmethod
    def requires_transaction(cls) -> bool:
        return False

    async def begin_transaction(
        self, isolation_level: IsolationLevel = IsolationLevel.UNSPECIFIED
    ) -> SessionTransaction:
        """开启一个新事务并返回其句柄，句柄须由调用方释放。"""
        native_transaction = await self.data_connection.begin_transaction(isolation_level)
        return SessionTransaction(native_transaction)
