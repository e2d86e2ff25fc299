# packages/server/src/sessionkit/sessions/transaction.py
"""事务句柄：把原生事务适配为带显式提交、可安全释放的对象。"""

from __future__ import annotations

from sessionkit_core.interfaces import INativeTransaction

from ..utils import ensure_not_none


class SessionTransaction:
    """
    包装一个原生事务。

    必须由持有者释放（`await close()` 或 `async with`）。释放时若从未调用
    `commit`，回滚由原生事务自身完成，句柄不会显式调用 rollback。
    """

    def __init__(self, native_transaction: INativeTransaction) -> None:
        self._native_transaction = ensure_not_none(native_transaction, "native_transaction")

    @property
    def native_transaction(self) -> INativeTransaction:
        return self._native_transaction

    async def commit(self) -> None:
        """提交全部变更；底层数据访问异常原样传播。"""
        await self._native_transaction.commit()

    async def close(self) -> None:
        await self._native_transaction.close()

    async def __aenter__(self) -> "SessionTransaction":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
