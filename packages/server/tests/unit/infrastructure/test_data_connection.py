# packages/server/tests/unit/infrastructure/test_data_connection.py
"""
测试 DataConnection 在真实 SQLite (aiosqlite) 上的行为。

主要测试：
1. 延迟打开与幂等释放
2. 显式事务的提交、回滚与释放
3. 重叠事务的两种处理策略
4. 显式事务之外的逐条自动提交，以及语句失败后隐式事务的回滚
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from structlog.testing import capture_logs

from sessionkit import DataConnection
from sessionkit_core.exceptions import (
    InvalidSessionStateError,
    NoActiveTransactionError,
    TransactionAlreadyActiveError,
)
from sessionkit_core.types import IsolationLevel

pytestmark = [pytest.mark.asyncio, pytest.mark.db]

INSERT = text("INSERT INTO items (name) VALUES (:name)")
COUNT = text("SELECT COUNT(*) FROM items")


async def _count_items(engine) -> int:
    async with DataConnection(engine) as connection:
        return await connection.scalar(COUNT)


class TestLifecycle:
    async def test_connection_opens_lazily(self, db_engine):
        connection = DataConnection(db_engine)
        assert connection.is_open is False

        await connection.open()

        assert connection.is_open is True
        await connection.close()
        assert connection.is_closed is True

    async def test_close_is_idempotent(self, db_engine):
        connection = DataConnection(db_engine)
        await connection.open()
        await connection.close()
        await connection.close()
        assert connection.is_open is False

    async def test_close_unopened_connection(self, db_engine):
        connection = DataConnection(db_engine)
        await connection.close()
        assert connection.is_closed is True

    async def test_open_after_close_raises(self, db_engine):
        connection = DataConnection(db_engine)
        await connection.close()
        with pytest.raises(InvalidSessionStateError):
            await connection.open()

    async def test_raw_connection_is_exposed(self, db_engine):
        async with DataConnection(db_engine) as connection:
            raw = await connection.raw_connection()
            assert raw is not None


class TestTransactions:
    async def test_commit_persists_and_releases(self, db_engine):
        async with DataConnection(db_engine) as connection:
            transaction = await connection.begin_transaction()
            await connection.execute(INSERT, {"name": "alpha"})
            await connection.commit_transaction()

            assert connection.transaction is None
            assert transaction.is_active is False

        assert await _count_items(db_engine) == 1

    async def test_rollback_discards_changes(self, db_engine):
        async with DataConnection(db_engine) as connection:
            await connection.begin_transaction()
            await connection.execute(INSERT, {"name": "alpha"})
            await connection.rollback_transaction()
            assert connection.transaction is None

        assert await _count_items(db_engine) == 0

    async def test_closing_transaction_rolls_back(self, db_engine):
        async with DataConnection(db_engine) as connection:
            async with await connection.begin_transaction():
                await connection.execute(INSERT, {"name": "alpha"})
            assert connection.transaction is None

        assert await _count_items(db_engine) == 0

    async def test_closing_connection_rolls_back_open_transaction(self, db_engine):
        connection = DataConnection(db_engine)
        await connection.begin_transaction(IsolationLevel.SERIALIZABLE)
        await connection.execute(INSERT, {"name": "alpha"})
        await connection.close()

        assert connection.transaction is None
        assert await _count_items(db_engine) == 0

    async def test_commit_without_transaction_raises(self, db_engine):
        async with DataConnection(db_engine) as connection:
            with pytest.raises(NoActiveTransactionError):
                await connection.commit_transaction()
            with pytest.raises(NoActiveTransactionError):
                await connection.rollback_transaction()

    async def test_isolation_level_is_recorded(self, db_engine):
        async with DataConnection(db_engine) as connection:
            transaction = await connection.begin_transaction(IsolationLevel.READ_UNCOMMITTED)
            assert transaction.isolation_level is IsolationLevel.READ_UNCOMMITTED
            await transaction.commit()

            # 回到方言默认级别后仍可开启新事务
            transaction = await connection.begin_transaction()
            assert transaction.isolation_level is IsolationLevel.UNSPECIFIED
            await transaction.commit()


class TestOverlappingTransactions:
    async def test_previous_transaction_is_discarded_with_warning(self, db_engine):
        async with DataConnection(db_engine) as connection:
            first = await connection.begin_transaction()
            await connection.execute(INSERT, {"name": "discarded"})

            with capture_logs() as logs:
                second = await connection.begin_transaction()

            assert first.is_active is False
            assert connection.transaction is second
            assert any(entry["log_level"] == "warning" for entry in logs)

            await connection.execute(INSERT, {"name": "kept"})
            await second.commit()

        assert await _count_items(db_engine) == 1

    async def test_strict_mode_rejects_overlap(self, db_engine):
        async with DataConnection(db_engine, reject_overlapping_transactions=True) as connection:
            first = await connection.begin_transaction()

            with pytest.raises(TransactionAlreadyActiveError):
                await connection.begin_transaction()

            assert connection.transaction is first
            assert first.is_active is True


class TestAutocommit:
    async def test_statement_outside_transaction_is_committed(self, db_engine):
        connection = DataConnection(db_engine)
        await connection.execute(INSERT, {"name": "alpha"})

        assert connection.transaction is None
        assert await _count_items(db_engine) == 1
        await connection.close()

    async def test_scalars_returns_list(self, db_engine):
        async with DataConnection(db_engine) as connection:
            await connection.execute(INSERT, {"name": "b"})
            await connection.execute(INSERT, {"name": "a"})
            names = await connection.scalars(text("SELECT name FROM items ORDER BY name"))

        assert names == ["a", "b"]

    async def test_failed_statement_does_not_block_next_transaction(self, db_engine):
        async with DataConnection(db_engine) as connection:
            await connection.execute(INSERT, {"name": "a"})
            with pytest.raises(IntegrityError):
                await connection.execute(INSERT, {"name": "a"})

            raw = await connection.open()
            assert raw.in_transaction() is False

            await connection.begin_transaction(IsolationLevel.SERIALIZABLE)
            await connection.execute(INSERT, {"name": "b"})
            await connection.commit_transaction()

        assert await _count_items(db_engine) == 2

    async def test_failed_scalar_query_leaves_connection_usable(self, db_engine):
        async with DataConnection(db_engine) as connection:
            with pytest.raises(OperationalError):
                await connection.scalar(text("SELECT COUNT(*) FROM missing_table"))

            assert (await connection.open()).in_transaction() is False
            await connection.execute(INSERT, {"name": "a"})
            assert await connection.scalar(COUNT) == 1

    async def test_failed_statement_inside_transaction_keeps_it_registered(self, db_engine):
        async with DataConnection(db_engine) as connection:
            transaction = await connection.begin_transaction()
            await connection.execute(INSERT, {"name": "a"})
            with pytest.raises(IntegrityError):
                await connection.execute(INSERT, {"name": "a"})

            assert connection.transaction is transaction
            await connection.rollback_transaction()

        assert await _count_items(db_engine) == 0
