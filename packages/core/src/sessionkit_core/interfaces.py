# packages/core/src/sessionkit_core/interfaces.py
"""
定义了 sessionkit 中会话、事务与连接的抽象接口协议 (Protocols)。

应用代码（每个用例一个会话接口）应依赖这些协议，而不是具体的
SQLAlchemy 实现类；测试则可以用记录调用的替身实现它们。
"""
from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

from .types import IsolationLevel

T_co = TypeVar("T_co", covariant=True)


# ==================================================================
# 底层连接能力 (由数据访问库提供)
# ==================================================================


class INativeTransaction(Protocol):
    """数据访问库提供的原生事务。"""

    @property
    def isolation_level(self) -> IsolationLevel: ...

    @property
    def is_active(self) -> bool: ...

    async def commit(self) -> None:
        """提交事务中的全部变更。"""
        ...

    async def close(self) -> None:
        """释放事务；若尚未提交，则隐式回滚。"""
        ...


class IDataConnection(Protocol):
    """
    会话所需的最小连接能力集：开启事务、提交当前事务、释放连接。

    同一连接在任意时刻最多只有一个活动事务。
    """

    @property
    def transaction(self) -> INativeTransaction | None: ...

    async def begin_transaction(
        self, isolation_level: IsolationLevel = IsolationLevel.UNSPECIFIED
    ) -> INativeTransaction:
        """在本连接上开启一个新事务。"""
        ...

    async def commit_transaction(self) -> None:
        """提交并释放当前事务；没有活动事务时抛出 NoActiveTransactionError。"""
        ...

    async def close(self) -> None:
        """释放连接，并隐式回滚尚未提交的事务。"""
        ...


# ==================================================================
# 会话抽象 (暴露给应用代码)
# ==================================================================


@runtime_checkable
class IAsyncInitializable(Protocol):
    """
    需要异步初始化的对象（构造函数无法挂起，因此分两步完成）。
    会话工厂在交付对象前检查 `is_initialized`，必要时调用一次 `initialize`。
    """

    @property
    def is_initialized(self) -> bool: ...

    async def initialize(self) -> None: ...


class IAsyncReadOnlySession(Protocol):
    """只读会话：只用于读取数据，可通过异步上下文管理器释放。"""

    async def close(self) -> None: ...

    async def __aenter__(self) -> "IAsyncReadOnlySession": ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...


class IAsyncSession(IAsyncReadOnlySession, Protocol):
    """工作单元会话：在整个生命周期内持有一个事务，通过 save_changes 提交。"""

    async def save_changes(self) -> None: ...


class IAsyncTransaction(Protocol):
    """可安全释放的事务句柄，带显式提交。"""

    async def commit(self) -> None: ...

    async def close(self) -> None: ...


class IAsyncTransactionalSession(IAsyncReadOnlySession, Protocol):
    """可以按需依次开启多个独立事务的会话。"""

    async def begin_transaction(
        self, isolation_level: IsolationLevel = IsolationLevel.UNSPECIFIED
    ) -> IAsyncTransaction: ...


class ISessionFactory(Protocol[T_co]):
    """异步产出一个已完全初始化的会话。"""

    async def open_session(self) -> T_co: ...
