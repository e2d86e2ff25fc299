# packages/server/src/sessionkit/__init__.py
"""
sessionkit：基于 SQLAlchemy asyncio 的会话基类与会话工厂。

会话是短生命周期的工作单元对象，独占一个数据库连接，并可选地持有事务。
应用为每个用例定义一个会话接口，由这里的基类提供连接与事务的生命周期。
"""

from sessionkit_core import (
    ConfigurationError,
    ConnectionAlreadyBoundError,
    ConnectionNotBoundError,
    InvalidArgumentError,
    InvalidSessionStateError,
    IsolationLevel,
    NoActiveTransactionError,
    SessionKitError,
    TraceLevel,
    TransactionAlreadyActiveError,
)

from .config import DatabaseSettings, LoggingSettings, SessionKitConfig, settings_from_mapping
from .factories import ConnectionSessionFactory, SessionFactory, create_and_open_session
from .infrastructure.db import (
    DataConnection,
    DataConnectionTransaction,
    create_async_db_engine,
    dispose_engine,
)
from .sessions import (
    AsyncReadOnlySession,
    AsyncSession,
    AsyncTransactionalSession,
    SessionTransaction,
)

__all__ = [
    # sessions
    "AsyncReadOnlySession", "AsyncSession", "AsyncTransactionalSession",
    "SessionTransaction",
    # factories
    "SessionFactory", "ConnectionSessionFactory", "create_and_open_session",
    # infrastructure
    "DataConnection", "DataConnectionTransaction", "create_async_db_engine",
    "dispose_engine",
    # config
    "SessionKitConfig", "DatabaseSettings", "LoggingSettings", "settings_from_mapping",
    # core contracts
    "IsolationLevel", "TraceLevel", "SessionKitError", "ConfigurationError",
    "InvalidArgumentError", "InvalidSessionStateError", "ConnectionNotBoundError",
    "ConnectionAlreadyBoundError", "NoActiveTransactionError",
    "TransactionAlreadyActiveError",
]
