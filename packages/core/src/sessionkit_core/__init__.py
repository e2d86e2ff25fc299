# packages/core/src/sessionkit_core/__init__.py
"""
sessionkit 核心契约包。

只包含枚举、异常与接口协议，不依赖任何第三方库。
"""
from .exceptions import (
    ConfigurationError,
    ConnectionAlreadyBoundError,
    ConnectionNotBoundError,
    InvalidArgumentError,
    InvalidSessionStateError,
    NoActiveTransactionError,
    SessionKitError,
    TransactionAlreadyActiveError,
)
from .interfaces import (
    IAsyncInitializable,
    IAsyncReadOnlySession,
    IAsyncSession,
    IAsyncTransaction,
    IAsyncTransactionalSession,
    IDataConnection,
    INativeTransaction,
    ISessionFactory,
)
from .types import IsolationLevel, TraceLevel

__all__ = [
    # from exceptions.py
    "SessionKitError", "ConfigurationError", "InvalidArgumentError",
    "InvalidSessionStateError", "ConnectionNotBoundError",
    "ConnectionAlreadyBoundError", "NoActiveTransactionError",
    "TransactionAlreadyActiveError",
    # from interfaces.py
    "IDataConnection", "INativeTransaction", "IAsyncInitializable",
    "IAsyncReadOnlySession", "IAsyncSession", "IAsyncTransaction",
    "IAsyncTransactionalSession", "ISessionFactory",
    # from types.py
    "IsolationLevel", "TraceLevel",
]
