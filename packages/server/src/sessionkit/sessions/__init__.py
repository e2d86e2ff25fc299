# packages/server/src/sessionkit/sessions/__init__.py
"""会话基类：只读、可开启多个事务、工作单元，以及事务句柄。"""

from .read_only import AsyncReadOnlySession
from .transaction import SessionTransaction
from .transactional import AsyncTransactionalSession
from .unit_of_work import AsyncSession

__all__ = [
    "AsyncReadOnlySession",
    "AsyncSession",
    "AsyncTransactionalSession",
    "SessionTransaction",
]
