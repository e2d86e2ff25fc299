# packages/core/src/sessionkit_core/types.py
"""
定义了 sessionkit 契约层共享的枚举类型。
"""

from __future__ import annotations

from enum import Enum


class IsolationLevel(str, Enum):
    """
    事务隔离级别。

    枚举值即 SQLAlchemy `isolation_level` 执行选项所使用的字符串，
    `UNSPECIFIED` 是一个特殊值：对只读会话表示“不启动事务”，
    对显式开启的事务表示“沿用连接的默认隔离级别”。
    """

    UNSPECIFIED = "UNSPECIFIED"
    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SNAPSHOT = "SNAPSHOT"
    SERIALIZABLE = "SERIALIZABLE"


class TraceLevel(str, Enum):
    """SQL 跟踪日志的详细程度，按从少到多排列。"""

    OFF = "OFF"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    VERBOSE = "VERBOSE"

    @property
    def rank(self) -> int:
        return _TRACE_RANKS[self]

    def includes(self, other: "TraceLevel") -> bool:
        """当前级别是否应输出 `other` 级别的消息。"""
        return other is not TraceLevel.OFF and self.rank >= other.rank


_TRACE_RANKS = {
    TraceLevel.OFF: 0,
    TraceLevel.ERROR: 1,
    TraceLevel.WARNING: 2,
    TraceLevel.INFO: 3,
    TraceLevel.VERBOSE: 4,
}
