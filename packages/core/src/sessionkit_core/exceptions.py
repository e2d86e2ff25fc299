# packages/core/src/sessionkit_core/exceptions.py
"""
本模块定义了 sessionkit 中所有自定义的、语义化的异常类型。

底层数据库驱动抛出的异常（SQLAlchemy / DBAPI 错误）不会被包装，
而是原样向上传播；取消则以 `asyncio.CancelledError` 的形式出现。
"""


class SessionKitError(Exception):
    """
    所有 sessionkit 自定义异常的通用基类。
    捕获此异常可以处理所有源自本项目的预期错误。
    """
    pass


class ConfigurationError(SessionKitError):
    """
    表示在加载、解析或验证配置时发生的错误。
    例如，配置节缺失，或开启了 SQL 跟踪却没有提供 logger。
    """
    pass


class InvalidArgumentError(SessionKitError, ValueError):
    """
    必需的协作者（连接、解析委托、事务等）为 None 或取值非法。
    在任何 I/O 发生之前同步抛出。
    """
    pass


class InvalidSessionStateError(SessionKitError, RuntimeError):
    """会话或连接处于不允许当前操作的状态。"""
    pass


class ConnectionNotBoundError(InvalidSessionStateError):
    """在连接绑定到会话之前访问了会话的连接。"""
    pass


class ConnectionAlreadyBoundError(InvalidSessionStateError):
    """会话的连接已经绑定，不允许再次绑定。"""
    pass


class NoActiveTransactionError(InvalidSessionStateError):
    """需要一个活动事务（例如提交），但连接上没有。"""
    pass


class TransactionAlreadyActiveError(InvalidSessionStateError):
    """
    连接上已有一个未完成的事务时又请求开启新事务。
    仅在启用 `reject_overlapping_transactions` 时抛出。
    """
    pass
