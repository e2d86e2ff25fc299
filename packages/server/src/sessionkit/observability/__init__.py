# packages/server/src/sessionkit/observability/__init__.py
"""日志配置与 SQL 跟踪。"""

from .logging_config import setup_logging, setup_logging_from_config
from .sql_trace import install_sql_tracing, log_sql_message

__all__ = [
    "install_sql_tracing",
    "log_sql_message",
    "setup_logging",
    "setup_logging_from_config",
]
