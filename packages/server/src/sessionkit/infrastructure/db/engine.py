# packages/server/src/sessionkit/infrastructure/db/engine.py
"""
异步引擎工厂

- SQLite：NullPool，忽略不适用的池参数
- 其他数据库：映射连接池参数（QueuePool）
- trace_level 不为 OFF 时，在引擎上安装 SQL 跟踪（此时必须提供 logger）
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from sessionkit_core.exceptions import ConfigurationError
from sessionkit_core.types import TraceLevel

from ...config import SessionKitConfig
from ...observability.sql_trace import install_sql_tracing
from ...utils import ensure_not_none, mask_db_url

logger = structlog.get_logger(__name__)


def create_async_db_engine(
    cfg: SessionKitConfig, *, sql_logger: Optional[Any] = None
) -> AsyncEngine:
    """根据配置创建 AsyncEngine，并按需挂接 SQL 跟踪。"""
    ensure_not_none(cfg, "cfg")
    db = cfg.database

    if db.trace_level is not TraceLevel.OFF and sql_logger is None:
        raise ConfigurationError(
            f'trace_level 为 "{db.trace_level.value}" 时必须提供 sql_logger。'
        )

    kwargs: dict[str, Any] = {
        "echo": db.echo,
        "pool_pre_ping": db.pool_pre_ping,
    }
    if db.is_sqlite:
        kwargs["poolclass"] = NullPool
    else:
        if db.pool_size is not None:
            kwargs["pool_size"] = db.pool_size
        if db.max_overflow is not None:
            kwargs["max_overflow"] = db.max_overflow
        if db.pool_recycle is not None:
            kwargs["pool_recycle"] = db.pool_recycle
        kwargs["pool_timeout"] = db.pool_timeout

    logger.debug(
        "正在创建数据库引擎",
        db_url=mask_db_url(db.url),
        trace_level=db.trace_level.value,
    )
    engine = create_async_engine(db.url, **kwargs)
    install_sql_tracing(engine, db.trace_level, sql_logger)
    return engine
