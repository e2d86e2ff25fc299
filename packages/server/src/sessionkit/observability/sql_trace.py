# packages/server/src/sessionkit/observability/sql_trace.py
"""
SQL 跟踪：把 SQLAlchemy 引擎事件按 TraceLevel 写入 structlog。

级别映射：
- ERROR          ：语句执行失败（handle_error 事件）
- INFO           ：每条执行的 SQL 语句
- VERBOSE        ：语句参数、耗时以及 begin / commit / rollback 事件
"""

from __future__ import annotations

import time
from typing import Any, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

from sessionkit_core.types import TraceLevel

from ..utils import ensure_not_none

_TIMER_KEY = "sessionkit_query_start"


def log_sql_message(
    logger: Any,
    message: Optional[str],
    category: Optional[str],
    trace_level: TraceLevel,
) -> None:
    """
    按跟踪级别把一条 SQL 跟踪消息写入 logger。

    空白消息与 OFF 级别会被忽略；未知级别抛出 ValueError。
    """
    ensure_not_none(logger, "logger")
    if message is None or not message.strip():
        return

    if trace_level is TraceLevel.OFF:
        return
    if trace_level is TraceLevel.ERROR:
        logger.error(message, category=category)
    elif trace_level is TraceLevel.WARNING:
        logger.warning(message, category=category)
    elif trace_level is TraceLevel.INFO:
        logger.info(message, category=category)
    elif trace_level is TraceLevel.VERBOSE:
        logger.debug(message, category=category)
    else:
        raise ValueError(f'未知的跟踪级别 "{trace_level}"。')


def install_sql_tracing(
    engine: AsyncEngine, trace_level: TraceLevel, logger: Any
) -> None:
    """在引擎上注册事件监听器；OFF 级别时什么也不做。"""
    ensure_not_none(engine, "engine")
    if trace_level is TraceLevel.OFF:
        return
    ensure_not_none(logger, "logger")

    sync_engine = engine.sync_engine

    def _emit(message: str, category: str, level: TraceLevel) -> None:
        if trace_level.includes(level):
            log_sql_message(logger, message, category, level)

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _before_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault(_TIMER_KEY, []).append(time.perf_counter())
        _emit(statement, "sql.statement", TraceLevel.INFO)
        if parameters:
            _emit(f"参数: {parameters!r}", "sql.parameters", TraceLevel.VERBOSE)

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _after_execute(conn, cursor, statement, parameters, context, executemany):
        timers = conn.info.get(_TIMER_KEY)
        if not timers:
            return
        elapsed_ms = (time.perf_counter() - timers.pop()) * 1000
        _emit(f"语句执行耗时 {elapsed_ms:.2f} ms", "sql.timing", TraceLevel.VERBOSE)

    @event.listens_for(sync_engine, "handle_error")
    def _handle_error(exception_context):
        conn = exception_context.connection
        if conn is not None and conn.info.get(_TIMER_KEY):
            conn.info[_TIMER_KEY].pop()
        message = f"{exception_context.original_exception!r}"
        if exception_context.statement:
            message = f"{message} | {exception_context.statement}"
        _emit(message, "sql.error", TraceLevel.ERROR)

    for name in ("begin", "commit", "rollback"):
        event.listen(sync_engine, name, _make_transaction_listener(name, _emit))


def _make_transaction_listener(name: str, emit):
    def _listener(conn) -> None:
        emit(name.upper(), "sql.transaction", TraceLevel.VERBOSE)

    return _listener
