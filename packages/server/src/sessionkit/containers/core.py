# packages/server/src/sessionkit/containers/core.py
"""
核心容器：应用范围内的日志系统。

日志以 Resource 的形式提供：`init_resources()` 时配置，
`shutdown_resources()` 时恢复根 logger 原有的 handler。
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

import structlog
from dependency_injector import containers, providers

from sessionkit.observability.logging_config import setup_logging


def init_logging(
    log_level: str, log_format: str, service: Optional[str]
) -> Iterator[None]:
    root_logger = logging.getLogger()
    previous_handlers = list(root_logger.handlers)
    setup_logging(log_level=log_level, log_format=log_format, service=service)
    try:
        yield
    finally:
        root_logger.handlers[:] = previous_handlers
        structlog.contextvars.clear_contextvars()


class CoreContainer(containers.DeclarativeContainer):
    """使用字段级配置提供者的核心容器。"""

    config = providers.Configuration()

    logging = providers.Resource(
        init_logging,
        log_level=config.logging.level,
        log_format=config.logging.format,
        service=config.service_name,
    )
