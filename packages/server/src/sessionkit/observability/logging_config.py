# packages/server/src/sessionkit/observability/logging_config.py
"""
集中配置日志系统：structlog ⇄ 标准 logging。

两种输出：
- console：开发环境的 Rich 面板输出（本地时间）。
- json   ：生产环境的结构化日志（ISO-8601 且 UTC）。

会话与连接的生命周期事件、SQL 跟踪都通过 structlog 记录，
最终经由 ProcessorFormatter 交给标准 logging 的 handler 输出。
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Literal

import structlog
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from structlog.typing import Processor

if TYPE_CHECKING:
    from sessionkit.config import SessionKitConfig

APP_LOGGER_NAME = "sessionkit"

_LEVEL_STYLES: dict[str, tuple[str, str]] = {
    "debug": ("cyan", "DEBUG   "),
    "info": ("green", "INFO    "),
    "warning": ("yellow", "WARNING "),
    "error": ("bold red", "ERROR   "),
    "critical": ("magenta", "CRITICAL"),
}


class PanelRenderer:
    """
    structlog 处理器：把一条日志渲染为 Rich 面板。

    标题为等宽级别标签与 logger 名称，正文为事件消息，
    附加的键值对以两列表格展示，值的 repr 超过 `kv_truncate_at` 个字符时被截断。
    """

    def __init__(
        self,
        *,
        kv_truncate_at: int = 256,
        show_timestamp: bool = True,
        kv_key_width: int = 15,
    ) -> None:
        self._console = Console()
        self._kv_truncate_at = kv_truncate_at
        self._show_timestamp = show_timestamp
        self._kv_key_width = kv_key_width

    def __call__(
        self, logger: Any, name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        event_msg = str(event_dict.pop("event", "")).strip()
        if not event_msg:
            return ""

        timestamp = event_dict.pop("timestamp", "")
        level = str(event_dict.pop("level", "info")).lower()
        logger_name = event_dict.pop("logger", "unknown")
        event_dict.pop("_record", None)
        event_dict.pop("_from_structlog", None)

        border_style, level_text = _LEVEL_STYLES.get(level, ("dim", level.upper()))
        title = Text.from_markup(f"[{border_style}]{level_text}[/] [cyan dim]({logger_name})[/]")

        body: list[Any] = [Text(event_msg)]
        if event_dict:
            body.append(self._render_kv(event_dict))

        subtitle = (
            Text(str(timestamp), style="dim")
            if self._show_timestamp and timestamp
            else None
        )
        with self._console.capture() as capture:
            self._console.print(
                Panel(
                    Group(*body),
                    title=title,
                    title_align="left",
                    subtitle=subtitle,
                    subtitle_align="right",
                    border_style=border_style,
                    expand=False,
                )
            )
        return capture.get().rstrip()

    def _render_kv(self, kv: MutableMapping[str, Any]) -> Table:
        table = Table(show_header=False, show_edge=False, box=None, padding=(0, 1))
        table.add_column(style="dim", justify="right", width=self._kv_key_width)
        table.add_column(style="bright_white", overflow="fold")
        for key, value in sorted(kv.items()):
            table.add_row(f"{key} :", Text(self._truncate(repr(value))))
        return table

    def _truncate(self, value_repr: str) -> str:
        if len(value_repr) <= self._kv_truncate_at:
            return value_repr
        return value_repr[: self._kv_truncate_at] + "…"


def setup_logging(
    *,
    log_level: str = "INFO",
    log_format: Literal["json", "console"] = "console",
    root_level: str | None = None,
    service: str | None = None,
    silence_noisy_libs: bool = True,
) -> None:
    """
    配置全局 structlog 日志系统。

    Args:
        log_level: sessionkit logger 的最低级别。
        log_format: 'console'（开发）或 'json'（生产）。
        root_level: 根 logger 级别；默认 WARNING 以降低第三方噪声。
        service: 绑定到所有日志的服务名（通过 contextvars 注入）。
        silence_noisy_libs: 是否下调 asyncio / SQLAlchemy 引擎等 logger 的级别。
    """
    timestamper = (
        structlog.processors.TimeStamper(fmt="iso", utc=True)
        if log_format == "json"
        else structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)
    )
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
    ]

    structlog.configure(
        processors=[
            *shared,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: Processor = (
        structlog.processors.JSONRenderer() if log_format == "json" else PanelRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared,
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel((root_level or "WARNING").upper())

    logging.getLogger(APP_LOGGER_NAME).setLevel(log_level.upper())

    structlog.contextvars.clear_contextvars()
    if service:
        structlog.contextvars.bind_contextvars(service=service)

    if silence_noisy_libs:
        for noisy in ("asyncio", "aiosqlite", "sqlalchemy.engine.Engine"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.get_logger(f"{APP_LOGGER_NAME}.logging_config").info(
        "日志系统已配置完成。",
        log_format=log_format,
        app_log_level=log_level.upper(),
        service=service,
    )


def setup_logging_from_config(cfg: "SessionKitConfig") -> None:
    """根据 SessionKitConfig 一键初始化日志系统。"""
    setup_logging(
        log_level=cfg.logging.level,
        log_format=cfg.logging.format,
        service=cfg.service_name,
    )
