# packages/server/src/sessionkit/config.py
"""
sessionkit 配置（Pydantic v2）

- DatabaseSettings：连接 DSN、SQL 跟踪级别、事务策略与连接池参数。
- SessionKitConfig：顶层配置，从 `SESSIONKIT_` 前缀的环境变量加载。
- settings_from_mapping：从任意嵌套映射（如解析后的 TOML/YAML）中
  按节名读取一个不可变的设置对象。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine.url import make_url

from sessionkit_core.exceptions import ConfigurationError
from sessionkit_core.types import TraceLevel

from .utils import ensure_not_blank, ensure_not_none

DEFAULT_SECTION_NAME = "database"

ASYNC_DRIVERS = frozenset(
    {"sqlite+aiosqlite", "postgresql+asyncpg", "mysql+aiomysql", "mssql+aioodbc"}
)

TSettings = TypeVar("TSettings", bound=BaseModel)


# ===================== 子模型 =====================


class DatabaseSettings(BaseModel):
    """数据库连接与会话行为设置。"""

    model_config = ConfigDict(frozen=True)

    url: str = Field(
        default="sqlite+aiosqlite:///sessionkit.db",
        description="异步 DSN（sqlite+aiosqlite / postgresql+asyncpg / mysql+aiomysql / mssql+aioodbc）",
    )
    echo: bool = Field(default=False, description="SQLAlchemy echo（调试）")
    trace_level: TraceLevel = Field(default=TraceLevel.OFF)
    reject_overlapping_transactions: bool = Field(
        default=False,
        description="为 True 时，在已有活动事务的连接上开启新事务会直接报错，而不是丢弃旧事务",
    )

    pool_size: Optional[int] = Field(default=None, ge=1)
    max_overflow: Optional[int] = Field(default=None, ge=0)
    pool_timeout: int = Field(default=30, gt=0)
    pool_recycle: Optional[int] = None
    pool_pre_ping: bool = True

    @field_validator("url")
    @classmethod
    def _validate_async_driver(cls, v: str) -> str:
        try:
            drv = make_url(v).drivername.lower()
        except Exception as e:
            raise ValueError(f"非法数据库 URL：{v!r}（{e}）") from e
        if drv not in ASYNC_DRIVERS:
            raise ValueError(
                f"不支持的数据库驱动：{drv!r}，仅允许 {', '.join(sorted(ASYNC_DRIVERS))}"
            )
        return v

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    format: Literal["console", "json"] = Field(default="console")


# ===================== 顶层配置 =====================
class SessionKitConfig(BaseSettings):
    """
    sessionkit 顶层配置模型。
    """

    service_name: str = "sessionkit"
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="SESSIONKIT_",
        case_sensitive=False,
        extra="ignore",
        env_file_encoding="utf-8",
    )


def settings_from_mapping(
    mapping: Mapping[str, Any],
    section_name: str = DEFAULT_SECTION_NAME,
    model: type[TSettings] = DatabaseSettings,  # type: ignore[assignment]
) -> TSettings:
    """
    从配置映射的指定节构造设置对象。

    Raises:
        InvalidArgumentError: `mapping` 为 None 或 `section_name` 为空白。
        ConfigurationError: 配置节不存在，或其内容无法通过校验。
    """
    ensure_not_none(mapping, "mapping")
    ensure_not_blank(section_name, "section_name")

    section = mapping.get(section_name)
    if section is None:
        raise ConfigurationError(
            f'无法从配置节 "{section_name}" 中读取数据库设置。'
        )
    try:
        return model.model_validate(section)
    except ValidationError as e:
        raise ConfigurationError(f'配置节 "{section_name}" 校验失败：{e}') from e
