# packages/server/src/sessionkit/utils.py
"""通用的小工具函数：参数守卫与 DSN 脱敏。"""

from __future__ import annotations

from typing import TypeVar, Union

from sqlalchemy.engine import URL, make_url

from sessionkit_core.exceptions import InvalidArgumentError

T = TypeVar("T")


def ensure_not_none(value: T | None, name: str) -> T:
    """校验必需参数不为 None，否则抛出 InvalidArgumentError。"""
    if value is None:
        raise InvalidArgumentError(f"参数 '{name}' 不能为 None。")
    return value


def ensure_not_blank(value: str | None, name: str) -> str:
    """校验字符串参数既不为 None 也不是空白。"""
    if value is None or not value.strip():
        raise InvalidArgumentError(f"参数 '{name}' 不能为空白字符串。")
    return value


def mask_db_url(url: Union[str, URL, None]) -> str:
    """
    安全地脱敏一个数据库连接 URL，将其密码替换为 '***'。
    适合在日志中输出。
    """
    if url is None:
        return "[未配置]"
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "[无法解析的数据库 URL]"
