# packages/server/src/sessionkit/containers/registration.py
"""
把会话类型注册到 DI 容器的辅助函数。

对一个会话名 `<name>` 会注册：
- `<name>`：会话本身的 provider（默认每次解析都新建）；
- `<name>_factory`：包装会话解析委托的 SessionFactory（默认单例）；
- `create_<name>`：会话的解析委托本身（可选）。
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

import structlog
from dependency_injector import containers, providers

from sessionkit_core.interfaces import IDataConnection

from ..factories import ConnectionSessionFactory, SessionFactory
from ..sessions.read_only import AsyncReadOnlySession
from ..utils import ensure_not_blank, ensure_not_none

logger = structlog.get_logger(__name__)


class ProviderLifetime(str, Enum):
    """DI 中对象的生命周期。"""

    TRANSIENT = "transient"
    SCOPED = "scoped"
    SINGLETON = "singleton"


_PROVIDER_TYPES: dict[ProviderLifetime, type[providers.Provider]] = {
    ProviderLifetime.TRANSIENT: providers.Factory,
    ProviderLifetime.SCOPED: providers.ContextLocalSingleton,
    ProviderLifetime.SINGLETON: providers.Singleton,
}


def create_provider(
    lifetime: ProviderLifetime, provides: Callable[..., Any], **dependencies: Any
) -> providers.Provider:
    """按生命周期创建对应类型的 provider。"""
    provider_type = _PROVIDER_TYPES[ProviderLifetime(lifetime)]
    return provider_type(provides, **dependencies)


def register_session_factory(
    container: containers.Container,
    name: str,
    session_type: type,
    *,
    session_lifetime: ProviderLifetime = ProviderLifetime.TRANSIENT,
    factory_lifetime: ProviderLifetime = ProviderLifetime.SINGLETON,
    register_create_session_delegate: bool = True,
    **dependencies: Any,
) -> providers.Provider:
    """
    注册会话及其 SessionFactory，返回会话的 provider。

    `dependencies` 原样传给会话的构造函数，通常包含
    `data_connection=<连接 provider>`。
    """
    ensure_not_none(container, "container")
    ensure_not_blank(name, "name")
    ensure_not_none(session_type, "session_type")

    session_provider = create_provider(session_lifetime, session_type, **dependencies)
    factory_provider = create_provider(
        factory_lifetime, SessionFactory, get_session=session_provider.provider
    )

    container.set_provider(name, session_provider)
    container.set_provider(f"{name}_factory", factory_provider)
    if register_create_session_delegate:
        container.set_provider(f"create_{name}", session_provider.provider)

    logger.debug(
        "会话已注册到容器",
        name=name,
        session=session_type.__name__,
        session_lifetime=ProviderLifetime(session_lifetime).value,
        factory_lifetime=ProviderLifetime(factory_lifetime).value,
    )
    return session_provider


def register_connection_session_factory(
    container: containers.Container,
    name: str,
    session_type: type[AsyncReadOnlySession],
    create_connection: providers.Provider | Callable[[], IDataConnection],
    *,
    factory_lifetime: ProviderLifetime = ProviderLifetime.SINGLETON,
) -> providers.Provider:
    """
    注册一个通过连接工厂直接构造会话的 ConnectionSessionFactory（名为 `<name>_factory`）。

    `create_connection` 可以是连接 provider 本身，也可以是任意零参数的连接工厂。
    """
    ensure_not_none(container, "container")
    ensure_not_blank(name, "name")
    ensure_not_none(session_type, "session_type")
    ensure_not_none(create_connection, "create_connection")

    # 注入时 provider 会被调用，因此传入其委托，让工厂拿到可调用的 provider 本身
    if isinstance(create_connection, providers.Provider) and not isinstance(
        create_connection, providers.Delegate
    ):
        create_connection = create_connection.provider

    factory_provider = create_provider(
        factory_lifetime,
        ConnectionSessionFactory,
        session_type=providers.Object(session_type),
        create_connection=create_connection,
    )
    container.set_provider(f"{name}_factory", factory_provider)
    return factory_provider
