# packages/server/src/sessionkit/containers/__init__.py
"""
应用的组合根 (Composition Root)。

`ApplicationContainer` 聚合所有子容器；应用在其上通过
`register_session_factory` 注册自己的会话类型。
"""

from __future__ import annotations

from dependency_injector import containers, providers

from sessionkit.config import SessionKitConfig

from .core import CoreContainer
from .persistence import PersistenceContainer
from .registration import (
    ProviderLifetime,
    create_provider,
    register_connection_session_factory,
    register_session_factory,
)


class ApplicationContainer(containers.DeclarativeContainer):
    """顶层 DI 容器，作为组合根。"""

    # 1. 整块配置对象，作为唯一事实来源向下传递
    pydantic_config = providers.Dependency(instance_of=SessionKitConfig)
    # 2. 字段级配置提供者，用于需要细粒度配置的场景 (如日志)
    config = providers.Configuration()

    core = providers.Container(
        CoreContainer,
        config=config,
    )
    persistence = providers.Container(
        PersistenceContainer,
        config=pydantic_config,
    )


def build_container(cfg: SessionKitConfig) -> ApplicationContainer:
    """用给定配置构造并填充应用容器（尚未初始化资源）。"""
    container = ApplicationContainer(pydantic_config=providers.Object(cfg))
    container.config.from_dict(cfg.model_dump(mode="json"))
    return container


__all__ = [
    "ApplicationContainer",
    "CoreContainer",
    "PersistenceContainer",
    "ProviderLifetime",
    "build_container",
    "create_provider",
    "register_connection_session_factory",
    "register_session_factory",
]
