# packages/server/src/sessionkit/containers/persistence.py
"""
持久化层容器。

负责数据库引擎与数据连接的生命周期。
"""

import structlog
from dependency_injector import containers, providers
from sqlalchemy.ext.asyncio import AsyncEngine

from sessionkit.config import SessionKitConfig
from sessionkit.infrastructure.db import DataConnection, create_async_db_engine


class PersistenceContainer(containers.DeclarativeContainer):
    """持久化层相关服务的容器。"""

    config = providers.Dependency(instance_of=SessionKitConfig)

    # SQL 跟踪使用独立的 logger 名称，便于单独调节级别
    sql_logger = providers.Singleton(structlog.get_logger, "sessionkit.sql")

    # 引擎是单例；进程退出时由上层调用 dispose_engine
    db_engine: providers.Singleton[AsyncEngine] = providers.Singleton(
        create_async_db_engine,
        cfg=config,
        sql_logger=sql_logger,
    )

    # 数据连接是一个工厂，每次调用都会创建一个新的、尚未打开的实例
    data_connection: providers.Factory[DataConnection] = providers.Factory(
        DataConnection,
        engine=db_engine,
        reject_overlapping_transactions=config.provided.database.reject_overlapping_transactions,
    )

    # 连接工厂委托：注入后得到可零参数调用的 data_connection provider
    create_data_connection = data_connection.provider
