"""
pysimpledb 连接器模块

提供连接器注册、发现和实例化功能
"""

import importlib
import sys
from types import ModuleType
from typing import Any, Dict, List, Optional, Type

from ..common.exceptions import ConfigurationError
from ..common.options import ConnectionOptions
from .base import DatabaseConnector, adapt_params, convert_placeholders
from .mysql import MysqlConnector
from .pgsql import PgsqlConnector
from .sqlite import SqliteConnector
from .sqlsrv import SqlsrvConnector

CONNECTORS: Dict[str, Type[DatabaseConnector]] = {
    'mysql': MysqlConnector,
    'sqlite': SqliteConnector,
    'pgsql': PgsqlConnector,
    'sqlsrv': SqlsrvConnector,
}

# 驱动模块名 -> 数据库类型（用于识别已打开的连接）
_DRIVER_TYPES = {
    'sqlite3': 'sqlite',
    'pymysql': 'mysql',
    'MySQLdb': 'mysql',
    'psycopg2': 'pgsql',
    'pyodbc': 'sqlsrv',
}


def get_connector(options: ConnectionOptions) -> DatabaseConnector:
    """
    根据配置创建连接器（不立即连接）

    Args:
        options: 连接配置

    Returns:
        连接器实例

    Raises:
        ConfigurationError: 未知数据库类型
    """
    connector_cls = CONNECTORS.get(options.type)
    if connector_cls is None:
        raise ConfigurationError(
            f"Unsupported DB type: '{options.type}'. Valid types: {', '.join(CONNECTORS)}"
        )
    return connector_cls(options)


def wrap_connection(
    raw_connection: Any,
    db_type: Optional[str] = None,
    driver: Optional[ModuleType] = None,
    prefix: str = ''
) -> DatabaseConnector:
    """
    包装一个已打开的 DB-API 连接

    Args:
        raw_connection: DB-API 连接对象
        db_type: 数据库类型，省略时根据驱动模块推断
        driver: 驱动模块（提供 Error 和 paramstyle），省略时取连接所属模块
        prefix: 表名前缀

    Returns:
        连接器实例

    Raises:
        ConfigurationError: 无法推断数据库类型
    """
    module_name = type(raw_connection).__module__.split('.')[0]
    if db_type is None:
        db_type = _DRIVER_TYPES.get(module_name)
        if db_type is None:
            raise ConfigurationError(
                f"Cannot infer DB type from connection module '{module_name}'; pass db_type explicitly"
            )
    if driver is None:
        driver = sys.modules.get(module_name) or importlib.import_module(module_name)

    options = ConnectionOptions(type=db_type, prefix=prefix)
    connector_cls = CONNECTORS.get(options.type)
    if connector_cls is None:
        raise ConfigurationError(f"Unsupported DB type: '{db_type}'")
    return connector_cls(options, raw_connection=raw_connection, driver=driver)


def get_available_connectors() -> List[str]:
    """已安装驱动的数据库类型列表"""
    return [name for name, cls in CONNECTORS.items() if cls.is_available()]


__all__ = [
    'DatabaseConnector',
    'MysqlConnector',
    'PgsqlConnector',
    'SqliteConnector',
    'SqlsrvConnector',
    'CONNECTORS',
    'get_connector',
    'wrap_connection',
    'get_available_connectors',
    'convert_placeholders',
    'adapt_params',
]
