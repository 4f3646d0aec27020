"""
pysimpledb - 轻量 SQL 语句构建器与数据访问层

一个 StatementBuilder 对象覆盖 MySQL / SQLite / PostgreSQL / SQL Server：
- 链式累积 WHERE / HAVING / JOIN / GROUP BY / ORDER BY，渲染为带 '?' 占位符的 SQL
- 子查询内联、ON DUPLICATE KEY UPDATE、分页与总行数
- 执行期错误记录到 last_error，而不是抛出
- 事务与 CSV / JSON / Excel / XML 批量导入

Example:
    from pysimpledb import StatementBuilder

    db = StatementBuilder({'type': 'sqlite', 'dbname': 'app.db'})
    db.insert('users', {'name': 'Alice', 'active': 1})
    users = db.where('active', 1).order_by('name', 'ASC').select('users', 10)
"""

import logging

from .common.exceptions import (
    PySimpleDbException,
    ConfigurationError,
    DriverNotAvailableError,
    DatabaseConnectionError,
    QueryBuildError,
    InvalidJoinTypeError,
    InvalidOrderDirectionError,
    InvalidQueryOptionError,
    InvalidPayloadError,
    InvalidIntervalError,
    TransactionError,
    DataLoadError,
)
from .common.options import (
    ConnectionOptions,
    CsvLoadOptions,
    JsonLoadOptions,
    ExcelLoadOptions,
    XmlLoadOptions,
)
from .core import StatementBuilder, get_dialect
from .connectors import get_connector, wrap_connection, get_available_connectors
from .query import (
    ReturnType,
    NOT_SET,
    increment,
    decrement,
    raw_expr,
    set_from_column,
    interval,
    now,
)

__version__ = '0.1.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Builder
    'StatementBuilder',
    'ReturnType',
    'NOT_SET',
    'get_dialect',
    # Value markers
    'increment',
    'decrement',
    'raw_expr',
    'set_from_column',
    'interval',
    'now',
    # Connectors
    'get_connector',
    'wrap_connection',
    'get_available_connectors',
    # Options
    'ConnectionOptions',
    'CsvLoadOptions',
    'JsonLoadOptions',
    'ExcelLoadOptions',
    'XmlLoadOptions',
    # Exceptions
    'PySimpleDbException',
    'ConfigurationError',
    'DriverNotAvailableError',
    'DatabaseConnectionError',
    'QueryBuildError',
    'InvalidJoinTypeError',
    'InvalidOrderDirectionError',
    'InvalidQueryOptionError',
    'InvalidPayloadError',
    'InvalidIntervalError',
    'TransactionError',
    'DataLoadError',
]
