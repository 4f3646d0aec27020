"""
pysimpledb 核心模块

包含 SQL 方言和语句构建器
"""

from .dialect import (
    Dialect,
    AnsiDialect,
    SqliteDialect,
    PgsqlDialect,
    MysqlDialect,
    SqlServerDialect,
    ParamType,
    determine_type,
    get_dialect,
)
from .builder import StatementBuilder

__all__ = [
    # Dialects
    'Dialect',
    'AnsiDialect',
    'SqliteDialect',
    'PgsqlDialect',
    'MysqlDialect',
    'SqlServerDialect',
    'ParamType',
    'determine_type',
    'get_dialect',
    # Builder
    'StatementBuilder',
]
