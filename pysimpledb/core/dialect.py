"""
pysimpledb SQL 方言

每种数据库家族一个方言对象，构造 StatementBuilder 时选定一次：
- 标识符引号
- LIMIT / OFFSET / TOP 语法
- 行锁子句与原生总行数支持
- 事务控制语句与系统表
- 字面量转义
"""

import datetime
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from ..common.exceptions import ConfigurationError, QueryBuildError
from ..common.typing import LimitSpec


class ParamType(IntEnum):
    """参数绑定类型标记"""
    NULL = 0
    INT = 1
    STR = 2
    LOB = 3
    BOOL = 5


def determine_type(value: Any) -> ParamType:
    """根据 Python 值推断绑定类型，其余类型按字符串处理"""
    if value is None:
        return ParamType.NULL
    # bool 是 int 的子类，必须先判断
    if isinstance(value, bool):
        return ParamType.BOOL
    if isinstance(value, int):
        return ParamType.INT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ParamType.LOB
    return ParamType.STR


def normalize_limit(limit: LimitSpec) -> Optional[Tuple[Optional[int], int]]:
    """
    规范化 LIMIT 规格

    Args:
        limit: 行数，或 [offset, count]

    Returns:
        (offset, count)；单个行数时 offset 为 None；无限制时返回 None

    Raises:
        QueryBuildError: 结构不是整数或二元序列
    """
    if limit is None:
        return None
    if isinstance(limit, (list, tuple)):
        if not limit:
            return None
        if len(limit) != 2:
            raise QueryBuildError(f"Limit must be a row count or an [offset, count] pair, got {limit!r}")
        return int(limit[0]), int(limit[1])
    return None, int(limit)


class Dialect:
    """SQL 方言基类（ANSI 行为）"""

    NAME = 'ansi'
    IDENTIFIER_QUOTE = '"'
    BOOL_LITERALS = ('TRUE', 'FALSE')

    BEGIN_STATEMENT = 'BEGIN'
    COMMIT_STATEMENT = 'COMMIT'
    ROLLBACK_STATEMENT = 'ROLLBACK'

    # table_exists() 使用的系统表
    CATALOG_TABLE = 'information_schema.tables'
    CATALOG_NAME_COLUMN = 'table_name'
    CATALOG_SCHEMA_COLUMN: Optional[str] = 'table_catalog'
    CATALOG_FILTERS: Dict[str, Any] = {}

    # 行锁选项 -> 追加到 SELECT 末尾的子句
    LOCK_CLAUSES: Dict[str, str] = {}

    # 是否支持 SQL_CALC_FOUND_ROWS / FOUND_ROWS()
    supports_native_row_count = False
    FOUND_ROWS_STATEMENT: Optional[str] = None

    def quote_identifier(self, name: str) -> str:
        """
        引用标识符，带限定符的名称只引用最后一段

        Example:
            quote_identifier('u.name') -> u."name"
        """
        q = self.IDENTIFIER_QUOTE
        qualifier, dot, ident = name.rpartition('.')
        quoted = q + ident.replace(q, q + q) + q
        return f"{qualifier}{dot}{quoted}"

    def render_top(self, limit: LimitSpec) -> str:
        """紧跟 SELECT 的 TOP 修饰符，默认不使用"""
        return ''

    def render_limit(self, limit: LimitSpec, has_order_by: bool) -> str:
        """
        渲染 LIMIT 子句

        Args:
            limit: 行数，或 [offset, count]
            has_order_by: 语句是否已有 ORDER BY

        Returns:
            LIMIT 子句文本，无限制时为空字符串
        """
        spec = normalize_limit(limit)
        if spec is None:
            return ''
        offset, count = spec
        if offset is None:
            return f"LIMIT {count}"
        return f"LIMIT {count} OFFSET {offset}"

    def filter_query_options(self, options: Iterable[str]) -> List[str]:
        """去掉本方言不支持的 SELECT 修饰符"""
        if self.supports_native_row_count:
            return list(options)
        return [opt for opt in options if opt != 'SQL_CALC_FOUND_ROWS']

    def quote_binary(self, value: bytes) -> str:
        return f"X'{bytes(value).hex()}'"

    def quote_string(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def quote_literal(self, value: Any) -> str:
        """按绑定类型把值渲染为 SQL 字面量"""
        param_type = determine_type(value)
        if param_type == ParamType.NULL:
            return 'NULL'
        if param_type == ParamType.BOOL:
            return self.BOOL_LITERALS[0] if value else self.BOOL_LITERALS[1]
        if param_type == ParamType.INT:
            return str(int(value))
        if param_type == ParamType.LOB:
            return self.quote_binary(value)
        if isinstance(value, datetime.datetime):
            return self.quote_string(value.isoformat(sep=' '))
        if isinstance(value, (datetime.date, datetime.time)):
            return self.quote_string(value.isoformat())
        return self.quote_string(str(value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AnsiDialect(Dialect):
    """通用 ANSI 方言"""


class SqliteDialect(AnsiDialect):
    """SQLite 方言"""

    NAME = 'sqlite'
    BOOL_LITERALS = ('1', '0')

    CATALOG_TABLE = 'sqlite_master'
    CATALOG_NAME_COLUMN = 'name'
    CATALOG_SCHEMA_COLUMN = None
    CATALOG_FILTERS = {'type': 'table'}


class PgsqlDialect(AnsiDialect):
    """PostgreSQL 方言"""

    NAME = 'pgsql'

    LOCK_CLAUSES = {
        'FOR UPDATE': 'FOR UPDATE',
        'LOCK IN SHARE MODE': 'FOR SHARE',
    }

    def quote_binary(self, value: bytes) -> str:
        return f"'\\x{bytes(value).hex()}'::bytea"


class MysqlDialect(Dialect):
    """MySQL / MariaDB 方言"""

    NAME = 'mysql'
    IDENTIFIER_QUOTE = '`'
    BOOL_LITERALS = ('1', '0')

    BEGIN_STATEMENT = 'START TRANSACTION'

    CATALOG_SCHEMA_COLUMN = 'table_schema'

    LOCK_CLAUSES = {
        'FOR UPDATE': 'FOR UPDATE',
        'LOCK IN SHARE MODE': 'LOCK IN SHARE MODE',
    }

    supports_native_row_count = True
    FOUND_ROWS_STATEMENT = 'SELECT FOUND_ROWS()'

    def quote_string(self, value: str) -> str:
        # 默认 sql_mode 下反斜杠是转义符
        return "'" + value.replace('\\', '\\\\').replace("'", "''") + "'"


class SqlServerDialect(Dialect):
    """SQL Server 方言（OFFSET/FETCH 分页与 TOP）"""

    NAME = 'sqlsrv'
    BOOL_LITERALS = ('1', '0')

    BEGIN_STATEMENT = 'BEGIN TRANSACTION'
    COMMIT_STATEMENT = 'COMMIT TRANSACTION'
    ROLLBACK_STATEMENT = 'ROLLBACK TRANSACTION'

    def render_top(self, limit: LimitSpec) -> str:
        spec = normalize_limit(limit)
        if spec is None or spec[0] is not None or not spec[1]:
            return ''
        return f"TOP {spec[1]}"

    def render_limit(self, limit: LimitSpec, has_order_by: bool) -> str:
        spec = normalize_limit(limit)
        # 单个行数已由 TOP 处理
        if spec is None or spec[0] is None:
            return ''
        offset, count = spec
        # OFFSET/FETCH 必须跟在 ORDER BY 之后
        order_by = '' if has_order_by else 'ORDER BY (SELECT NULL) '
        return f"{order_by}OFFSET {offset} ROWS FETCH NEXT {count} ROWS ONLY"

    def quote_binary(self, value: bytes) -> str:
        return '0x' + bytes(value).hex()


_DIALECTS: Dict[str, Type[Dialect]] = {
    'mysql': MysqlDialect,
    'sqlite': SqliteDialect,
    'pgsql': PgsqlDialect,
    'sqlsrv': SqlServerDialect,
}


def get_dialect(db_type: str) -> Dialect:
    """
    获取数据库类型对应的方言

    Args:
        db_type: 'mysql' | 'sqlite' | 'pgsql' | 'sqlsrv'

    Returns:
        方言实例

    Raises:
        ConfigurationError: 未知数据库类型
    """
    dialect_cls = _DIALECTS.get((db_type or '').lower())
    if dialect_cls is None:
        raise ConfigurationError(
            f"Unsupported DB type: '{db_type}'. Valid types: {', '.join(_DIALECTS)}"
        )
    return dialect_cls()
