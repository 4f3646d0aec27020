"""
pysimpledb 语句构建器

StatementBuilder 累积一条语句的 WHERE/HAVING/JOIN/GROUP BY/ORDER BY/选项，
渲染为 SQL 与位置参数后交给连接器执行，执行后清空累积状态以便复用。

错误约定：
- 构建期错误（JOIN 类型、排序方向、查询选项、数据结构）立即抛出
- 执行期错误（驱动的 DB-API Error）被捕获，记录到 last_error / last_error_code，
  并以 False / None / [] 返回，调用方检查返回值而不是捕获异常

Example:
    db = StatementBuilder({'type': 'sqlite', 'dbname': ':memory:'})
    db.insert('users', {'name': 'Alice', 'active': 1})
    users = db.where('active', 1).order_by('name', 'ASC').select('users', 10)
"""

import atexit
import copy
import dataclasses
import logging
import math
import re
from contextlib import contextmanager
from types import GeneratorType
from typing import (
    Any, Callable, Dict, Generator, List, Mapping, Optional, Sequence, Union, TYPE_CHECKING,
)

from ..common.exceptions import (
    InvalidJoinTypeError,
    InvalidOrderDirectionError,
    InvalidQueryOptionError,
    TransactionError,
)
from ..common.options import ConnectionOptions, CsvLoadOptions, ExcelLoadOptions, JsonLoadOptions, XmlLoadOptions
from ..common.typing import Columns, LimitSpec
from ..connectors import DatabaseConnector, get_connector, wrap_connection
from ..query import values
from ..query.compiler import ClauseState, QueryCompiler, RenderPlan, SubqueryHandle
from ..query.conditions import sanitize_custom_field, sanitize_group_by, sanitize_order_by
from ..query.result import ReturnType, fetch_all, iter_rows
from ..query.values import NOT_SET
from .dialect import Dialect, get_dialect

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

JOIN_TYPES = ('LEFT', 'RIGHT', 'OUTER', 'INNER', 'LEFT OUTER', 'RIGHT OUTER')

ORDER_DIRECTIONS = ('ASC', 'DESC')

QUERY_OPTIONS = (
    'ALL',
    'DISTINCT',
    'DISTINCTROW',
    'HIGH_PRIORITY',
    'STRAIGHT_JOIN',
    'SQL_SMALL_RESULT',
    'SQL_BIG_RESULT',
    'SQL_BUFFER_RESULT',
    'SQL_CACHE',
    'SQL_NO_CACHE',
    'SQL_CALC_FOUND_ROWS',
    'LOW_PRIORITY',
    'IGNORE',
    'QUICK',
    'FOR UPDATE',
    'LOCK IN SHARE MODE',
)

# 行锁选项追加在 SELECT 末尾，其余选项紧跟语句关键字
LOCK_OPTIONS = ('FOR UPDATE', 'LOCK IN SHARE MODE')

_LIMIT_ONE = re.compile(r'limit\s+1;?$', re.IGNORECASE)
_QUOTED_TABLE = re.compile(r'(`)([`a-zA-Z0-9_]*\.)')


def _error_code(error: BaseException) -> str:
    """从驱动异常中取错误码（SQLSTATE、驱动错误号或异常类名）"""
    for attr in ('sqlstate', 'pgcode', 'sqlite_errorname'):
        code = getattr(error, attr, None)
        if code:
            return str(code)
    if len(error.args) > 1 and isinstance(error.args[0], (int, str)):
        return str(error.args[0])
    return type(error).__name__


def _first_value(row: Any) -> Any:
    if isinstance(row, dict):
        return next(iter(row.values()), None)
    if isinstance(row, tuple):
        return row[0] if row else None
    return next(iter(vars(row).values()), None)


class StatementBuilder:
    """SQL 语句构建器与轻量数据访问层"""

    # 值标记，也可从 pysimpledb 直接导入
    increment = staticmethod(values.increment)
    decrement = staticmethod(values.decrement)
    raw_expr = staticmethod(values.raw_expr)
    set_from_column = staticmethod(values.set_from_column)
    interval = staticmethod(values.interval)
    now = staticmethod(values.now)

    def __init__(
        self,
        target: Any = 'mysql',
        host: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        dbname: Optional[str] = None,
        port: Optional[int] = None,
        charset: Optional[str] = None,
        *,
        prefix: Optional[str] = None,
        db_type: Optional[str] = None,
        is_subquery: bool = False,
        subquery_alias: str = ''
    ):
        """
        初始化构建器（不立即连接，首次执行时连接）

        Args:
            target: 以下之一：
                - 数据库类型字符串（'mysql' | 'sqlite' | 'pgsql' | 'sqlsrv'），配合后续参数
                - ConnectionOptions 或同字段的字典
                - DatabaseConnector 实例
                - 已打开的 DB-API 连接（如 sqlite3.Connection）
            host: 主机
            username: 用户名
            password: 密码
            dbname: 数据库名（SQLite 下为文件路径）
            port: 端口
            charset: 字符集
            prefix: 表名前缀，覆盖配置中的 prefix
            db_type: 包装已打开连接时的数据库类型（省略时按驱动推断）
            is_subquery: 是否为子查询构建器（由 subquery() 创建）
            subquery_alias: 子查询别名

        Raises:
            ConfigurationError: 配置无效或数据库类型未知
        """
        self._connector: Optional[DatabaseConnector] = None

        if isinstance(target, DatabaseConnector):
            self._connector = target
            options = target.options
        elif isinstance(target, ConnectionOptions):
            options = target
        elif isinstance(target, Mapping):
            options = ConnectionOptions.from_mapping(target)
        elif isinstance(target, str):
            options = ConnectionOptions.from_mapping({
                'type': target,
                'host': host,
                'username': username,
                'password': password,
                'dbname': dbname,
                'port': port,
                'charset': charset,
            })
        else:
            self._connector = wrap_connection(target, db_type)
            options = self._connector.options

        if prefix is not None:
            options = dataclasses.replace(options, prefix=prefix)

        self.options: ConnectionOptions = options
        self.dialect: Dialect = get_dialect(options.type)
        self.prefix: str = options.prefix
        self.compiler = QueryCompiler(self.dialect, self.prefix)

        self.is_subquery = is_subquery
        self.subquery_alias = subquery_alias
        self._subquery: Optional[SubqueryHandle] = None

        # 单条语句的累积状态
        self._state = ClauseState()

        # 跨语句保留的设置
        self.page_limit = 10
        self.return_type = ReturnType.DICT
        self._use_generator = False
        self.in_transaction = False
        self._exit_guard = False

        # 执行结果
        self.last_query = ''
        self.last_error: Optional[str] = None
        self.last_error_code: Optional[str] = None
        self.row_count = 0
        self.last_insert_id: Any = None
        self.total_count = 0
        self.total_pages = 0

    # ---------- 连接 ----------

    @property
    def connector(self) -> DatabaseConnector:
        """连接器，首次访问时按配置创建"""
        if self._connector is None:
            self._connector = get_connector(self.options)
        return self._connector

    def connect(self) -> None:
        """
        立即建立连接

        Raises:
            ConfigurationError: 配置不完整
            DatabaseConnectionError: 连接失败
        """
        self.connector.connect()

    def close(self) -> None:
        if self._connector is not None:
            self._connector.close()

    def __enter__(self) -> 'StatementBuilder':
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.check_transaction_status()
        self.close()

    def set_prefix(self, prefix: str = '') -> 'StatementBuilder':
        self.prefix = prefix
        self.compiler.prefix = prefix
        return self

    def copy(self) -> 'StatementBuilder':
        """
        复制构建器用于独立构建另一条语句

        副本不共享连接（首次执行时自行连接），累积状态各自独立。
        """
        clone = copy.copy(self)
        clone._connector = None
        clone._state = self._state.copy()
        clone.compiler = QueryCompiler(self.dialect, self.prefix)
        clone.in_transaction = False
        clone._exit_guard = False
        return clone

    def reset(self) -> None:
        """清空累积的语句状态"""
        self._state = ClauseState()

    # ---------- 条件与子句 ----------

    def where(self, expression: str, value: Any = NOT_SET, operator: str = '=',
              cond: str = 'AND') -> 'StatementBuilder':
        """
        添加 WHERE 条件

        Args:
            expression: 列名，或自带 '?' 占位符的原始谓词（value 传列表）
            value: 条件值；None / 省略渲染为 '<operator> NULL'；
                   单键字典 {'>=': 18} 同时指定运算符；子查询构建器内联
            operator: 运算符，支持 IN / NOT IN / BETWEEN / NOT BETWEEN / EXISTS / NOT EXISTS
            cond: 与前一个条件的连接词

        Example:
            db.where('id', 7).where('age', {'>': 18}).or_where('role', ['a', 'b'], 'IN')
            db.where('(created < ? OR updated < ?)', [t1, t2])
        """
        self._state.where.add(expression, value, operator, cond)
        return self

    def or_where(self, expression: str, value: Any = NOT_SET, operator: str = '=') -> 'StatementBuilder':
        return self.where(expression, value, operator, 'OR')

    def having(self, expression: str, value: Any = NOT_SET, operator: str = '=',
               cond: str = 'AND') -> 'StatementBuilder':
        """添加 HAVING 条件，参数同 where()"""
        self._state.having.add(expression, value, operator, cond)
        return self

    def or_having(self, expression: str, value: Any = NOT_SET, operator: str = '=') -> 'StatementBuilder':
        return self.having(expression, value, operator, 'OR')

    def join(self, table: Union[str, 'StatementBuilder'], condition: str,
             join_type: str = '') -> 'StatementBuilder':
        """
        添加 JOIN

        Args:
            table: 表名（可带别名，自动加前缀）或子查询构建器
            condition: ON 条件；包含 USING 时原样输出
            join_type: LEFT / RIGHT / OUTER / INNER / LEFT OUTER / RIGHT OUTER / ''

        Raises:
            InvalidJoinTypeError: 不支持的 JOIN 类型
        """
        join_type = join_type.strip().upper()
        if join_type and join_type not in JOIN_TYPES:
            raise InvalidJoinTypeError(join_type)

        if not isinstance(table, StatementBuilder):
            table = self.compiler.table_name(table)

        self._state.joins.append((join_type, table, condition))
        return self

    def group_by(self, expression: str) -> 'StatementBuilder':
        self._state.group_by.append(sanitize_group_by(expression))
        return self

    def order_by(self, expression: str, direction: str = 'DESC',
                 custom_fields: Optional[Sequence[Any]] = None) -> 'StatementBuilder':
        """
        添加 ORDER BY

        Args:
            expression: 排序表达式（过滤掉不安全字符）；'RAND()' 随机排序
            direction: ASC / DESC
            custom_fields: 自定义顺序，渲染为 FIELD (expr, "v1","v2")

        Raises:
            InvalidOrderDirectionError: 方向不是 ASC / DESC
        """
        direction = direction.strip().upper()
        if direction not in ORDER_DIRECTIONS:
            raise InvalidOrderDirectionError(direction)

        expression = sanitize_order_by(expression)
        # `table`.col 形式的限定名补上表前缀
        expression = _QUOTED_TABLE.sub(lambda m: m.group(1) + self.prefix + m.group(2), expression)

        if custom_fields is not None:
            quoted = '","'.join(sanitize_custom_field(v) for v in custom_fields)
            expression = f'FIELD ({expression}, "{quoted}")'

        self._state.order_by[expression] = direction
        return self

    def set_query_option(self, options: Union[str, Sequence[str]]) -> 'StatementBuilder':
        """
        设置语句修饰符

        Args:
            options: 单个或多个选项，如 'DISTINCT'、['SQL_NO_CACHE', 'FOR UPDATE']

        Raises:
            InvalidQueryOptionError: 选项不在白名单中，或当前方言不支持该行锁
        """
        if isinstance(options, str):
            options = [options]

        for option in options:
            option = option.strip().upper()
            if option not in QUERY_OPTIONS:
                raise InvalidQueryOptionError(option)

            if option in LOCK_OPTIONS:
                if option not in self.dialect.LOCK_CLAUSES:
                    raise InvalidQueryOptionError(f"{option} (not supported by {self.dialect.NAME})")
                if option not in self._state.locks:
                    self._state.locks.append(option)
            elif option not in self._state.query_options:
                self._state.query_options.append(option)
        return self

    def with_total_count(self) -> 'StatementBuilder':
        """下一次 select() 同时统计不含 LIMIT 的总行数，存入 total_count"""
        return self.set_query_option('SQL_CALC_FOUND_ROWS')

    def set_page_limit(self, limit: int) -> 'StatementBuilder':
        self.page_limit = limit
        return self

    def on_duplicate(self, update_columns: Union[Sequence[str], Mapping[str, Any]],
                     id_column: Optional[str] = None) -> 'StatementBuilder':
        """
        下一次 insert() 追加 ON DUPLICATE KEY UPDATE

        Args:
            update_columns: 列名列表（取插入数据中的值）或 {列名: 新值}
            id_column: 自增列，冲突时通过 LAST_INSERT_ID() 返回已有行 ID
        """
        self._state.update_columns = update_columns
        self._state.duplicate_id_column = id_column
        return self

    def set_return_type(self, return_type: Union[ReturnType, str]) -> 'StatementBuilder':
        self.return_type = ReturnType(return_type)
        return self

    def use_generator(self, option: bool = True) -> 'StatementBuilder':
        """开启后 select()/raw_statement() 返回逐行读取的生成器"""
        self._use_generator = option
        return self

    # ---------- 执行 ----------

    def _execute(self, plan: RenderPlan, record_query: bool = True) -> Optional[Any]:
        """执行渲染结果；驱动报错时记录错误并返回 None"""
        if record_query:
            self.last_query = plan.sql
        logger.debug("Executing %s -- %d param(s)", plan.sql, len(plan.params))

        connector = self.connector
        try:
            cursor = connector.execute(plan.sql, plan.params)
        except connector.error_class as e:
            self._record_error(e, plan.sql)
            return None

        self.last_error = None
        self.last_error_code = None
        self.row_count = cursor.rowcount
        return cursor

    def _record_error(self, error: BaseException, sql: str) -> None:
        self.last_error = str(error)
        self.last_error_code = _error_code(error)
        logger.warning("Statement failed [%s]: %s -- %s", self.last_error_code, self.last_error, sql)

    def _shape(self, cursor: Any) -> Any:
        """无结果集时返回影响行数，否则按返回类型整形"""
        if cursor.description is None:
            count = cursor.rowcount
            cursor.close()
            return count
        if self._use_generator:
            return iter_rows(cursor, self.return_type)
        return fetch_all(cursor, self.return_type)

    def _probe_total_count(self, table: str, columns: Columns) -> None:
        if self.dialect.supports_native_row_count and self.dialect.FOUND_ROWS_STATEMENT:
            plan = RenderPlan(self.dialect.FOUND_ROWS_STATEMENT, [])
        else:
            plan = self.compiler.compile_count(self._state, table, columns)

        row_count = self.row_count
        cursor = self._execute(plan, record_query=False)
        self.row_count = row_count
        if cursor is None:
            return
        try:
            row = cursor.fetchone()
        finally:
            cursor.close()
        self.total_count = int(row[0]) if row and row[0] is not None else 0

    def select(self, table: str, limit: LimitSpec = None, columns: Columns = '*') -> Any:
        """
        执行 SELECT

        Args:
            table: 表名（可带别名）
            limit: 行数，或 [offset, count]
            columns: 列，'*'、'a, b' 或 ['a', 'b']

        Returns:
            行列表；生成器模式下为生成器；子查询构建器返回自身；执行失败返回 []
        """
        try:
            plan = self.compiler.compile_select(self._state, table, limit, columns)
            if self.is_subquery:
                self._subquery = SubqueryHandle(plan.sql, plan.params, self.subquery_alias)
                return self

            cursor = self._execute(plan)
            if cursor is None:
                return []
            if 'SQL_CALC_FOUND_ROWS' in self._state.query_options:
                self._probe_total_count(table, columns)
            return self._shape(cursor)
        finally:
            self.reset()

    def select_one(self, table: str, columns: Columns = '*') -> Any:
        """取第一行，无结果时返回 None"""
        result = self.select(table, 1, columns)
        if result is self:
            return self
        if isinstance(result, GeneratorType):
            row = next(result, None)
            result.close()
            return row
        if isinstance(result, list) and result:
            return result[0]
        return None

    def select_scalar(self, table: str, column: str, limit: int = 1) -> Any:
        """
        取单列的值

        Returns:
            limit 为 1 时返回单个值，否则返回值列表；无结果时返回 None
        """
        return_type = self.return_type
        self.return_type = ReturnType.DICT
        try:
            result = self.select(table, limit, f"{column} AS retval")
        finally:
            self.return_type = return_type

        if result is self:
            return self
        rows = list(result) if isinstance(result, GeneratorType) else result
        if not rows:
            return None
        if limit == 1:
            return rows[0]['retval']
        return [row['retval'] for row in rows[:limit]]

    def paginate(self, table: str, page: int, columns: Optional[Columns] = None) -> List[Any]:
        """
        按 page_limit 分页查询，同时更新 total_count 和 total_pages

        Args:
            table: 表名
            page: 页码（从 1 开始）
            columns: 列
        """
        offset = self.page_limit * (page - 1)
        result = self.with_total_count().select(table, [offset, self.page_limit], columns or '*')
        self.total_pages = math.ceil(self.total_count / self.page_limit) if self.page_limit else 0
        if isinstance(result, (list, GeneratorType)):
            return list(result)
        return []

    def has(self, table: str) -> bool:
        """当前条件下是否存在记录"""
        return self.select_one(table) is not None

    def table_exists(self, tables: Union[str, Sequence[str]]) -> bool:
        """检查（加前缀后的）表是否全部存在"""
        if isinstance(tables, str):
            tables = [tables]
        names = sorted({self.prefix + name for name in tables})
        if not names:
            return False

        dialect = self.dialect
        for column, value in dialect.CATALOG_FILTERS.items():
            self.where(column, value)
        if dialect.CATALOG_SCHEMA_COLUMN and self.options.dbname:
            self.where(dialect.CATALOG_SCHEMA_COLUMN, self.options.dbname)
        self.where(dialect.CATALOG_NAME_COLUMN, names, 'IN')

        count = self.select_scalar(dialect.CATALOG_TABLE, 'COUNT(*)')
        return int(count or 0) == len(names)

    def _insert(self, table: str, data: Mapping[str, Any], operation: str) -> Union[int, bool]:
        if self.is_subquery:
            self.reset()
            return False
        try:
            plan = self.compiler.compile_insert(self._state, table, data, operation)
            cursor = self._execute(plan)
            if cursor is None:
                return False
            try:
                insert_id = self.connector.last_insert_id(cursor)
            finally:
                cursor.close()
            self.last_insert_id = insert_id
            if isinstance(insert_id, int) and insert_id > 0:
                return insert_id
            return True
        finally:
            self.reset()

    def insert(self, table: str, data: Mapping[str, Any]) -> Union[int, bool]:
        """
        执行 INSERT

        Args:
            table: 表名
            data: {列名: 值}，值可为字面量、None、子查询或值标记

        Returns:
            自增 ID（大于 0 时），否则为执行是否成功

        Raises:
            InvalidPayloadError: 数据值结构无法识别
        """
        return self._insert(table, data, 'INSERT')

    def replace(self, table: str, data: Mapping[str, Any]) -> Union[int, bool]:
        return self._insert(table, data, 'REPLACE')

    def insert_multi(
        self,
        table: str,
        rows: Sequence[Any],
        data_keys: Optional[Sequence[str]] = None
    ) -> Union[List[Any], bool]:
        """
        批量插入（全部成功或全部回滚）

        未处于事务中时自动开启事务；任一行失败时回滚并返回 False。
        调用方已开启事务时由调用方决定回滚。

        Args:
            table: 表名
            rows: 行字典列表；指定 data_keys 时为值序列列表
            data_keys: 与值序列对应的列名

        Returns:
            每行的插入结果（ID 或 True）列表，失败时返回 False
        """
        if self.is_subquery:
            return False

        auto_commit = not self.in_transaction
        if auto_commit and not self.start_transaction():
            return False

        ids: List[Any] = []
        try:
            for row in rows:
                if data_keys is not None:
                    row = dict(zip(data_keys, row))
                insert_id = self.insert(table, row)
                if not insert_id:
                    if auto_commit:
                        self.rollback()
                    return False
                ids.append(insert_id)
        except Exception:
            if auto_commit:
                self.rollback()
            raise

        if auto_commit and not self.commit():
            return False
        return ids

    def update(self, table: str, data: Mapping[str, Any], limit: LimitSpec = None) -> bool:
        """
        执行 UPDATE

        Returns:
            是否有行被更新（影响行数见 row_count）；子查询构建器或执行失败时为 False
        """
        if self.is_subquery:
            self.reset()
            return False
        try:
            plan = self.compiler.compile_update(self._state, table, data, limit)
            cursor = self._execute(plan)
            if cursor is None:
                return False
            cursor.close()
            return self.row_count > 0
        finally:
            self.reset()

    def delete(self, table: str, limit: LimitSpec = None) -> bool:
        """
        执行 DELETE

        Returns:
            是否有行被删除；子查询构建器或执行失败时为 False
        """
        if self.is_subquery:
            self.reset()
            return False
        try:
            plan = self.compiler.compile_delete(self._state, table, limit)
            cursor = self._execute(plan)
            if cursor is None:
                return False
            cursor.close()
            return self.row_count > 0
        finally:
            self.reset()

    def raw_statement(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """
        执行原始 SQL（使用 '?' 占位符），不拼接累积的子句

        Returns:
            同 select()；无结果集的语句返回影响行数；执行失败返回 None
        """
        if self.is_subquery:
            return None
        try:
            cursor = self._execute(RenderPlan(sql, list(params or [])))
            if cursor is None:
                return None
            return self._shape(cursor)
        finally:
            self.reset()

    def raw_statement_one(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        result = self.raw_statement(sql, params)
        if isinstance(result, GeneratorType):
            row = next(result, None)
            result.close()
            return row
        if isinstance(result, list) and result:
            return result[0]
        return None

    def raw_statement_scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """
        取原始 SQL 结果第一列

        Returns:
            SQL 以 LIMIT 1 结尾时返回单个值，否则返回第一列的值列表
        """
        result = self.raw_statement(sql, params)
        rows = list(result) if isinstance(result, GeneratorType) else result
        if not isinstance(rows, list) or not rows:
            return None
        if _LIMIT_ONE.search(sql.strip()):
            return _first_value(rows[0])
        return [_first_value(row) for row in rows]

    def query(self, sql: str, limit: LimitSpec = None, params: Optional[Sequence[Any]] = None) -> Any:
        """执行原始 SQL，并在其后追加累积的 JOIN/WHERE/ORDER BY/LIMIT"""
        if self.is_subquery:
            return None
        try:
            plan = self.compiler.compile_query(self._state, sql, limit, params)
            cursor = self._execute(plan)
            if cursor is None:
                return None
            return self._shape(cursor)
        finally:
            self.reset()

    # ---------- 子查询 ----------

    def subquery(self, alias: str = '') -> 'StatementBuilder':
        """
        创建子查询构建器

        子查询构建器共享配置和表前缀，从不连接数据库；对其调用 select()
        只渲染 SQL 并返回自身，可作为 where()/join()/insert() 的值。

        Example:
            ids = db.subquery().where('qty', 2, '>').select('products', None, 'user_id')
            db.where('id', ids, 'IN').select('users')
        """
        options = dataclasses.replace(self.options, prefix=self.prefix)
        return StatementBuilder(options, is_subquery=True, subquery_alias=alias)

    def get_subquery(self) -> Optional[SubqueryHandle]:
        """子查询的 (sql, params, alias)；非子查询或尚未 select() 时返回 None"""
        if not self.is_subquery:
            return None
        return self._subquery

    # ---------- 事务 ----------

    def _run_transaction_statement(self, action: Callable[[], None], sql: str) -> bool:
        """执行事务控制语句；驱动报错时记录错误并返回 False"""
        connector = self.connector
        try:
            action()
        except connector.error_class as e:
            self._record_error(e, sql)
            return False
        return True

    def start_transaction(self) -> bool:
        """
        开启事务；进程退出时仍未结束的事务会被回滚

        Returns:
            是否成功开启；失败原因见 last_error
        """
        if not self._run_transaction_statement(self.connector.begin, self.dialect.BEGIN_STATEMENT):
            return False
        self.in_transaction = True
        logger.debug("Transaction started")
        if not self._exit_guard:
            atexit.register(self.check_transaction_status)
            self._exit_guard = True
        return True

    def _end_transaction(self) -> None:
        self.in_transaction = False
        if self._exit_guard:
            atexit.unregister(self.check_transaction_status)
            self._exit_guard = False

    def commit(self) -> bool:
        """
        提交事务

        Returns:
            是否提交成功；失败原因见 last_error（事务状态同样结束）

        Raises:
            TransactionError: 没有进行中的事务
        """
        if not self.in_transaction:
            raise TransactionError("No active transaction to commit")
        try:
            committed = self._run_transaction_statement(self.connector.commit, self.dialect.COMMIT_STATEMENT)
        finally:
            self._end_transaction()
        if committed:
            logger.debug("Transaction committed")
        return committed

    def rollback(self) -> bool:
        """
        回滚事务

        Returns:
            是否回滚成功；失败原因见 last_error

        Raises:
            TransactionError: 没有进行中的事务
        """
        if not self.in_transaction:
            raise TransactionError("No active transaction to roll back")
        try:
            rolled_back = self._run_transaction_statement(self.connector.rollback, self.dialect.ROLLBACK_STATEMENT)
        finally:
            self._end_transaction()
        if rolled_back:
            logger.debug("Transaction rolled back")
        return rolled_back

    def check_transaction_status(self) -> None:
        """未结束的事务一律回滚"""
        if not self.in_transaction:
            return
        logger.warning("Rolling back transaction left open")
        self.rollback()

    @contextmanager
    def transaction(self) -> Generator['StatementBuilder', None, None]:
        """
        事务上下文管理器

        正常退出时提交，异常时回滚并重新抛出。

        Example:
            with db.transaction():
                db.insert('accounts', {'owner': 'Alice', 'balance': 100})
                db.where('owner', 'Bob').update('accounts', {'balance': db.decrement(100)})

        Raises:
            TransactionError: 已处于事务中，或 BEGIN / COMMIT 执行失败
        """
        if self.in_transaction:
            raise TransactionError("Nested transactions are not supported")

        if not self.start_transaction():
            raise TransactionError(f"Failed to start transaction: {self.last_error}")
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        if not self.commit():
            raise TransactionError(f"Failed to commit transaction: {self.last_error}")

    # ---------- 其他 ----------

    def escape(self, value: Any) -> str:
        """按方言把值渲染为 SQL 字面量"""
        return self.dialect.quote_literal(value)

    def load_csv_data(self, path: Union[str, 'Path'], options: Optional[CsvLoadOptions] = None,
                      transaction: bool = True) -> Dict[str, Any]:
        from ..loaders import CsvLoader
        return CsvLoader(path, options or CsvLoadOptions()).load(self, transaction)

    def load_json_data(self, path: Union[str, 'Path'], table: Optional[str] = None,
                       transaction: bool = True) -> Dict[str, Any]:
        from ..loaders import JsonLoader
        return JsonLoader(path, JsonLoadOptions(table=table)).load(self, transaction)

    def load_excel_data(self, path: Union[str, 'Path'], options: Optional[ExcelLoadOptions] = None,
                        transaction: bool = True) -> Dict[str, Any]:
        from ..loaders import ExcelLoader
        return ExcelLoader(path, options or ExcelLoadOptions()).load(self, transaction)

    def load_xml_data(self, path: Union[str, 'Path'], options: Optional[XmlLoadOptions] = None,
                      transaction: bool = True) -> Dict[str, Any]:
        from ..loaders import XmlLoader
        return XmlLoader(path, options or XmlLoadOptions()).load(self, transaction)

    def __repr__(self) -> str:
        kind = 'subquery' if self.is_subquery else self.dialect.NAME
        return f"StatementBuilder({kind}, prefix={self.prefix!r})"
