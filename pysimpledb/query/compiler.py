"""
pysimpledb SQL 编译器

把 StatementBuilder 累积的子句状态渲染成 (sql, params)：
- 语句头（SELECT / INSERT / REPLACE / UPDATE / DELETE）与带前缀的表名
- INSERT/UPDATE 数据对
- JOIN → WHERE → GROUP BY → HAVING → ORDER BY → LIMIT → 行锁
- ON DUPLICATE KEY UPDATE

占位符统一为 '?'，参数按占位符出现顺序排列；子查询的参数在其文本位置拼入。
方言相关的文本全部来自 Dialect 对象。
"""

from dataclasses import dataclass, field
from typing import (
    Any, Dict, List, Mapping, NamedTuple, Optional, Protocol, Sequence, Tuple, Union,
    runtime_checkable,
)

from ..common.exceptions import InvalidPayloadError, QueryBuildError
from ..common.typing import Columns, LimitSpec, Params
from ..core.dialect import Dialect
from .conditions import Condition, ConditionList
from .values import NOT_SET, Decrement, Increment, RawExpression, SetFromColumn

# 计数探测需要包成派生表的 SELECT 修饰符
DISTINCT_OPTIONS = ('DISTINCT', 'DISTINCTROW')


class RenderPlan(NamedTuple):
    """渲染结果：SQL 文本与按位置绑定的参数"""
    sql: str
    params: Params


class SubqueryHandle(NamedTuple):
    """子查询渲染结果"""
    sql: str
    params: Params
    alias: str


@runtime_checkable
class SubquerySource(Protocol):
    """可以作为值或 JOIN 目标内联的对象（即子查询 StatementBuilder）"""

    def get_subquery(self) -> Optional[SubqueryHandle]:
        ...


@dataclass
class ClauseState:
    """一条语句累积的子句状态，执行后整体替换为新实例"""
    where: ConditionList = field(default_factory=ConditionList)
    having: ConditionList = field(default_factory=ConditionList)
    joins: List[Tuple[str, Any, str]] = field(default_factory=list)
    group_by: List[str] = field(default_factory=list)
    order_by: Dict[str, str] = field(default_factory=dict)
    query_options: List[str] = field(default_factory=list)
    locks: List[str] = field(default_factory=list)
    update_columns: Optional[Union[Sequence[str], Mapping[str, Any]]] = None
    duplicate_id_column: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.where or self.having or self.joins or self.group_by
                    or self.order_by or self.query_options or self.locks or self.update_columns)

    def copy(self) -> 'ClauseState':
        """复制状态，各容器互不共享"""
        return ClauseState(
            where=self.where.copy(),
            having=self.having.copy(),
            joins=list(self.joins),
            group_by=list(self.group_by),
            order_by=dict(self.order_by),
            query_options=list(self.query_options),
            locks=list(self.locks),
            update_columns=self.update_columns,
            duplicate_id_column=self.duplicate_id_column,
        )


def _join(*parts: str) -> str:
    return ' '.join(p for p in parts if p)


class QueryCompiler:
    """SQL 编译器"""

    def __init__(self, dialect: Dialect, prefix: str = ''):
        """
        初始化编译器

        Args:
            dialect: SQL 方言
            prefix: 表名前缀
        """
        self.dialect = dialect
        self.prefix = prefix

    def table_name(self, name: str) -> str:
        """加表名前缀，已带 schema 限定的名称和系统目录表保持不变"""
        if '.' in name or name == self.dialect.CATALOG_TABLE:
            return name
        return self.prefix + name

    # ---------- 语句 ----------

    def compile_select(
        self,
        state: ClauseState,
        table: str,
        limit: LimitSpec = None,
        columns: Columns = '*'
    ) -> RenderPlan:
        """编译 SELECT"""
        params: Params = []
        parts = ['SELECT']
        parts.extend(self.dialect.filter_query_options(state.query_options))
        parts.append(self.dialect.render_top(limit))
        parts.extend([self._columns(columns), 'FROM', self.table_name(table)])
        self._render_clauses(state, parts, params, limit)
        parts.extend(self.dialect.LOCK_CLAUSES[lock] for lock in state.locks)
        return RenderPlan(_join(*parts), params)

    def compile_count(self, state: ClauseState, table: str, columns: Columns = '*') -> RenderPlan:
        """
        编译总行数探测语句（不支持 FOUND_ROWS() 的方言使用）

        复用同一组 JOIN/WHERE/GROUP BY/HAVING，忽略 ORDER BY 和 LIMIT；
        有 GROUP BY 或 DISTINCT 时包成派生表再计数。
        """
        params: Params = []
        options = self.dialect.filter_query_options(state.query_options)
        if state.group_by or any(opt in DISTINCT_OPTIONS for opt in options):
            parts = ['SELECT', *options, self._columns(columns), 'FROM', self.table_name(table)]
            self._render_clauses(state, parts, params, None, count_probe=True)
            return RenderPlan(f"SELECT COUNT(*) FROM ({_join(*parts)}) count_probe", params)

        parts = ['SELECT COUNT(*) FROM', self.table_name(table)]
        self._render_clauses(state, parts, params, None, count_probe=True)
        return RenderPlan(_join(*parts), params)

    def compile_insert(
        self,
        state: ClauseState,
        table: str,
        data: Mapping[str, Any],
        operation: str = 'INSERT'
    ) -> RenderPlan:
        """编译 INSERT / REPLACE（不渲染 WHERE/JOIN 等子句）"""
        params: Params = []
        columns = list(data.keys())
        parts = [operation]
        parts.extend(self.dialect.filter_query_options(state.query_options))
        parts.extend(['INTO', self.table_name(table)])
        if columns:
            parts.append('(' + ', '.join(self.dialect.quote_identifier(c) for c in columns) + ')')
        parts.append('VALUES (' + self._render_data_pairs(data, columns, params, is_insert=True) + ')')
        self._render_on_duplicate(state, data, parts, params)
        return RenderPlan(_join(*parts), params)

    def compile_update(
        self,
        state: ClauseState,
        table: str,
        data: Mapping[str, Any],
        limit: LimitSpec = None
    ) -> RenderPlan:
        """编译 UPDATE，JOIN 放在 SET 之前（多表更新语法）"""
        params: Params = []
        parts = ['UPDATE']
        parts.extend(self.dialect.filter_query_options(state.query_options))
        parts.append(self.table_name(table))
        self._render_joins(state, parts, params)
        parts.extend(['SET', self._render_data_pairs(data, list(data.keys()), params, is_insert=False)])
        self._render_clauses(state, parts, params, limit, include_joins=False)
        return RenderPlan(_join(*parts), params)

    def compile_delete(self, state: ClauseState, table: str, limit: LimitSpec = None) -> RenderPlan:
        """编译 DELETE；有 JOIN 时渲染为 DELETE <alias> FROM <table>"""
        params: Params = []
        target = self.table_name(table)
        if state.joins:
            alias = target.split(' ')[-1]
            parts = ['DELETE', alias, 'FROM', target]
        else:
            parts = ['DELETE FROM', target]
        self._render_clauses(state, parts, params, limit)
        return RenderPlan(_join(*parts), params)

    def compile_query(
        self,
        state: ClauseState,
        sql: str,
        limit: LimitSpec = None,
        params: Optional[Sequence[Any]] = None
    ) -> RenderPlan:
        """在原始 SQL 后追加累积的子句"""
        bound: Params = list(params or [])
        parts = [sql.strip()]
        self._render_clauses(state, parts, bound, limit)
        return RenderPlan(_join(*parts), bound)

    # ---------- 子句 ----------

    def _render_clauses(
        self,
        state: ClauseState,
        parts: List[str],
        params: Params,
        limit: LimitSpec,
        count_probe: bool = False,
        include_joins: bool = True
    ) -> None:
        if include_joins:
            self._render_joins(state, parts, params)
        self._render_conditions('WHERE', state.where, parts, params)
        if state.group_by:
            parts.append('GROUP BY ' + ', '.join(state.group_by))
        self._render_conditions('HAVING', state.having, parts, params)
        if count_probe:
            return
        self._render_order_by(state, parts)
        parts.append(self.dialect.render_limit(limit, has_order_by=bool(state.order_by)))

    def _render_joins(self, state: ClauseState, parts: List[str], params: Params) -> None:
        for join_type, target, condition in state.joins:
            if isinstance(target, SubquerySource):
                target = self.render_subquery(target, params)
            keyword = f"{join_type} JOIN" if join_type else 'JOIN'
            link = condition if 'using' in condition.lower() else f"ON {condition}"
            parts.append(_join(keyword, target, link))

    def _render_conditions(self, keyword: str, conditions: ConditionList,
                           parts: List[str], params: Params) -> None:
        if not conditions:
            return
        parts.append(keyword)
        for condition in conditions:
            parts.append(_join(condition.connective, self._render_predicate(condition, params)))

    def _render_predicate(self, condition: Condition, params: Params) -> str:
        """按运算符族渲染单个谓词"""
        _, expr, operator, value = condition
        op = operator.strip().lower()

        if op in ('in', 'not in'):
            if isinstance(value, SubquerySource):
                inner = self._subquery_handle(value, params).sql
            elif isinstance(value, (list, tuple, set)):
                inner = ', '.join('?' for _ in value)
                params.extend(value)
            else:
                inner = '?'
                params.append(value)
            return _join(expr, operator, f"({inner})")

        if op in ('between', 'not between'):
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise QueryBuildError(f"{operator.upper()} requires exactly two values, got {value!r}")
            params.extend(value)
            return _join(expr, operator, '? AND ?')

        if op in ('exists', 'not exists'):
            if not isinstance(value, SubquerySource):
                raise QueryBuildError(f"{operator.upper()} requires a subquery value")
            return _join(expr, operator, self.render_subquery(value, params))

        if isinstance(value, (set, frozenset)):
            raise QueryBuildError(f"Unordered set cannot bind placeholders of '{expr}'; pass a list")
        if isinstance(value, (list, tuple)):
            # 原始谓词：expression 自带占位符
            params.extend(value)
            return expr
        if value is None or value is NOT_SET:
            return _join(expr, operator, 'NULL')
        if isinstance(value, SubquerySource):
            return _join(expr, operator, self.render_subquery(value, params))
        if isinstance(value, RawExpression):
            params.extend(value.params)
            return _join(expr, operator, value.expression)
        if isinstance(value, (Increment, Decrement, SetFromColumn)):
            raise QueryBuildError(f"{type(value).__name__} cannot be used as a condition value")
        params.append(value)
        return _join(expr, operator, '?')

    def _render_order_by(self, state: ClauseState, parts: List[str]) -> None:
        if not state.order_by:
            return
        items = []
        for expr, direction in state.order_by.items():
            if expr.replace(' ', '').lower() == 'rand()':
                items.append('RAND()')
            else:
                items.append(f"{expr} {direction}")
        parts.append('ORDER BY ' + ', '.join(items))

    def _render_on_duplicate(self, state: ClauseState, data: Mapping[str, Any],
                             parts: List[str], params: Params) -> None:
        if not state.update_columns:
            return

        pairs = []
        id_column = state.duplicate_id_column
        if id_column:
            pairs.append(f"{id_column}=LAST_INSERT_ID({id_column})")

        if isinstance(state.update_columns, Mapping):
            update_data = dict(state.update_columns)
        else:
            update_data = {}
            for column in state.update_columns:
                if column not in data:
                    raise QueryBuildError(f"Duplicate-update column '{column}' is not in the inserted data")
                update_data[column] = data[column]

        pairs.append(self._render_data_pairs(update_data, list(update_data), params, is_insert=False))
        parts.extend(['ON DUPLICATE KEY UPDATE', ', '.join(pairs)])

    # ---------- 数据对与子查询 ----------

    def _render_data_pairs(self, data: Mapping[str, Any], columns: Sequence[str],
                           params: Params, is_insert: bool) -> str:
        pieces = []
        for column in columns:
            rendered = self._render_data_value(column, data[column], params)
            if is_insert:
                pieces.append(rendered)
            else:
                pieces.append(f"{self.dialect.quote_identifier(column)} = {rendered}")
        return ', '.join(pieces)

    def _render_data_value(self, column: str, value: Any, params: Params) -> str:
        if isinstance(value, SubquerySource):
            return self.render_subquery(value, params)
        if isinstance(value, Increment):
            return f"{self.dialect.quote_identifier(column)} + {value.amount}"
        if isinstance(value, Decrement):
            return f"{self.dialect.quote_identifier(column)} - {value.amount}"
        if isinstance(value, RawExpression):
            params.extend(value.params)
            return value.expression
        if isinstance(value, SetFromColumn):
            return '!' + (value.column or column)
        if isinstance(value, (dict, list, tuple, set)):
            raise InvalidPayloadError(column, value)
        params.append(value)
        return '?'

    def render_subquery(self, source: SubquerySource, params: Params) -> str:
        """渲染为 '(sql) alias' 并合并子查询参数"""
        handle = self._subquery_handle(source, params)
        return _join(f"({handle.sql})", handle.alias)

    def _subquery_handle(self, source: SubquerySource, params: Params) -> SubqueryHandle:
        handle = source.get_subquery()
        if handle is None:
            raise QueryBuildError("Subquery has not been built; call select() on the subquery first")
        params.extend(handle.params)
        return handle

    @staticmethod
    def _columns(columns: Columns) -> str:
        if not columns:
            return '*'
        if isinstance(columns, str):
            return columns
        return ', '.join(columns)
