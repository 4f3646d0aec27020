"""
pysimpledb 查询子系统

包含条件累积、SQL 编译、值标记和结果整形
"""

from .conditions import Condition, ConditionList
from .compiler import QueryCompiler, RenderPlan, SubqueryHandle, ClauseState
from .result import ReturnType, fetch_all, iter_rows
from .values import (
    NOT_SET,
    RawExpression,
    Increment,
    Decrement,
    SetFromColumn,
    increment,
    decrement,
    raw_expr,
    set_from_column,
    interval,
    now,
)

__all__ = [
    # Conditions
    'Condition',
    'ConditionList',
    # Compiler
    'QueryCompiler',
    'RenderPlan',
    'SubqueryHandle',
    'ClauseState',
    # Result
    'ReturnType',
    'fetch_all',
    'iter_rows',
    # Values
    'NOT_SET',
    'RawExpression',
    'Increment',
    'Decrement',
    'SetFromColumn',
    'increment',
    'decrement',
    'raw_expr',
    'set_from_column',
    'interval',
    'now',
]
