"""
pysimpledb 值标记

条件值和 INSERT/UPDATE 数据中除普通字面量、None 和列表之外的取值：
- RawExpression：原样写入的 SQL 表达式，可携带自己的绑定参数
- Increment / Decrement：列自增 / 自减
- SetFromColumn：以 ! 前缀引用列名（MySQL 中为取反），None 表示目标列本身
- NOT_SET：where()/having() 未提供值时的哨兵

子查询值是标记为 is_subquery 的 StatementBuilder，不在此模块定义。
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from ..common.exceptions import InvalidIntervalError


class _NotSet:
    """未提供值的哨兵（渲染为 <operator> NULL）"""

    _instance: Optional['_NotSet'] = None

    def __new__(cls) -> '_NotSet':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'NOT_SET'

    def __bool__(self) -> bool:
        return False


NOT_SET = _NotSet()


@dataclass(frozen=True)
class RawExpression:
    """原样输出的 SQL 表达式"""
    expression: str
    params: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class Increment:
    """列自增：col = col + amount"""
    amount: Union[int, float] = 1


@dataclass(frozen=True)
class Decrement:
    """列自减：col = col - amount"""
    amount: Union[int, float] = 1


@dataclass(frozen=True)
class SetFromColumn:
    """以列名赋值，渲染为 !column；column 为 None 时使用目标列"""
    column: Optional[str] = None


# 数据值中可识别的标记类型
MARKER_TYPES = (RawExpression, Increment, Decrement, SetFromColumn)

INTERVAL_UNITS = {
    's': 'second',
    'm': 'minute',
    'h': 'hour',
    'd': 'day',
    'M': 'month',
    'Y': 'year',
}

_INTERVAL_RE = re.compile(r'([+-]?) ?([0-9]+) ?([a-zA-Z]?)')


def increment(amount: Union[int, float] = 1) -> Increment:
    return Increment(amount)


def decrement(amount: Union[int, float] = 1) -> Decrement:
    return Decrement(amount)


def raw_expr(expression: str, params: Optional[List[Any]] = None) -> RawExpression:
    """
    构造原样输出的表达式

    Example:
        db.update('users', {'updated_at': raw_expr('NOW()')})
        db.insert('logs', {'hash': raw_expr('SHA1(?)', ['secret'])})
    """
    return RawExpression(expression, list(params or []))


def set_from_column(column: Optional[str] = None) -> SetFromColumn:
    return SetFromColumn(column)


def interval(diff: str, func: str = 'NOW()') -> str:
    """
    构造时间间隔表达式

    Args:
        diff: 间隔描述，如 '+1d'、'-10 m'、'2Y'（单位默认为天）
        func: 基准表达式

    Returns:
        如 'NOW() + interval 1 day'；diff 为空时返回 func

    Raises:
        InvalidIntervalError: 单位不是 s/m/h/d/M/Y 之一
    """
    if not diff:
        return func
    match = _INTERVAL_RE.search(diff)
    if match is None:
        return func

    sign = match.group(1) or '+'
    amount = match.group(2)
    unit = match.group(3) or 'd'
    if unit not in INTERVAL_UNITS:
        raise InvalidIntervalError(diff)

    return f"{func} {sign} interval {amount} {INTERVAL_UNITS[unit]}"


def now(diff: Optional[str] = None, func: str = 'NOW()') -> RawExpression:
    """当前时间（可带偏移），如 now('-1d')"""
    return RawExpression(interval(diff or '', func))
