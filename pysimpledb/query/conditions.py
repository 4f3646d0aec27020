"""
pysimpledb 条件累积器

WHERE / HAVING 条件按调用顺序保存为 (connective, expression, operator, value)。
"""

import re
from typing import Any, Iterator, List, NamedTuple

from .values import NOT_SET

# ORDER BY / GROUP BY 表达式允许的字符
_ORDER_BY_UNSAFE = re.compile(r"[^-a-z0-9.(),_`*'\"]+", re.IGNORECASE)
_GROUP_BY_UNSAFE = re.compile(r"[^-a-z0-9.(),_*]+", re.IGNORECASE)
_CUSTOM_FIELD_UNSAFE = re.compile(r"[^-a-z0-9.(),_ ]+", re.IGNORECASE)


class Condition(NamedTuple):
    """单个谓词"""
    connective: str  # '' | 'AND' | 'OR'
    expression: str
    operator: str
    value: Any


class ConditionList:
    """
    一个子句（WHERE 或 HAVING）的条件序列

    第一个条件的连接词总是空字符串，渲染结果不会以 AND/OR 开头。
    """

    def __init__(self) -> None:
        self._conditions: List[Condition] = []

    def add(self, expression: str, value: Any = NOT_SET, operator: str = '=',
            connective: str = 'AND') -> None:
        """
        追加条件

        Args:
            expression: 列名或原始谓词
            value: 条件值；单键字典 {'>': 5} 同时指定运算符
            operator: 运算符，默认 '='
            connective: 'AND' 或 'OR'
        """
        if isinstance(value, dict) and len(value) == 1:
            operator, value = next(iter(value.items()))
            operator = str(operator)

        if not self._conditions:
            connective = ''

        self._conditions.append(Condition(connective, expression, operator, value))

    def clear(self) -> None:
        self._conditions = []

    def copy(self) -> 'ConditionList':
        clone = ConditionList()
        clone._conditions = list(self._conditions)
        return clone

    def __iter__(self) -> Iterator[Condition]:
        return iter(self._conditions)

    def __len__(self) -> int:
        return len(self._conditions)

    def __bool__(self) -> bool:
        return bool(self._conditions)

    def __repr__(self) -> str:
        return f"ConditionList({self._conditions!r})"


def sanitize_order_by(expression: str) -> str:
    return _ORDER_BY_UNSAFE.sub('', expression)


def sanitize_group_by(expression: str) -> str:
    return _GROUP_BY_UNSAFE.sub('', expression)


def sanitize_custom_field(value: Any) -> str:
    return _CUSTOM_FIELD_UNSAFE.sub('', str(value))
