"""
pysimpledb 结果整形

把 DB-API 游标的行转换为 dict / tuple / SimpleNamespace，
一次性全部读取或以生成器逐行读取。
"""

from enum import Enum
from types import SimpleNamespace
from typing import Any, Callable, Generator, List, Sequence


class ReturnType(Enum):
    """结果行类型"""
    DICT = 'dict'
    TUPLE = 'tuple'
    OBJECT = 'object'


def column_names(cursor: Any) -> List[str]:
    return [desc[0] for desc in (cursor.description or [])]


def row_factory(cursor: Any, return_type: ReturnType) -> Callable[[Sequence[Any]], Any]:
    """根据游标列信息生成单行转换函数"""
    if return_type == ReturnType.TUPLE:
        return tuple

    names = column_names(cursor)
    if return_type == ReturnType.OBJECT:
        return lambda row: SimpleNamespace(**dict(zip(names, row)))
    return lambda row: dict(zip(names, row))


def fetch_all(cursor: Any, return_type: ReturnType = ReturnType.DICT) -> List[Any]:
    """读取全部行并关闭游标"""
    try:
        convert = row_factory(cursor, return_type)
        return [convert(row) for row in cursor.fetchall()]
    finally:
        cursor.close()


def iter_rows(cursor: Any, return_type: ReturnType = ReturnType.DICT) -> Generator[Any, None, None]:
    """
    逐行读取的生成器（只能向前遍历一次）

    生成器耗尽或被关闭时关闭游标。
    """
    convert = row_factory(cursor, return_type)
    try:
        while True:
            row = cursor.fetchone()
            if row is None:
                break
            yield convert(row)
    finally:
        cursor.close()
