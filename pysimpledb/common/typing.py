"""
pysimpledb 公共类型别名
"""
from typing import Any, Dict, List, Sequence, Tuple, Union

# LIMIT 规格：行数，或 (offset, count)
LimitSpec = Union[int, Tuple[int, int], List[int], None]

# 按位置绑定的参数列表
Params = List[Any]

# 以列名为键的行
RowDict = Dict[str, Any]

# 列选择：'*'、'a, b' 或 ['a', 'b']
Columns = Union[str, Sequence[str]]
