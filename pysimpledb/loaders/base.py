"""
pysimpledb 批量导入器基类

导入器把外部文件读成 (字段列表, 行列表)，再通过 StatementBuilder.insert_multi()
在一个事务中逐行插入。
"""

import importlib.util
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

from ..common.exceptions import DataLoadError, DriverNotAvailableError
from ..common.options import LoadOptions

if TYPE_CHECKING:
    from ..core.builder import StatementBuilder

logger = logging.getLogger(__name__)

_UNSAFE_TABLE_CHARS = re.compile(r'[^a-zA-Z0-9_]+')
_UNSAFE_FIELD_CHARS = re.compile(r'[^a-z0-9_]+')


def clean_field_name(name: Any) -> str:
    """表头转字段名：小写，只保留字母、数字和下划线"""
    return _UNSAFE_FIELD_CHARS.sub('', str(name).strip().lower())


class BulkLoader(ABC):
    """
    批量导入器抽象基类

    子类需实现 read()，并通过 LOADER_NAME / REQUIRED_DEPENDENCIES 声明名称和依赖。
    """

    LOADER_NAME: str = ''
    REQUIRED_DEPENDENCIES: List[str] = []
    EXTRA: str = ''

    def __init__(self, file_path: Union[str, Path], options: LoadOptions):
        """
        初始化导入器

        Args:
            file_path: 源文件路径
            options: 导入配置选项
        """
        self.file_path = Path(file_path)
        self.options = options

    @classmethod
    def is_available(cls) -> bool:
        """检查依赖是否已安装"""
        return all(importlib.util.find_spec(dep) is not None for dep in cls.REQUIRED_DEPENDENCIES)

    def _require_dependency(self, package: str) -> None:
        if importlib.util.find_spec(package) is None:
            raise DriverNotAvailableError(self.LOADER_NAME, package, self.EXTRA)

    @abstractmethod
    def read(self) -> Tuple[List[str], List[Dict[str, Any]]]:
        """
        读取源文件

        Returns:
            (字段列表, 行字典列表)

        Raises:
            DataLoadError: 文件不存在或格式错误
        """
        pass

    def table_name(self) -> str:
        """目标表名：配置中的 table，未指定时取文件名（去掉非法字符）"""
        table = getattr(self.options, 'table', None)
        if table:
            return table
        return _UNSAFE_TABLE_CHARS.sub('_', self.file_path.stem)

    def _check_file(self) -> None:
        if not self.file_path.is_file():
            raise DataLoadError(f"File not found: {self.file_path}", source=str(self.file_path))

    def load(self, builder: 'StatementBuilder', transaction: bool = True) -> Dict[str, Any]:
        """
        读取并插入全部行

        Args:
            builder: 执行插入的构建器
            transaction: 是否在单个事务中插入（失败时整体回滚）

        Returns:
            {'table': 表名, 'fields': 字段列表, 'total_rows': 插入行数}

        Raises:
            DataLoadError: 读取失败，或任一行插入失败
        """
        fields, rows = self.read()
        table = self.table_name()

        if not rows:
            logger.info("No rows to load from %s", self.file_path)
            return {'table': table, 'fields': fields, 'total_rows': 0}

        if transaction:
            result = builder.insert_multi(table, rows)
            if result is False:
                raise DataLoadError(
                    f"Failed to load {self.file_path} into '{table}': {builder.last_error}",
                    source=str(self.file_path),
                )
        else:
            for number, row in enumerate(rows, 1):
                if builder.insert(table, row) is False:
                    raise DataLoadError(
                        f"Failed to load row {number} of {self.file_path} into '{table}': {builder.last_error}",
                        source=str(self.file_path),
                    )

        logger.info("Loaded %d row(s) from %s into %s", len(rows), self.file_path, table)
        return {'table': table, 'fields': fields, 'total_rows': len(rows)}

    @staticmethod
    def _rows_from_values(fields: Sequence[str], values: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
        """值序列列表转为行字典列表，短行补 None，多出的值丢弃"""
        rows = []
        for record in values:
            record = list(record)[:len(fields)]
            record.extend([None] * (len(fields) - len(record)))
            rows.append(dict(zip(fields, record)))
        return rows

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(file_path={self.file_path!r})"


def merge_fields(rows: Sequence[Dict[str, Any]], fields: Optional[Sequence[str]] = None) -> List[str]:
    """按首次出现顺序汇总行字典中的字段"""
    merged: List[str] = list(fields or [])
    for row in rows:
        for key in row:
            if key not in merged:
                merged.append(key)
    return merged
