"""
pysimpledb JSON 导入器

支持两种结构：
- 对象数组：[{"id": 1, "name": "a"}, ...]
- 以表名为键的对象：{"users": [{...}, ...]}，未指定表名时使用唯一的键
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..common.exceptions import DataLoadError
from ..common.options import JsonLoadOptions
from .base import BulkLoader, merge_fields


class JsonLoader(BulkLoader):
    """JSON file loader (standard library only)"""

    LOADER_NAME = 'json'
    REQUIRED_DEPENDENCIES = []

    def __init__(self, file_path: Union[str, Path], options: JsonLoadOptions):
        assert isinstance(options, JsonLoadOptions), "options must be an instance of JsonLoadOptions"
        super().__init__(file_path, options)
        self.options: JsonLoadOptions = options
        self._document_table: Optional[str] = None

    def read(self) -> Tuple[List[str], List[Dict[str, Any]]]:
        self._check_file()
        try:
            with open(self.file_path, 'r', encoding=self.options.encoding) as f:
                document = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DataLoadError(f"Cannot read JSON file {self.file_path}: {e}", source=str(self.file_path)) from e

        if isinstance(document, dict):
            document = self._unwrap(document)

        if not isinstance(document, list) or not all(isinstance(row, dict) for row in document):
            raise DataLoadError(
                f"JSON file {self.file_path} must contain an array of objects",
                source=str(self.file_path),
            )

        rows = [self._flatten(row) for row in document]
        return merge_fields(rows), rows

    def _unwrap(self, document: Dict[str, Any]) -> Any:
        table = self.options.table
        if table and table in document:
            return document[table]
        if len(document) == 1:
            key, rows = next(iter(document.items()))
            if isinstance(rows, list):
                self._document_table = key
                return rows
        # 单个对象按一行处理
        return [document]

    @staticmethod
    def _flatten(row: Dict[str, Any]) -> Dict[str, Any]:
        """嵌套对象/数组序列化为 JSON 文本"""
        return {
            key: json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else value
            for key, value in row.items()
        }

    def table_name(self) -> str:
        if not self.options.table and self._document_table:
            return self._document_table
        return super().table_name()
