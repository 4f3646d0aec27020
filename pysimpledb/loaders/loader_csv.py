"""
pysimpledb CSV 导入器

第一行为表头（未指定 fields 时作为字段名），其余每行插入一条记录。
空字符串按 NULL 插入。
"""

import csv
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from ..common.exceptions import DataLoadError
from ..common.options import CsvLoadOptions
from .base import BulkLoader, clean_field_name


class CsvLoader(BulkLoader):
    """CSV file loader (standard library only)"""

    LOADER_NAME = 'csv'
    REQUIRED_DEPENDENCIES = []

    def __init__(self, file_path: Union[str, Path], options: CsvLoadOptions):
        assert isinstance(options, CsvLoadOptions), "options must be an instance of CsvLoadOptions"
        super().__init__(file_path, options)
        self.options: CsvLoadOptions = options

    def read(self) -> Tuple[List[str], List[Dict[str, Any]]]:
        self._check_file()
        try:
            with open(self.file_path, 'r', encoding=self.options.encoding, newline='') as f:
                reader = csv.reader(f, delimiter=self.options.delimiter, quotechar=self.options.quotechar)
                records = [record for record in reader if any(cell.strip() for cell in record)]
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise DataLoadError(f"Cannot read CSV file {self.file_path}: {e}", source=str(self.file_path)) from e

        if self.options.fields:
            fields = list(self.options.fields)
        elif records:
            fields = [clean_field_name(name) for name in records.pop(0)]
        else:
            fields = []

        values = [[cell if cell != '' else None for cell in record] for record in records]
        return fields, self._rows_from_values(fields, values)
