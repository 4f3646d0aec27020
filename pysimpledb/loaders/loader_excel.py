"""
pysimpledb Excel 导入器（需要 openpyxl）

读取一个工作表：第一行为表头（未指定 fields 时），其余每行一条记录，
整行为空的行跳过。
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from ..common.exceptions import DataLoadError
from ..common.options import ExcelLoadOptions
from .base import BulkLoader, clean_field_name


class ExcelLoader(BulkLoader):
    """Excel file loader (requires openpyxl)"""

    LOADER_NAME = 'excel'
    REQUIRED_DEPENDENCIES = ['openpyxl']
    EXTRA = 'excel'

    def __init__(self, file_path: Union[str, Path], options: ExcelLoadOptions):
        assert isinstance(options, ExcelLoadOptions), "options must be an instance of ExcelLoadOptions"
        super().__init__(file_path, options)
        self.options: ExcelLoadOptions = options

    def read(self) -> Tuple[List[str], List[Dict[str, Any]]]:
        self._require_dependency('openpyxl')
        from openpyxl import load_workbook

        self._check_file()
        try:
            wb = load_workbook(str(self.file_path), read_only=self.options.read_only, data_only=True)
        except Exception as e:
            raise DataLoadError(f"Cannot open workbook {self.file_path}: {e}", source=str(self.file_path)) from e

        try:
            if self.options.sheet:
                if self.options.sheet not in wb.sheetnames:
                    raise DataLoadError(
                        f"Sheet '{self.options.sheet}' not found in {self.file_path}",
                        source=str(self.file_path),
                    )
                sheet = wb[self.options.sheet]
            else:
                sheet = wb.active
            records = [
                list(record) for record in sheet.iter_rows(values_only=True)
                if any(cell is not None and cell != '' for cell in record)
            ]
        finally:
            wb.close()

        if self.options.fields:
            fields = list(self.options.fields)
        elif records:
            fields = [
                clean_field_name(name) if name is not None else f"column_{index}"
                for index, name in enumerate(records.pop(0), 1)
            ]
        else:
            fields = []

        return fields, self._rows_from_values(fields, records)

    def table_name(self) -> str:
        if not self.options.table and self.options.sheet:
            return self.options.sheet
        return super().table_name()
