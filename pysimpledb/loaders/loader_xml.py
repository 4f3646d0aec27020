"""
pysimpledb XML 导入器（需要 lxml）

每个 row_tag 元素一条记录，字段来自以下任一写法：

    <row id="1" name="Alice"/>                                    属性
    <row><id>1</id><name>Alice</name></row>                       子元素
    <row><field name="id">1</field><field name="name">Alice</field></row>

未指定表名时依次取 <table name="...">、文件名。
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..common.exceptions import DataLoadError
from ..common.options import XmlLoadOptions
from .base import BulkLoader, merge_fields


class XmlLoader(BulkLoader):
    """XML file loader (requires lxml)"""

    LOADER_NAME = 'xml'
    REQUIRED_DEPENDENCIES = ['lxml']
    EXTRA = 'xml'

    def __init__(self, file_path: Union[str, Path], options: XmlLoadOptions):
        assert isinstance(options, XmlLoadOptions), "options must be an instance of XmlLoadOptions"
        super().__init__(file_path, options)
        self.options: XmlLoadOptions = options
        self._document_table: Optional[str] = None

    def read(self) -> Tuple[List[str], List[Dict[str, Any]]]:
        self._require_dependency('lxml')
        from lxml import etree

        self._check_file()
        parser = etree.XMLParser(encoding=self.options.encoding, resolve_entities=False, no_network=True)
        try:
            root = etree.parse(str(self.file_path), parser).getroot()
        except (OSError, etree.XMLSyntaxError) as e:
            raise DataLoadError(f"Cannot parse XML file {self.file_path}: {e}", source=str(self.file_path)) from e

        table_element = root if root.tag == 'table' else root.find('.//table')
        if table_element is not None and table_element.get('name'):
            self._document_table = table_element.get('name')

        rows = [self._parse_row(element) for element in root.iter(self.options.row_tag)]
        return merge_fields(rows), rows

    @staticmethod
    def _parse_row(element: Any) -> Dict[str, Any]:
        row: Dict[str, Any] = dict(element.attrib)
        for child in element:
            if not isinstance(child.tag, str):
                # 注释和处理指令
                continue
            name = child.get('name') if child.tag == 'field' else child.tag
            if not name:
                continue
            text = child.text.strip() if child.text else ''
            row[name] = text if text != '' else None
        return row

    def table_name(self) -> str:
        if not self.options.table and self._document_table:
            return self._document_table
        return super().table_name()
