"""
pysimpledb 批量导入模块

提供导入器注册、发现和实例化功能
"""

from pathlib import Path
from typing import Dict, List, Optional, Type, Union

from ..common.exceptions import ConfigurationError
from ..common.options import LoadOptions, get_default_loader_options
from .base import BulkLoader
from .loader_csv import CsvLoader
from .loader_excel import ExcelLoader
from .loader_json import JsonLoader
from .loader_xml import XmlLoader

LOADERS: Dict[str, Type[BulkLoader]] = {
    'csv': CsvLoader,
    'json': JsonLoader,
    'excel': ExcelLoader,
    'xml': XmlLoader,
}


def get_loader(
    loader: str,
    file_path: Union[str, Path],
    options: Optional[LoadOptions] = None
) -> BulkLoader:
    """
    创建导入器实例

    Args:
        loader: 导入器名称（'csv' | 'json' | 'excel' | 'xml'）
        file_path: 源文件路径
        options: 导入配置，None 时使用默认值

    Raises:
        ConfigurationError: 未知导入器
    """
    loader_cls = LOADERS.get(loader)
    if loader_cls is None:
        raise ConfigurationError(f"Unknown loader: '{loader}'. Valid loaders: {', '.join(LOADERS)}")
    if options is None:
        options = get_default_loader_options(loader)
    return loader_cls(file_path, options)


def get_available_loaders() -> List[str]:
    """依赖已安装的导入器列表"""
    return [name for name, cls in LOADERS.items() if cls.is_available()]


__all__ = [
    'BulkLoader',
    'CsvLoader',
    'JsonLoader',
    'ExcelLoader',
    'XmlLoader',
    'LOADERS',
    'get_loader',
    'get_available_loaders',
]
