"""
pysimpledb 配置选项 dataclass 定义

该模块定义了连接和批量导入的配置选项，替代松散的 dict 参数。
"""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Union

from .exceptions import ConfigurationError


# 支持的数据库类型
DB_TYPES = ('mysql', 'sqlite', 'pgsql', 'sqlsrv')


@dataclass(slots=True)
class ConnectionOptions:
    """数据库连接配置选项"""
    type: str = 'mysql'  # 'mysql' | 'sqlite' | 'pgsql' | 'sqlsrv'
    host: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    dbname: Optional[str] = None  # SQLite 下为文件路径或 ':memory:'
    port: Optional[int] = None
    charset: str = 'utf8mb4'
    prefix: str = ''  # 表名前缀
    timeout: Optional[float] = None  # 连接超时时间（秒）
    connect_args: Dict[str, Any] = field(default_factory=dict)  # 透传给驱动的额外参数

    def __post_init__(self) -> None:
        self.type = (self.type or '').lower()

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> 'ConnectionOptions':
        """
        从字典构造配置，忽略值为 None 的键

        Args:
            params: 配置字典

        Returns:
            ConnectionOptions 实例

        Raises:
            ConfigurationError: 包含未知配置项
        """
        known = {f.name for f in fields(cls)}
        unknown = set(params) - known
        if unknown:
            raise ConfigurationError(f"Unknown connection options: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in params.items() if v is not None})

    def validate(self) -> None:
        """连接前校验必要的配置项"""
        if not self.type:
            raise ConfigurationError("DB type is not set")
        if self.type not in DB_TYPES:
            raise ConfigurationError(
                f"Unsupported DB type: '{self.type}'. Valid types: {', '.join(DB_TYPES)}"
            )
        if self.type == 'sqlite' and not self.dbname:
            raise ConfigurationError("SQLite connections require 'dbname' (file path or ':memory:')")
        if self.type == 'sqlsrv' and not self.host:
            raise ConfigurationError("SQL Server connections require 'host'")


@dataclass(slots=True)
class CsvLoadOptions:
    """CSV 导入配置选项"""
    table: Optional[str] = None  # 目标表名（None 时取文件名）
    fields: Optional[List[str]] = None  # 字段列表（None 时取表头）
    delimiter: str = ','  # 字段分隔符
    quotechar: str = '"'  # 引号字符
    encoding: str = 'utf-8-sig'  # 字符编码（兼容带 BOM 的文件）


@dataclass(slots=True)
class JsonLoadOptions:
    """JSON 导入配置选项"""
    table: Optional[str] = None
    encoding: str = 'utf-8'


@dataclass(slots=True)
class ExcelLoadOptions:
    """Excel 导入配置选项"""
    table: Optional[str] = None
    fields: Optional[List[str]] = None
    sheet: Optional[str] = None  # 工作表名（None 时取活动工作表）
    read_only: bool = True  # 只读模式，显著提升读取性能


@dataclass(slots=True)
class XmlLoadOptions:
    """XML 导入配置选项"""
    table: Optional[str] = None
    row_tag: str = 'row'  # 行元素标签名
    encoding: Optional[str] = None  # None 时由 XML 声明决定


# Loader 选项联合类型
LoadOptions = Union[CsvLoadOptions, JsonLoadOptions, ExcelLoadOptions, XmlLoadOptions]


def get_default_loader_options(loader: str) -> LoadOptions:
    """根据导入器类型返回默认选项"""
    defaults: Dict[str, LoadOptions] = {
        'csv': CsvLoadOptions(),
        'json': JsonLoadOptions(),
        'excel': ExcelLoadOptions(),
        'xml': XmlLoadOptions(),
    }
    if loader not in defaults:
        raise ConfigurationError(f"Unknown loader: '{loader}'")
    return defaults[loader]
