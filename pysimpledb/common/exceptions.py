"""
pysimpledb 异常定义

构建期错误（错误的 JOIN 类型、排序方向、查询选项、数据结构）立即抛出；
执行期错误由 StatementBuilder 捕获并记录到 last_error，不在此处定义。
"""

from typing import Optional


class PySimpleDbException(Exception):
    """pysimpledb 基础异常类"""


class ConfigurationError(PySimpleDbException):
    """连接配置异常（缺少数据库类型、未知类型等）"""


class DriverNotAvailableError(ConfigurationError):
    """数据库驱动未安装"""
    def __init__(self, db_type: str, package: str, extra: str):
        self.db_type = db_type
        self.package = package
        super().__init__(
            f"{package} is required for '{db_type}' connections. "
            f"Install with: pip install pysimpledb[{extra}]"
        )


class DatabaseConnectionError(PySimpleDbException):
    """数据库连接失败"""


class QueryBuildError(PySimpleDbException):
    """语句构建异常（调用方误用，构建期立即抛出）"""


class InvalidJoinTypeError(QueryBuildError):
    """不支持的 JOIN 类型"""
    def __init__(self, join_type: str):
        self.join_type = join_type
        super().__init__(f"Wrong JOIN type: {join_type}")


class InvalidOrderDirectionError(QueryBuildError):
    """不支持的排序方向"""
    def __init__(self, direction: str):
        self.direction = direction
        super().__init__(f"Wrong order direction: {direction}")


class InvalidQueryOptionError(QueryBuildError):
    """不在白名单中的查询选项"""
    def __init__(self, option: str):
        self.option = option
        super().__init__(f"Wrong query option: {option}")


class InvalidPayloadError(QueryBuildError):
    """INSERT/UPDATE 数据结构无法识别"""
    def __init__(self, column: str, value: object = None):
        self.column = column
        self.value = value
        super().__init__(f"Invalid data structure for column '{column}': {value!r}")


class InvalidIntervalError(QueryBuildError):
    """时间间隔表达式无效"""
    def __init__(self, diff: str):
        self.diff = diff
        super().__init__(f"Invalid interval type in '{diff}'")


class TransactionError(PySimpleDbException):
    """事务异常"""


class DataLoadError(PySimpleDbException):
    """批量导入异常"""
    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(message)
