"""
pysimpledb 连接器基类

封装一个 DB-API 2.0 连接：打开/关闭、执行、占位符适配、事务语句、
最后插入 ID。驱动模块按需导入，未安装时给出安装提示。
"""

import importlib
import importlib.util
import logging
from abc import ABC, abstractmethod
from types import ModuleType
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from ..common.exceptions import DatabaseConnectionError, DriverNotAvailableError
from ..common.options import ConnectionOptions
from ..core.dialect import Dialect, get_dialect

logger = logging.getLogger(__name__)

_FORMAT_STYLES = ('format', 'pyformat')


def convert_placeholders(sql: str, paramstyle: str) -> str:
    """
    把 '?' 占位符转换为驱动的 paramstyle

    引号内的 '?' 保持不变；format/pyformat 风格下字面量 '%' 转义为 '%%'。

    Args:
        sql: 使用 '?' 占位符的 SQL
        paramstyle: 驱动模块的 paramstyle

    Returns:
        转换后的 SQL
    """
    if paramstyle == 'qmark':
        return sql

    out: List[str] = []
    quote: Optional[str] = None
    index = 0
    for ch in sql:
        if ch == '%' and paramstyle in _FORMAT_STYLES:
            out.append('%%')
        elif quote is not None:
            out.append(ch)
            if ch == quote:
                quote = None
        elif ch in ("'", '"', '`'):
            quote = ch
            out.append(ch)
        elif ch == '?':
            index += 1
            if paramstyle in _FORMAT_STYLES:
                out.append('%s')
            elif paramstyle == 'numeric':
                out.append(f':{index}')
            else:
                out.append(f':p{index}')
        else:
            out.append(ch)
    return ''.join(out)


def adapt_params(params: Sequence[Any], paramstyle: str) -> Union[Sequence[Any], Dict[str, Any]]:
    """named 风格需要字典参数，其余保持位置参数"""
    if paramstyle == 'named':
        return {f'p{i}': value for i, value in enumerate(params, start=1)}
    return tuple(params)


class DatabaseConnector(ABC):
    """数据库连接器抽象基类"""

    DB_TYPE = ''
    DRIVER = ''  # 驱动模块名
    DRIVER_PACKAGE = ''  # PyPI 包名
    EXTRA = ''  # pip extra 名称
    REQUIRED_DEPENDENCIES: List[str] = []

    def __init__(
        self,
        options: ConnectionOptions,
        raw_connection: Any = None,
        driver: Optional[ModuleType] = None
    ):
        """
        初始化连接器

        Args:
            options: 连接配置
            raw_connection: 已打开的 DB-API 连接（可选）
            driver: 驱动模块，省略时按 DRIVER 导入
        """
        self.options = options
        self.dialect: Dialect = get_dialect(options.type)
        self._connection = raw_connection
        self._driver = driver

    @classmethod
    def is_available(cls) -> bool:
        """驱动是否已安装"""
        return all(importlib.util.find_spec(dep) is not None for dep in cls.REQUIRED_DEPENDENCIES)

    @property
    def driver(self) -> Any:
        if self._driver is None:
            try:
                self._driver = importlib.import_module(self.DRIVER)
            except ImportError:
                raise DriverNotAvailableError(self.DB_TYPE, self.DRIVER_PACKAGE, self.EXTRA)
        return self._driver

    @property
    def error_class(self) -> Type[BaseException]:
        """驱动的 DB-API Error 基类"""
        return getattr(self.driver, 'Error', Exception)

    @property
    def paramstyle(self) -> str:
        return getattr(self.driver, 'paramstyle', 'qmark')

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> Any:
        """DB-API 连接，首次访问时建立"""
        if self._connection is None:
            self.connect()
        return self._connection

    @abstractmethod
    def _open(self) -> Any:
        """用驱动打开连接（自动提交模式）"""
        pass

    def connect(self) -> None:
        """
        建立连接

        Raises:
            ConfigurationError: 配置不完整
            DriverNotAvailableError: 驱动未安装
            DatabaseConnectionError: 驱动连接失败
        """
        if self._connection is not None:
            return
        self.options.validate()
        driver_error = self.error_class
        try:
            self._connection = self._open()
        except driver_error as e:
            raise DatabaseConnectionError(f"Database connection error: {e}") from e
        logger.debug("Connected to %s database %r", self.DB_TYPE, self.options.dbname)

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """
        执行语句并返回游标

        Args:
            sql: 使用 '?' 占位符的 SQL
            params: 位置参数

        Returns:
            已执行的 DB-API 游标

        Raises:
            驱动的 Error 子类：执行失败（游标已关闭）
        """
        cursor = self.connection.cursor()
        try:
            if params:
                style = self.paramstyle
                cursor.execute(convert_placeholders(sql, style), adapt_params(params, style))
            else:
                cursor.execute(sql)
        except BaseException:
            cursor.close()
            raise
        return cursor

    def last_insert_id(self, cursor: Any) -> Any:
        """最近一次 INSERT 生成的 ID，驱动不支持时返回 None"""
        return getattr(cursor, 'lastrowid', None)

    def _run(self, sql: str) -> None:
        cursor = self.execute(sql)
        cursor.close()

    def begin(self) -> None:
        self._run(self.dialect.BEGIN_STATEMENT)

    def commit(self) -> None:
        self._run(self.dialect.COMMIT_STATEMENT)

    def rollback(self) -> None:
        self._run(self.dialect.ROLLBACK_STATEMENT)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dbname={self.options.dbname!r}, connected={self.is_connected})"
