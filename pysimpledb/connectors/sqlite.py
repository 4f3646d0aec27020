"""
pysimpledb SQLite 连接器（标准库 sqlite3）
"""

from typing import Any, Dict

from .base import DatabaseConnector


class SqliteConnector(DatabaseConnector):
    """SQLite connector (stdlib)"""

    DB_TYPE = 'sqlite'
    DRIVER = 'sqlite3'
    DRIVER_PACKAGE = 'sqlite3'
    EXTRA = 'sqlite'
    REQUIRED_DEPENDENCIES = []  # 标准库

    def _open(self) -> Any:
        # isolation_level=None：自动提交，事务由 BEGIN/COMMIT 语句显式控制
        kwargs: Dict[str, Any] = {'isolation_level': None}
        if self.options.timeout is not None:
            kwargs['timeout'] = self.options.timeout
        kwargs.update(self.options.connect_args)
        return self.driver.connect(self.options.dbname, **kwargs)

    def begin(self) -> None:
        connection = self.connection
        # 包装的连接若仍是隐式事务模式，先提交驱动自动开启的事务
        if getattr(connection, 'isolation_level', None) is not None and getattr(connection, 'in_transaction', False):
            connection.commit()
        super().begin()
