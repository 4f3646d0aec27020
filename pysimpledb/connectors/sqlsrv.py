"""
pysimpledb SQL Server 连接器（需要 pyodbc 和 ODBC Driver for SQL Server）
"""

from typing import Any

from .base import DatabaseConnector


class SqlsrvConnector(DatabaseConnector):
    """SQL Server connector (requires pyodbc)"""

    DB_TYPE = 'sqlsrv'
    DRIVER = 'pyodbc'
    DRIVER_PACKAGE = 'pyodbc'
    EXTRA = 'sqlsrv'
    REQUIRED_DEPENDENCIES = ['pyodbc']

    ODBC_DRIVER = 'ODBC Driver 18 for SQL Server'

    def connection_string(self) -> str:
        """组装 ODBC 连接串，connect_args 中的 'driver' 可覆盖默认驱动名"""
        opts = self.options
        extra = dict(opts.connect_args)
        odbc_driver = extra.pop('driver', self.ODBC_DRIVER)
        server = f"{opts.host},{opts.port}" if opts.port else opts.host

        parts = [f"DRIVER={{{odbc_driver}}}", f"SERVER={server}"]
        if opts.dbname:
            parts.append(f"DATABASE={opts.dbname}")
        if opts.username:
            parts.append(f"UID={opts.username}")
        if opts.password:
            parts.append(f"PWD={opts.password}")
        parts.extend(f"{key}={value}" for key, value in extra.items())
        return ';'.join(parts) + ';'

    def _open(self) -> Any:
        timeout = int(self.options.timeout) if self.options.timeout is not None else 0
        return self.driver.connect(self.connection_string(), autocommit=True, timeout=timeout)

    def last_insert_id(self, cursor: Any) -> Any:
        # pyodbc 游标没有 lastrowid；SCOPE_IDENTITY() 在单独批次中为 NULL
        id_cursor = self.execute('SELECT @@IDENTITY')
        try:
            row = id_cursor.fetchone()
        finally:
            id_cursor.close()
        if row is None or row[0] is None:
            return None
        return int(row[0])
