"""
pysimpledb MySQL 连接器（需要 PyMySQL）
"""

from typing import Any, Dict

from .base import DatabaseConnector


class MysqlConnector(DatabaseConnector):
    """MySQL / MariaDB connector (requires PyMySQL)"""

    DB_TYPE = 'mysql'
    DRIVER = 'pymysql'
    DRIVER_PACKAGE = 'PyMySQL'
    EXTRA = 'mysql'
    REQUIRED_DEPENDENCIES = ['pymysql']

    DEFAULT_PORT = 3306

    def _open(self) -> Any:
        opts = self.options
        kwargs: Dict[str, Any] = {
            'host': opts.host or 'localhost',
            'user': opts.username,
            'password': opts.password or '',
            'database': opts.dbname,
            'port': opts.port or self.DEFAULT_PORT,
            'charset': opts.charset,
            'autocommit': True,
        }
        if opts.timeout is not None:
            kwargs['connect_timeout'] = opts.timeout
        kwargs.update(opts.connect_args)
        return self.driver.connect(**kwargs)
