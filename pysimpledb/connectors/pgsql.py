"""
pysimpledb PostgreSQL 连接器（需要 psycopg2）
"""

from typing import Any, Dict

from .base import DatabaseConnector

# MySQL 风格字符集名 -> PostgreSQL client_encoding
_ENCODINGS = {
    'utf8': 'UTF8',
    'utf8mb4': 'UTF8',
    'latin1': 'LATIN1',
}


class PgsqlConnector(DatabaseConnector):
    """PostgreSQL connector (requires psycopg2)"""

    DB_TYPE = 'pgsql'
    DRIVER = 'psycopg2'
    DRIVER_PACKAGE = 'psycopg2-binary'
    EXTRA = 'pgsql'
    REQUIRED_DEPENDENCIES = ['psycopg2']

    DEFAULT_PORT = 5432

    def _open(self) -> Any:
        opts = self.options
        kwargs: Dict[str, Any] = {
            'dbname': opts.dbname,
            'user': opts.username,
            'password': opts.password,
            'port': opts.port or self.DEFAULT_PORT,
            'client_encoding': _ENCODINGS.get(opts.charset.lower(), opts.charset),
        }
        if opts.host:
            kwargs['host'] = opts.host
        if opts.timeout is not None:
            kwargs['connect_timeout'] = int(opts.timeout)
        kwargs.update(opts.connect_args)

        conn = self.driver.connect(**{k: v for k, v in kwargs.items() if v is not None})
        conn.autocommit = True
        return conn

    def last_insert_id(self, cursor: Any) -> Any:
        # psycopg2 的 lastrowid 是 OID，没有 OID 时为 0
        return cursor.lastrowid or None
