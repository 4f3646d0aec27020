"""
Pytest 配置和共享 fixtures

此文件提供 pytest 测试所需的共享配置和 fixtures：
- 记录语句的假 DB-API 连接（检查各方言渲染的 SQL，不需要真实数据库）
- 内存 SQLite 构建器（端到端执行）
"""
import sys
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Generator, List, Optional, Sequence, Tuple

import pytest

# 确保可以导入 pysimpledb
sys.path.insert(0, str(Path(__file__).parent.parent))

from pysimpledb import StatementBuilder, wrap_connection


class FakeDriverError(Exception):
    """假驱动的 DB-API Error"""


class RecordingCursor:
    """记录执行语句的游标，返回预置结果"""

    def __init__(self, connection: 'RecordingConnection'):
        self.connection = connection
        self.description: Optional[List[Tuple[Any, ...]]] = None
        self.rowcount = -1
        self.lastrowid: Optional[int] = None
        self.closed = False
        self._rows: List[Tuple[Any, ...]] = []

    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        self.connection.executed.append((sql, list(params)))
        if self.connection.fail_on and self.connection.fail_on in sql:
            raise FakeDriverError(1062, "Duplicate entry")
        result = self.connection.next_result(sql)
        columns, rows, rowcount, lastrowid = result
        self.description = [(name, None, None, None, None, None, None) for name in columns] or None
        self._rows = list(rows)
        self.rowcount = rowcount
        self.lastrowid = lastrowid

    def fetchall(self) -> List[Tuple[Any, ...]]:
        rows, self._rows = self._rows, []
        return rows

    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        return self._rows.pop(0) if self._rows else None

    def close(self) -> None:
        self.closed = True


class RecordingConnection:
    """
    记录 SQL 的假连接

    results 中按顺序存放 (columns, rows, rowcount, lastrowid)，
    用完后返回空结果；fail_on 子串命中时抛出 FakeDriverError。
    """

    def __init__(self) -> None:
        self.executed: List[Tuple[str, List[Any]]] = []
        self.results: List[Tuple[List[str], List[Tuple[Any, ...]], int, Optional[int]]] = []
        self.fail_on: Optional[str] = None
        self.closed = False

    def queue(self, columns: Sequence[str] = (), rows: Sequence[Tuple[Any, ...]] = (),
              rowcount: int = -1, lastrowid: Optional[int] = None) -> None:
        self.results.append((list(columns), list(rows), rowcount, lastrowid))

    def next_result(self, sql: str) -> Tuple[List[str], List[Tuple[Any, ...]], int, Optional[int]]:
        if self.results:
            return self.results.pop(0)
        return [], [], 1, None

    def cursor(self) -> RecordingCursor:
        return RecordingCursor(self)

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> List[str]:
        return [sql for sql, _ in self.executed]

    @property
    def last(self) -> Tuple[str, List[Any]]:
        return self.executed[-1]


FAKE_DRIVER = SimpleNamespace(Error=FakeDriverError, paramstyle='qmark')


@pytest.fixture
def fake_connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture
def make_builder(fake_connection: RecordingConnection) -> Callable[..., StatementBuilder]:
    """
    按方言创建包装假连接的构建器

    Example:
        db = make_builder('mysql', prefix='t_')
    """
    def factory(db_type: str = 'mysql', prefix: str = '') -> StatementBuilder:
        connector = wrap_connection(fake_connection, db_type, driver=FAKE_DRIVER, prefix=prefix)
        return StatementBuilder(connector)
    return factory


@pytest.fixture
def mysql_db(make_builder: Callable[..., StatementBuilder]) -> StatementBuilder:
    return make_builder('mysql')


@pytest.fixture
def sqlite_db() -> Generator[StatementBuilder, None, None]:
    """内存 SQLite 构建器，预建 users / orders 表"""
    db = StatementBuilder({'type': 'sqlite', 'dbname': ':memory:'})
    db.raw_statement(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT UNIQUE, "
        "age INTEGER, active INTEGER DEFAULT 1, hits INTEGER DEFAULT 0)"
    )
    db.raw_statement(
        "CREATE TABLE orders (id INTEGER PRIMARY KEY AUTOINCREMENT, user_id INTEGER, qty INTEGER)"
    )
    yield db
    db.close()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    提供临时目录 fixture

    Yields:
        临时目录的 Path 对象
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
