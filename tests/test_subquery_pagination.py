"""
测试子查询组合、分页与总行数探测
"""

from typing import Callable

import pytest

from pysimpledb import StatementBuilder
from pysimpledb.common.exceptions import QueryBuildError
from pysimpledb.query import SubqueryHandle


class TestSubquery:
    """测试子查询"""

    def test_select_returns_builder(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试子查询 select() 返回自身且不访问连接"""
        sub = mysql_db.subquery('s')
        assert sub.where('qty', 2, '>').select('orders', None, 'user_id') is sub
        assert fake_connection.executed == []
        assert sub.get_subquery() == SubqueryHandle('SELECT user_id FROM orders WHERE qty > ?', [2], 's')
        assert sub._state.is_empty()

    def test_in_subquery_param_order(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试 IN 子查询的参数位于后续条件参数之前"""
        sub = mysql_db.subquery()
        sub.where('qty', 2, '>').select('products', None, 'user_id')
        mysql_db.where('id', sub, 'IN').where('active', 1).select('users')
        assert fake_connection.executed == [(
            'SELECT * FROM users WHERE id IN (SELECT user_id FROM products WHERE qty > ?) AND active = ?',
            [2, 1],
        )]

    def test_join_subquery(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试 JOIN 派生表"""
        sub = mysql_db.subquery('s')
        sub.group_by('user_id').select('orders', None, 'user_id, COUNT(*) AS n')
        mysql_db.join(sub, 's.user_id = u.id', 'LEFT').select('users u')
        assert fake_connection.last[0] == (
            'SELECT * FROM users u LEFT JOIN (SELECT user_id, COUNT(*) AS n FROM orders GROUP BY user_id) s '
            'ON s.user_id = u.id'
        )

    def test_exists_subquery(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试 EXISTS"""
        sub = mysql_db.subquery()
        sub.where('qty', 0, '>').select('orders')
        mysql_db.where('', sub, 'EXISTS').select('users')
        assert fake_connection.last == (
            'SELECT * FROM users WHERE EXISTS (SELECT * FROM orders WHERE qty > ?)',
            [0],
        )

    def test_exists_requires_subquery(self, mysql_db: StatementBuilder) -> None:
        """测试 EXISTS 的值必须是子查询"""
        with pytest.raises(QueryBuildError):
            mysql_db.where('', 1, 'EXISTS').select('users')

    def test_scalar_subquery_value(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试比较运算中的子查询"""
        sub = mysql_db.subquery()
        sub.select('orders', None, 'MAX(qty)')
        mysql_db.where('qty', sub, '>=').select('orders')
        assert fake_connection.last[0] == 'SELECT * FROM orders WHERE qty >= (SELECT MAX(qty) FROM orders)'

    def test_subquery_as_insert_value(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试子查询作为插入值"""
        sub = mysql_db.subquery()
        sub.select('orders', None, 'COUNT(*)')
        mysql_db.insert('stats', {'total': sub, 'label': 'orders'})
        assert fake_connection.last == (
            'INSERT INTO stats (`total`, `label`) VALUES ((SELECT COUNT(*) FROM orders), ?)',
            ['orders'],
        )

    def test_unbuilt_subquery(self, mysql_db: StatementBuilder) -> None:
        """测试未 select() 的子查询"""
        sub = mysql_db.subquery()
        with pytest.raises(QueryBuildError):
            mysql_db.where('id', sub, 'IN').select('users')

    def test_subquery_never_executes(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试子查询构建器的写操作直接返回 False"""
        sub = mysql_db.subquery()
        assert sub.insert('users', {'name': 'a'}) is False
        assert sub.update('users', {'name': 'a'}) is False
        assert sub.where('id', 1).delete('users') is False
        assert sub.insert_multi('users', [{'name': 'a'}]) is False
        assert sub._state.is_empty()
        assert fake_connection.executed == []
        assert sub.last_error is None

    def test_subquery_inherits_prefix(self, make_builder: Callable[..., StatementBuilder]) -> None:
        """测试子查询继承表前缀"""
        sub = make_builder('mysql', prefix='t_').subquery()
        sub.select('orders')
        assert sub.get_subquery().sql == 'SELECT * FROM t_orders'

    def test_plain_builder_has_no_subquery(self, mysql_db: StatementBuilder) -> None:
        """测试普通构建器没有子查询句柄"""
        assert mysql_db.get_subquery() is None


class TestPagination:
    """测试分页"""

    def test_mysql_found_rows(self, mysql_db: StatementBuilder, fake_connection) -> None:
        """测试 MySQL 使用 SQL_CALC_FOUND_ROWS 和 FOUND_ROWS()"""
        fake_connection.queue(['id'], [(21,), (22,)], 2)
        fake_connection.queue(['FOUND_ROWS()'], [(25,)], 1)

        rows = mysql_db.set_page_limit(10).paginate('users', 3)

        assert fake_connection.statements == [
            'SELECT SQL_CALC_FOUND_ROWS * FROM users LIMIT 10 OFFSET 20',
            'SELECT FOUND_ROWS()',
        ]
        assert rows == [{'id': 21}, {'id': 22}]
        assert mysql_db.total_count == 25
        assert mysql_db.total_pages == 3
        assert mysql_db.row_count == 2

    def test_sqlsrv_count_probe(self, make_builder: Callable[..., StatementBuilder], fake_connection) -> None:
        """测试 SQL Server 使用 OFFSET/FETCH 与 COUNT(*) 探测"""
        db = make_builder('sqlsrv')
        fake_connection.queue(['id'], [(21,)], -1)
        fake_connection.queue([''], [(21,)], -1)

        db.where('active', 1).paginate('users', 3)

        assert fake_connection.executed == [
            ('SELECT * FROM users WHERE active = ? ORDER BY (SELECT NULL) OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY', [1]),
            ('SELECT COUNT(*) FROM users WHERE active = ?', [1]),
        ]
        assert db.total_count == 21
        assert db.total_pages == 3

    def test_count_probe_with_group_by(self, make_builder: Callable[..., StatementBuilder], fake_connection) -> None:
        """测试有 GROUP BY 时按派生表计数"""
        db = make_builder('pgsql')
        fake_connection.queue(['user_id'], [(1,)])
        fake_connection.queue(['count'], [(4,)])

        db.with_total_count().group_by('user_id').order_by('user_id').select('orders', [0, 5], 'user_id')

        assert fake_connection.statements == [
            'SELECT user_id FROM orders GROUP BY user_id ORDER BY user_id DESC LIMIT 5 OFFSET 0',
            'SELECT COUNT(*) FROM (SELECT user_id FROM orders GROUP BY user_id) count_probe',
        ]
        assert db.total_count == 4

    def test_count_probe_with_distinct(self, make_builder: Callable[..., StatementBuilder], fake_connection) -> None:
        """测试 DISTINCT 查询按派生表计数，保留修饰符和条件"""
        db = make_builder('sqlite')
        fake_connection.queue(['age'], [(30,), (40,)])
        fake_connection.queue(['n'], [(2,)])

        db.set_query_option('DISTINCT').with_total_count().where('active', 1).select('users', 10, 'age')

        assert fake_connection.executed == [
            ('SELECT DISTINCT age FROM users WHERE active = ? LIMIT 10', [1]),
            ('SELECT COUNT(*) FROM (SELECT DISTINCT age FROM users WHERE active = ?) count_probe', [1]),
        ]
        assert db.total_count == 2

    def test_count_probe_reuses_subquery(self, make_builder: Callable[..., StatementBuilder],
                                         fake_connection) -> None:
        """测试计数探测再次渲染同一个子查询"""
        db = make_builder('sqlite')
        sub = db.subquery()
        sub.where('qty', 1, '>').select('orders', None, 'user_id')
        fake_connection.queue(['id'], [])
        fake_connection.queue(['n'], [(0,)])

        db.with_total_count().where('id', sub, 'IN').select('users', 10)

        assert fake_connection.executed == [
            ('SELECT * FROM users WHERE id IN (SELECT user_id FROM orders WHERE qty > ?) LIMIT 10', [1]),
            ('SELECT COUNT(*) FROM users WHERE id IN (SELECT user_id FROM orders WHERE qty > ?)', [1]),
        ]

    def test_sqlsrv_top(self, make_builder: Callable[..., StatementBuilder], fake_connection) -> None:
        """测试 SQL Server 单个行数使用 TOP"""
        db = make_builder('sqlsrv')
        db.order_by('id', 'ASC').select('users', 5)
        db.order_by('id', 'ASC').select('users', [20, 10])
        assert fake_connection.statements == [
            'SELECT TOP 5 * FROM users ORDER BY id ASC',
            'SELECT * FROM users ORDER BY id ASC OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY',
        ]
