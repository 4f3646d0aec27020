"""
pysimpledb 事务功能测试

测试事务管理：
- start_transaction / commit / rollback
- transaction() 上下文管理器
- 嵌套事务错误处理
- 退出时回滚未结束的事务
"""

import os
import sqlite3
import sys
import unittest

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pysimpledb import StatementBuilder, decrement, increment
from pysimpledb.common.exceptions import TransactionError


class TransactionTestCase(unittest.TestCase):
    """事务测试基类"""

    def setUp(self) -> None:
        """测试前设置"""
        self.db = StatementBuilder('sqlite', dbname=':memory:')
        self.db.raw_statement('CREATE TABLE accounts (id INTEGER PRIMARY KEY, owner TEXT, balance INTEGER)')
        self.db.insert('accounts', {'owner': 'Alice', 'balance': 1000})

    def tearDown(self) -> None:
        """测试后清理"""
        self.db.check_transaction_status()
        self.db.close()

    def balance(self, owner: str) -> int:
        return self.db.where('owner', owner).select_scalar('accounts', 'balance')


class TestExplicitTransaction(TransactionTestCase):
    """显式事务测试"""

    def test_commit(self) -> None:
        """测试提交后数据保留"""
        self.db.start_transaction()
        self.assertTrue(self.db.in_transaction)
        self.db.insert('accounts', {'owner': 'Bob', 'balance': 200})
        self.assertTrue(self.db.commit())
        self.assertFalse(self.db.in_transaction)
        self.assertEqual(self.balance('Bob'), 200)

    def test_rollback(self) -> None:
        """测试回滚后数据恢复"""
        self.db.start_transaction()
        self.db.where('owner', 'Alice').update('accounts', {'balance': decrement(300)})
        self.assertEqual(self.balance('Alice'), 700)
        self.assertTrue(self.db.rollback())
        self.assertEqual(self.balance('Alice'), 1000)

    def test_commit_without_transaction(self) -> None:
        """测试没有事务时提交"""
        with self.assertRaises(TransactionError):
            self.db.commit()
        with self.assertRaises(TransactionError):
            self.db.rollback()

    def test_statement_outside_transaction_persists(self) -> None:
        """测试事务外的语句立即生效"""
        self.db.insert('accounts', {'owner': 'Carol', 'balance': 5})
        self.db.start_transaction()
        self.db.rollback()
        self.assertEqual(self.balance('Carol'), 5)

    def test_exit_guard_rolls_back(self) -> None:
        """测试退出检查回滚未结束的事务"""
        self.db.start_transaction()
        self.assertTrue(self.db._exit_guard)
        self.db.insert('accounts', {'owner': 'Dave', 'balance': 1})

        self.db.check_transaction_status()

        self.assertFalse(self.db.in_transaction)
        self.assertFalse(self.db._exit_guard)
        self.assertFalse(self.db.where('owner', 'Dave').has('accounts'))

    def test_exit_guard_noop_without_transaction(self) -> None:
        """测试没有事务时退出检查不做任何事"""
        self.db.check_transaction_status()
        self.assertFalse(self.db.in_transaction)


class TestTransactionContext(TransactionTestCase):
    """transaction() 上下文管理器测试"""

    def test_successful_transaction(self) -> None:
        """测试正常退出时提交"""
        with self.db.transaction() as db:
            db.where('owner', 'Alice').update('accounts', {'balance': decrement(200)})
            db.insert('accounts', {'owner': 'Bob', 'balance': 200})

        self.assertFalse(self.db.in_transaction)
        self.assertEqual(self.balance('Alice'), 800)
        self.assertEqual(self.balance('Bob'), 200)

    def test_exception_rolls_back(self) -> None:
        """测试异常时回滚并重新抛出"""
        with self.assertRaises(ValueError):
            with self.db.transaction():
                self.db.where('owner', 'Alice').update('accounts', {'balance': increment(500)})
                raise ValueError("abort")

        self.assertFalse(self.db.in_transaction)
        self.assertEqual(self.balance('Alice'), 1000)

    def test_nested_transaction(self) -> None:
        """测试嵌套事务抛出 TransactionError，外层事务不受影响"""
        with self.db.transaction():
            with self.assertRaises(TransactionError):
                with self.db.transaction():
                    pass
            self.db.insert('accounts', {'owner': 'Eve', 'balance': 3})

        self.assertEqual(self.balance('Eve'), 3)

    def test_insert_multi_joins_open_transaction(self) -> None:
        """测试已有事务时批量插入不自行提交"""
        with self.assertRaises(RuntimeError):
            with self.db.transaction():
                ids = self.db.insert_multi('accounts', [['F', 1], ['G', 2]], ['owner', 'balance'])
                self.assertEqual(len(ids), 2)
                self.assertTrue(self.db.in_transaction)
                raise RuntimeError("undo")

        self.assertEqual(self.db.select_scalar('accounts', 'COUNT(*)'), 1)


class TestTransactionControlFailure(TransactionTestCase):
    """事务控制语句失败测试"""

    def setUp(self) -> None:
        super().setUp()
        # 绕过构建器直接开启事务，使下一次 BEGIN 被驱动拒绝
        self.db.raw_statement('BEGIN')

    def tearDown(self) -> None:
        self.db.raw_statement('ROLLBACK')
        super().tearDown()

    def test_start_transaction_failure_recorded(self) -> None:
        """测试 BEGIN 失败时返回 False 并记录错误"""
        self.assertFalse(self.db.start_transaction())
        self.assertFalse(self.db.in_transaction)
        self.assertFalse(self.db._exit_guard)
        self.assertIn('within a transaction', self.db.last_error)

    def test_insert_multi_returns_false(self) -> None:
        """测试无法开启事务时批量插入返回 False 且不插入任何行"""
        result = self.db.insert_multi('accounts', [{'owner': 'X', 'balance': 1}])
        self.assertIs(result, False)
        self.assertIsNotNone(self.db.last_error_code)
        self.assertFalse(self.db.where('owner', 'X').has('accounts'))

    def test_context_manager_raises(self) -> None:
        """测试上下文管理器无法开启事务时抛出 TransactionError"""
        with self.assertRaises(TransactionError):
            with self.db.transaction():
                self.fail("body must not run")


class TestWrappedSqliteConnection(unittest.TestCase):
    """包装隐式事务模式的 sqlite3 连接"""

    def setUp(self) -> None:
        self.conn = sqlite3.connect(':memory:')
        self.db = StatementBuilder(self.conn)
        self.db.raw_statement('CREATE TABLE t (id INTEGER PRIMARY KEY, a INTEGER)')

    def tearDown(self) -> None:
        self.conn.close()

    def test_insert_multi_after_implicit_transaction(self) -> None:
        """测试驱动自动开启的事务不妨碍批量插入"""
        self.assertEqual(self.db.insert('t', {'a': 1}), 1)
        self.assertTrue(self.conn.in_transaction)

        ids = self.db.insert_multi('t', [{'a': 2}, {'a': 3}])

        self.assertEqual(ids, [2, 3])
        self.assertFalse(self.db.in_transaction)
        self.assertFalse(self.conn.in_transaction)
        self.assertEqual(self.db.select_scalar('t', 'COUNT(*)'), 3)

    def test_rollback_keeps_committed_rows(self) -> None:
        """测试回滚只撤销构建器开启的事务"""
        self.db.insert('t', {'a': 1})
        self.assertTrue(self.db.start_transaction())
        self.db.insert('t', {'a': 2})
        self.assertTrue(self.db.rollback())
        self.assertEqual(self.db.select_scalar('t', 'a', 10), [1])


if __name__ == '__main__':
    unittest.main()
