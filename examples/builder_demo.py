"""
pysimpledb 语句构建器演示

展示在内存 SQLite 上的常用操作
- 插入、条件查询、排序与分页
- 子查询与 JOIN
- 自增更新与事务
- 执行错误通过 last_error 返回
"""

import os
import sys

# 添加父目录到路径
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pysimpledb import StatementBuilder, increment, decrement

print("=" * 60)
print("pysimpledb 语句构建器演示")
print("=" * 60)

db = StatementBuilder({'type': 'sqlite', 'dbname': ':memory:'})
db.raw_statement("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT UNIQUE, balance INTEGER, logins INTEGER DEFAULT 0)")
db.raw_statement("CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER, amount INTEGER)")

# 插入数据
print("\n1. 插入数据")
ids = db.insert_multi('users', [['Alice', 1000], ['Bob', 500], ['Carol', 50]], ['name', 'balance'])
print(f"   用户 ID: {ids}")
db.insert_multi('orders', [[1, 120], [1, 80], [2, 300]], ['user_id', 'amount'])

# 条件查询
print("\n2. 条件查询")
rich = db.where('balance', {'>=': 500}).order_by('balance', 'DESC').select('users', None, 'name, balance')
print(f"   余额 >= 500: {rich}")
print(f"   SQL: {db.last_query}")

# 子查询
print("\n3. 子查询")
buyers = db.subquery()
buyers.where('amount', 100, '>').select('orders', None, 'user_id')
print(f"   有大额订单的用户: {db.where('id', buyers, 'IN').select_scalar('users', 'name', 10)}")

# JOIN 与聚合
print("\n4. JOIN 与聚合")
totals = (db.join('orders o', 'o.user_id = u.id', 'LEFT')
          .group_by('u.name')
          .order_by('u.name', 'ASC')
          .select('users u', None, 'u.name, COUNT(o.id) AS orders'))
for row in totals:
    print(f"   {row['name']}: {row['orders']} 笔订单")

# 分页
print("\n5. 分页")
page = db.set_page_limit(2).order_by('id', 'ASC').paginate('users', 2, 'name')
print(f"   第 2 页: {page}，共 {db.total_count} 条 / {db.total_pages} 页")

# 事务
print("\n6. 事务转账")
with db.transaction():
    db.where('name', 'Alice').update('users', {'balance': decrement(200)})
    db.where('name', 'Bob').update('users', {'balance': increment(200)})
print(f"   转账后: {db.order_by('id', 'ASC').select('users', 2, 'name, balance')}")

try:
    with db.transaction():
        db.where('name', 'Alice').update('users', {'balance': decrement(5000)})
        raise ValueError("余额不足")
except ValueError as e:
    print(f"   已回滚: {e}，Alice 余额 {db.where('name', 'Alice').select_scalar('users', 'balance')}")

# 执行错误
print("\n7. 执行错误")
if db.insert('users', {'name': 'Alice'}) is False:
    print(f"   [{db.last_error_code}] {db.last_error}")

db.close()
print("\n" + "=" * 60)
print("演示完成")
print("=" * 60)
