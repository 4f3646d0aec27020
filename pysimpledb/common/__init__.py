"""
pysimpledb 公共模块

包含异常、配置选项和类型别名
"""
