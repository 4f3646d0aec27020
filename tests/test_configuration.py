"""
测试配置选项与异常层次
"""

import pytest

from pysimpledb import StatementBuilder
from pysimpledb.common.exceptions import (
    ConfigurationError,
    DataLoadError,
    DriverNotAvailableError,
    InvalidIntervalError,
    InvalidJoinTypeError,
    InvalidOrderDirectionError,
    InvalidPayloadError,
    InvalidQueryOptionError,
    PySimpleDbException,
    QueryBuildError,
    TransactionError,
)
from pysimpledb.common.options import (
    ConnectionOptions,
    CsvLoadOptions,
    ExcelLoadOptions,
    JsonLoadOptions,
    XmlLoadOptions,
    get_default_loader_options,
)


class TestConnectionOptions:
    """测试连接配置"""

    def test_defaults(self) -> None:
        """测试默认值"""
        options = ConnectionOptions()
        assert options.type == 'mysql'
        assert options.charset == 'utf8mb4'
        assert options.prefix == ''
        assert options.connect_args == {}

    def test_type_lowercased(self) -> None:
        """测试类型统一为小写"""
        assert ConnectionOptions(type='SQLite').type == 'sqlite'

    def test_from_mapping_skips_none(self) -> None:
        """测试字典构造忽略 None 值"""
        options = ConnectionOptions.from_mapping({'type': 'pgsql', 'host': None, 'charset': None})
        assert options.host is None
        assert options.charset == 'utf8mb4'

    def test_from_mapping_unknown_key(self) -> None:
        """测试未知配置项"""
        with pytest.raises(ConfigurationError) as exc_info:
            ConnectionOptions.from_mapping({'type': 'mysql', 'hostname': 'x'})
        assert 'hostname' in str(exc_info.value)

    def test_validate(self) -> None:
        """测试连接前校验"""
        ConnectionOptions(type='sqlite', dbname=':memory:').validate()
        with pytest.raises(ConfigurationError):
            ConnectionOptions(type='').validate()
        with pytest.raises(ConfigurationError):
            ConnectionOptions(type='sqlsrv').validate()
        with pytest.raises(ConfigurationError):
            ConnectionOptions(type='sqlite').validate()

    def test_builder_rejects_unknown_type(self) -> None:
        """测试构建器拒绝未知类型"""
        with pytest.raises(ConfigurationError):
            StatementBuilder({'type': 'oracle'})

    def test_builder_prefix_override(self) -> None:
        """测试 prefix 参数覆盖配置且不修改原对象"""
        options = ConnectionOptions(type='sqlite', dbname=':memory:', prefix='a_')
        db = StatementBuilder(options, prefix='b_')
        assert db.prefix == 'b_'
        assert options.prefix == 'a_'


class TestLoaderOptions:
    """测试导入配置"""

    def test_defaults(self) -> None:
        """测试默认选项类型"""
        assert isinstance(get_default_loader_options('csv'), CsvLoadOptions)
        assert isinstance(get_default_loader_options('json'), JsonLoadOptions)
        assert isinstance(get_default_loader_options('excel'), ExcelLoadOptions)
        assert isinstance(get_default_loader_options('xml'), XmlLoadOptions)
        assert CsvLoadOptions().delimiter == ','
        assert XmlLoadOptions().row_tag == 'row'

    def test_unknown_loader(self) -> None:
        """测试未知导入器"""
        with pytest.raises(ConfigurationError):
            get_default_loader_options('parquet')


class TestExceptions:
    """测试异常层次与属性"""

    @pytest.mark.parametrize('exc_cls', [
        InvalidJoinTypeError,
        InvalidOrderDirectionError,
        InvalidQueryOptionError,
        InvalidIntervalError,
    ])
    def test_build_errors(self, exc_cls: type) -> None:
        """测试构建期异常都是 QueryBuildError"""
        assert issubclass(exc_cls, QueryBuildError)
        assert issubclass(exc_cls, PySimpleDbException)

    def test_messages(self) -> None:
        """测试异常消息与属性"""
        assert str(InvalidJoinTypeError('SIDE')) == 'Wrong JOIN type: SIDE'
        error = InvalidPayloadError('tags', ['a'])
        assert error.column == 'tags'
        assert error.value == ['a']

    def test_driver_not_available(self) -> None:
        """测试驱动缺失异常"""
        error = DriverNotAvailableError('pgsql', 'psycopg2-binary', 'pgsql')
        assert isinstance(error, ConfigurationError)
        assert error.db_type == 'pgsql'
        assert 'pip install pysimpledb[pgsql]' in str(error)

    def test_other_errors(self) -> None:
        """测试其他异常"""
        assert issubclass(TransactionError, PySimpleDbException)
        error = DataLoadError('bad file', source='a.csv')
        assert error.source == 'a.csv'
        assert str(error) == 'bad file'
