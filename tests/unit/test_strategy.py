"""
Tests for dialect strategies and the SQL text helpers they share.
"""
import datetime

import pytest
from sqlrecord.options import DatabaseOptions
from sqlrecord.sql import named_placeholder, quote_identifier, render_literal
from sqlrecord.strategy import PostgresStrategy, SQLiteStrategy
from sqlrecord.strategy import get_available_dialects, get_strategy
from sqlrecord.strategy import get_connection_strategy, get_strategy_class
from sqlrecord.strategy import is_supported_dialect
from sqlrecord.strategy.base import foreign_key_name


class TestRegistry:

    def test_available(self):
        assert set(get_available_dialects()) >= {'postgresql', 'sqlite'}
        assert is_supported_dialect('sqlite')
        assert not is_supported_dialect('mssql')

    def test_lookup(self):
        assert isinstance(get_strategy('sqlite'), SQLiteStrategy)
        assert isinstance(get_strategy('postgresql'), PostgresStrategy)
        assert get_strategy('sqlite') is get_strategy('sqlite')
        assert get_strategy_class('postgresql') is PostgresStrategy

    def test_connection_lookup(self, fake_connection):
        """Test the strategy follows the connection's dialect"""
        assert isinstance(get_connection_strategy(fake_connection('postgresql')), PostgresStrategy)
        assert isinstance(get_connection_strategy(fake_connection('sqlite')), SQLiteStrategy)

    def test_unknown(self):
        with pytest.raises(ValueError, match='Unsupported dialect: mssql'):
            get_strategy('mssql')
        with pytest.raises(ValueError):
            get_strategy_class('mssql')


class TestConnectionUrl:

    def test_sqlite(self):
        options = DatabaseOptions(drivername='sqlite', database='app.db')
        url = get_strategy('sqlite').build_connection_url(options)

        assert url.drivername == 'sqlite'
        assert url.database == 'app.db'

    def test_postgres(self):
        """Test the psycopg driver is selected and the timeout passed through"""
        options = DatabaseOptions(hostname='db.local', username='mark', password='secret',
                                  database='app', port=5433, timeout=5)
        url = get_strategy('postgresql').build_connection_url(options)

        assert url.drivername == 'postgresql+psycopg'
        assert url.host == 'db.local'
        assert url.port == 5433
        assert url.username == 'mark'
        assert url.password == 'secret'
        assert url.database == 'app'
        assert url.query == {'connect_timeout': '5'}

    def test_postgres_default_port(self):
        options = DatabaseOptions(hostname='db.local', username='mark', database='app')
        url = get_strategy('postgresql').build_connection_url(options)

        assert url.port is None
        assert url.query == {}


class TestDDL:

    def test_create_table(self):
        sql = get_strategy('postgresql').create_table_sql('user')
        assert sql == ('CREATE TABLE IF NOT EXISTS "user" ("id" SERIAL PRIMARY KEY, '
                       '"created_at" TIMESTAMP DEFAULT CURRENT_TIMESTAMP, '
                       '"updated_at" TIMESTAMP, "deleted_at" TIMESTAMP)')

    def test_sqlite_not_null_needs_default(self):
        """Test SQLite only keeps NOT NULL when a non-NULL default exists"""
        strategy = get_strategy('sqlite')

        assert strategy.add_column_sql('t', 'c', 'TEXT') == [
            'ALTER TABLE "t" ADD COLUMN "c" TEXT']
        assert strategy.add_column_sql('t', 'c', 'TEXT', default_literal='NULL') == [
            'ALTER TABLE "t" ADD COLUMN "c" TEXT DEFAULT NULL']
        assert strategy.add_column_sql('t', 'c', 'TEXT', default_literal="'a'") == [
            'ALTER TABLE "t" ADD COLUMN "c" TEXT NOT NULL DEFAULT \'a\'']

    def test_postgres_not_null(self):
        strategy = get_strategy('postgresql')
        assert strategy.add_column_sql('t', 'c', 'TEXT') == [
            'ALTER TABLE "t" ADD COLUMN "c" TEXT NOT NULL']
        assert strategy.add_column_sql('t', 'c', 'TEXT', nullable=True) == [
            'ALTER TABLE "t" ADD COLUMN "c" TEXT']

    def test_unique(self):
        sql = get_strategy('sqlite').add_unique_sql('user', 'username')
        assert sql == 'CREATE UNIQUE INDEX IF NOT EXISTS "uq_user_username" ON "user" ("username")'

    def test_foreign_key_name(self):
        """Test two references to the same table get distinct constraint names"""
        assert foreign_key_name('post', 'author', 'user') == 'fk_post_author_user'
        assert foreign_key_name('post', 'editor', 'user') != foreign_key_name('post', 'author', 'user')


class TestSqlHelpers:

    def test_quote_identifier(self):
        assert quote_identifier('user') == '"user"'
        assert quote_identifier('we"ird', 'sqlite') == '"we""ird"'
        with pytest.raises(ValueError, match='Unknown dialect'):
            quote_identifier('user', 'mssql')

    def test_named_placeholder(self):
        assert named_placeholder('username') == ('val_username', ':val_username')
        assert named_placeholder('first name') == ('val_first_name', ':val_first_name')
        assert named_placeholder('id', prefix='') == ('id', ':id')

    @pytest.mark.parametrize(('value', 'expected'), [
        (None, 'NULL'),
        (True, 'TRUE'),
        (False, 'FALSE'),
        (0, '0'),
        (1.5, '1.5'),
        ('mark', "'mark'"),
        ("o'brien", "'o''brien'"),
        (datetime.datetime(2024, 1, 2, 3, 4, 5), "'2024-01-02 03:04:05'"),
        (datetime.date(2024, 1, 2), "'2024-01-02'"),
    ])
    def test_render_literal(self, value, expected):
        assert render_literal(value) == expected
