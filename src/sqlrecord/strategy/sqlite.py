"""
SQLite-specific strategy implementation.

This module implements the DatabaseStrategy interface for SQLite. It
handles SQLite's DDL limitations:
- ALTER TABLE cannot add table constraints, so foreign keys are declared
  inline on the added column
- ALTER TABLE cannot add a NOT NULL column without a non-NULL default
- Foreign key enforcement must be switched on per connection
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa

from sqlrecord.strategy.base import DatabaseStrategy, foreign_key_name
from sqlrecord.strategy.base import register_strategy

if TYPE_CHECKING:
    from sqlrecord.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite.

        The connection wrapper serializes access itself, so the driver's
        same-thread check is disabled to let `DB` share one handle.
        """
        return {'connect_args': {'check_same_thread': False}}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for SQLite.
        """
        sqlite_conn = conn
        if hasattr(conn, 'dbapi_connection'):
            sqlite_conn = conn.dbapi_connection

        sqlite_conn.execute('PRAGMA foreign_keys = ON')

    def primary_key_sql(self) -> str:
        return 'INTEGER PRIMARY KEY AUTOINCREMENT'

    def add_column_sql(self, table: str, column: str, sql_type: str,
                       nullable: bool = False,
                       default_literal: str | None = None) -> list[str]:
        """Add a native column.

        SQLite rejects ``NOT NULL`` on an added column unless a non-NULL
        default is supplied, so the constraint is dropped in that case.
        """
        if not nullable and default_literal in {None, 'NULL'}:
            logger.debug(f'SQLite cannot add NOT NULL column {table}.{column} without a default; '
                         'adding it as nullable')
            nullable = True
        return super().add_column_sql(table, column, sql_type, nullable, default_literal)

    def add_reference_sql(self, table: str, column: str, ref_table: str) -> list[str]:
        """Add an integer column carrying an inline, named foreign key.
        """
        q = self.quote_identifier
        fk = foreign_key_name(table, column, ref_table)
        return [
            f'ALTER TABLE {q(table)} ADD COLUMN {q(column)} INTEGER '
            f'CONSTRAINT {q(fk)} REFERENCES {q(ref_table)}({q("id")})'
            ]
