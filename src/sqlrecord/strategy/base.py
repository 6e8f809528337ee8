"""
Base strategy interface for dialect-specific operations.

Defines the abstract base class that all dialect strategies inherit from.
A strategy encapsulates what differs between stores: how to build the
SQLAlchemy URL, which options are required, how to configure a fresh
connection, and how to spell the DDL that ``register`` emits.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa

from sqlrecord.sql import quote_identifier as sql_quote_identifier
from sqlrecord.sql import render_literal

if TYPE_CHECKING:
    from sqlrecord.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'postgresql', 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the database connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters

        Returns
            Connection URL suitable for SQLAlchemy
        """

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for this dialect."""
        return {}

    @abstractmethod
    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings.

        Args:
            conn: Raw DBAPI connection to configure with dialect-specific settings
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def quote_identifier(self, identifier: str) -> str:
        """Quote a database identifier.
        """
        return sql_quote_identifier(identifier, self.dialect_name)

    def render_literal(self, value: Any) -> str:
        return render_literal(value)

    @abstractmethod
    def primary_key_sql(self) -> str:
        """Column definition for the auto-incrementing ``id`` primary key."""

    def create_table_sql(self, table: str) -> str:
        """Create the table with the reserved columns only.
        """
        q = self.quote_identifier
        return (
            f'CREATE TABLE IF NOT EXISTS {q(table)} ('
            f'{q("id")} {self.primary_key_sql()}, '
            f'{q("created_at")} TIMESTAMP DEFAULT CURRENT_TIMESTAMP, '
            f'{q("updated_at")} TIMESTAMP, '
            f'{q("deleted_at")} TIMESTAMP)'
            )

    def add_column_sql(self, table: str, column: str, sql_type: str,
                       nullable: bool = False,
                       default_literal: str | None = None) -> list[str]:
        """Add a native column.

        Args:
            table: Table to alter
            column: Column name
            sql_type: Registry-resolved column type
            nullable: Omit ``NOT NULL`` when true
            default_literal: Rendered ``DEFAULT`` value, if the field declares one
        """
        q = self.quote_identifier
        sql = f'ALTER TABLE {q(table)} ADD COLUMN {q(column)} {sql_type}'
        if not nullable:
            sql += ' NOT NULL'
        if default_literal is not None:
            sql += f' DEFAULT {default_literal}'
        return [sql]

    @abstractmethod
    def add_reference_sql(self, table: str, column: str, ref_table: str) -> list[str]:
        """Add an integer column with a foreign key to ``ref_table(id)``."""

    def add_unique_sql(self, table: str, column: str) -> str:
        """Add a unique constraint on a single column.
        """
        q = self.quote_identifier
        return (f'CREATE UNIQUE INDEX IF NOT EXISTS {q(unique_name(table, column))} '
                f'ON {q(table)} ({q(column)})')


def foreign_key_name(table: str, column: str, ref_table: str) -> str:
    return f'fk_{table}_{column}_{ref_table}'


def unique_name(table: str, column: str) -> str:
    return f'uq_{table}_{column}'
