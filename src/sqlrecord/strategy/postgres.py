"""
PostgreSQL-specific strategy implementation.

This module implements the DatabaseStrategy interface for PostgreSQL:
- SERIAL primary keys
- Foreign keys added as separate named table constraints
- psycopg (v3) as the driver behind SQLAlchemy
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa

from sqlrecord.strategy.base import DatabaseStrategy, foreign_key_name
from sqlrecord.strategy.base import register_strategy

if TYPE_CHECKING:
    from sqlrecord.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)

        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query,
            )

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'database']

    def configure_connection(self, conn: Any) -> None:
        """PostgreSQL needs no per-connection settings.
        """

    def primary_key_sql(self) -> str:
        return 'SERIAL PRIMARY KEY'

    def add_reference_sql(self, table: str, column: str, ref_table: str) -> list[str]:
        """Add an integer column followed by a named foreign key constraint.
        """
        q = self.quote_identifier
        fk = foreign_key_name(table, column, ref_table)
        return [
            f'ALTER TABLE {q(table)} ADD COLUMN {q(column)} INTEGER',
            f'ALTER TABLE {q(table)} ADD CONSTRAINT {q(fk)} '
            f'FOREIGN KEY ({q(column)}) REFERENCES {q(ref_table)}({q("id")})',
            ]
