"""
Prepared statement wrapper over SQLAlchemy ``text()`` clauses.

A statement is prepared from SQL text carrying ``:name`` placeholders,
bound value by value, executed once, and then read with ``fetchone`` /
``fetchall``. Rows come back as plain ``dict`` objects keyed by column name.
"""
import logging
import time
from functools import wraps
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa

if TYPE_CHECKING:
    from sqlrecord.connection import ConnectionWrapper

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL statements and their bound parameters."""
    @wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{self.sql}\nparams: {self.params}')
        try:
            return func(self, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{self.sql}\nparams: {self.params}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Statement:
    """A single parameterized statement bound to a connection wrapper.
    """

    def __init__(self, connection_wrapper: 'ConnectionWrapper', sql: str) -> None:
        self.connwrapper = connection_wrapper
        self.sql = sql
        self.params: dict[str, Any] = {}
        self._type_hints: dict[str, Any] = {}
        self._rows: list[dict[str, Any]] | None = None
        self._position = 0
        self.rowcount = -1

    def bind(self, name: str, value: Any, type_hint: Any = None) -> None:
        """Bind a value to a ``:name`` placeholder.

        Args:
            name: Placeholder name, with or without the leading colon
            value: Value to bind
            type_hint: Optional SQLAlchemy type (e.g. ``sa.Integer``) for the parameter
        """
        name = name.lstrip(':')
        self.params[name] = value
        if type_hint is not None:
            self._type_hints[name] = type_hint

    def clause(self) -> sa.TextClause:
        clause = sa.text(self.sql)
        if self._type_hints:
            clause = clause.bindparams(*[
                sa.bindparam(name, type_=hint) for name, hint in self._type_hints.items()
                ])
        return clause

    @dumpsql
    def execute(self) -> int:
        """Execute the statement and buffer any returned rows.

        Returns
            Affected row count as reported by the driver
        """
        self._rows, self.rowcount = self.connwrapper.run(self.clause(), self.params)
        self._position = 0
        return self.rowcount

    def fetchone(self) -> dict[str, Any] | None:
        """Fetch the next row, or None when exhausted."""
        if not self._rows or self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def fetchall(self) -> list[dict[str, Any]]:
        """Fetch all remaining rows."""
        if not self._rows:
            return []
        rows = self._rows[self._position:]
        self._position = len(self._rows)
        return rows
