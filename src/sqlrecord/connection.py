"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class, the statement capability the mapper runs on:
   - prepare(sql) - Create a `Statement` with ``:name`` placeholders
   - exec(sql) - Execute a DDL statement
   - get_table_columns(table) - Column names of an existing table
3. Engine creation and management through a thread-safe registry
4. The process-wide `DB` connection, configured once and opened lazily
"""
import atexit
import logging
import threading
import time
from dataclasses import replace
from typing import Any, Self

import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlrecord.options import DatabaseOptions
from sqlrecord.statement import Statement
from sqlrecord.strategy import get_strategy

__all__ = [
    'ConnectionWrapper',
    'DB',
    'connect',
    'configure_connection',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: DatabaseOptions) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False}
        if not options.use_pool:
            engine_kwargs['poolclass'] = NullPool
        else:
            engine_kwargs['pool_size'] = options.pool_max_connections
            engine_kwargs['pool_recycle'] = options.pool_max_idle_time
            engine_kwargs['pool_timeout'] = options.pool_wait_timeout
            engine_kwargs['pool_pre_ping'] = True
        engine_kwargs.update(strategy.get_engine_kwargs(options))

        engine = sa.create_engine(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection to provide the mapper's statement capability.

    Every statement runs in its own transaction: it is committed when it
    succeeds, and rolled back before the error is re-raised when
    it fails. Execution counts and time are tracked for the close summary.

    The wrapper may be shared between threads (see `DB`). A reentrant lock
    serializes use of the underlying connection, so each statement, its
    buffered result set and its commit or rollback happen as one unit.
    """

    def __init__(self, sa_connection: sa.engine.Connection) -> None:
        self.sa_connection = sa_connection
        self._dialect = sa_connection.engine.dialect.name.lower()
        self._lock = threading.RLock()
        self.calls = 0
        self.time = 0

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql' or 'sqlite')."""
        return self._dialect

    @property
    def closed(self) -> bool:
        return self.sa_connection.closed

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        with self._lock:
            self.time += elapsed
            self.calls += 1

    def prepare(self, sql: str) -> Statement:
        """Create a statement for SQL text with ``:name`` placeholders.
        """
        return Statement(self, sql)

    def run(self, clause: sa.Executable, params: dict[str, Any] | None = None
            ) -> tuple[list[dict[str, Any]], int]:
        """Execute a clause and commit.

        Returns
            Buffered rows as dicts (empty for statements without a result set)
            and the affected row count
        """
        with self._lock:
            try:
                result = self.sa_connection.execute(clause, params or {})
                rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
                rowcount = result.rowcount
                self.commit()
            except Exception:
                self.rollback()
                raise
            return rows, rowcount

    def exec(self, sql: str) -> None:
        """Execute a parameterless statement (DDL) as-is and commit.
        """
        start = time.time()
        logger.debug(f'SQL:\n{sql}')
        with self._lock:
            try:
                self.sa_connection.exec_driver_sql(sql)
                self.commit()
            except Exception:
                logger.error(f'Error with statement:\nSQL:\n{sql}')
                self.rollback()
                raise
            finally:
                self.addcall(time.time() - start)

    def get_table_columns(self, table: str) -> list[str]:
        """Get all column names for a table, or an empty list if it does not exist.
        """
        with self._lock:
            inspector = inspect(self.sa_connection)
            if not inspector.has_table(table):
                columns = []
            else:
                columns = [col['name'] for col in inspector.get_columns(table)]
            # The inspector opens a transaction; end it so later statements start clean
            self.commit()
            return columns

    def commit(self) -> None:
        with self._lock:
            self.sa_connection.commit()

    def rollback(self) -> None:
        with self._lock:
            self.sa_connection.rollback()

    def close(self) -> None:
        """Close the SQLAlchemy connection.
        """
        with self._lock:
            if not self.sa_connection.closed:
                self.sa_connection.close()
                logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s '
                             f'(avg: {self.time/max(1, self.calls):.3f}s per query)')


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Configure a SQLAlchemy connection with dialect-specific settings.
    """
    strategy = get_strategy(sa_connection.engine.dialect.name.lower())
    strategy.configure_connection(sa_connection.connection)


def connect(options: DatabaseOptions | dict[str, Any] | str | None = None,
            **kw: Any) -> ConnectionWrapper:
    """Connect to a database using SQLAlchemy for connection management

    Args:
        options: Can be:
                - DatabaseOptions object
                - Dictionary of options
                - Connection URL string, e.g. ``sqlite:///app.db``
                - None, with options specified as keyword arguments
        **kw: Additional keyword arguments to override options

    Returns
        ConnectionWrapper object for connecting to the database
    """
    if isinstance(options, DatabaseOptions):
        if kw:
            options = replace(options, **kw)
    elif isinstance(options, str):
        options = replace(DatabaseOptions.from_url(options), **kw)
    else:
        options = DatabaseOptions(**{**(options or {}), **kw})

    engine = get_engine_for_options(options)

    sa_connection = engine.connect()
    configure_connection(sa_connection)

    return ConnectionWrapper(sa_connection)


class DB:
    """Process-wide connection, configured once and opened on first use.

    The setters only take effect before the first ``get_instance()`` call;
    after that the connection is fixed for the lifetime of the process
    (or until ``reset()``).
    """

    _instance: ConnectionWrapper | None = None
    _dsn: str | None = None
    _username: str | None = None
    _password: str | None = None
    _lock = threading.RLock()

    def __init__(self) -> None:
        raise TypeError('DB is a process-wide singleton; use DB.get_instance()')

    @classmethod
    def _set(cls, attr: str, value: str) -> None:
        with cls._lock:
            if cls._instance is not None:
                logger.warning(f'Ignoring {attr.lstrip("_")} change: the connection is already open')
                return
            setattr(cls, attr, value)

    @classmethod
    def set_dsn(cls, value: str) -> None:
        cls._set('_dsn', value)

    @classmethod
    def set_username(cls, value: str) -> None:
        cls._set('_username', value)

    @classmethod
    def set_password(cls, value: str) -> None:
        cls._set('_password', value)

    @classmethod
    def get_instance(cls) -> ConnectionWrapper:
        """Return the shared connection, opening it on first use.

        Raises
            ValueError: If no DSN has been configured
        """
        with cls._lock:
            if cls._instance is None:
                if not cls._dsn:
                    raise ValueError('No DSN configured; call DB.set_dsn() first')
                options = DatabaseOptions.from_url(
                    cls._dsn, username=cls._username, password=cls._password)
                cls._instance = connect(options)
                logger.debug(f'Opened process-wide {options.drivername} connection')
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Close the shared connection and forget the configuration.
        """
        with cls._lock:
            if cls._instance is not None:
                cls._instance.close()
            cls._instance = None
            cls._dsn = cls._username = cls._password = None
