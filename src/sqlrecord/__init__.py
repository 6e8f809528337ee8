"""
Minimal object-relational mapper over SQLite and PostgreSQL.

Record types are annotated `Record` subclasses; lifecycle operations can be
called either as:
- Module functions: sqlrecord.create(user)
- Record methods: user.create()
- An explicit mapper: Mapper(connect(...)).create(user)

The module functions and record methods run on the process-wide connection
configured through `DB.set_dsn()` / `DB.set_username()` / `DB.set_password()`.
"""
__version__ = '0.1.0'

from typing import TypeVar

from sqlrecord.connection import DB, ConnectionWrapper, connect
from sqlrecord.exceptions import FormatError, IntegrityError, MapperError
from sqlrecord.exceptions import MissingIdentifierError, OperationalError
from sqlrecord.exceptions import StoreError, UnknownColumnError
from sqlrecord.exceptions import UnregisteredTypeError
from sqlrecord.mapper import Mapper, get_default_mapper
from sqlrecord.options import DatabaseOptions
from sqlrecord.record import Record, column
from sqlrecord.schema import initialized_columns
from sqlrecord.types import TypeRegistry, get_type_registry

R = TypeVar('R', bound=Record)

type_registry = get_type_registry()


def register(record_type: type[Record]) -> None:
    """Create the table for a record type and add any missing columns.
    """
    get_default_mapper().register(record_type)


def create(instance: Record) -> int:
    """Insert a record as a new row.
    """
    return get_default_mapper().create(instance)


def update(instance: Record) -> int:
    """Write a record's initialized fields to its row.
    """
    return get_default_mapper().update(instance)


def delete(instance: Record, soft: bool = True) -> int:
    """Soft-delete (default) or remove a record's row.
    """
    return get_default_mapper().delete(instance, soft=soft)


def fetch(instance: Record) -> bool:
    """Load the first live row matching the record's initialized fields.
    """
    return get_default_mapper().fetch(instance)


def fetch_all(instance: R) -> list[R]:
    """Load every row matching the record's initialized fields.
    """
    return get_default_mapper().fetch_all(instance)


def clear(instance: Record) -> None:
    """Unset every field of a record.
    """
    instance.clear()


__all__ = [
    'Record',
    'column',
    'Mapper',
    'DB',
    'connect',
    'ConnectionWrapper',
    'DatabaseOptions',
    'TypeRegistry',
    'type_registry',
    'get_type_registry',
    'initialized_columns',
    'register',
    'create',
    'update',
    'delete',
    'fetch',
    'fetch_all',
    'clear',
    'MapperError',
    'UnregisteredTypeError',
    'UnknownColumnError',
    'MissingIdentifierError',
    'FormatError',
    'StoreError',
    'IntegrityError',
    'OperationalError',
]
