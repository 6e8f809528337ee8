"""
Mapper-specific exception classes.
"""
import sqlite3

import psycopg
import sqlalchemy.exc


class MapperError(Exception):
    """Base class for all sqlrecord errors.
    """


class UnregisteredTypeError(MapperError, LookupError):
    """Native type has no entry in the type registry.
    """


class UnknownColumnError(MapperError, AttributeError):
    """Field is not declared on the record type.
    """


class MissingIdentifierError(MapperError):
    """Operation needs a row id that the record does not have.
    """


class FormatError(MapperError, ValueError):
    """Stored value does not match the expected serialized format.
    """


# Errors raised by the store are propagated as-is; these groups exist so
# callers can catch them without importing each driver.
StoreError = (
    sqlalchemy.exc.SQLAlchemyError,
    psycopg.Error,
    sqlite3.Error,
    )

IntegrityError = (
    sqlalchemy.exc.IntegrityError,
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

OperationalError = (
    sqlalchemy.exc.OperationalError,
    psycopg.OperationalError,
    sqlite3.OperationalError,
    )
