"""
Statement generation for record lifecycle operations.

Every builder takes a record instance and returns a `BoundStatement`: SQL
text with ``:name`` placeholders plus the ordered ``(name, value)``
bindings. Only initialized fields take part. Binding rules:

- reference fields bind the referenced instance's ``id``
- native fields bind the registry serializer's output
- fields initialized to ``None`` bind ``None`` unserialized, and render as
  ``IS NULL`` in WHERE clauses
"""
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlrecord.exceptions import MissingIdentifierError
from sqlrecord.record import Record
from sqlrecord.schema import get_field, initialized_columns, table_name
from sqlrecord.sql import named_placeholder, quote_identifier
from sqlrecord.types import TypeRegistry, get_type_registry

logger = logging.getLogger(__name__)

# Columns the store assigns or that only update/delete may set
INSERT_EXCLUDED = frozenset({'id', 'updated_at', 'deleted_at'})


@dataclass(slots=True)
class BoundStatement:
    """SQL text and its ordered parameter bindings."""
    sql: str
    params: list[tuple[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return dict(self.params)


def reference_id(instance: Record, column: str) -> Any:
    """Return the ``id`` of the record held in a reference field.

    Raises
        TypeError: If the field holds something other than a record
        MissingIdentifierError: If the referenced record has no ``id``
    """
    ref = getattr(instance, column)
    if not isinstance(ref, Record):
        raise TypeError(
            f'{type(instance).__name__}.{column} must hold a '
            f'{get_field(type(instance), column).reference.__name__} record, '
            f'got {type(ref).__name__}')
    try:
        return ref.id
    except AttributeError:
        raise MissingIdentifierError(
            f'{type(instance).__name__}.{column} references a '
            f'{type(ref).__name__} without an id') from None


def bind_value(instance: Record, column: str, registry: TypeRegistry | None = None) -> Any:
    """Convert an initialized field to the value bound for its column.
    """
    registry = registry or get_type_registry()
    value = getattr(instance, column)
    if value is None:
        return None
    spec = get_field(type(instance), column)
    if spec.is_reference:
        return reference_id(instance, column)
    return registry.get(spec.type_name).serialize(value)


def _require_id(instance: Record, operation: str) -> Any:
    row_id = instance.to_dict().get('id')
    if row_id is None:
        raise MissingIdentifierError(
            f'Must know {type(instance).__name__} id to {operation} row')
    return row_id


def _where_predicates(instance: Record, columns: Iterable[str],
                      registry: TypeRegistry, dialect: str
                      ) -> tuple[list[str], list[tuple[str, Any]]]:
    """Equality predicates over the given columns."""
    clauses: list[str] = []
    params: list[tuple[str, Any]] = []
    for column in columns:
        value = bind_value(instance, column, registry)
        quoted = quote_identifier(column, dialect)
        if value is None:
            clauses.append(f'{quoted} IS NULL')
            continue
        name, placeholder = named_placeholder(column)
        clauses.append(f'{quoted} = {placeholder}')
        params.append((name, value))
    return clauses, params


def build_insert(instance: Record, registry: TypeRegistry | None = None,
                 dialect: str = 'postgresql') -> BoundStatement:
    """INSERT over the initialized fields, minus the store-managed columns.
    """
    registry = registry or get_type_registry()
    table = quote_identifier(table_name(type(instance)), dialect)
    columns = [c for c in initialized_columns(instance) if c not in INSERT_EXCLUDED]

    if not columns:
        return BoundStatement(f'INSERT INTO {table} DEFAULT VALUES')

    quoted_columns = ', '.join(quote_identifier(c, dialect) for c in columns)
    placeholders = []
    params = []
    for column in columns:
        name, placeholder = named_placeholder(column)
        placeholders.append(placeholder)
        params.append((name, bind_value(instance, column, registry)))

    sql = f'INSERT INTO {table} ({quoted_columns}) VALUES ({", ".join(placeholders)})'
    return BoundStatement(sql, params)


def build_update(instance: Record, registry: TypeRegistry | None = None,
                 dialect: str = 'postgresql') -> BoundStatement:
    """UPDATE every initialized field of the row identified by ``id``.

    Raises
        MissingIdentifierError: If ``id`` is not initialized
        ValueError: If no field besides ``id`` is initialized
    """
    registry = registry or get_type_registry()
    row_id = _require_id(instance, 'update')
    table = quote_identifier(table_name(type(instance)), dialect)

    assignments = []
    params = []
    for column in initialized_columns(instance):
        if column == 'id':
            continue
        name, placeholder = named_placeholder(column)
        assignments.append(f'{quote_identifier(column, dialect)} = {placeholder}')
        params.append((name, bind_value(instance, column, registry)))

    if not assignments:
        raise ValueError(f'Nothing to update on {type(instance).__name__} {row_id}')

    params.append(('id', row_id))
    sql = (f'UPDATE {table} SET {", ".join(assignments)} '
           f'WHERE {quote_identifier("id", dialect)} = :id')
    return BoundStatement(sql, params)


def build_delete(instance: Record, dialect: str = 'postgresql') -> BoundStatement:
    """DELETE the row identified by ``id``.

    Raises
        MissingIdentifierError: If ``id`` is not initialized
    """
    row_id = _require_id(instance, 'delete')
    table = quote_identifier(table_name(type(instance)), dialect)
    sql = f'DELETE FROM {table} WHERE {quote_identifier("id", dialect)} = :id'
    return BoundStatement(sql, [('id', row_id)])


def build_select_one(instance: Record, registry: TypeRegistry | None = None,
                     dialect: str = 'postgresql') -> BoundStatement:
    """SELECT matching every initialized field, excluding soft-deleted rows.

    With no initialized fields only the ``deleted_at`` filter remains, so
    any live row may match.
    """
    registry = registry or get_type_registry()
    table = quote_identifier(table_name(type(instance)), dialect)
    clauses, params = _where_predicates(
        instance, initialized_columns(instance), registry, dialect)
    clauses.append(f'{quote_identifier("deleted_at", dialect)} IS NULL')
    sql = f'SELECT * FROM {table} WHERE {" AND ".join(clauses)}'
    return BoundStatement(sql, params)


def build_select_all(instance: Record, registry: TypeRegistry | None = None,
                     dialect: str = 'postgresql') -> BoundStatement:
    """SELECT matching every initialized field.

    Unlike `build_select_one` there is no ``deleted_at`` filter, and with
    no initialized fields the statement selects the whole table.
    """
    registry = registry or get_type_registry()
    table = quote_identifier(table_name(type(instance)), dialect)
    columns = initialized_columns(instance)
    if not columns:
        return BoundStatement(f'SELECT * FROM {table}')
    clauses, params = _where_predicates(instance, columns, registry, dialect)
    sql = f'SELECT * FROM {table} WHERE {" AND ".join(clauses)}'
    return BoundStatement(sql, params)
