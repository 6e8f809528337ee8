"""
Schema reflection over record types and DDL generation for ``register``.

The reflector answers per-field questions from the field table each
``Record`` subclass builds once (see ``sqlrecord.record``):

- ``columns`` / ``initialized_columns`` for field enumeration
- ``type_of`` / ``is_reference`` for native-vs-reference dispatch
- ``is_nullable`` / ``has_default`` / ``default_value`` / ``is_unique``

``build_register_ddl`` turns the same metadata into additive DDL: one
``CREATE TABLE IF NOT EXISTS`` with the reserved columns, followed by one
statement group per user column that is not yet present in the table.
"""
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqlrecord.exceptions import UnknownColumnError
from sqlrecord.record import BASE_COLUMNS, FieldSpec, Record

if TYPE_CHECKING:
    from sqlrecord.strategy import DatabaseStrategy
    from sqlrecord.types import TypeRegistry

logger = logging.getLogger(__name__)


def table_name(record_type: type[Record]) -> str:
    return record_type.table_name()


def get_field(record_type: type[Record], column: str) -> FieldSpec:
    """Look up the field spec for a column.

    Raises
        UnknownColumnError: If the column is not declared on the record type
    """
    try:
        return record_type.record_fields()[column]
    except KeyError:
        raise UnknownColumnError(
            f'Column {column} not present in table {record_type.__name__}') from None


def columns(record_type: type[Record]) -> tuple[str, ...]:
    """All declared columns in declaration order, reserved columns first."""
    return tuple(record_type.record_fields())


def initialized_columns(instance: Record) -> tuple[str, ...]:
    """Columns explicitly set on the instance, in declaration order."""
    return tuple(instance.to_dict())


def type_of(record_type: type[Record], column: str) -> str | type[Record]:
    """Native type name, or the referenced record type for reference fields.
    """
    spec = get_field(record_type, column)
    return spec.reference if spec.is_reference else spec.type_name


def is_reference(record_type: type[Record], column: str) -> bool:
    return get_field(record_type, column).is_reference


def is_nullable(record_type: type[Record], column: str) -> bool:
    return get_field(record_type, column).nullable


def has_default(record_type: type[Record], column: str) -> bool:
    return get_field(record_type, column).has_default


def default_value(record_type: type[Record], column: str) -> Any:
    """Declared default of a column.

    Raises
        LookupError: If the column has no declared default
    """
    spec = get_field(record_type, column)
    if not spec.has_default:
        raise LookupError(f'Column {column} of {record_type.__name__} has no default')
    return spec.default


def is_unique(record_type: type[Record], column: str) -> bool:
    return get_field(record_type, column).unique


def build_register_ddl(record_type: type[Record], registry: 'TypeRegistry',
                       strategy: 'DatabaseStrategy',
                       existing_columns: Iterable[str] = ()) -> list[str]:
    """Generate the ordered DDL statements that bring a table up to date.

    Args:
        record_type: Record type to register
        registry: Type registry resolving native column types
        strategy: Dialect strategy rendering the statements
        existing_columns: Columns already present in the table; these are skipped

    Returns
        DDL statements in execution order
    """
    table = table_name(record_type)
    existing = {c.lower() for c in existing_columns}
    statements = [strategy.create_table_sql(table)]

    for column in columns(record_type):
        if column in BASE_COLUMNS:
            continue
        if column.lower() in existing:
            logger.debug(f'Column {table}.{column} already exists, skipping')
            continue

        spec = get_field(record_type, column)
        if spec.is_reference:
            ref_table = table_name(spec.reference)
            statements.extend(strategy.add_reference_sql(table, column, ref_table))
            continue

        entry = registry.get(spec.type_name)
        default_literal = None
        if spec.has_default:
            default = spec.default
            if default is not None:
                default = entry.serialize(default)
            default_literal = strategy.render_literal(default)
        statements.extend(strategy.add_column_sql(
            table, column, entry.sql_type,
            nullable=spec.nullable,
            default_literal=default_literal,
            ))
        if spec.unique:
            statements.append(strategy.add_unique_sql(table, column))

    return statements
