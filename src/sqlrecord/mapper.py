"""
Record lifecycle operations.

The `Mapper` runs ``register``, ``create``, ``fetch``, ``fetch_all``,
``update``, ``delete`` and ``clear`` against a connection offering the
statement capability (``prepare``/``exec``/``get_table_columns``/
``dialect``, see `sqlrecord.connection.ConnectionWrapper`) and a type
registry. Both are injected, so tests can pass fakes; the module-level
`get_default_mapper` binds the process-wide `DB` connection and registry.

Result rows are rehydrated column by column: reference columns become a
new instance of the referenced type, fetched by ``id`` (one query per
reference); native columns go through the registry deserializer.
"""
import datetime
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from sqlrecord.builder import BoundStatement, build_delete, build_insert
from sqlrecord.builder import build_select_all, build_select_one, build_update
from sqlrecord.connection import DB
from sqlrecord.exceptions import MissingIdentifierError
from sqlrecord.record import Record
from sqlrecord.schema import build_register_ddl, get_field, table_name
from sqlrecord.strategy import get_connection_strategy
from sqlrecord.types import TypeRegistry, get_type_registry

if TYPE_CHECKING:
    from sqlrecord.connection import ConnectionWrapper
    from sqlrecord.statement import Statement

logger = logging.getLogger(__name__)

R = TypeVar('R', bound=Record)


def now() -> datetime.datetime:
    """Current local time at the precision the store keeps."""
    return datetime.datetime.now().replace(microsecond=0)


class Mapper:
    """Maps record instances to rows through an injected connection.
    """

    def __init__(self, connection: 'ConnectionWrapper',
                 registry: TypeRegistry | None = None) -> None:
        self.connection = connection
        self.registry = registry or get_type_registry()

    @property
    def dialect(self) -> str:
        return self.connection.dialect

    def _execute(self, bound: BoundStatement) -> 'Statement':
        stmt = self.connection.prepare(bound.sql)
        for name, value in bound.params:
            stmt.bind(name, value)
        stmt.execute()
        return stmt

    def register(self, record_type: type[Record]) -> None:
        """Create the table and add any columns it is missing.

        Statements run in declaration order; the first failure stops the
        sequence and propagates, leaving earlier statements applied.
        """
        table = table_name(record_type)
        existing = self.connection.get_table_columns(table)
        statements = build_register_ddl(
            record_type, self.registry, get_connection_strategy(self.connection), existing)
        for sql in statements:
            self.connection.exec(sql)
        logger.debug(f'Registered {record_type.__name__} as {table} ({len(statements)} statements)')

    def create(self, instance: Record) -> int:
        """Insert the instance as a new row.

        Sets ``created_at``. The generated ``id`` is not written back to the
        instance; fetch it again to learn it.
        """
        instance.created_at = now()
        stmt = self._execute(build_insert(instance, self.registry, self.dialect))
        return stmt.rowcount

    def update(self, instance: Record) -> int:
        """Write every initialized field to the row identified by ``id``.

        Raises
            MissingIdentifierError: If ``id`` is not initialized
        """
        if instance.to_dict().get('id') is None:
            raise MissingIdentifierError(f'Must know {type(instance).__name__} id to update row')
        instance.updated_at = now()
        stmt = self._execute(build_update(instance, self.registry, self.dialect))
        return stmt.rowcount

    def delete(self, instance: Record, soft: bool = True) -> int:
        """Delete the row identified by ``id``.

        A soft delete stamps ``deleted_at`` through `update`; a hard delete
        removes the row.

        Raises
            MissingIdentifierError: If ``id`` is not initialized
        """
        if instance.to_dict().get('id') is None:
            raise MissingIdentifierError(f'Must know {type(instance).__name__} id to delete row')
        if soft:
            instance.deleted_at = now()
            return self.update(instance)
        stmt = self._execute(build_delete(instance, self.dialect))
        return stmt.rowcount

    def fetch(self, instance: Record) -> bool:
        """Load the first live row matching the initialized fields into the instance.

        Returns
            False, leaving the instance untouched, when nothing matches
        """
        stmt = self._execute(build_select_one(instance, self.registry, self.dialect))
        row = stmt.fetchone()
        if row is None:
            logger.debug(f'No {type(instance).__name__} row matched {instance.to_dict()}')
            return False
        self._hydrate(instance, row)
        return True

    def fetch_all(self, instance: R) -> list[R]:
        """Load every row matching the initialized fields as new instances.

        Reference fields holding a record without an ``id`` are fetched
        first so their ``id`` can be used as the filter value.
        """
        record_type = type(instance)
        for column, value in instance.to_dict().items():
            if get_field(record_type, column).is_reference and isinstance(value, Record) \
               and value.to_dict().get('id') is None:
                self.fetch(value)

        stmt = self._execute(build_select_all(instance, self.registry, self.dialect))
        results = []
        for row in stmt.fetchall():
            obj = record_type()
            self._hydrate(obj, row)
            results.append(obj)
        return results

    def clear(self, instance: Record) -> None:
        """Unset every declared field. Does not touch the store."""
        instance.clear()

    def _hydrate(self, instance: Record, row: dict[str, Any]) -> None:
        """Assign a result row's non-null columns to the instance."""
        record_type = type(instance)
        for key, value in row.items():
            if value is None:
                continue
            spec = get_field(record_type, key)
            if spec.is_reference:
                ref = spec.reference()
                ref.id = value
                self.fetch(ref)
                setattr(instance, key, ref)
            else:
                setattr(instance, key, self.registry.get(spec.type_name).deserialize(value))


def get_default_mapper() -> Mapper:
    """Mapper over the process-wide connection and type registry."""
    return Mapper(DB.get_instance(), get_type_registry())
