"""
Type registry for native record field types.

Each entry maps a native type name (the ``__name__`` of the annotation,
e.g. ``str`` or ``datetime``) to:

1. The relational column type used in DDL
2. A serializer applied to values before they are bound
3. A deserializer applied to raw values read back from the store

Serializers default to identity. The registry is process-wide state;
entries are only ever added through ``add`` and removed through ``remove``.
"""
import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlrecord.exceptions import FormatError, UnregisteredTypeError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def identity(value: Any) -> Any:
    return value


@dataclass(frozen=True, slots=True)
class TypeEntry:
    """Registry entry for one native type."""
    sql_type: str
    serialize: Callable[[Any], Any] = identity
    deserialize: Callable[[Any], Any] = identity


def serialize_datetime(value: datetime.datetime) -> str:
    """Format a datetime as ``YYYY-MM-DD HH:MM:SS``."""
    return value.strftime(TIMESTAMP_FORMAT)


def deserialize_datetime(value: Any) -> datetime.datetime:
    """Parse a ``YYYY-MM-DD HH:MM:SS`` string back into a datetime.

    Drivers that already return datetime objects (psycopg) are passed
    through, truncated to whole seconds like the serialized form.

    Raises
        FormatError: If the value is not in the exact expected format
    """
    if isinstance(value, datetime.datetime):
        return value.replace(microsecond=0)
    if isinstance(value, bytes):
        value = value.decode()
    try:
        return datetime.datetime.strptime(value, TIMESTAMP_FORMAT)
    except (TypeError, ValueError) as err:
        raise FormatError(f'Expected timestamp in {TIMESTAMP_FORMAT!r} format, got {value!r}') from err


class TypeRegistry:
    """Registry mapping native type names to column types and converters.
    """

    _instance = None

    @classmethod
    def get_instance(cls) -> 'TypeRegistry':
        """Get singleton instance.
        """
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self) -> None:
        self._types: dict[str, TypeEntry] = {}
        self.add_defaults()

    def add_defaults(self) -> None:
        """Register the built-in native types.
        """
        self.add('str', 'TEXT')
        self.add('int', 'INTEGER')
        self.add('float', 'FLOAT')
        self.add('bool', 'BOOLEAN')
        self.add('datetime', 'TIMESTAMP', serialize_datetime, deserialize_datetime)

    def add(self, name: str, sql_type: str,
            serialize: Callable[[Any], Any] | None = None,
            deserialize: Callable[[Any], Any] | None = None) -> None:
        """Register or overwrite a native type.

        Args:
            name: Native type name, as reported by the annotation's ``__name__``
            sql_type: Column type emitted in DDL
            serialize: Value -> storable conversion, identity when omitted
            deserialize: Storable -> value conversion, identity when omitted
        """
        if name in self._types:
            logger.debug(f'Overwriting registered type {name}')
        self._types[name] = TypeEntry(
            sql_type=sql_type,
            serialize=serialize or identity,
            deserialize=deserialize or identity,
            )

    def remove(self, name: str) -> None:
        """Remove a native type, ignoring names that are not registered.
        """
        self._types.pop(name, None)

    def get(self, name: str) -> TypeEntry:
        """Look up the entry for a native type.

        Raises
            UnregisteredTypeError: If no entry exists for the name
        """
        try:
            return self._types[name]
        except KeyError:
            raise UnregisteredTypeError(f'Type {name} is not registered') from None

    def get_sql_type(self, name: str) -> str:
        return self.get(name).sql_type

    def names(self) -> list[str]:
        return list(self._types)

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def reset(self) -> None:
        """Drop all custom entries and restore the built-ins.
        """
        self._types.clear()
        self.add_defaults()


def get_type_registry() -> TypeRegistry:
    """Get the process-wide type registry."""
    return TypeRegistry.get_instance()


def reset_type_registry() -> None:
    """Restore the process-wide registry to its built-in entries."""
    TypeRegistry.get_instance().reset()
