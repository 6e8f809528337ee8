"""
Record base class and per-type field descriptor tables.

A record type is a ``Record`` subclass with annotated attributes:

    class User(Record):
        username: str = column(unique=True)
        password: str
        nickname: str | None
        karma: int = 0

Each subclass gets a field table the first time it is used: one
``FieldSpec`` per annotated attribute, built from ``typing.get_type_hints``
so forward references to other record types resolve. Annotated class
attributes are replaced by ``FieldDescriptor`` objects that read and write
the instance's value mapping. A field missing from that mapping is unset,
which is distinct from a field set to ``None``.
"""
import datetime
import logging
import types
import typing
from dataclasses import dataclass
from typing import Any, ClassVar

from sqlrecord.exceptions import UnknownColumnError

logger = logging.getLogger(__name__)

BASE_COLUMNS = ('id', 'created_at', 'updated_at', 'deleted_at')


class _Missing:

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True, slots=True)
class ColumnOptions:
    """Per-field options declared with ``column()``."""
    default: Any = MISSING
    unique: bool = False


def column(default: Any = MISSING, unique: bool = False) -> Any:
    """Declare a column default and/or a unique constraint for a field.
    """
    return ColumnOptions(default=default, unique=unique)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Field metadata resolved once per record type."""
    name: str
    type_name: str
    reference: type['Record'] | None = None
    nullable: bool = False
    default: Any = MISSING
    unique: bool = False

    @property
    def is_reference(self) -> bool:
        return self.reference is not None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


class FieldDescriptor:
    """Data descriptor mapping attribute access onto the value mapping.
    """

    def __init__(self, name: str, options: ColumnOptions) -> None:
        self.name = name
        self.options = options

    def __get__(self, obj: 'Record | None', owner: type | None = None) -> Any:
        if obj is None:
            return self
        try:
            return obj._values[self.name]
        except KeyError:
            raise AttributeError(
                f'{type(obj).__name__}.{self.name} is not initialized') from None

    def __set__(self, obj: 'Record', value: Any) -> None:
        obj._values[self.name] = value

    def __delete__(self, obj: 'Record') -> None:
        obj._values.pop(self.name, None)


def _unwrap_optional(hint: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``."""
    if typing.get_origin(hint) in {typing.Union, types.UnionType}:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        nullable = len(args) != len(typing.get_args(hint))
        if len(args) == 1:
            return args[0], nullable
        raise TypeError(f'Unsupported union annotation {hint!r}')
    return hint, False


def _declared_options(cls: type, name: str) -> ColumnOptions:
    """Find the options for a field on the nearest class that declares it."""
    for klass in cls.__mro__:
        if name not in klass.__dict__:
            continue
        raw = klass.__dict__[name]
        if isinstance(raw, FieldDescriptor):
            return raw.options
        if isinstance(raw, ColumnOptions):
            return raw
        return ColumnOptions(default=raw)
    return ColumnOptions()


def _build_fields(cls: type['Record']) -> dict[str, FieldSpec]:
    """Resolve annotations into the ordered field table for ``cls``.

    ``get_type_hints`` walks the MRO base-first, so the reserved columns
    come before the fields declared by subclasses.
    """
    fields: dict[str, FieldSpec] = {}
    for name, hint in typing.get_type_hints(cls).items():
        if name.startswith('_') or typing.get_origin(hint) is ClassVar:
            continue
        field_type, nullable = _unwrap_optional(hint)
        options = _declared_options(cls, name)
        reference = None
        if isinstance(field_type, type) and issubclass(field_type, Record):
            reference = field_type
        type_name = getattr(field_type, '__name__', str(field_type))
        fields[name] = FieldSpec(
            name=name,
            type_name=type_name,
            reference=reference,
            nullable=nullable,
            default=options.default,
            unique=options.unique,
            )
        setattr(cls, name, FieldDescriptor(name, options))
    logger.debug(f'Built field table for {cls.__name__}: {list(fields)}')
    return fields


class Record:
    """Base class for record types.

    Supplies the reserved ``id``, ``created_at``, ``updated_at`` and
    ``deleted_at`` fields. Keyword arguments to the constructor initialize
    the named fields; everything else starts unset.
    """

    id: int
    created_at: datetime.datetime
    updated_at: datetime.datetime
    deleted_at: datetime.datetime

    def __init__(self, **values: Any) -> None:
        object.__setattr__(self, '_values', {})
        fields = type(self).record_fields()
        for name, value in values.items():
            if name not in fields:
                raise UnknownColumnError(
                    f'Column {name} not present in table {type(self).__name__}')
            setattr(self, name, value)

    @classmethod
    def record_fields(cls) -> dict[str, FieldSpec]:
        """Return the field table, building it on first use."""
        fields = cls.__dict__.get('_record_fields')
        if fields is None:
            fields = _build_fields(cls)
            cls._record_fields = fields
        return fields

    @classmethod
    def table_name(cls) -> str:
        return cls.__dict__.get('__tablename__') or cls.__name__.lower()

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith('_') and name not in type(self).record_fields():
            raise UnknownColumnError(
                f'Column {name} not present in table {type(self).__name__}')
        object.__setattr__(self, name, value)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._values == other._values

    __hash__ = None

    def __repr__(self) -> str:
        values = ', '.join(f'{k}={v!r}' for k, v in self._values.items())
        return f'{type(self).__name__}({values})'

    def to_dict(self) -> dict[str, Any]:
        """Initialized fields and their values, in declaration order."""
        return {name: self._values[name]
                for name in type(self).record_fields() if name in self._values}

    # Active-record shortcuts through the process-wide mapper.

    @classmethod
    def register(cls) -> None:
        _default_mapper().register(cls)

    def create(self) -> int:
        return _default_mapper().create(self)

    def update(self) -> int:
        return _default_mapper().update(self)

    def delete(self, soft: bool = True) -> int:
        return _default_mapper().delete(self, soft=soft)

    def fetch(self) -> bool:
        return _default_mapper().fetch(self)

    def fetch_all(self) -> list['Record']:
        return _default_mapper().fetch_all(self)

    def clear(self) -> None:
        """Unset every declared field. Does not touch the store."""
        for name in type(self).record_fields():
            delattr(self, name)


def _default_mapper():
    from sqlrecord.mapper import get_default_mapper
    return get_default_mapper()
