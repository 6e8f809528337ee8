"""
SQL text helpers shared by the statement builder and the dialect strategies.

- `quote_identifier()` - Quote table/column names
- `named_placeholder()` - Build a ``:name`` bind placeholder
- `render_literal()` - Render a Python value as a SQL literal for DDL defaults
"""
import datetime
import re
from typing import Any

_BIND_NAME = re.compile(r'\W')


def quote_identifier(identifier: str, dialect: str = 'postgresql') -> str:
    """Safely quote database identifiers.

    Parameters
        identifier: Table or column name
        dialect: Database dialect

    Returns
        Quoted identifier

    Raises
        ValueError: If dialect is unsupported
    """
    if dialect in {'postgresql', 'sqlite'}:
        return '"' + identifier.replace('"', '""') + '"'

    raise ValueError(f'Unknown dialect: {dialect}')


def named_placeholder(column: str, prefix: str = 'val_') -> tuple[str, str]:
    """Return ``(bind name, placeholder text)`` for a column.

    Characters that are not valid in a bind name are replaced with ``_``.
    """
    name = prefix + _BIND_NAME.sub('_', column)
    return name, f':{name}'


def render_literal(value: Any) -> str:
    """Render a serialized value as a SQL literal.
    """
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, int | float):
        return repr(value)
    if isinstance(value, datetime.datetime | datetime.date):
        value = value.isoformat(sep=' ') if isinstance(value, datetime.datetime) else value.isoformat()
    return "'" + str(value).replace("'", "''") + "'"
