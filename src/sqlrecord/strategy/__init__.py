"""
Dialect strategy lookup.

Strategies register themselves by dialect name on import; the connection
layer and the mapper resolve them here, either from a dialect name or from
any connection object exposing a ``dialect`` attribute.
"""
from functools import lru_cache

from sqlrecord.strategy.base import _STRATEGY_REGISTRY
from sqlrecord.strategy.base import DatabaseStrategy as DatabaseStrategy
from sqlrecord.strategy.base import register_strategy as register_strategy
from sqlrecord.strategy.postgres import PostgresStrategy as PostgresStrategy
from sqlrecord.strategy.sqlite import SQLiteStrategy as SQLiteStrategy


def get_strategy_class(dialect: str) -> type[DatabaseStrategy]:
    """Strategy class registered for a dialect.

    Raises
        ValueError: If no strategy is registered for the dialect
    """
    try:
        return _STRATEGY_REGISTRY[dialect]
    except KeyError:
        raise ValueError(f'Unsupported dialect: {dialect}. '
                         f'Available: {get_available_dialects()}') from None


@lru_cache(maxsize=8)
def get_strategy(dialect: str) -> DatabaseStrategy:
    """Shared strategy instance for a dialect name."""
    return get_strategy_class(dialect)()


def get_connection_strategy(cn) -> DatabaseStrategy:
    """Strategy for a connection (anything with a ``dialect`` name)."""
    return get_strategy(cn.dialect)


def get_available_dialects() -> list[str]:
    return list(_STRATEGY_REGISTRY)


def is_supported_dialect(dialect: str) -> bool:
    return dialect in _STRATEGY_REGISTRY
