"""
Dialect strategy factory.
"""
from miniorm.dialect.base import _STRATEGY_REGISTRY
from miniorm.dialect.base import DialectStrategy as DialectStrategy
from miniorm.dialect.base import GeneratedKeys as GeneratedKeys
from miniorm.dialect.base import NullBindStrategy as NullBindStrategy
from miniorm.dialect.base import register_strategy as register_strategy
from miniorm.dialect.postgres import PostgresStrategy as PostgresStrategy
from miniorm.dialect.sqlite import SQLiteStrategy as SQLiteStrategy


def _validate_dialect(dialect: str) -> None:
    """Raise ValueError if dialect is not registered."""
    if dialect not in _STRATEGY_REGISTRY:
        available = list(_STRATEGY_REGISTRY.keys())
        raise ValueError(f'Unsupported dialect: {dialect}. Available: {available}')


def get_strategy(dialect: str,
                 null_bind_strategy: NullBindStrategy | str | None = None) -> DialectStrategy:
    """Get a strategy instance for a dialect name.

    Parameters
        dialect: Registered dialect name ('postgresql', 'sqlite')
        null_bind_strategy: Overrides the dialect's default null binding
    """
    _validate_dialect(dialect)
    return _STRATEGY_REGISTRY[dialect](null_bind_strategy)


def get_available_dialects() -> list[str]:
    """Return list of registered dialect names."""
    return list(_STRATEGY_REGISTRY.keys())


def is_supported_dialect(dialect: str) -> bool:
    """Check if a dialect is supported."""
    return dialect in _STRATEGY_REGISTRY


def get_strategy_class(dialect: str) -> type[DialectStrategy]:
    """Get the strategy class for a dialect without instantiating."""
    _validate_dialect(dialect)
    return _STRATEGY_REGISTRY[dialect]
