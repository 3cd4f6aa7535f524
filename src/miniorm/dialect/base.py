"""
Base strategy interface for dialect-specific behaviour.

A dialect strategy is the configuration a query target exposes to the
statement executor: how nulls are bound, which placeholder the driver
expects, how auto-commit is switched, and how generated keys are read
back after an insert. SQLAlchemy owns pooling and engine creation; the
strategy only supplies the URL and engine keyword arguments.
"""
import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from miniorm.sql import quote_identifier as sql_quote_identifier
from miniorm.sql import standardize_placeholders

if TYPE_CHECKING:
    from miniorm.options import DatabaseOptions

# Registry of dialect name -> strategy class
_STRATEGY_REGISTRY: dict[str, type['DialectStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DialectStrategy):
            ...
    """
    def decorator(cls: type['DialectStrategy']) -> type['DialectStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class NullBindStrategy(enum.Enum):
    """How a null parameter is handed to the driver.

    EXPLICIT binds an integer-typed null, for drivers that reject untyped
    nulls. GENERIC binds a plain None.
    """
    EXPLICIT = 'explicit'
    GENERIC = 'generic'


@dataclass(slots=True)
class GeneratedKeys:
    """Generated-key cursor contents for one executed statement."""
    columns: list[str]
    row: tuple | None


class DialectStrategy(ABC):
    """Base class for dialect-specific configuration.
    """

    placeholder: str = '%s'
    default_null_bind_strategy: NullBindStrategy = NullBindStrategy.GENERIC

    def __init__(self, null_bind_strategy: NullBindStrategy | str | None = None) -> None:
        if null_bind_strategy is None:
            self.null_bind_strategy = self.default_null_bind_strategy
        else:
            self.null_bind_strategy = NullBindStrategy(null_bind_strategy)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(null_bind_strategy={self.null_bind_strategy.value!r})'

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL.

        Args:
            options: DatabaseOptions holding connection parameters
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return extra keyword arguments for `sqlalchemy.create_engine`.

        Args:
            options: DatabaseOptions holding connection parameters
        """

    @abstractmethod
    def configure_connection(self, raw_conn: Any) -> None:
        """Apply per-connection settings to a freshly created DBAPI connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode on a raw database connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @abstractmethod
    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode on a raw database connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @abstractmethod
    def prepare_generated_keys(self, sql: str, column: str) -> str:
        """Return `sql` rewritten so the driver reports the generated key.

        Args:
            sql: Standardized insert statement
            column: Name of the generated column
        """

    @abstractmethod
    def fetch_generated_keys(self, cursor: Any, sql: str) -> GeneratedKeys:
        """Read the generated-key row of the statement just executed.

        Args:
            cursor: The DBAPI cursor that executed `sql`
            sql: The statement as sent to the driver
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def standardize_sql(self, sql: str) -> str:
        """Rewrite positional placeholders to the driver's style.
        """
        return standardize_placeholders(sql, self.placeholder)

    def quote_identifier(self, identifier: str) -> str:
        """Quote a database identifier.
        """
        return sql_quote_identifier(identifier)


def cursor_columns(cursor: Any) -> list[str]:
    """Column names from a DBAPI cursor description."""
    if cursor.description is None:
        return []
    return [desc[0] for desc in cursor.description]
