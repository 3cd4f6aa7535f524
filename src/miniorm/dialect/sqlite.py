"""
SQLite-specific strategy implementation.

This module implements the DialectStrategy interface for the stdlib sqlite3
driver. It handles SQLite's particulars:
- `?` placeholders
- Auto-commit through `isolation_level`
- Generated keys from `cursor.lastrowid` (or an explicit RETURNING clause)
- Date, datetime and decimal adapters the driver lacks
- A single shared connection for in-memory databases
"""
import datetime
import decimal
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

import dateutil.parser
import sqlalchemy as sa
from miniorm.dialect.base import DialectStrategy, GeneratedKeys, cursor_columns
from miniorm.dialect.base import register_strategy
from miniorm.sql import has_returning
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from miniorm.options import DatabaseOptions

logger = logging.getLogger(__name__)

ROWID_COLUMN = 'rowid'


def convert_date(val: bytes) -> datetime.date:
    """Convert ISO 8601 date string to date object."""
    return dateutil.parser.isoparse(val.decode()).date()


def convert_datetime(val: bytes) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object."""
    return dateutil.parser.isoparse(val.decode())


def register_type_adapters() -> None:
    """Register sqlite3 adapters and converters.

    The sqlite3 registry is module-global, so this only needs to run once,
    but repeating it is harmless.
    """
    # Adapters (Python -> SQLite)
    sqlite3.register_adapter(datetime.datetime, lambda v: v.isoformat(' '))
    sqlite3.register_adapter(datetime.date, lambda v: v.isoformat())
    sqlite3.register_adapter(decimal.Decimal, str)

    # Converters (SQLite -> Python), keyed by declared column type
    sqlite3.register_converter('date', convert_date)
    sqlite3.register_converter('datetime', convert_datetime)
    sqlite3.register_converter('timestamp', convert_datetime)


def is_memory_database(database: str | None) -> bool:
    return database in {None, '', ':memory:'}


@register_strategy('sqlite')
class SQLiteStrategy(DialectStrategy):
    """SQLite-specific configuration.
    """

    placeholder = '?'

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite.

        An in-memory database only exists inside one connection, so every
        checkout must get that same connection.
        """
        kwargs: dict[str, Any] = {
            'connect_args': {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
                'check_same_thread': False,
            }
        }
        if is_memory_database(options.database):
            kwargs['poolclass'] = StaticPool
        return kwargs

    def configure_connection(self, raw_conn: Any) -> None:
        """Configure connection settings for SQLite.
        """
        register_type_adapters()
        logger.debug('Registered SQLite type adapters')
        raw_conn.execute('PRAGMA foreign_keys = ON')

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for SQLite.
        """
        raw_conn.isolation_level = None

    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode for SQLite.
        """
        raw_conn.isolation_level = 'DEFERRED'

    def prepare_generated_keys(self, sql: str, column: str) -> str:
        """SQLite reports the rowid of the last insert, so `sql` is unchanged.
        """
        return sql

    def fetch_generated_keys(self, cursor: Any, sql: str) -> GeneratedKeys:
        """Read the RETURNING row if the insert has one, else `lastrowid`.
        """
        if has_returning(sql):
            return GeneratedKeys(cursor_columns(cursor), cursor.fetchone())
        if cursor.lastrowid is None:
            return GeneratedKeys([ROWID_COLUMN], None)
        return GeneratedKeys([ROWID_COLUMN], (cursor.lastrowid,))

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']
