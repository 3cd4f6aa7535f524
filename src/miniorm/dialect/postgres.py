"""
PostgreSQL-specific strategy implementation.

Uses psycopg 3 through SQLAlchemy's ``postgresql+psycopg`` driver. Generated
keys are read with a ``RETURNING`` clause appended to the insert.
"""
import logging
import re
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from miniorm.dialect.base import DialectStrategy, GeneratedKeys, cursor_columns
from miniorm.dialect.base import register_strategy
from miniorm.sql import has_returning, strip_trailing_comments

if TYPE_CHECKING:
    from miniorm.options import DatabaseOptions

logger = logging.getLogger(__name__)

_SIMPLE_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


@register_strategy('postgresql')
class PostgresStrategy(DialectStrategy):
    """PostgreSQL-specific configuration.
    """

    placeholder = '%s'

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname

        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        return {}

    def configure_connection(self, raw_conn: Any) -> None:
        """PostgreSQL connections need no per-connection setup.
        """

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for PostgreSQL.
        """
        raw_conn.autocommit = True

    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode for PostgreSQL.
        """
        raw_conn.autocommit = False

    def prepare_generated_keys(self, sql: str, column: str) -> str:
        """Append ``RETURNING <column>`` unless the insert already has one.
        """
        if has_returning(sql):
            return sql
        if not _SIMPLE_IDENTIFIER.match(column):
            column = self.quote_identifier(column)
        logger.debug(f'Appending RETURNING {column} to insert')
        sql = strip_trailing_comments(sql).rstrip().rstrip(';')
        return f'{sql} RETURNING {column}'

    def fetch_generated_keys(self, cursor: Any, sql: str) -> GeneratedKeys:
        """Read the row produced by the RETURNING clause.
        """
        return GeneratedKeys(cursor_columns(cursor), cursor.fetchone())

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database']
