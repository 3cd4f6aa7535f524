"""
Driver statement wrapper.

DB-API 2.0 has no prepared-statement object, so `Statement` plays that role
over one cursor: parameters are bound by 0-based position, the SQL is
standardized for the dialect once, and the same statement can be executed
repeatedly with different bindings.
"""
import enum
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from miniorm.dialect import DialectStrategy, GeneratedKeys
from miniorm.dialect.base import cursor_columns
from miniorm.exceptions import DatabaseError, translate_errors
from miniorm.sql import cast_placeholders, count_placeholders

logger = logging.getLogger(__name__)


class SqlType(enum.Enum):
    """SQL type markers for typed nulls."""
    INTEGER = 'INTEGER'


@dataclass(frozen=True, slots=True)
class TypedNull:
    sql_type: SqlType


def dumpsql(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator for logging SQL statements, parameters and timing."""
    @wraps(func)
    def wrapper(self: 'Statement', *args: Any, **kwargs: Any) -> Any:
        start = time.time()
        sql, params = self.render()
        logger.debug(f'SQL:\n{sql}\nargs: {params}')
        try:
            return func(self, sql, params, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{sql}\nargs: {params}')
            raise
        finally:
            logger.debug(f'Query time: {time.time() - start:.4f}s')
    return wrapper


class Statement:
    """A parameterized statement bound to one cursor.

    Args:
        connection: DBAPI connection (or pool proxy) to open the cursor on
        sql: Statement text with `%s` or `?` placeholders
        dialect: Strategy of the target the connection came from
        generated_column: Ask the dialect to report this generated key
    """

    def __init__(self, connection: Any, sql: str, dialect: DialectStrategy,
                 generated_column: str | None = None) -> None:
        self.dialect = dialect
        self.generated_column = generated_column
        sql = dialect.standardize_sql(sql)
        if generated_column is not None:
            sql = dialect.prepare_generated_keys(sql, generated_column)
        self.sql = sql
        self._placeholder_count = count_placeholders(sql)
        self.closed = False
        self._params: dict[int, Any] = {}
        self._executed_sql: str | None = None
        with translate_errors():
            self.cursor = connection.cursor()

    def __repr__(self) -> str:
        return f'Statement({self.sql!r})'

    def set_null(self, position: int, sql_type: SqlType) -> None:
        """Bind a null carrying an explicit SQL type."""
        self._params[position] = TypedNull(sql_type)

    def set_object(self, position: int, value: Any) -> None:
        """Bind a driver-native value (None binds an untyped null)."""
        self._params[position] = value

    def clear_parameters(self) -> None:
        self._params.clear()

    def render(self) -> tuple[str, tuple | None]:
        """Return the SQL and parameter tuple as they will reach the driver.

        Typed nulls are sent as None with their placeholder wrapped in a CAST.
        """
        count = max(self._placeholder_count, max(self._params) + 1 if self._params else 0)
        missing = [i for i in range(count) if i not in self._params]
        if missing:
            raise DatabaseError(f'Parameter {missing[0]} is not bound')
        if not count:
            return self.sql, None

        values = [self._params[i] for i in range(count)]
        casts = {i: v.sql_type.value for i, v in enumerate(values) if isinstance(v, TypedNull)}
        sql = cast_placeholders(self.sql, casts)
        params = tuple(None if isinstance(v, TypedNull) else v for v in values)
        return sql, params

    @dumpsql
    def _execute(self, sql: str, params: tuple | None) -> None:
        with translate_errors():
            if params is None:
                self.cursor.execute(sql)
            else:
                self.cursor.execute(sql, params)
        self._executed_sql = sql

    def execute_query(self) -> None:
        """Execute a statement that produces rows."""
        self._execute()

    def execute_update(self) -> int:
        """Execute a statement and return the affected row count."""
        self._execute()
        return self.cursor.rowcount

    @property
    def column_names(self) -> list[str]:
        """Column names of the current result, in cursor order."""
        return cursor_columns(self.cursor)

    def fetchmany(self, size: int) -> list[tuple]:
        with translate_errors():
            return self.cursor.fetchmany(size)

    def generated_keys(self) -> GeneratedKeys:
        """Generated-key row of the last execution."""
        if self._executed_sql is None:
            raise DatabaseError('Statement has not been executed')
        with translate_errors():
            return self.dialect.fetch_generated_keys(self.cursor, self._executed_sql)

    def close(self) -> None:
        """Close the cursor; errors are logged and discarded."""
        if self.closed:
            return
        self.closed = True
        try:
            self.cursor.close()
        except Exception as e:
            logger.debug(f'Error closing cursor: {e}')
