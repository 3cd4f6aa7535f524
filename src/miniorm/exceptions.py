"""
Database-specific exception classes.
"""
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all miniorm errors.

    Driver failures are chained as ``__cause__``.
    """

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__


class ConnectionFailure(DatabaseError):
    """Error acquiring a database connection.
    """


class TypeConversionError(DatabaseError):
    """Error converting a value between Python and the driver.
    """


class GeneratedColumnNotFoundError(DatabaseError):
    """The requested generated column is not in the generated keys.
    """

    def __init__(self, column: str) -> None:
        super().__init__(f'Generated column {column} not found in generated keys result set')
        self.column = column


class UnexpectedNumberOfItemsError(DatabaseError):
    """A single item was expected but zero or several were found.
    """

    def __init__(self, count: int) -> None:
        super().__init__(f'Expected one item, got {count}')
        self.count = count


DriverError = (
    psycopg.Error,
    sqlite3.Error,
    sa.exc.DBAPIError,
    )

DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sa.exc.OperationalError,
    ConnectionFailure,
    )


@contextmanager
def translate_errors(error_cls: type[DatabaseError] = DatabaseError) -> Iterator[None]:
    """Re-raise driver errors as `error_cls`, keeping the original as cause.

    Connection-class driver errors are raised as `ConnectionFailure`.
    """
    try:
        yield
    except DatabaseError:
        raise
    except DriverError as err:
        if isinstance(err, DbConnectionError):
            error_cls = ConnectionFailure
        raise error_cls(str(err)) from err
