"""
Transactions pinned to one pooled connection.

A `Transaction` is a query target like `Database`, except that every acquire
returns the same connection and release leaves it alone, so statements run
through it share one unit of work until `commit()` or `rollback()`.

Examples
    tx = db.transaction()
    try:
        execute(tx, 'delete from account where id = ?', 1)
        execute(tx, 'insert into audit (note) values (?)', 'deleted 1')
        tx.commit()
    finally:
        tx.close()

    with db.transaction() as tx:
        execute(tx, 'update account set balance = balance - 10 where id = ?', 2)
"""
import logging
from typing import TYPE_CHECKING, Any

from miniorm.exceptions import DatabaseError, translate_errors
from miniorm.utils import get_raw_connection, release_quietly

if TYPE_CHECKING:
    from miniorm.dialect import DialectStrategy
    from miniorm.executor import StatementExecutor
    from miniorm.target import Database

__all__ = ['Transaction']

logger = logging.getLogger(__name__)


class Transaction:
    """Transactional query target.

    The connection is taken from the database on construction with
    auto-commit disabled, and handed back by `close()`. Closing does not
    commit or roll back; what happens to unfinished work is up to the
    pool's reset-on-return behaviour, so always finish with `commit()` or
    `rollback()` first. Used as a context manager it commits on success,
    rolls back on error, and closes either way.

    Not thread-safe: a transaction belongs to the thread that opened it.
    """

    def __init__(self, database: 'Database') -> None:
        self.database = database
        self.closed = False
        self._connection = database.acquire_connection()
        try:
            with translate_errors():
                database.dialect.disable_autocommit(get_raw_connection(self._connection))
        except DatabaseError:
            release_quietly(database, self._connection)
            self.closed = True
            raise
        logger.debug(f'Started transaction for connection {id(self._connection)}')

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'active'
        return f'Transaction({self.database!r}, {state})'

    @property
    def dialect(self) -> 'DialectStrategy':
        return self.database.dialect

    @property
    def statement_executor(self) -> 'StatementExecutor':
        return self.database.statement_executor

    def _check_open(self, action: str) -> None:
        if self.closed:
            raise DatabaseError(f'Cannot {action}: transaction is closed')

    def acquire_connection(self) -> Any:
        """Return the pinned connection."""
        self._check_open('acquire connection')
        return self._connection

    def release_connection(self, connection: Any) -> None:
        """The pinned connection stays checked out until `close()`."""

    def commit(self) -> None:
        self._check_open('commit')
        with translate_errors():
            self._connection.commit()
        logger.debug(f'Committed transaction for connection {id(self._connection)}')

    def rollback(self) -> None:
        self._check_open('rollback')
        with translate_errors():
            self._connection.rollback()
        logger.debug(f'Rolled back transaction for connection {id(self._connection)}')

    def close(self) -> None:
        """Return the connection to the database. Later calls do nothing."""
        if self.closed:
            return
        self.closed = True
        self.database.release_connection(self._connection)
        logger.debug(f'Closed transaction for connection {id(self._connection)}')

    def __enter__(self) -> 'Transaction':
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        try:
            if exc_type is not None:
                logger.warning('Rolling back the current transaction')
                self.rollback()
            else:
                self.commit()
        finally:
            self.close()
