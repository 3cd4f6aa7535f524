"""
Lightweight relational database access for PostgreSQL and SQLite.

Every operation takes a query target as its first argument: either a pooled
`Database` from `connect()` or a `Transaction` from `transaction()`.

    db = connect({'drivername': 'sqlite', 'database': 'app.db'})
    new_id = insert(db, 'insert into person (name) values (?)', 'Ada')
    name = select(db, 'select name from person where id = ?', new_id).scalar()

    with transaction(db) as tx:
        execute(tx, 'update person set name = ? where id = ?', 'Grace', new_id)
"""
__version__ = '0.1.0'

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from miniorm.dialect import NullBindStrategy
from miniorm.exceptions import ConnectionFailure, DatabaseError, DbConnectionError
from miniorm.exceptions import DriverError, GeneratedColumnNotFoundError
from miniorm.exceptions import TypeConversionError, UnexpectedNumberOfItemsError
from miniorm.executor import StatementExecutor
from miniorm.options import DatabaseOptions
from miniorm.params import Binary, Boolean, Double, Float, Integer, Long
from miniorm.params import Native, Null, Numeric, ParamValue, Short, Text
from miniorm.params import Timestamp, to_param
from miniorm.resultset import ResultSet
from miniorm.rows import Row
from miniorm.target import Database, QueryTarget, connect
from miniorm.transaction import Transaction


def select(target: QueryTarget, sql: str, *params: Any,
           types: Mapping[str | None, type] | None = None) -> ResultSet:
    """Execute a query and return its rows.

    Args:
        target: Database or transaction
        sql: Query text with positional placeholders
        *params: Positional parameters
        types: Column name (or None for every other column) -> requested type
    """
    rows = target.statement_executor.execute_query(target, sql, params, types)
    return ResultSet(rows)


def execute(target: QueryTarget, sql: str, *params: Any) -> None:
    """Execute a single statement that returns no rows.
    """
    target.statement_executor.execute_update(target, sql, [params])


def insert(target: QueryTarget, sql: str, *params: Any,
           generated_column: str = 'id') -> int:
    """Execute an insert and return the key generated for `generated_column`.
    """
    keys = target.statement_executor.execute_update(target, sql, [params], generated_column)
    return keys[0]


def execute_many(target: QueryTarget, sql: str, param_sets: Iterable[Sequence[Any]],
                 generated_column: str | None = None) -> list[int]:
    """Execute one statement once per parameter set.

    Returns
        Generated keys in parameter-set order, empty without `generated_column`
    """
    return target.statement_executor.execute_update(target, sql, param_sets, generated_column)


def transaction(database: Database) -> Transaction:
    """Start a transaction on one connection taken from `database`.
    """
    return database.transaction()


__all__ = [
    '__version__',
    # targets
    'connect',
    'Database',
    'QueryTarget',
    'Transaction',
    'DatabaseOptions',
    'NullBindStrategy',
    'StatementExecutor',
    # operations
    'select',
    'execute',
    'insert',
    'execute_many',
    'transaction',
    # results
    'ResultSet',
    'Row',
    # parameters
    'ParamValue',
    'to_param',
    'Null',
    'Text',
    'Integer',
    'Numeric',
    'Boolean',
    'Binary',
    'Timestamp',
    'Double',
    'Float',
    'Long',
    'Short',
    'Native',
    # errors
    'DatabaseError',
    'ConnectionFailure',
    'TypeConversionError',
    'GeneratedColumnNotFoundError',
    'UnexpectedNumberOfItemsError',
    'DriverError',
    'DbConnectionError',
    ]
