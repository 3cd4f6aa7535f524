"""
Statement execution against a query target.

`StatementExecutor` is what mapping layers call: `execute_query` returns
materialized rows, `execute_update` runs one statement for each parameter
set and optionally collects the generated key of each execution.
"""
import logging
import operator
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from miniorm.dialect import GeneratedKeys
from miniorm.exceptions import DatabaseError, GeneratedColumnNotFoundError
from miniorm.marshal import bind_all
from miniorm.rows import Row, materialize
from miniorm.statement import Statement
from miniorm.utils import release_quietly

if TYPE_CHECKING:
    from miniorm.target import QueryTarget

logger = logging.getLogger(__name__)


def generated_column_index(keys: GeneratedKeys, generated_column: str) -> int:
    """Index of the generated column in a generated-key row.

    A single-column result is used whatever its name; otherwise the column
    is matched by name, ignoring case.

    Raises
        GeneratedColumnNotFoundError: If no column matches
    """
    if len(keys.columns) == 1:
        return 0
    wanted = generated_column.lower()
    for index, name in enumerate(keys.columns):
        if name.lower() == wanted:
            return index
    raise GeneratedColumnNotFoundError(generated_column)


class StatementExecutor:
    """Default statement executor.

    Stateless: one instance is shared by every target of a database.
    """

    def execute_query(self, target: 'QueryTarget', sql: str, params: Iterable[Any] = (),
                      type_overrides: Mapping[str | None, type] | None = None) -> list[Row]:
        """Execute a query and return its rows.

        Args:
            target: Pooled database or transaction
            sql: Query text with positional placeholders
            params: Positional parameters
            type_overrides: Column name (None for all others) -> requested type
        """
        return materialize(target, sql, params, type_overrides)

    def execute_update(self, target: 'QueryTarget', sql: str,
                       param_sets: Iterable[Sequence[Any]],
                       generated_column: str | None = None) -> list[int]:
        """Execute one statement once per parameter set.

        Args:
            target: Pooled database or transaction
            sql: Statement text with positional placeholders
            param_sets: One positional parameter sequence per execution
            generated_column: Collect this generated key after each execution

        Returns
            Generated keys in parameter-set order (empty without `generated_column`)

        A failing execution stops the remaining sets. Executions already
        done are not rolled back; run inside a transaction for that.
        """
        connection = None
        statement = None
        try:
            generated_keys: list[int] = []
            connection = target.acquire_connection()
            dialect = target.dialect
            statement = Statement(connection, sql, dialect, generated_column)
            count = 0
            for params in param_sets:
                statement.clear_parameters()
                bind_all(statement, params, dialect)
                statement.execute_update()
                count += 1
                if generated_column is not None:
                    generated_keys.append(self._read_generated_key(statement, generated_column))
            logger.debug(f'Executed {count} parameter sets')
            return generated_keys
        finally:
            if statement is not None:
                statement.close()
            if connection is not None:
                release_quietly(target, connection)

    def _read_generated_key(self, statement: Statement, generated_column: str) -> int:
        keys = statement.generated_keys()
        if keys.row is None:
            raise DatabaseError(f'No generated key returned for {generated_column}')
        index = generated_column_index(keys, generated_column)
        try:
            return operator.index(keys.row[index])
        except (TypeError, ValueError) as err:
            raise DatabaseError(f'Generated key {keys.row[index]!r} is not an integer') from err
