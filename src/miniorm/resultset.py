"""
Materialized query results.
"""
from collections.abc import Callable, Iterator, Sequence
from typing import Any

import pandas as pd
from miniorm.exceptions import UnexpectedNumberOfItemsError
from miniorm.rows import Row

__all__ = ['ResultSet']


def _identity(row: Row) -> Any:
    return row


class ResultSet:
    """Rows returned by a query, with an optional row mapper.

    Rows are fully fetched before a ResultSet exists, so it can be iterated
    any number of times and never holds a connection.

    Args:
        rows: Materialized rows in cursor order
        mapper: Applied to each row by `one`, `first`, `list` and iteration
        columns: Column names, used when there are no rows to take them from
    """

    def __init__(self, rows: Sequence[Row], mapper: Callable[[Row], Any] | None = None,
                 columns: Sequence[str] | None = None) -> None:
        self._rows = list(rows)
        self._mapper = mapper or _identity
        self._columns = list(columns) if columns is not None else None

    def __repr__(self) -> str:
        return f'ResultSet({len(self._rows)} rows)'

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Any]:
        return (self._mapper(row) for row in self._rows)

    def __bool__(self) -> bool:
        return bool(self._rows)

    @property
    def rows(self) -> list[Row]:
        """The unmapped rows."""
        return list(self._rows)

    @property
    def columns(self) -> list[str]:
        if self._columns is not None:
            return list(self._columns)
        if self._rows:
            return list(self._rows[0])
        return []

    def _only_row(self) -> Row:
        if len(self._rows) != 1:
            raise UnexpectedNumberOfItemsError(len(self._rows))
        return self._rows[0]

    def one(self) -> Any:
        """Return the only row, mapped.

        Raises
            UnexpectedNumberOfItemsError: If there are zero or several rows
        """
        return self._mapper(self._only_row())

    def first(self) -> Any:
        """Return the first row mapped, or None when there are no rows."""
        if not self._rows:
            return None
        return self._mapper(self._rows[0])

    def list(self) -> list[Any]:
        return [self._mapper(row) for row in self._rows]

    def scalar(self) -> Any:
        """Return the first column of the only row.

        Raises
            UnexpectedNumberOfItemsError: If there are zero or several rows
        """
        return self._only_row().get_value()

    def map(self, func: Callable[[Any], Any]) -> 'ResultSet':
        """New ResultSet whose rows pass through the current mapper, then `func`.
        """
        mapper = self._mapper
        return ResultSet(self._rows, lambda row: func(mapper(row)), self._columns)

    def to_dataframe(self) -> pd.DataFrame:
        """Unmapped rows as a DataFrame with columns in cursor order."""
        columns = self.columns
        return pd.DataFrame([tuple(row.values()) for row in self._rows], columns=columns)
