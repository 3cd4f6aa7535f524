"""
Rows and row materialization.

Rows are ordered, case-insensitive mappings from column name to value.
`materialize()` runs a query against a query target and drains the cursor
into a list of rows, converting columns named in a type-override map.
"""
import logging
from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any

from miniorm.marshal import bind_all, extract
from miniorm.statement import Statement
from miniorm.utils import release_quietly

from libb import attrdict

if TYPE_CHECKING:
    from miniorm.target import QueryTarget

logger = logging.getLogger(__name__)

FETCH_SIZE = 5000


def _normalize(key: str | None) -> str | None:
    return key.lower() if key is not None else None


class CaseInsensitiveDict(MutableMapping):
    """Ordered mapping with case-insensitive string keys.

    Keys keep the case they were first written with. Writing an existing
    key in another case replaces the value and the stored name in place.
    The key None is allowed and is distinct from every string.
    """

    def __init__(self, data: Mapping | Iterable[tuple[Any, Any]] | None = None, **kw: Any) -> None:
        self._store: dict[str | None, tuple[str | None, Any]] = {}
        self.update(data or {}, **kw)

    def __setitem__(self, key: str | None, value: Any) -> None:
        self._store[_normalize(key)] = (key, value)

    def __getitem__(self, key: str | None) -> Any:
        return self._store[_normalize(key)][1]

    def __delitem__(self, key: str | None) -> None:
        del self._store[_normalize(key)]

    def __iter__(self) -> Iterator[str | None]:
        return (name for name, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        if key is not None and not isinstance(key, str):
            return False
        return _normalize(key) in self._store

    def __repr__(self) -> str:
        return f'{type(self).__name__}({dict(self.items())!r})'

    def copy(self):
        return type(self)(self.items())


class Row(CaseInsensitiveDict):
    """One result row keyed by column name, ignoring case."""

    def to_dict(self) -> dict[str, Any]:
        return dict(self.items())

    def to_attrdict(self) -> attrdict:
        return attrdict(self.to_dict())

    def get_value(self, key: str | None = None) -> Any:
        """Value of column `key`, or of the first column when omitted."""
        if key is not None:
            return self[key]
        return next(iter(self.values()))


def resolve_column_type(type_overrides: CaseInsensitiveDict, name: str) -> type | None:
    """Target type for a column: exact name, else the None wildcard, else None.
    """
    if name in type_overrides:
        return type_overrides[name]
    return type_overrides.get(None)


def _build_row(names: list[str], types: list[type | None], values: tuple) -> Row:
    row = Row()
    for index, (name, target_type) in enumerate(zip(names, types)):
        if target_type is None:
            row[name] = values[index]
        else:
            row[name] = extract(values, index, target_type)
    return row


def materialize(target: 'QueryTarget', sql: str, params: Iterable[Any] = (),
                type_overrides: Mapping[str | None, type] | None = None) -> list[Row]:
    """Execute a query and return every row, fully drained.

    Args:
        target: Query target supplying the connection and dialect
        sql: Query text with positional placeholders
        params: Positional parameters (kinds or plain values)
        type_overrides: Column name (or None for all other columns) -> type

    The statement is always closed and the connection always released,
    whether the query succeeds or fails partway through the rows.
    """
    overrides = CaseInsensitiveDict(type_overrides or {})
    connection = None
    statement = None
    try:
        connection = target.acquire_connection()
        dialect = target.dialect
        statement = Statement(connection, sql, dialect)
        bind_all(statement, params, dialect)
        statement.execute_query()

        names = statement.column_names
        types = [resolve_column_type(overrides, name) for name in names]
        rows = []
        while True:
            chunk = statement.fetchmany(FETCH_SIZE)
            if not chunk:
                break
            rows.extend(_build_row(names, types, values) for values in chunk)
        logger.debug(f'Query returned {len(rows)} rows')
        return rows
    finally:
        if statement is not None:
            statement.close()
        if connection is not None:
            release_quietly(target, connection)

