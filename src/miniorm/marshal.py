"""
Type marshalling between parameter kinds, driver values and requested types.

- `bind()` narrows one parameter kind and hands it to a `Statement`
- `bind_all()` binds a positional parameter sequence
- `extract()` converts one column of a fetched row to a requested type

Extraction prefers narrow conversions, tried in this order:

    object, str, int, Decimal, bool, bytes, datetime/date, float,
    numpy.float32, numpy.int64, numpy.int16

Any other requested type falls back to calling the type on the value.
"""
import datetime
import decimal
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import dateutil.parser
import numpy as np
from miniorm.dialect import DialectStrategy, NullBindStrategy
from miniorm.exceptions import TypeConversionError
from miniorm.params import Binary, Boolean, Double, Float, Integer, Long
from miniorm.params import Native, Null, Numeric, ParamValue, Short, Text
from miniorm.params import Timestamp, to_param
from miniorm.statement import SqlType, Statement

CONVERSION_ERRORS = (ValueError, TypeError, ArithmeticError)

TRUE_STRINGS = {'1', 't', 'true', 'y', 'yes', 'on'}
FALSE_STRINGS = {'0', 'f', 'false', 'n', 'no', 'off'}


def _narrow_int(value: Any, dtype: type[np.integer]) -> int:
    """Convert to int, raising OverflowError outside the range of `dtype`."""
    value = int(value)
    info = np.iinfo(dtype)
    if not info.min <= value <= info.max:
        raise OverflowError(f'{value} out of range for {info.dtype}')
    return value


def _to_timestamp(value: datetime.date) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    return datetime.datetime.combine(value, datetime.time.min)


def bind(param: ParamValue, position: int, statement: Statement,
         dialect: DialectStrategy) -> None:
    """Bind one parameter at a 0-based position.

    Raises
        TypeConversionError: If the value does not fit its declared kind
    """
    try:
        match param:
            case Null():
                if dialect.null_bind_strategy is NullBindStrategy.EXPLICIT:
                    statement.set_null(position, SqlType.INTEGER)
                else:
                    statement.set_object(position, None)
            case Text(value):
                statement.set_object(position, str(value))
            case Integer(value):
                statement.set_object(position, _narrow_int(value, np.int32))
            case Numeric(value):
                if not isinstance(value, decimal.Decimal):
                    value = decimal.Decimal(str(value))
                statement.set_object(position, value)
            case Boolean(value):
                statement.set_object(position, bool(value))
            case Binary(value):
                statement.set_object(position, _as_bytes(value))
            case Timestamp(value):
                statement.set_object(position, _to_timestamp(value))
            case Double(value):
                statement.set_object(position, float(value))
            case Float(value):
                statement.set_object(position, float(np.float32(value)))
            case Long(value):
                statement.set_object(position, _narrow_int(value, np.int64))
            case Short(value):
                statement.set_object(position, _narrow_int(value, np.int16))
            case Native(value):
                statement.set_object(position, value)
            case _:
                raise TypeError(f'Unsupported parameter kind: {type(param).__name__}')
    except CONVERSION_ERRORS as err:
        raise TypeConversionError(f'Cannot bind parameter {position}: {err}') from err


def bind_all(statement: Statement, params: Iterable[Any],
             dialect: DialectStrategy) -> None:
    """Bind a positional parameter sequence, classifying plain values."""
    for position, value in enumerate(params):
        bind(to_param(value), position, statement, dialect)


def _to_text(value: Any) -> str:
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).decode('utf-8')
    return str(value)


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        return int(decimal.Decimal(value.strip()))
    return int(value)


def _to_decimal(value: Any) -> decimal.Decimal:
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, float):
        return decimal.Decimal(str(value))
    return decimal.Decimal(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
        raise ValueError(f'Not a boolean: {value!r}')
    return bool(value)


def _as_bytes(value: Any) -> bytes:
    """Copy a bytes-like value, rejecting ints and other non-buffers."""
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value)
    raise TypeError(f'Cannot convert {type(value).__name__} to bytes')


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode('utf-8')
    return _as_bytes(value)


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.date):
        return _to_timestamp(value)
    if isinstance(value, np.datetime64):
        return value.astype('datetime64[us]').item()
    if isinstance(value, bytes):
        value = value.decode()
    if isinstance(value, str):
        return dateutil.parser.parse(value)
    if isinstance(value, int | float):
        return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc).replace(tzinfo=None)
    raise TypeError(f'Cannot convert {type(value).__name__} to datetime')


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return value
    return _to_datetime(value).date()


_EXTRACTORS: dict[type, Callable[[Any], Any]] = {
    object: lambda v: v,
    str: _to_text,
    int: _to_int,
    decimal.Decimal: _to_decimal,
    bool: _to_bool,
    bytes: _to_bytes,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
    float: float,
    np.float32: np.float32,
    np.int64: lambda v: np.int64(_narrow_int(_to_int(v), np.int64)),
    np.int16: lambda v: np.int16(_narrow_int(_to_int(v), np.int16)),
}


def _coerce(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    return target_type(value)


def extract(row: Sequence[Any], index: int, target_type: type) -> Any:
    """Convert column `index` of a fetched row to `target_type`.

    A null column is None whatever the requested type.

    Raises
        TypeConversionError: If the value cannot be converted
    """
    value = row[index]
    if value is None:
        return None
    converter = _EXTRACTORS.get(target_type)
    try:
        if converter is None:
            return _coerce(value, target_type)
        return converter(value)
    except CONVERSION_ERRORS as err:
        raise TypeConversionError(
            f'Cannot convert column {index} value {value!r} to {target_type.__name__}: {err}') from err
