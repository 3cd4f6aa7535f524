"""
Typed parameter values.

A parameter is one of a closed set of kinds. Each kind is a small frozen
dataclass so the marshaller can dispatch on it with a single `match`:

    Null, Text, Integer, Numeric, Boolean, Binary, Timestamp,
    Double, Float, Long, Short, Native

Callers either build kinds explicitly (``Short(7)``) or pass plain Python
values, which `to_param` classifies.
"""
import datetime
import decimal
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from libb import is_null

INT32_MIN, INT32_MAX = -2**31, 2**31 - 1


@dataclass(frozen=True, slots=True)
class Null:
    """SQL NULL."""


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Integer:
    value: int


@dataclass(frozen=True, slots=True)
class Numeric:
    """Arbitrary-precision decimal."""
    value: decimal.Decimal


@dataclass(frozen=True, slots=True)
class Boolean:
    value: bool


@dataclass(frozen=True, slots=True)
class Binary:
    value: bytes


@dataclass(frozen=True, slots=True)
class Timestamp:
    """Date or datetime, bound as a timestamp."""
    value: datetime.date


@dataclass(frozen=True, slots=True)
class Double:
    value: float


@dataclass(frozen=True, slots=True)
class Float:
    """Single-precision float."""
    value: float


@dataclass(frozen=True, slots=True)
class Long:
    value: int


@dataclass(frozen=True, slots=True)
class Short:
    value: int


@dataclass(frozen=True, slots=True)
class Native:
    """Opaque value handed to the driver untouched."""
    value: Any


ParamValue = (Null | Text | Integer | Numeric | Boolean | Binary | Timestamp
              | Double | Float | Long | Short | Native)

PARAM_KINDS = (Null, Text, Integer, Numeric, Boolean, Binary, Timestamp,
               Double, Float, Long, Short, Native)


_NULLABLE_SCALARS = (float, np.floating, np.datetime64, type(pd.NaT), type(pd.NA))


def _is_null(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, _NULLABLE_SCALARS) and bool(is_null(value))


def to_param(value: Any) -> ParamValue:
    """Classify a plain Python value into a parameter kind.

    Values that already are a kind pass through. NaN, NaT and pandas NA
    become `Null`. Python ints outside the 32-bit range become `Long`.
    Anything unrecognised becomes `Native`.

    >>> to_param(3)
    Integer(value=3)
    >>> to_param(2**40)
    Long(value=1099511627776)
    >>> to_param(float('nan'))
    Null()
    """
    if isinstance(value, PARAM_KINDS):
        return value
    if _is_null(value):
        return Null()
    # bool before int: bool is an int subclass
    if isinstance(value, bool | np.bool_):
        return Boolean(bool(value))
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, np.int16 | np.int8 | np.uint8):
        return Short(int(value))
    if isinstance(value, np.int64 | np.uint32):
        return Long(int(value))
    if isinstance(value, int | np.integer):
        value = int(value)
        if INT32_MIN <= value <= INT32_MAX:
            return Integer(value)
        return Long(value)
    if isinstance(value, decimal.Decimal):
        return Numeric(value)
    if isinstance(value, np.float32 | np.float16):
        return Float(float(value))
    if isinstance(value, float | np.floating):
        return Double(float(value))
    if isinstance(value, bytes | bytearray | memoryview):
        return Binary(bytes(value))
    if isinstance(value, pd.Timestamp):
        return Timestamp(value.to_pydatetime())
    if isinstance(value, np.datetime64):
        return Timestamp(pd.Timestamp(value).to_pydatetime())
    if isinstance(value, datetime.date):
        return Timestamp(value)
    return Native(value)


def to_params(values: Iterable[Any]) -> list[ParamValue]:
    """Classify every value of a positional parameter sequence."""
    return [to_param(v) for v in values]


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
