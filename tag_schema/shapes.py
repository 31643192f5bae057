"""
shapes.py - the closed set of value shapes the engine understands.

The engine never inspects arbitrary types itself; it asks :func:`shape_of`
for one of the :class:`Shape` members and dispatches on that.  pandas and
numpy containers are folded into the same shapes:

* ``pandas.DataFrame`` is a MAPPING from column name to column.
* ``pandas.Series`` and ``numpy.ndarray`` are SEQUENCEs.
* numpy numeric scalars are NUMBERs (``numpy.bool_`` is not).
"""

from __future__ import annotations

import dataclasses
import numbers
from collections.abc import Mapping, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator

import numpy as np
import pandas as pd

from .numeric import canonical, to_decimal

__all__ = [
    "Shape",
    "shape_of",
    "is_record",
    "entries",
    "elements",
    "key_text",
    "deep_equal",
]


class Shape(Enum):
    RECORD = "record"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    STRING = "string"
    NUMBER = "number"
    OTHER = "other"


def is_record(value: Any) -> bool:
    """True for dataclass *instances* (not dataclass types)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def shape_of(value: Any) -> Shape:
    if isinstance(value, (bool, np.bool_)):
        return Shape.OTHER
    if is_record(value):
        return Shape.RECORD
    if isinstance(value, str):
        return Shape.STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Shape.OTHER
    if isinstance(value, (Mapping, pd.DataFrame)):
        return Shape.MAPPING
    if isinstance(value, (Sequence, pd.Series, np.ndarray)):
        if isinstance(value, np.ndarray) and value.ndim == 0:
            return shape_of(value.item())
        return Shape.SEQUENCE
    if isinstance(value, (Decimal, numbers.Real, np.integer, np.floating)):
        return Shape.NUMBER
    return Shape.OTHER


# --------------------------------------------------------------------------- #
# Container access                                                            #
# --------------------------------------------------------------------------- #

def entries(value: Any) -> list[tuple[Any, Any]]:
    """``(key, value)`` pairs of a MAPPING-shaped value."""
    if isinstance(value, pd.DataFrame):
        return [(column, value[column]) for column in value.columns]
    return list(value.items())


def elements(value: Any) -> list[Any]:
    """Items of a SEQUENCE-shaped value, in order."""
    if isinstance(value, pd.Series):
        return value.tolist()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return list(value)


def key_text(key: Any) -> str:
    """Canonical string form of a mapping key (used by patternProperties)."""
    if isinstance(key, str):
        return key
    if isinstance(key, (bool, np.bool_)):
        return "true" if key else "false"
    if shape_of(key) is Shape.NUMBER:
        return canonical(to_decimal(key))
    return str(key)


# --------------------------------------------------------------------------- #
# Structural equality                                                         #
# --------------------------------------------------------------------------- #

def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality as used by ``uniqueItems``.

    Records compare field by field, mappings by key set and values, sequences
    element-wise and numbers by exact decimal value (so ``1 == 1.0`` but
    ``True != 1``).
    """
    sa, sb = shape_of(a), shape_of(b)
    if a is b and sa is not Shape.NUMBER:
        return True
    if sa is not sb:
        return False
    if sa is Shape.RECORD:
        if type(a) is not type(b):
            return False
        return all(deep_equal(getattr(a, f.name), getattr(b, f.name)) for f in dataclasses.fields(a))
    if sa is Shape.MAPPING:
        ea, eb = dict(_keyed(a)), dict(_keyed(b))
        if ea.keys() != eb.keys():
            return False
        return all(deep_equal(ea[k], eb[k]) for k in ea)
    if sa is Shape.SEQUENCE:
        xa, xb = elements(a), elements(b)
        return len(xa) == len(xb) and all(deep_equal(x, y) for x, y in zip(xa, xb))
    if sa is Shape.NUMBER:
        da, db = to_decimal(a), to_decimal(b)
        if da.is_nan() or db.is_nan():
            return False
        return da == db
    a_bool = isinstance(a, (bool, np.bool_))
    b_bool = isinstance(b, (bool, np.bool_))
    if a_bool or b_bool:
        return a_bool and b_bool and bool(a) == bool(b)
    return bool(a == b)


def _keyed(value: Any) -> Iterator[tuple[Any, Any]]:
    for key, item in entries(value):
        yield key_text(key), item
