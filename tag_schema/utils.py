"""
utils.py - shared, low-level helpers for the tag-schema package.

This module consolidates small helpers for:
- Date-time recognition (RFC 3339 / ISO-8601 with mandatory offset)
- Result-path construction (field, index and mapping-entry labels)
"""

from __future__ import annotations

import datetime as _dt
import re
from typing import Any

__all__ = [
    "is_datetime",
    "join_field",
    "index_label",
    "entry_label",
]

# --------------------------------------------------------------------------- #
# Date-Time Helpers                                                           #
# --------------------------------------------------------------------------- #

_DT_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}"   # date & time
    r"(?:\.\d+)?"                                 # optional fraction
    r"(?:[Zz]|[+\-]\d{2}:\d{2})$"                 # Z or +-HH:MM
)


def is_datetime(value: Any) -> bool:
    """Return True iff *value* is a valid RFC 3339 date-time string."""
    if not isinstance(value, str) or not _DT_RE.fullmatch(value):
        return False
    text = value.upper().replace("Z", "+00:00")
    date_part, _, rest = text.partition("T")
    clock, frac, offset = rest[:8], "", rest[8:]
    if offset.startswith("."):
        digits = re.match(r"\.(\d+)", offset)
        frac = digits.group(1)[:6] if digits else ""
        offset = offset[len(digits.group(0)):] if digits else offset
    # fromisoformat only accepts up to microseconds, so trim the fraction
    candidate = f"{date_part}T{clock}" + (f".{frac.ljust(6, '0')}" if frac else "") + offset
    try:
        _dt.datetime.fromisoformat(candidate)
        return True
    except ValueError:
        return False


# --------------------------------------------------------------------------- #
# Path Helpers                                                                #
# --------------------------------------------------------------------------- #

def join_field(parent: str, name: str) -> str:
    """``outer.inner`` (or just ``inner`` at the top level)."""
    return f"{parent}.{name}" if parent else name


def index_label(parent: str, index: int) -> str:
    return f"{parent}[{index}]"


def entry_label(parent: str, key: Any, part: str) -> str:
    """Label for one side (``key`` or ``value``) of a mapping entry."""
    return f"{parent}[{key}]({part})"
