"""
parser.py - constraint-tag parser
=================================

Turns a raw annotation such as ``"minimum:5,exclusiveMinimum:true"`` into a
:class:`~tag_schema.constraints.ConstraintSet`.

Grammar
-------
A tag is a ``,``-separated sequence of clauses, in any order::

    clause  := keyword (":" | "=") literal
             | keyword (":" | "=") "[" token ("," token)* "]"

Keywords are recognised by a fixed four-byte prefix followed by a fixed
suffix, so ``pattern`` and ``patternProperties`` share the prefix ``patt`` +
``ern`` and are told apart by looking at the next byte.  There is no escaping:
a comma inside a regular expression or a list token ends the clause early.

``exclusiveMinimum`` / ``exclusiveMaximum`` carry two meanings.  The literal is
first tried as the boolean ``true``/``false`` (draft-4 flag paired with
``minimum``/``maximum``); anything else is parsed as a number (draft-6
standalone bound).  The boolean attempt must come first.

Public API
----------
parse_tag(raw: str) -> ConstraintSet
    Parse one tag; raise :class:`~tag_schema.errors.TagSyntaxError` on any
    malformed clause.  Parsing is all-or-nothing.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Callable

from .constraints import ConstraintSet
from .errors import TagSyntaxError
from .log import get_logger
from .numeric import parse_decimal, parse_integer
from .reader import DELIMITERS, TagReader

__all__ = ["parse_tag"]

log = get_logger(__name__)

PREFIX_LEN = 4

# prefix -> [(suffix, keyword)]; the suffix is matched right after the prefix.
_PREFIXES: dict[bytes, list[tuple[bytes, str]]] = {
    b"mini": [(b"mum", "minimum")],
    b"maxi": [(b"mum", "maximum")],
    b"excl": [(b"usiveMinimum", "exclusiveMinimum"), (b"usiveMaximum", "exclusiveMaximum")],
    b"mult": [(b"ipleOf", "multipleOf")],
    b"minL": [(b"ength", "minLength")],
    b"maxL": [(b"ength", "maxLength")],
    b"patt": [(b"ern", "pattern")],
    b"form": [(b"at", "format")],
    b"minI": [(b"tems", "minItems")],
    b"maxI": [(b"tems", "maxItems")],
    b"uniq": [(b"ueItems", "uniqueItems")],
    b"minP": [(b"roperties", "minProperties")],
    b"maxP": [(b"roperties", "maxProperties")],
    b"requ": [(b"ired", "required")],
    b"enum": [(b"", "enum")],
}
_PROPERTIES = b"Properties"

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

# keyword -> ConstraintSet attribute for plain numeric clauses
_DECIMAL_FIELDS = {
    "minimum": "minimum",
    "maximum": "maximum",
    "multipleOf": "multiple_of",
}
_COUNT_FIELDS = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "minItems": "min_items",
    "maxItems": "max_items",
    "minProperties": "min_properties",
    "maxProperties": "max_properties",
}


# --------------------------------------------------------------------------- #
# Keyword recognition                                                         #
# --------------------------------------------------------------------------- #

def _read_keyword(r: TagReader) -> str:
    start = r.position
    try:
        prefix = r.read_bytes(PREFIX_LEN)
    except TagSyntaxError:
        raise r.error("truncated keyword", start) from None
    candidates = _PREFIXES.get(prefix)
    if candidates is None:
        raise r.error(f"unknown keyword prefix {prefix.decode('utf-8', 'replace')!r}", start)
    for suffix, keyword in candidates:
        if r.peek_matches(suffix):
            r.read_bytes(len(suffix))
            return keyword
    raise r.error("unknown keyword", start)


def _read_pattern_keyword(r: TagReader) -> str:
    """After ``pattern``: decide between ``pattern`` and ``patternProperties``."""
    nxt = r.peek()
    if nxt is None:
        raise r.error("unexpected end of tag after 'pattern'")
    if nxt in DELIMITERS:
        return "pattern"
    if r.peek_matches(_PROPERTIES):
        r.read_bytes(len(_PROPERTIES))
        return "patternProperties"
    raise r.error("unknown keyword starting with 'pattern'")


# --------------------------------------------------------------------------- #
# Literal conversion                                                          #
# --------------------------------------------------------------------------- #

def _decimal(r: TagReader, keyword: str, literal: str, start: int) -> Decimal:
    value = parse_decimal(literal)
    if value is None:
        raise r.error(f"{keyword} expects a number, got {literal!r}", start)
    return value


def _count(r: TagReader, keyword: str, literal: str, start: int) -> int:
    value = parse_integer(literal)
    if value is None or value < 0:
        raise r.error(f"{keyword} expects a non-negative integer, got {literal!r}", start)
    return value


def _boolean(r: TagReader, keyword: str, literal: str, start: int) -> bool:
    if literal in _TRUE:
        return True
    if literal in _FALSE:
        return False
    raise r.error(f"{keyword} expects a boolean, got {literal!r}", start)


def _regex(r: TagReader, keyword: str, literal: str, start: int) -> re.Pattern[str]:
    try:
        return re.compile(literal)
    except re.error as exc:
        raise r.error(f"{keyword} is not a valid regular expression ({exc})", start) from exc


# --------------------------------------------------------------------------- #
# Clause handlers                                                             #
# --------------------------------------------------------------------------- #

def _clause(r: TagReader, keyword: str, out: dict[str, Any]) -> None:
    """Consume the delimiter and value for *keyword*, storing into *out*."""
    r.skip_delimiter()
    start = r.position

    if keyword in ("required", "enum"):
        out[keyword] = tuple(r.read_list())
        r.expect_separator()
        return

    literal = r.read_literal()

    if keyword in _DECIMAL_FIELDS:
        value = _decimal(r, keyword, literal, start)
        if keyword == "multipleOf" and value <= 0:
            raise r.error(f"multipleOf must be greater than 0, got {literal!r}", start)
        out[_DECIMAL_FIELDS[keyword]] = value
    elif keyword in _COUNT_FIELDS:
        out[_COUNT_FIELDS[keyword]] = _count(r, keyword, literal, start)
    elif keyword in ("exclusiveMinimum", "exclusiveMaximum"):
        side = "minimum" if keyword == "exclusiveMinimum" else "maximum"
        # boolean first: draft-4 flag; otherwise draft-6 bound
        if literal in ("true", "false"):
            out[f"exclusive_{side}_flag"] = literal == "true"
        else:
            out[f"exclusive_{side}_bound"] = _decimal(r, keyword, literal, start)
    elif keyword == "pattern":
        out["pattern"] = _regex(r, keyword, literal, start)
    elif keyword == "patternProperties":
        out["pattern_properties"] = _regex(r, keyword, literal, start)
    elif keyword == "format":
        out["format_name"] = literal
    elif keyword == "uniqueItems":
        out["unique_items"] = _boolean(r, keyword, literal, start)
    else:  # pragma: no cover - table and handlers out of sync
        raise r.error(f"unhandled keyword {keyword!r}", start)


_HANDLERS: dict[str, Callable[[TagReader], str]] = {"pattern": _read_pattern_keyword}


# --------------------------------------------------------------------------- #
# Public entry point                                                          #
# --------------------------------------------------------------------------- #

def parse_tag(raw: str) -> ConstraintSet:
    """Parse *raw* into a :class:`ConstraintSet`.

    An empty tag yields an empty set ("no constraints").  Clauses are read in
    a loop; a repeated keyword overwrites the earlier value.
    """
    r = TagReader(raw)
    out: dict[str, Any] = {}
    try:
        while not r.at_end():
            keyword = _read_keyword(r)
            refine = _HANDLERS.get(keyword)
            if refine is not None:
                keyword = refine(r)
            _clause(r, keyword, out)
    except TagSyntaxError as exc:
        log.debug("tag.syntax_error", tag=raw, position=exc.position, reason=exc.reason)
        raise
    return ConstraintSet(**out)
