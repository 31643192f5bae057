"""
constraints.py - the parsed, structured form of a constraint tag.

A :class:`ConstraintSet` is immutable so that parsed tags can be cached and
shared between threads.  Every field defaults to ``None`` ("unset"), which is
different from a zero value: ``minLength:0`` is a constraint, an absent
``minLength`` is not.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any

from .numeric import canonical

__all__ = ["ConstraintSet", "KEYWORDS"]

# Keyword order used by the canonical serialisation.
KEYWORDS: tuple[str, ...] = (
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "pattern",
    "format",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "patternProperties",
    "required",
    "enum",
)


@dataclass(frozen=True)
class ConstraintSet:
    """All constraints declared by one field annotation."""

    # number
    minimum: Decimal | None = None
    maximum: Decimal | None = None
    exclusive_minimum_flag: bool | None = None      # draft 4
    exclusive_maximum_flag: bool | None = None      # draft 4
    exclusive_minimum_bound: Decimal | None = None  # draft 6
    exclusive_maximum_bound: Decimal | None = None  # draft 6
    multiple_of: Decimal | None = None
    # string
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None
    format_name: str | None = None
    # sequence
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None
    # mapping
    min_properties: int | None = None
    max_properties: int | None = None
    pattern_properties: re.Pattern[str] | None = None
    required: tuple[str, ...] | None = None
    # any
    enum: tuple[str, ...] | None = None

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #
    def is_empty(self) -> bool:
        """True when the annotation declared no constraints at all."""
        return all(getattr(self, f.name) is None for f in fields(self))

    def has_numeric(self) -> bool:
        return any(
            x is not None
            for x in (
                self.minimum,
                self.maximum,
                self.exclusive_minimum_bound,
                self.exclusive_maximum_bound,
                self.multiple_of,
            )
        ) or bool(self.enum)

    def has_string(self) -> bool:
        return any(
            x is not None
            for x in (self.min_length, self.max_length, self.pattern, self.format_name)
        ) or bool(self.enum)

    # ------------------------------------------------------------------ #
    # Serialisation                                                      #
    # ------------------------------------------------------------------ #
    def clauses(self) -> list[tuple[str, str]]:
        """``(keyword, literal)`` pairs in canonical keyword order.

        Both exclusive forms may be present; the draft-4 flag is emitted
        before the draft-6 bound for the same keyword.
        """
        out: list[tuple[str, str]] = []

        def num(value: Decimal) -> str:
            return canonical(value)

        def flag(value: bool) -> str:
            return "true" if value else "false"

        def items(values: tuple[str, ...]) -> str:
            return "[" + ",".join(values) + "]"

        if self.minimum is not None:
            out.append(("minimum", num(self.minimum)))
        if self.maximum is not None:
            out.append(("maximum", num(self.maximum)))
        if self.exclusive_minimum_flag is not None:
            out.append(("exclusiveMinimum", flag(self.exclusive_minimum_flag)))
        if self.exclusive_minimum_bound is not None:
            out.append(("exclusiveMinimum", num(self.exclusive_minimum_bound)))
        if self.exclusive_maximum_flag is not None:
            out.append(("exclusiveMaximum", flag(self.exclusive_maximum_flag)))
        if self.exclusive_maximum_bound is not None:
            out.append(("exclusiveMaximum", num(self.exclusive_maximum_bound)))
        if self.multiple_of is not None:
            out.append(("multipleOf", num(self.multiple_of)))
        if self.min_length is not None:
            out.append(("minLength", str(self.min_length)))
        if self.max_length is not None:
            out.append(("maxLength", str(self.max_length)))
        if self.pattern is not None:
            out.append(("pattern", self.pattern.pattern))
        if self.format_name is not None:
            out.append(("format", self.format_name))
        if self.min_items is not None:
            out.append(("minItems", str(self.min_items)))
        if self.max_items is not None:
            out.append(("maxItems", str(self.max_items)))
        if self.unique_items is not None:
            out.append(("uniqueItems", flag(self.unique_items)))
        if self.min_properties is not None:
            out.append(("minProperties", str(self.min_properties)))
        if self.max_properties is not None:
            out.append(("maxProperties", str(self.max_properties)))
        if self.pattern_properties is not None:
            out.append(("patternProperties", self.pattern_properties.pattern))
        if self.required is not None:
            out.append(("required", items(self.required)))
        if self.enum is not None:
            out.append(("enum", items(self.enum)))
        return out

    def to_tag(self) -> str:
        """Canonical tag text; parsing it yields an equal ConstraintSet."""
        return ",".join(f"{key}:{literal}" for key, literal in self.clauses())

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe view keyed by tag keyword (used by the CLI)."""
        out: dict[str, Any] = {}
        for key, literal in self.clauses():
            if key in ("required", "enum"):
                out[key] = list(getattr(self, key))
            elif key in ("exclusiveMinimum", "exclusiveMaximum") and literal in ("true", "false"):
                out[f"{key} (draft-4)"] = literal == "true"
            elif key in ("uniqueItems",):
                out[key] = literal == "true"
            else:
                out[key] = literal
        return out

    def __str__(self) -> str:
        return self.to_tag()
