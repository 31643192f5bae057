"""
numeric.py - width-agnostic numeric comparison.

Every numeric value that reaches the engine (Python ``int``/``float``,
``Decimal``, or a numpy scalar of any width) is normalised to one
``decimal.Decimal`` before it is compared with a bound, tested for
``multipleOf`` or looked up in an ``enum``.  Bounds parsed from tags are
Decimals as well, so a ``numpy.uint64`` and a ``float32`` are compared in the
same domain without going through binary floating point.

Public API
----------
to_decimal(value) -> Decimal
canonical(number) -> str
parse_decimal(text) / parse_integer(text)
is_multiple(value, divisor) -> bool
check_number(value, constraints) -> list[tuple[str, str]]
"""

from __future__ import annotations

import numbers
import re
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

if TYPE_CHECKING:
    from .constraints import ConstraintSet

__all__ = [
    "to_decimal",
    "canonical",
    "parse_decimal",
    "parse_integer",
    "is_multiple",
    "enum_contains",
    "check_number",
]

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")

# beyond this many places either side of the point, text uses exponent notation
_PLAIN_PLACES = 64

# --------------------------------------------------------------------------- #
# Conversion                                                                  #
# --------------------------------------------------------------------------- #

def to_decimal(value: Any) -> Decimal:
    """Return *value* as an exact ``Decimal``.

    Floats (including ``numpy.float32``) go through their shortest
    round-trip text, so ``0.1`` becomes ``Decimal("0.1")`` rather than the
    55-digit binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (bool, np.bool_)):
        raise TypeError("booleans are not numbers here")
    if isinstance(value, (numbers.Integral, np.integer)):
        return Decimal(int(value))
    if isinstance(value, (float, np.floating)):
        return Decimal(str(value))
    if isinstance(value, numbers.Real):
        return Decimal(str(float(value)))
    raise TypeError(f"cannot convert {type(value).__name__} to Decimal")


def canonical(number: Decimal) -> str:
    """Canonical text of a decimal: no trailing zeros, and no exponent unless
    the magnitude is extreme (``1e+1000000``)."""
    if number.is_nan():
        return "nan"
    if number.is_infinite():
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_zero():
        return "0"
    magnitude = number.adjusted()
    if abs(magnitude) > _PLAIN_PLACES:
        sign, digits, _ = number.as_tuple()
        text = "".join(map(str, digits)).rstrip("0")
        mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
        return f"{'-' if sign else ''}{mantissa}e{magnitude:+d}"
    text = format(number, "f")  # exact digits, no context rounding
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_decimal(text: str) -> Decimal | None:
    """Strictly parse a finite decimal literal; None when malformed."""
    if not _DECIMAL_RE.fullmatch(text):
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def parse_integer(text: str) -> int | None:
    """Strictly parse a base-10 integer literal; None when malformed."""
    if not _INTEGER_RE.fullmatch(text):
        return None
    return int(text)


# --------------------------------------------------------------------------- #
# Comparisons                                                                 #
# --------------------------------------------------------------------------- #

def is_multiple(value: Decimal, divisor: Decimal) -> bool:
    """True iff ``value / divisor`` is exactly an integer.

    Works on coefficients and exponents separately, so the cost does not grow
    with the exponent (``1e1000000000`` is as cheap as ``1000``).
    """
    if not value.is_finite():
        return False
    if value.is_zero():
        return True
    _, value_digits, value_exp = value.as_tuple()
    _, divisor_digits, divisor_exp = divisor.as_tuple()
    ratio = Fraction(_coefficient(value_digits), _coefficient(divisor_digits))
    shift = value_exp - divisor_exp  # value / divisor == ratio * 10**shift

    if shift < 0:
        numerator = str(ratio.numerator)
        zeros = len(numerator) - len(numerator.rstrip("0"))
        return ratio.denominator == 1 and zeros >= -shift

    rest = ratio.denominator
    for prime in (2, 5):
        count = 0
        while rest % prime == 0:
            rest //= prime
            count += 1
        if count > shift:
            return False
    return rest == 1


def _coefficient(digits: tuple[int, ...]) -> int:
    return int("".join(map(str, digits)))


def enum_contains(options: Sequence[str], value: Decimal) -> bool:
    """Match *value* against enum entries by text or by numeric value."""
    text = canonical(value)
    for option in options:
        if option == text:
            return True
        number = parse_decimal(option)
        if number is not None and value.is_finite() and number == value:
            return True
    return False


def check_number(value: Decimal, constraints: "ConstraintSet") -> list[tuple[str, str]]:
    """Evaluate every numeric constraint; return ``(kind, message)`` pairs."""
    cs = constraints
    if not cs.has_numeric():
        return []
    v = canonical(value)
    if value.is_nan():
        return [("number", f"Value {v} is not a finite number")]

    out: list[tuple[str, str]] = []

    # draft-4: minimum / maximum with optional boolean exclusivity
    # the flag check and the plain bound check are independent
    if cs.minimum is not None:
        if cs.exclusive_minimum_flag and value <= cs.minimum:
            out.append(("exclusiveMinimum", f"Value {v} is equal to exclusive minimum {canonical(cs.minimum)}"))
        if value < cs.minimum:
            out.append(("minimum", f"Value {v} is less than minimum {canonical(cs.minimum)}"))
    if cs.maximum is not None:
        if cs.exclusive_maximum_flag and value >= cs.maximum:
            out.append(("exclusiveMaximum", f"Value {v} is equal to exclusive maximum {canonical(cs.maximum)}"))
        if value > cs.maximum:
            out.append(("maximum", f"Value {v} is greater than maximum {canonical(cs.maximum)}"))

    # draft-6: standalone exclusive bounds
    if cs.exclusive_minimum_bound is not None:
        bound = cs.exclusive_minimum_bound
        if value == bound:
            out.append(("exclusiveMinimum", f"Value {v} is equal to exclusive minimum {canonical(bound)}"))
        elif value < bound:
            out.append(("exclusiveMinimum", f"Value {v} is less than exclusive minimum {canonical(bound)}"))
    if cs.exclusive_maximum_bound is not None:
        bound = cs.exclusive_maximum_bound
        if value == bound:
            out.append(("exclusiveMaximum", f"Value {v} is equal to exclusive maximum {canonical(bound)}"))
        elif value > bound:
            out.append(("exclusiveMaximum", f"Value {v} is greater than exclusive maximum {canonical(bound)}"))

    if cs.multiple_of is not None and not is_multiple(value, cs.multiple_of):
        out.append(("multipleOf", f"Value {v} is not a multiple of {canonical(cs.multiple_of)}"))

    if cs.enum and not enum_contains(cs.enum, value):
        out.append(("enum", f"No enum match for: {v}"))

    return out
