"""
errors.py - exception hierarchy for the tag-schema package.

Every exception raised on purpose by the package derives from
:class:`SchemaError`, itself a ``ValueError`` so that callers already catching
bad-input errors keep working.

Validation *violations* are never raised from :func:`tag_schema.validate`;
they are returned inside a :class:`~tag_schema.result.ValidationResult`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .result import ValidationResult

__all__ = [
    "SchemaError",
    "TagSyntaxError",
    "InputShapeError",
    "FormatRegistrationError",
    "ConstraintViolationError",
    "FormatError",
]


class SchemaError(ValueError):
    """Base class for all tag-schema errors."""


class TagSyntaxError(SchemaError):
    """Raised when a constraint tag cannot be parsed.

    ``field`` is filled in by the engine so the message names the record
    field whose annotation is broken.
    """

    def __init__(self, reason: str, *, tag: str = "", position: int | None = None, field: str | None = None):
        self.reason = reason
        self.tag = tag
        self.position = position
        self.field = field
        super().__init__(self._render())

    def _render(self) -> str:
        where = f" at byte {self.position}" if self.position is not None else ""
        owner = f"field '{self.field}': " if self.field else ""
        return f"{owner}invalid constraint tag {self.tag!r}{where}: {self.reason}"

    def for_field(self, field: str) -> "TagSyntaxError":
        """Return a copy of this error attributed to *field*."""
        return TagSyntaxError(self.reason, tag=self.tag, position=self.position, field=field)


class InputShapeError(SchemaError, TypeError):
    """Raised when :func:`validate` is handed something that is not a record."""


class FormatRegistrationError(SchemaError):
    """Raised when a format checker cannot be registered."""


class ConstraintViolationError(SchemaError):
    """Raised by :meth:`ValidationResult.raise_for_violations`."""

    def __init__(self, result: "ValidationResult"):
        self.result = result
        super().__init__(str(result))


class FormatError(ValueError):
    """Raised by a format checker; the message is the failure reason."""

    def __init__(self, reason: Any = ""):
        super().__init__(str(reason))
