"""
validator.py - tag-driven recursive validation engine
=====================================================

Walks a dataclass instance field by field, parses each field's constraint tag
(``field.metadata["jsonschema"]``) and evaluates it against the field value,
recursing into nested records, mappings and sequences.  Every applicable
constraint is checked; nothing short-circuits.  The outcome is a
:class:`~tag_schema.result.ValidationResult` tree.

Public API
----------
Validator
    Holds the format registry, the settings and a cache of parsed tags.
validate(value) -> ValidationResult
    Validate with the shared default validator.
register_format(name, checker)
    Add a format checker to the shared default validator.
constrained(tag, **field_kwargs)
    ``dataclasses.field`` shortcut that stores *tag* in the field metadata.

Example
-------
```python
@dataclass
class User:
    name: str = constrained("maxLength:5,pattern:^[a-z]+$")
    age: int = constrained("minimum:0,maximum:150")

result = validate(User(name="1234567890", age=30))
result.valid        # False
result.messages()   # ['String is too long (10 chars), maximum 5',
                    #  'String does not match pattern: ^[a-z]+$']
```
"""

from __future__ import annotations

import dataclasses
import threading
from functools import lru_cache
from typing import Any

from .config import ValidatorConfig, load_config
from .constraints import ConstraintSet
from .errors import InputShapeError, TagSyntaxError
from .formats import FormatChecker, FormatRegistry
from .log import get_logger
from .numeric import check_number, to_decimal
from .parser import parse_tag
from .result import ValidationResult
from .shapes import Shape, deep_equal, elements, entries, is_record, key_text, shape_of
from .utils import entry_label, index_label, join_field

__all__ = [
    "TAG_KEY",
    "SKIP_TAG",
    "Validator",
    "constrained",
    "validate",
    "register_format",
    "default_validator",
]

log = get_logger(__name__)

TAG_KEY = "jsonschema"
SKIP_TAG = "-"

_CONTAINERS = (Shape.RECORD, Shape.MAPPING, Shape.SEQUENCE)


def constrained(tag: str, *, key: str = TAG_KEY, **kwargs: Any) -> Any:
    """Return a ``dataclasses.field`` whose metadata carries *tag*.

    Any other keyword (``default``, ``default_factory``, ``repr``...) is passed
    through to :func:`dataclasses.field`; existing ``metadata`` is merged.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[key] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


# --------------------------------------------------------------------------- #
# Engine                                                                      #
# --------------------------------------------------------------------------- #

class Validator:
    """Validates dataclass instances against their field constraint tags.

    A validator holds no per-call state, so one instance may validate
    independent values from several threads at once.
    """

    def __init__(self, formats: FormatRegistry | None = None, *, config: ValidatorConfig | None = None):
        self.config = config if config is not None else ValidatorConfig()
        self.formats = formats if formats is not None else FormatRegistry()
        self._parse = lru_cache(maxsize=self.config.tag_cache_size)(parse_tag)

    # ------------------------------------------------------------------ #
    # Public surface                                                     #
    # ------------------------------------------------------------------ #
    def register_format(self, name: str, checker: FormatChecker) -> None:
        """Add *checker* under *name*.

        The checker fails a string by raising ``ValueError`` or returning
        ``False``; see :mod:`tag_schema.formats`.
        """
        self.formats.register(name, checker)

    def parse_tag(self, raw: str) -> ConstraintSet:
        """Parse *raw*, reusing earlier results for the same text."""
        return self._parse(raw)

    def validate(self, value: Any) -> ValidationResult:
        """Validate the record *value* and return the result tree.

        Raises
        ------
        InputShapeError
            *value* is not a dataclass instance.
        TagSyntaxError
            a field carries a malformed tag and ``on_tag_error`` is
            ``"raise"``.
        """
        if not is_record(value):
            raise InputShapeError(f"validate expects a dataclass instance, got {type(value).__name__}")

        record = type(value).__name__
        log.debug("validation.start", record=record)
        result = ValidationResult()
        active = {id(value)}
        self._record(result, value, "", active, 0)
        log.debug("validation.finish", record=record, violations=sum(1 for _ in result.violations()))
        return result

    # ------------------------------------------------------------------ #
    # Tags                                                               #
    # ------------------------------------------------------------------ #
    def _constraints(self, raw: Any, path: str) -> ConstraintSet | None:
        if not isinstance(raw, str):
            err = TagSyntaxError(f"tag must be a string, got {type(raw).__name__}", tag=repr(raw))
            return self._tag_error(err, raw, path)
        if not raw:
            return None
        try:
            return self._parse(raw)
        except TagSyntaxError as exc:
            return self._tag_error(exc, raw, path)

    def _tag_error(self, exc: TagSyntaxError, raw: Any, path: str) -> None:
        if self.config.on_tag_error == "raise":
            raise exc.for_field(path) from exc
        log.warning("tag.ignored", field=path, tag=raw, reason=exc.reason)
        return None

    # ------------------------------------------------------------------ #
    # Dispatch                                                           #
    # ------------------------------------------------------------------ #
    def _value(
        self,
        node: ValidationResult,
        value: Any,
        path: str,
        cs: ConstraintSet | None,
        tag: str | None,
        active: set[int],
        depth: int,
    ) -> None:
        shape = shape_of(value)

        if shape is Shape.STRING:
            self._string(node, value, path, cs, tag)
            return
        # elements of a sequence are format-checked one by one
        if cs is not None and cs.format_name is not None and shape is not Shape.SEQUENCE:
            self._format(node, value, path, cs, tag)
        if shape is Shape.NUMBER:
            self._number(node, value, path, cs, tag)
            return
        if shape not in _CONTAINERS:
            return

        if depth > self.config.max_depth:
            node.add(ValidationResult.violation(
                path, "depth", f"Nesting deeper than {self.config.max_depth} levels", tag))
            return
        ident = id(value)
        if ident in active:
            node.add(ValidationResult.violation(path, "cycle", "Cyclic reference detected", tag))
            return

        child = ValidationResult()
        active.add(ident)
        try:
            if shape is Shape.RECORD:
                self._record(child, value, path, active, depth)
            elif shape is Shape.MAPPING:
                self._mapping(child, value, path, cs, tag, active, depth)
            else:
                self._sequence(child, value, path, cs, tag, active, depth)
        finally:
            active.discard(ident)
        node.add(child, label=path)

    # ------------------------------------------------------------------ #
    # Shapes                                                             #
    # ------------------------------------------------------------------ #
    def _record(self, node: ValidationResult, value: Any, path: str, active: set[int], depth: int) -> None:
        for f in dataclasses.fields(value):
            if f.name.startswith("_"):
                continue
            raw = f.metadata.get(self.config.tag_key, "")
            if raw == SKIP_TAG:
                continue

            field_path = join_field(path, f.name)
            cs = self._constraints(raw, field_path)

            item = getattr(value, f.name)
            if item is None:
                continue  # absent optional: nothing to check
            self._value(node, item, field_path, cs, raw if cs is not None else None, active, depth + 1)

    def _mapping(
        self,
        node: ValidationResult,
        value: Any,
        path: str,
        cs: ConstraintSet | None,
        tag: str | None,
        active: set[int],
        depth: int,
    ) -> None:
        items = entries(value)

        if cs is not None:
            count = len(items)
            if cs.min_properties is not None and count < cs.min_properties:
                node.add(ValidationResult.violation(
                    path, "minProperties",
                    f"Too few properties defined ({count}), minimum {cs.min_properties}", tag))
            if cs.max_properties is not None and count > cs.max_properties:
                node.add(ValidationResult.violation(
                    path, "maxProperties",
                    f"Too many properties defined ({count}), maximum {cs.max_properties}", tag))
            if cs.required:
                present = {key_text(k) for k, _ in items}
                if any(name not in present for name in cs.required):
                    node.add(ValidationResult.violation(
                        path, "required",
                        f"Missing required property: [{', '.join(cs.required)}]", tag))
            if cs.pattern_properties is not None:
                for k, _ in items:
                    text = key_text(k)
                    if not cs.pattern_properties.search(text):
                        node.add(ValidationResult.violation(
                            path, "patternProperties",
                            f"Property '{text}' does not match pattern: {cs.pattern_properties.pattern}", tag))

        # entries inherit nothing from the mapping's own constraints
        for k, item in items:
            self._value(node, k, entry_label(path, k, "key"), None, None, active, depth + 1)
            self._value(node, item, entry_label(path, k, "value"), None, None, active, depth + 1)

    def _sequence(
        self,
        node: ValidationResult,
        value: Any,
        path: str,
        cs: ConstraintSet | None,
        tag: str | None,
        active: set[int],
        depth: int,
    ) -> None:
        items = elements(value)
        count = len(items)

        if cs is not None:
            if cs.min_items is not None and count < cs.min_items:
                node.add(ValidationResult.violation(
                    path, "minItems", f"Array is too short ({count}), minimum {cs.min_items}", tag))
            if cs.max_items is not None and count > cs.max_items:
                node.add(ValidationResult.violation(
                    path, "maxItems", f"Array is too long ({count}), maximum {cs.max_items}", tag))
            if cs.unique_items:
                for i in range(1, count):
                    for j in range(i):
                        if deep_equal(items[i], items[j]):
                            node.add(ValidationResult.violation(
                                path, "uniqueItems",
                                f"Array items are not unique (indices {i} and {j})", tag))

        # elements share the sequence's constraints (e.g. pattern per item)
        for i, item in enumerate(items):
            self._value(node, item, index_label(path, i), cs, tag, active, depth + 1)

    def _string(self, node: ValidationResult, value: str, path: str, cs: ConstraintSet | None, tag: str | None) -> None:
        if cs is None or not cs.has_string():
            return

        length = len(value)  # code points, not bytes
        if cs.min_length is not None and length < cs.min_length:
            node.add(ValidationResult.violation(
                path, "minLength", f"String is too short ({length} chars), minimum {cs.min_length}", tag))
        if cs.max_length is not None and length > cs.max_length:
            node.add(ValidationResult.violation(
                path, "maxLength", f"String is too long ({length} chars), maximum {cs.max_length}", tag))

        if cs.pattern is not None and not cs.pattern.search(value):
            node.add(ValidationResult.violation(
                path, "pattern", f"String does not match pattern: {cs.pattern.pattern}", tag))

        if cs.format_name is not None:
            self._format(node, value, path, cs, tag)

        if cs.enum and value not in cs.enum:
            node.add(ValidationResult.violation(path, "enum", f"No enum match for: {value}", tag))

    def _format(self, node: ValidationResult, value: Any, path: str, cs: ConstraintSet, tag: str | None) -> None:
        name = cs.format_name
        if name not in self.formats:
            node.add(ValidationResult.violation(path, "format", f"Unknown format: {name}", tag))
            return
        if not isinstance(value, str):
            reason = f"{name}: invalid value kind {type(value).__name__}"
        else:
            try:
                self.formats.check(name, value)
                return
            except ValueError as exc:
                reason = str(exc)
        node.add(ValidationResult.violation(path, "format", f"Format validation failed ({reason})", tag))

    def _number(self, node: ValidationResult, value: Any, path: str, cs: ConstraintSet | None, tag: str | None) -> None:
        if cs is None:
            return
        for kind, message in check_number(to_decimal(value), cs):
            node.add(ValidationResult.violation(path, kind, message, tag))


# --------------------------------------------------------------------------- #
# Module-level convenience                                                    #
# --------------------------------------------------------------------------- #

_default: Validator | None = None
_default_lock = threading.Lock()


def default_validator() -> Validator:
    """Shared validator configured from the environment on first use."""
    global _default  # noqa: PLW0603
    with _default_lock:
        if _default is None:
            _default = Validator(config=load_config())
        return _default


def validate(value: Any) -> ValidationResult:
    """Validate *value* with the shared default validator."""
    return default_validator().validate(value)


def register_format(name: str, checker: FormatChecker) -> None:
    """Register *checker* under *name* on the shared default validator."""
    default_validator().register_format(name, checker)
