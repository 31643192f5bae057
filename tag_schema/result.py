"""
result.py - hierarchical validation outcome.

A :class:`ValidationResult` node mirrors one value in the validated data.
Leaves carry a violation (``message`` + ``kind``); inner nodes group the
violations found inside a record, mapping or sequence.  Success is the
absence of any non-clean node: a freshly created node is clean, and
:meth:`ValidationResult.add` drops clean children, so a valid tree is simply
an empty root.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from .errors import ConstraintViolationError

__all__ = ["ValidationResult"]


@dataclass
class ValidationResult:
    """One node of the result tree."""

    label: str | None = None
    message: str | None = None
    kind: str | None = None
    tag: str | None = None
    children: list["ValidationResult"] = field(default_factory=list)

    # ------------------------------------------------------------------ #
    # Construction                                                       #
    # ------------------------------------------------------------------ #
    @classmethod
    def violation(cls, label: str, kind: str, message: str, tag: str | None = None) -> "ValidationResult":
        return cls(label=label, message=message, kind=kind, tag=tag)

    def add(self, child: "ValidationResult", label: str | None = None) -> None:
        """Attach *child* unless it is clean; *label* names an unlabelled child."""
        if child.is_clean():
            return
        if label is not None and child.label is None:
            child.label = label
        self.children.append(child)

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #
    def is_clean(self) -> bool:
        return self.label is None and self.message is None and not self.children

    @property
    def valid(self) -> bool:
        return all(node.is_clean() for node in self.walk())

    def walk(self) -> Iterator["ValidationResult"]:
        """Depth-first, pre-order iteration over every node."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def violations(self) -> Iterator["ValidationResult"]:
        """Every node that carries a violation message, in tree order."""
        return (node for node in self.walk() if node.message is not None)

    def messages(self) -> list[str]:
        return [node.message for node in self.violations()]  # type: ignore[misc]

    def kinds(self) -> list[str | None]:
        return [node.kind for node in self.violations()]

    def paths(self) -> list[str | None]:
        return [node.label for node in self.violations()]

    # ------------------------------------------------------------------ #
    # Output                                                             #
    # ------------------------------------------------------------------ #
    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key in ("label", "message", "kind", "tag"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out

    def raise_for_violations(self) -> None:
        """Raise :class:`ConstraintViolationError` if the tree is not valid."""
        if not self.valid:
            raise ConstraintViolationError(self)

    def __str__(self) -> str:
        return "; ".join(self.messages())
