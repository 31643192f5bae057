# tag_schema/card.py
from __future__ import annotations
from typing import Any, Sequence

from .result import ValidationResult

__all__ = ["to_markdown_card"]

def _format_scalar(v: Any) -> str:
    """Return a Markdown-safe scalar string."""
    if v is True:   return "true"
    if v is False:  return "false"
    if v is None:   return "null"
    return str(v)

def _format_list(v: Sequence[Any]) -> str:
    """Return a bulleted Markdown list (no surrounding blank lines)."""
    return "\n".join(f"- {_format_scalar(item)}" for item in v)

def _group(result: ValidationResult) -> dict[str, list[ValidationResult]]:
    groups: dict[str, list[ValidationResult]] = {}
    for node in result.violations():
        groups.setdefault(node.label or "(root)", []).append(node)
    return groups

def to_markdown_card(
    result: ValidationResult,
    *,
    heading_level: int = 2,
    title: str = "Validation Report",
) -> str:
    """
    Render a validation *result* as a Markdown card.

    Parameters
    ----------
    result : ValidationResult
        Tree returned by :meth:`Validator.validate`.
    heading_level : int, default 2
        Markdown heading level for the title; each offending path gets a
        heading one level deeper.
    title : str
        Text of the top heading.

    Returns
    -------
    str
        Markdown document.  A valid result renders as the title plus a
        one-line "no violations" note.
    """
    h = "#" * heading_level
    parts: list[str] = [f"{h} {title}"]
    groups = _group(result)
    if not groups:
        parts.append("No violations.")
        return "\n".join(parts)

    count = sum(len(nodes) for nodes in groups.values())
    parts.append(f"**Violations**: {count}")
    parts.append("")
    for path, nodes in groups.items():
        parts.append(f"{h}# `{path}`")
        parts.append(_format_list([f"**{n.kind}**: {n.message}" for n in nodes]))
        parts.append("")             # blank line after each section
    return "\n".join(parts).rstrip()
