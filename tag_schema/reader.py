"""
reader.py - byte-level cursor over a raw constraint tag.

The reader knows nothing about constraint keywords; it only moves through the
UTF-8 bytes of the tag and hands back literals.  Every failure is reported as
a :class:`~tag_schema.errors.TagSyntaxError` carrying the byte offset.
"""

from __future__ import annotations

from .errors import TagSyntaxError

__all__ = ["TagReader", "SEPARATOR", "DELIMITERS"]

SEPARATOR = ord(",")
DELIMITERS = frozenset(b":=")
_OPEN = ord("[")
_CLOSE = ord("]")


class TagReader:
    """Cursor over the bytes of one constraint tag."""

    def __init__(self, raw: str):
        self.raw = raw
        self._buf = raw.encode("utf-8")
        self._pos = 0

    # ------------------------------------------------------------------ #
    # State                                                              #
    # ------------------------------------------------------------------ #
    @property
    def position(self) -> int:
        return self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._buf)

    def error(self, reason: str, position: int | None = None) -> TagSyntaxError:
        """Build a syntax error pointing at *position* (default: cursor)."""
        return TagSyntaxError(reason, tag=self.raw, position=self._pos if position is None else position)

    # ------------------------------------------------------------------ #
    # Primitive reads                                                    #
    # ------------------------------------------------------------------ #
    def peek(self) -> int | None:
        """Return the next byte without consuming it, or None at the end."""
        if self.at_end():
            return None
        return self._buf[self._pos]

    def peek_matches(self, expected: bytes) -> bool:
        """True if the upcoming bytes equal *expected* (nothing consumed)."""
        return self._buf.startswith(expected, self._pos)

    def read_byte(self) -> int:
        if self.at_end():
            raise self.error("unexpected end of tag")
        b = self._buf[self._pos]
        self._pos += 1
        return b

    def read_bytes(self, num: int) -> bytes:
        """Consume exactly *num* bytes."""
        end = self._pos + num
        if end > len(self._buf):
            raise self.error("unexpected end of tag")
        chunk = self._buf[self._pos:end]
        self._pos = end
        return chunk

    def skip_delimiter(self) -> None:
        """Consume a single ``:`` or ``=``."""
        start = self._pos
        b = self.read_byte()
        if b not in DELIMITERS:
            raise self.error(f"expected ':' or '=', got {chr(b)!r}", start)

    # ------------------------------------------------------------------ #
    # Literals                                                           #
    # ------------------------------------------------------------------ #
    def read_literal(self) -> str:
        """Read up to the next ``,`` (consumed) or the end of the tag."""
        end = self._buf.find(SEPARATOR, self._pos)
        if end == -1:
            chunk = self._buf[self._pos:]
            self._pos = len(self._buf)
        else:
            chunk = self._buf[self._pos:end]
            self._pos = end + 1
        return self._decode(chunk)

    def read_list(self) -> list[str]:
        """Read a bracketed list such as ``[a, b, c]``.

        Tokens are split on ``,`` and stripped of surrounding whitespace.  The
        closing ``]`` is consumed; the separator after it is left in place.
        """
        start = self._pos
        if self.peek() != _OPEN:
            raise self.error("expected '[' to open a list", start)
        self._pos += 1
        end = self._buf.find(_CLOSE, self._pos)
        if end == -1:
            raise self.error("unterminated list, missing ']'", start)
        body = self._decode(self._buf[self._pos:end])
        self._pos = end + 1
        if not body.strip():
            return []
        return [token.strip() for token in body.split(",")]

    def expect_separator(self) -> None:
        """After a clause: accept the end of the tag or consume one ``,``."""
        if self.at_end():
            return
        start = self._pos
        b = self.read_byte()
        if b != SEPARATOR:
            raise self.error(f"expected ',' between clauses, got {chr(b)!r}", start)

    def _decode(self, chunk: bytes) -> str:
        try:
            return chunk.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self.error(f"literal is not valid UTF-8 ({exc.reason})") from exc
