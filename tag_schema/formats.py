"""
formats.py - pluggable named string formats.

A format checker is a plain function ``checker(value: str)``.  It fails by
raising ``ValueError`` (usually :class:`~tag_schema.errors.FormatError`), whose
message becomes the failure reason, or by returning ``False``; any other return
value, ``None`` included, is success.  Predicates such as
``str.isidentifier`` therefore work unchanged.  Checkers only ever see
strings; the engine reports other value kinds itself.

Public API
----------
FormatRegistry
    Name -> checker table, pre-populated with the built-in formats and
    append-only afterwards.
BUILTIN_FORMATS
    The built-in name -> checker mapping.
"""

from __future__ import annotations

import re
import threading
from ipaddress import IPv4Address, IPv6Address
from typing import Callable, Iterator, Mapping, Optional
from urllib.parse import urlsplit

from .errors import FormatError, FormatRegistrationError
from .log import get_logger
from .utils import is_datetime

__all__ = ["FormatChecker", "FormatRegistry", "BUILTIN_FORMATS"]

log = get_logger(__name__)

FormatChecker = Callable[[str], Optional[bool]]

# --------------------------------------------------------------------------- #
# Built-in checkers                                                           #
# --------------------------------------------------------------------------- #

_LABEL_RE = re.compile(r"[A-Za-z0-9-]+")
_LOCAL_RE = re.compile(r"[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+")
_PCT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_IPV4_LABEL_RE = re.compile(r"\d{1,3}")


def date_time(value: str) -> None:
    if not is_datetime(value):
        raise FormatError(f"{value!r} is not an RFC 3339 date-time")


def _check_domain(name: str, what: str) -> None:
    name = name[:-1] if name.endswith(".") else name
    if not name:
        raise FormatError(f"{what} is empty")
    if len(name) > 253:
        raise FormatError(f"{what} is longer than 253 characters")
    if name[0].isdigit() or name[0] == "-":
        raise FormatError(f"{what} must not start with a digit or hyphen")
    for label in name.split("."):
        if not 1 <= len(label) <= 63:
            raise FormatError(f"{what} label {label!r} must be 1-63 characters")
        if label.endswith("-"):
            raise FormatError(f"{what} label {label!r} ends with a hyphen")
        if not _LABEL_RE.fullmatch(label):
            raise FormatError(f"{what} label {label!r} has invalid characters")


def hostname(value: str) -> None:
    _check_domain(value, "hostname")


def email(value: str) -> None:
    if len(value) > 254:
        raise FormatError("address is longer than 254 characters")
    local, at, domain = value.rpartition("@")
    if not at:
        raise FormatError("missing '@'")
    if not local or len(local) > 64:
        raise FormatError("local part must be 1-64 characters")
    if not _LOCAL_RE.fullmatch(local) or local.startswith(".") or local.endswith(".") or ".." in local:
        raise FormatError(f"invalid local part {local!r}")
    _check_domain(domain, "domain")


def ipv4(value: str) -> None:
    labels = value.split(".")
    if len(labels) != 4 or not all(_IPV4_LABEL_RE.fullmatch(x) for x in labels):
        raise FormatError(f"{value!r} is not a dotted-quad IPv4 address")
    try:
        IPv4Address(value)
    except ValueError as exc:
        raise FormatError(str(exc)) from exc


def ipv6(value: str) -> None:
    if ":" not in value:
        raise FormatError(f"{value!r} is not an IPv6 address")
    try:
        IPv6Address(value)
    except ValueError as exc:
        raise FormatError(str(exc)) from exc


def _split_uri(value: str):
    if any(c.isspace() or ord(c) < 0x20 or ord(c) == 0x7F for c in value):
        raise FormatError("URI contains whitespace or control characters")
    if _PCT_RE.search(value):
        raise FormatError("URI contains an invalid percent escape")
    try:
        parts = urlsplit(value)
        parts.port  # noqa: B018 - raises on a malformed port
    except ValueError as exc:
        raise FormatError(str(exc)) from exc
    return parts


def uri(value: str) -> None:
    if not _split_uri(value).scheme:
        raise FormatError(f"{value!r} is not an absolute URI")


def uri_reference(value: str) -> None:
    _split_uri(value)


def json_pointer(value: str) -> None:
    if value and not value.startswith("/"):
        raise FormatError("JSON pointer must be empty or start with '/'")
    for i, ch in enumerate(value):
        if ch == "~" and value[i + 1:i + 2] not in ("0", "1"):
            raise FormatError(f"invalid escape at offset {i} in JSON pointer")


BUILTIN_FORMATS: Mapping[str, FormatChecker] = {
    "date-time": date_time,
    "email": email,
    "hostname": hostname,
    "ipv4": ipv4,
    "ipv6": ipv6,
    "uri": uri,
    "uri-reference": uri_reference,
    "uri-template": uri_reference,
    "json-pointer": json_pointer,
}

# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #

class FormatRegistry:
    """Thread-safe, append-only name -> checker table."""

    def __init__(self, builtins: bool = True):
        self._lock = threading.Lock()
        self._checkers: dict[str, FormatChecker] = dict(BUILTIN_FORMATS) if builtins else {}

    def register(self, name: str, checker: FormatChecker) -> None:
        """Add *checker* under *name*; the first registration wins."""
        if not isinstance(name, str) or not name:
            raise FormatRegistrationError("format name must be a non-empty string")
        if checker is None or not callable(checker):
            raise FormatRegistrationError(f"format {name!r}: checker must be callable")
        with self._lock:
            if name in self._checkers:
                raise FormatRegistrationError(f"format {name!r} is already registered")
            self._checkers[name] = checker
        log.info("format.registered", format=name)

    def get(self, name: str) -> FormatChecker | None:
        with self._lock:
            return self._checkers.get(name)

    def check(self, name: str, value: str) -> None:
        """Run the checker for *name*.

        Raises ``KeyError`` if none is registered and ``ValueError`` when
        *value* fails; a ``False`` return becomes :class:`FormatError`.
        """
        checker = self.get(name)
        if checker is None:
            raise KeyError(name)
        if checker(value) is False:
            raise FormatError(f"{name}: rejected")

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._checkers)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._checkers

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        with self._lock:
            return len(self._checkers)
