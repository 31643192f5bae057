"""
config.py - validator settings.

Public API
----------
ValidatorConfig  : frozen dataclass holding every tunable
load_config()    : read settings from a JSON file and the environment

Environment
-----------
TAG_SCHEMA_CONFIG       path to a JSON object with any ValidatorConfig keys
TAG_SCHEMA_MAX_DEPTH    overrides ``max_depth``
TAG_SCHEMA_ON_TAG_ERROR overrides ``on_tag_error`` (``raise`` | ``ignore``)
TAG_SCHEMA_TAG_KEY      overrides ``tag_key``

Environment overrides win over the file, which wins over the defaults.
"""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

__all__ = ["ValidatorConfig", "load_config", "TAG_ERROR_POLICIES"]

TAG_ERROR_POLICIES = ("raise", "ignore")

_ENV_PATH = "TAG_SCHEMA_CONFIG"
_ENV_OVERRIDES = {
    "TAG_SCHEMA_MAX_DEPTH": "max_depth",
    "TAG_SCHEMA_ON_TAG_ERROR": "on_tag_error",
    "TAG_SCHEMA_TAG_KEY": "tag_key",
}


@dataclass(frozen=True)
class ValidatorConfig:
    """Settings shared by every validation a :class:`Validator` performs.

    ``tag_key``
        dataclass field-metadata key holding the constraint tag.
    ``max_depth``
        deepest nesting the engine descends into before recording a
        ``depth`` violation.
    ``on_tag_error``
        ``"raise"`` propagates a malformed tag as ``TagSyntaxError``;
        ``"ignore"`` logs it and treats the field as unconstrained.
    ``tag_cache_size``
        number of parsed tags kept per validator.
    """

    tag_key: str = "jsonschema"
    max_depth: int = 64
    on_tag_error: str = "raise"
    tag_cache_size: int = 1024

    def __post_init__(self) -> None:
        if not isinstance(self.tag_key, str) or not self.tag_key:
            raise ValueError("tag_key must be a non-empty string")
        if not isinstance(self.max_depth, int) or isinstance(self.max_depth, bool) or self.max_depth < 1:
            raise ValueError(f"max_depth must be a positive integer, got {self.max_depth!r}")
        if self.on_tag_error not in TAG_ERROR_POLICIES:
            raise ValueError(f"on_tag_error must be one of {TAG_ERROR_POLICIES}, got {self.on_tag_error!r}")
        if not isinstance(self.tag_cache_size, int) or isinstance(self.tag_cache_size, bool) or self.tag_cache_size < 0:
            raise ValueError(f"tag_cache_size must be a non-negative integer, got {self.tag_cache_size!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ValidatorConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown config keys {sorted(unknown)}")
        return cls(**dict(data))


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #

def _read(path: Path) -> Mapping[str, Any]:
    """Read & parse a JSON config, raising crisp errors on failure."""
    try:
        with path.open(encoding="utf-8") as fd:
            data = json.load(fd)
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"Config not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config JSON in {path} must be an object at top level")
    return data


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for var, key in _ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        if key == "max_depth":
            try:
                out[key] = int(raw)
            except ValueError as exc:
                raise ValueError(f"{var} must be an integer, got {raw!r}") from exc
        else:
            out[key] = raw
    return out


# --------------------------------------------------------------------------- #
# Public utilities                                                            #
# --------------------------------------------------------------------------- #

def load_config(path: str | Path | None = None, *, environ: Mapping[str, str] | None = None) -> ValidatorConfig:
    """Build a :class:`ValidatorConfig` from *path* and the environment.

    Parameters
    ----------
    path : Path | str | None
        JSON file to read.  When omitted, ``$TAG_SCHEMA_CONFIG`` is used if
        set; otherwise only defaults and environment overrides apply.
    environ : Mapping | None
        Environment to consult (defaults to ``os.environ``).
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is None and env.get(_ENV_PATH):
        path = env[_ENV_PATH]
    if path is not None:
        data.update(_read(Path(path).expanduser().resolve()))

    data.update(_env_overrides(env))
    return ValidatorConfig.from_mapping(data)
