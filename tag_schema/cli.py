"""
cli.py - command-line front end
===============================

Thin argparse wrapper around the parser and the engine, mostly useful for
trying tags out from a shell.

Usage
-----
    tag-schema parse 'maxLength:5,pattern:^[a-z]+$'
    tag-schema check 'minimum:5,exclusiveMinimum:true' 5
    tag-schema check 'required:[a,b]' payload.json --markdown
    tag-schema formats

``VALUE`` is either the path of an existing JSON file or a JSON literal;
JSON numbers with a fraction are read as :class:`decimal.Decimal` so no
precision is lost before validation.

Exit status: 0 valid, 1 violations found, 2 malformed tag or unreadable input.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Sequence

from .card import to_markdown_card
from .config import load_config
from .errors import SchemaError, TagSyntaxError
from .log import configure_logging, get_logger
from .parser import parse_tag
from .validator import Validator, constrained

__all__ = ["build_arg_parser", "parse_value", "main"]

log = get_logger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_ERROR = 2

# --------------------------------------------------------------------------- #
# Parser builder                                                              #
# --------------------------------------------------------------------------- #

def build_arg_parser() -> argparse.ArgumentParser:
    """Return the :pyclass:`argparse.ArgumentParser` for ``tag-schema``."""
    p = argparse.ArgumentParser(
        prog="tag-schema",
        description="Parse constraint tags and validate values against them.",
        fromfile_prefix_chars="@",
        add_help=False,
    )

    # standard meta flags ----------------------------------------------------
    p.add_argument("-h", "--help", action="help", help="Show this help message and exit.")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Threshold for diagnostic logging on stderr.",
    )
    p.add_argument("--json-logs", action="store_true", help="Emit log records as JSON lines.")
    p.add_argument(
        "--config",
        metavar="FILE",
        help="JSON file with validator settings (defaults to $TAG_SCHEMA_CONFIG).",
    )

    sub = p.add_subparsers(dest="command", required=True)

    parse = sub.add_parser("parse", help="Parse TAG and print its canonical form.")
    parse.add_argument("tag", metavar="TAG")
    parse.add_argument("--json", action="store_true", help="Print the constraints as a JSON object.")

    check = sub.add_parser("check", help="Validate VALUE against TAG.")
    check.add_argument("tag", metavar="TAG")
    check.add_argument("value", metavar="VALUE", help="JSON literal, or path to a JSON file.")
    output = check.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="Print the result tree as JSON.")
    output.add_argument("--markdown", action="store_true", help="Print a Markdown report.")

    sub.add_parser("formats", help="List the registered format names.")
    return p

# --------------------------------------------------------------------------- #
# Input parsing utility                                                       #
# --------------------------------------------------------------------------- #

def parse_value(source: str | Path) -> Any:
    """Turn *source* into a Python value.

    * ``Path`` or ``str`` naming an existing file - JSON loaded from disk.
    * any other ``str`` - parsed as a JSON literal.
    """
    if isinstance(source, Path) or os.path.isfile(source):
        text = Path(source).read_text(encoding="utf-8")
    else:
        text = source
    try:
        return json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise ValueError(f"VALUE is neither a JSON file nor a JSON literal: {exc}") from exc

# --------------------------------------------------------------------------- #
# Commands                                                                    #
# --------------------------------------------------------------------------- #

def _cmd_parse(args: argparse.Namespace, out) -> int:
    cs = parse_tag(args.tag)
    if args.json:
        print(json.dumps(cs.to_dict(), indent=2), file=out)
    else:
        print(cs.to_tag(), file=out)
    return EXIT_OK


def _cmd_check(args: argparse.Namespace, validator: Validator, out) -> int:
    validator.parse_tag(args.tag)  # malformed tags always exit 2, whatever the policy
    value = parse_value(args.value)

    record_type = dataclasses.make_dataclass(
        "Input",
        [("value", Any, constrained(args.tag, key=validator.config.tag_key))],
    )
    result = validator.validate(record_type(value))

    if args.json:
        print(json.dumps({"valid": result.valid, "result": result.to_dict()}, indent=2), file=out)
    elif args.markdown:
        print(to_markdown_card(result), file=out)
    elif result.valid:
        print("valid", file=out)
    else:
        for node in result.violations():
            print(f"{node.label}: {node.message}", file=out)
    return EXIT_OK if result.valid else EXIT_VIOLATIONS


def _cmd_formats(validator: Validator, out) -> int:
    for name in validator.formats.names():
        print(name, file=out)
    return EXIT_OK


def main(argv: Sequence[str] | None = None, *, out=None) -> int:
    """Entry point for the ``tag-schema`` console script."""
    out = sys.stdout if out is None else out
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.log_level, json_logs=args.json_logs)

    try:
        validator = Validator(config=load_config(args.config))
        if args.command == "parse":
            return _cmd_parse(args, out)
        if args.command == "check":
            return _cmd_check(args, validator, out)
        return _cmd_formats(validator, out)
    except TagSyntaxError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except (SchemaError, ValueError, OSError) as exc:
        log.error("cli.failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
