"""
tag_schema – Validate dataclass instances against compact constraint tags.
"""
import logging

from .card import to_markdown_card
from .config import ValidatorConfig, load_config
from .constraints import ConstraintSet
from .errors import (
    ConstraintViolationError,
    FormatError,
    FormatRegistrationError,
    InputShapeError,
    SchemaError,
    TagSyntaxError,
)
from .formats import FormatRegistry
from .parser import parse_tag
from .result import ValidationResult
from .validator import Validator, constrained, register_format, validate

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"

__all__ = [
    "validate",
    "register_format",
    "constrained",
    "parse_tag",
    "Validator",
    "ValidatorConfig",
    "load_config",
    "ConstraintSet",
    "ValidationResult",
    "FormatRegistry",
    "to_markdown_card",
    "SchemaError",
    "TagSyntaxError",
    "InputShapeError",
    "FormatRegistrationError",
    "ConstraintViolationError",
    "FormatError",
]
