"""Turning raw model output into validated storyboard payloads."""

from .extraction import build_fallback, extract_partial
from .parsing import ResponseParser, parse
from .repair import (
    clip_to_braces,
    close_open_structures,
    lenient_strip,
    normalize_body,
    strip_code_fence,
)
from .schema import SCENE_FIELDS, TOP_LEVEL_FIELDS, FieldSpec, scene_template
from .validation import SchemaValidator, validate, validate_strict

__all__ = [
    "SCENE_FIELDS",
    "TOP_LEVEL_FIELDS",
    "FieldSpec",
    "ResponseParser",
    "SchemaValidator",
    "build_fallback",
    "clip_to_braces",
    "close_open_structures",
    "extract_partial",
    "lenient_strip",
    "normalize_body",
    "parse",
    "scene_template",
    "strip_code_fence",
    "validate",
    "validate_strict",
]
