"""Utility functions for the apidiff engine."""

from __future__ import annotations

import copy
import json
import math
from collections.abc import Mapping
from typing import Any

from .exceptions import UnsupportedValueError
from .models import ABSENT, JsonKind


def kind_of(value: Any, path: str = "") -> JsonKind:
    """
    Tag a JSON-like value with its kind.

    bool is checked before int since bool is an int subclass. Tuples count
    as arrays and any Mapping counts as an object.

    Raises:
        UnsupportedValueError: for anything that is not JSON-like
    """
    if value is None:
        return JsonKind.NULL
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(value, Mapping):
        return JsonKind.OBJECT
    raise UnsupportedValueError(type(value).__name__, path)


def is_js_falsy(value: Any) -> bool:
    """
    JavaScript truthiness: None, False, 0, NaN and "" are falsy.

    Unlike Python, empty arrays and objects are truthy.
    """
    if value is None or value is ABSENT or value is False:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value == ""
    return False


def format_path(path: tuple[str, ...] | list[str]) -> str:
    """Format a path for display; the root renders as '<root>'."""
    if not path:
        return "<root>"
    return ".".join(path)


def to_json_text(value: Any, indent: int = 2) -> str:
    """Pretty-print a value the way a browser's JSON.stringify would."""
    if value is ABSENT:
        return "undefined"
    return json.dumps(value, indent=indent, ensure_ascii=False, default=str)


def deep_copy(obj: Any) -> Any:
    """Create a deep copy of an object."""
    return copy.deepcopy(obj)


def get_json_size_mb(obj: Any) -> float:
    """Get the approximate size of a JSON object in megabytes."""
    json_str = json.dumps(obj, default=str)
    return len(json_str.encode('utf-8')) / (1024 * 1024)
