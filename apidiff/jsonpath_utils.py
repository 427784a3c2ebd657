"""JSONPath utilities for response modifiers."""

from __future__ import annotations

from typing import Any

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JSONPathError

from .exceptions import ModifierError

# Raised by jsonpath-ng when a path does not fit the document, e.g. a field
# lookup on a number or an index into an object.
_SHAPE_ERRORS = (TypeError, KeyError, IndexError, AttributeError, ValueError)


class JSONPathMatcher:
    """Utility class for JSONPath matching and in-place edits."""

    # Cache for compiled JSONPath expressions
    _cache: dict = {}

    @classmethod
    def compile(cls, path: str):
        """Compile and cache a JSONPath expression."""
        if path not in cls._cache:
            try:
                cls._cache[path] = jsonpath_parse(path)
            except JSONPathError as e:
                raise ModifierError(f"Invalid JSONPath expression '{path}': {e}", e)
        return cls._cache[path]

    @classmethod
    def find_values(cls, data: Any, path: str) -> list[Any]:
        """Find all values matching a JSONPath expression."""
        expr = cls.compile(path)
        return [m.value for m in expr.find(data)]

    @classmethod
    def delete_paths(cls, data: Any, paths: list[str]) -> Any:
        """
        Delete everything matching the given JSONPath expressions.

        Args:
            data: The data to modify (will be modified in place)
            paths: List of JSONPath expressions

        Returns:
            Modified data

        Raises:
            ModifierError: if a path cannot be applied to the data's shape
        """
        for path in paths:
            expr = cls.compile(path)
            try:
                data = expr.filter(lambda _: True, data)
            except _SHAPE_ERRORS as e:
                raise ModifierError(f"Cannot drop '{path}': {type(e).__name__}: {e}", e) from e
        return data

    @classmethod
    def set_value(cls, data: Any, path: str, value: Any) -> Any:
        """
        Set a value at every match of the given JSONPath.

        Missing object fields along a plain dotted path are created.
        """
        if path in ("$", ""):
            return value

        expr = cls.compile(path)
        try:
            if cls.find_values(data, path):
                return expr.update(data, value)
            return expr.update_or_create(data, value)
        except _SHAPE_ERRORS as e:
            raise ModifierError(f"Cannot set '{path}': {type(e).__name__}: {e}", e) from e
