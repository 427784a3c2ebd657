"""Structural comparison of two JSON-like documents."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Optional

from .exceptions import CircularReferenceError, MaxDepthExceededError
from .models import ABSENT, DiffKind, Difference, EngineConfig
from .utils import format_path, is_js_falsy, kind_of


class Comparator:
    """
    Walks two documents depth-first (pre-order) and records one Difference
    per point of divergence.

    Handles:
    - Absent sides (reported as added/missing, no recursion)
    - Kind changes (reported as changed, no recursion)
    - Arrays, compared strictly by position
    - Objects, compared over the union of keys (left's order first)

    The inputs are never mutated. A Comparator instance is not meant to be
    shared between threads; the module-level ``compare`` builds a fresh one
    per call.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.differences: list[Difference] = []
        self.nodes_visited = 0
        self._active_pairs: set[tuple[int, int]] = set()

    def compare(self, left: Any, right: Any) -> list[Difference]:
        """
        Compare two documents.

        Args:
            left: The left (first) document
            right: The right (second) document

        Returns:
            Differences in depth-first pre-order

        Raises:
            MaxDepthExceededError: documents nest deeper than config.max_depth
            CircularReferenceError: both documents loop back on themselves
            UnsupportedValueError: a value is not JSON-like
        """
        self.differences = []
        self.nodes_visited = 0
        self._active_pairs = set()

        self._walk(left, right, ())
        return list(self.differences)

    def _walk(self, left: Any, right: Any, path: tuple[str, ...]):
        self.nodes_visited += 1

        if left is right:
            return

        if len(path) > self.config.max_depth:
            raise MaxDepthExceededError(self.config.max_depth, format_path(path))

        where = format_path(path)
        left_kind = kind_of(left, where)
        right_kind = kind_of(right, where)

        if left_kind == right_kind and not left_kind.is_container and left == right:
            return

        left_absent = self._is_absent(left)
        if left_absent or self._is_absent(right):
            self._add(
                path,
                left,
                right,
                DiffKind.ADDED if left_absent else DiffKind.MISSING
            )
            return

        if left_kind != right_kind:
            self._add(path, left, right, DiffKind.CHANGED)
            return

        if not left_kind.is_container:
            self._add(path, left, right, DiffKind.CHANGED)
            return

        pair = (id(left), id(right))
        if pair in self._active_pairs:
            raise CircularReferenceError(where)

        self._active_pairs.add(pair)
        try:
            if isinstance(left, Mapping):
                self._walk_objects(left, right, path)
            else:
                self._walk_arrays(left, right, path)
        finally:
            self._active_pairs.discard(pair)

    def _walk_arrays(self, left: Sequence, right: Sequence, path: tuple[str, ...]):
        """Compare arrays index-by-index (order matters)."""
        for i in range(max(len(left), len(right))):
            child_path = path + (str(i),)

            if i >= len(left):
                self._add(child_path, ABSENT, right[i], DiffKind.ADDED)
            elif i >= len(right):
                self._add(child_path, left[i], ABSENT, DiffKind.MISSING)
            else:
                self._walk(left[i], right[i], child_path)

    def _walk_objects(self, left: Mapping, right: Mapping, path: tuple[str, ...]):
        """Compare two objects over the union of their keys."""
        all_keys = list(left.keys())
        all_keys.extend(key for key in right.keys() if key not in left)

        for key in all_keys:
            child_path = path + (str(key),)

            if key not in left:
                self._add(child_path, ABSENT, right[key], DiffKind.ADDED)
            elif key not in right:
                self._add(child_path, left[key], ABSENT, DiffKind.MISSING)
            else:
                self._walk(left[key], right[key], child_path)

    def _is_absent(self, value: Any) -> bool:
        # Falsy values (0, "", False) count as absent unless strict presence is on
        if self.config.falsy_as_absent:
            return is_js_falsy(value)
        return value is None

    def _add(self, path: tuple[str, ...], left: Any, right: Any, kind: DiffKind):
        self.differences.append(Difference(
            path=path,
            left=left,
            right=right,
            kind=kind
        ))


def compare(
    left: Any,
    right: Any,
    config: Optional[EngineConfig] = None
) -> list[Difference]:
    """
    Compare two JSON-like documents and list their structural differences.

    Example:
        >>> [d.to_dict() for d in compare({"a": 1, "b": 2}, {"b": 2, "c": 3})]
        [{'path': ['a'], 'kind': 'missing', 'left': 1}, {'path': ['c'], 'kind': 'added', 'right': 3}]
    """
    return Comparator(config).compare(left, right)
