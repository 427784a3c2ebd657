"""Plain-text presentation of comparison results."""

from __future__ import annotations

import difflib
import itertools
from typing import Any

from .models import ABSENT, DiffReport, Difference, ErrorResponse
from .utils import format_path, to_json_text

NO_DIFFERENCES = "No differences found"


def _indent(text: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line for line in text.splitlines())


def render_differences(differences: list[Difference]) -> str:
    """Detailed listing: one block per difference with both values."""
    if not differences:
        return NO_DIFFERENCES

    lines = ["Detailed Differences", "=" * 20]
    for diff in differences:
        lines.append("")
        lines.append(f"Path: {format_path(diff.path)}  [{diff.kind.value}]")
        lines.append("  Left Value:")
        lines.append(_indent(to_json_text(diff.left)))
        lines.append("  Right Value:")
        lines.append(_indent(to_json_text(diff.right)))
    return "\n".join(lines)


def render_visual_diff(
    left: Any,
    right: Any,
    context: int = 3,
    side_by_side: bool = False,
    width: int = 60,
) -> str:
    """
    Line diff of the pretty-printed documents.

    Returns an empty string when there is nothing on either side.
    """
    if left in (None, ABSENT) and right in (None, ABSENT):
        return ""

    left_lines = to_json_text(left).splitlines()
    right_lines = to_json_text(right).splitlines()

    if side_by_side:
        return _side_by_side(left_lines, right_lines, width)

    return "\n".join(difflib.unified_diff(
        left_lines,
        right_lines,
        fromfile="Response 1",
        tofile="Response 2",
        n=context,
        lineterm="",
    ))


def _side_by_side(left_lines: list[str], right_lines: list[str], width: int) -> str:
    def cell(text: str) -> str:
        if len(text) > width:
            text = text[:width - 1] + "…"
        return text.ljust(width)

    rows = [f"  {cell('Response 1')} | {cell('Response 2')}"]
    rows.append("-" * (2 * width + 5))

    matcher = difflib.SequenceMatcher(a=left_lines, b=right_lines, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        pairs = itertools.zip_longest(left_lines[i1:i2], right_lines[j1:j2], fillvalue="")
        marker = {"equal": " ", "replace": "~", "delete": "-", "insert": "+"}[tag]
        for old, new in pairs:
            rows.append(f"{marker} {cell(old)} | {cell(new)}")

    return "\n".join(rows)


def render_report(result: DiffReport | ErrorResponse) -> str:
    """One-paragraph summary of an engine result followed by the listing."""
    if isinstance(result, ErrorResponse):
        error = result.error or {}
        return f"Error [{error.get('code', 'UNKNOWN')}]: {error.get('message', '')}"

    summary = result.summary
    header = (
        f"{summary.total} difference(s): "
        f"{summary.added} added, {summary.missing} missing, {summary.changed} changed"
    )
    return f"{header}\n\n{render_differences(result.differences)}"
