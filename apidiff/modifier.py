"""Response modifiers applied to a fetched document before comparison."""

from __future__ import annotations

import json
import textwrap
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .exceptions import ModifierError
from .jsonpath_utils import JSONPathMatcher
from .log import get_logger
from .models import RequestConfig
from .utils import deep_copy

_log = get_logger("modifier")

SUPPORTED_OPERATIONS = ("drop", "set")


@dataclass
class ModifierOutcome:
    """The value to compare and whether a modifier produced it."""
    value: Any
    applied: bool = False
    error: Optional[str] = None


def compile_snippet(source: str) -> Callable[[Any], Any]:
    """
    Compile a modifier snippet into a function of ``response``.

    The snippet is a function body. Its return value becomes the modified
    response; a snippet that does not return keeps the (possibly mutated)
    response it was given.

    Example snippet:
        if response.get("ip") == "":
            response["ip"] = "0.0.0.0"
        return response
    """
    body = textwrap.dedent(source).strip("\n")
    if not body.strip():
        body = "pass"

    code = "def _modifier(response):\n{}\n    return response\n".format(
        textwrap.indent(body, "    ")
    )

    try:
        compiled = compile(code, "<modifier>", "exec")
    except SyntaxError as e:
        raise ModifierError(f"Modifier has a syntax error on line {e.lineno}: {e.msg}", e)

    namespace: dict[str, Any] = {"json": json}
    exec(compiled, namespace)
    return namespace["_modifier"]


def apply_operations(data: Any, operations: list[dict]) -> Any:
    """
    Apply declarative JSONPath operations in order.

    Supported:
    - {"op": "drop", "path": "$..requestId"}
    - {"op": "set", "path": "$.ip", "value": "0.0.0.0"}
    """
    for index, operation in enumerate(operations):
        if not isinstance(operation, dict):
            raise ModifierError(f"Operation #{index} must be an object")

        op = operation.get("op")
        path = operation.get("path")
        if op not in SUPPORTED_OPERATIONS:
            raise ModifierError(
                f"Operation #{index} has unsupported op '{op}' "
                f"(expected one of {', '.join(SUPPORTED_OPERATIONS)})"
            )
        if not path or not isinstance(path, str):
            raise ModifierError(f"Operation #{index} ({op}) requires a JSONPath string")

        if op == "drop":
            data = JSONPathMatcher.delete_paths(data, [path])
        else:
            if "value" not in operation:
                raise ModifierError(f"Operation #{index} (set) requires a value")
            data = JSONPathMatcher.set_value(data, path, operation["value"])

    return data


class ResponseModifier:
    """
    Transforms a response document.

    The raw document is deep-copied first, so neither the operations nor
    the snippet can change the caller's value.
    """

    def __init__(self, source: Optional[str] = None, operations: Optional[list[dict]] = None):
        self.source = source
        self.operations = operations or []
        self._func = compile_snippet(source) if source else None

    @property
    def is_noop(self) -> bool:
        return self._func is None and not self.operations

    def apply(self, raw: Any) -> Any:
        """
        Apply operations, then the snippet, to a copy of raw.

        Raises:
            ModifierError: if an operation or the snippet fails, or the
                snippet returns something that is not JSON-serializable
        """
        data = deep_copy(raw)

        if self.operations:
            data = apply_operations(data, self.operations)

        if self._func is not None:
            try:
                data = self._func(data)
            except Exception as e:
                raise ModifierError(f"Modifier raised {type(e).__name__}: {e}", e) from e

            try:
                json.dumps(data)
            except (TypeError, ValueError) as e:
                raise ModifierError(f"Modifier returned a non-JSON value: {e}", e) from e

        return data


def apply_modifier(
    raw: Any,
    request: Optional[RequestConfig] = None,
    source: Optional[str] = None,
    operations: Optional[list[dict]] = None,
    side: str = ""
) -> ModifierOutcome:
    """
    Apply a request's modifier to its response, falling back to the raw value.

    Explicit ``source``/``operations`` take precedence over the request's.
    Failures are logged and reported on the outcome, never raised.
    """
    if request is not None:
        source = source if source is not None else request.modifier
        operations = operations if operations is not None else request.operations

    if not source and not operations:
        return ModifierOutcome(value=raw)

    try:
        modifier = ResponseModifier(source, operations)
        return ModifierOutcome(value=modifier.apply(raw), applied=True)
    except ModifierError as e:
        _log.warning("modifier_failed", side=side, error=e.message)
        return ModifierOutcome(value=raw, applied=False, error=e.message)
