"""Data models for the apidiff engine."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .exceptions import ValidationError


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class JsonKind(Enum):
    """Runtime tag of a JSON-like value."""
    NULL = "null"
    BOOL = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_container(self) -> bool:
        return self in (JsonKind.ARRAY, JsonKind.OBJECT)


class DiffKind(Enum):
    MISSING = "missing"
    ADDED = "added"
    CHANGED = "changed"


class _Absent:
    """Marker for "no value exists at this path" (not the same as JSON null)."""

    _instance: Optional[_Absent] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self):
        return (_Absent, ())

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


ABSENT = _Absent()


HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")


@dataclass
class EngineConfig:
    """Global configuration for the comparison engine."""
    max_depth: int = 200
    max_payload_size_mb: float = 50
    falsy_as_absent: bool = True
    request_timeout_seconds: float = 30.0
    log_level: LogLevel = LogLevel.INFO


@dataclass(frozen=True)
class Difference:
    """A single point of structural divergence between two documents."""
    path: tuple[str, ...]
    left: Any
    right: Any
    kind: DiffKind

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)

    def to_dict(self) -> dict:
        result = {
            "path": list(self.path),
            "kind": self.kind.value,
        }
        if self.left is not ABSENT:
            result["left"] = self.left
        if self.right is not ABSENT:
            result["right"] = self.right
        return result


@dataclass
class RequestConfig:
    """One side of a comparison: the request to issue and how to modify its response."""
    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    modifier: Optional[str] = None
    operations: list[dict] = field(default_factory=list)
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict, name: Optional[str] = None) -> RequestConfig:
        """
        Build a request from a session/scenario block.

        Header entries with an empty key or value are dropped.
        """
        if not isinstance(data, dict):
            raise ValidationError(
                "request must be an object",
                {"type": type(data).__name__}
            )

        url = data.get("url")
        if not url or not isinstance(url, str):
            raise ValidationError("request url is required", {"name": name})

        method = str(data.get("method", "GET")).upper()
        if method not in HTTP_METHODS:
            raise ValidationError(
                f"Unsupported HTTP method: {method}",
                {"allowed": list(HTTP_METHODS)}
            )

        raw_headers = data.get("headers") or {}
        if isinstance(raw_headers, list):
            # [{key: ..., value: ...}] rows as entered in a form
            raw_headers = {
                row.get("key"): row.get("value")
                for row in raw_headers
                if isinstance(row, dict)
            }
        if not isinstance(raw_headers, dict):
            raise ValidationError("request headers must be a mapping", {"name": name})
        headers = {
            str(key): str(value)
            for key, value in raw_headers.items()
            if key and value
        }

        body = data.get("body", "")
        if body is None:
            body = ""
        elif not isinstance(body, str):
            # Structured bodies in YAML are sent as JSON text
            body = json.dumps(body)

        operations = data.get("operations") or []
        if not isinstance(operations, list):
            raise ValidationError("request operations must be a list", {"name": name})

        return cls(
            url=url,
            method=method,
            headers=headers,
            body=body,
            modifier=data.get("modifier") or None,
            operations=operations,
            name=data.get("name", name),
        )


@dataclass
class FetchResult:
    """Outcome of issuing one request."""
    ok: bool
    value: Any = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    elapsed_ms: int = 0

    def to_dict(self) -> dict:
        result = {
            "ok": self.ok,
            "status_code": self.status_code,
            "elapsed_ms": self.elapsed_ms,
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class ExecutionInfo:
    """Execution metadata."""
    duration_ms: int
    timestamp: str
    engine_version: str = "1.0.0"

    def to_dict(self) -> dict:
        return {
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
            "engine_version": self.engine_version,
        }


@dataclass
class Summary:
    """Summary statistics of comparison."""
    total: int = 0
    added: int = 0
    missing: int = 0
    changed: int = 0

    @classmethod
    def from_differences(cls, differences: list[Difference]) -> Summary:
        summary = cls(total=len(differences))
        for diff in differences:
            if diff.kind == DiffKind.ADDED:
                summary.added += 1
            elif diff.kind == DiffKind.MISSING:
                summary.missing += 1
            else:
                summary.changed += 1
        return summary

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "added": self.added,
            "missing": self.missing,
            "changed": self.changed,
        }


@dataclass
class DiffReport:
    """Complete comparison report."""
    is_match: bool
    execution: ExecutionInfo
    summary: Summary
    differences: list[Difference] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_match": self.is_match,
            "execution": self.execution.to_dict(),
            "summary": self.summary.to_dict(),
            "differences": [d.to_dict() for d in self.differences],
        }


@dataclass
class ErrorResponse:
    """Error response structure."""
    success: bool = False
    error: Optional[dict] = None

    def to_dict(self) -> dict:
        result = {"success": self.success}
        if self.error:
            result["error"] = self.error
        return result
