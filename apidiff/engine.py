"""Main comparison engine for apidiff."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Optional

from .comparator import Comparator
from .exceptions import (
    ValidationError,
    PayloadSizeError,
    MaxDepthExceededError,
    CircularReferenceError,
    UnsupportedValueError,
)
from .log import get_logger
from .models import (
    EngineConfig,
    DiffReport,
    ExecutionInfo,
    Summary,
    ErrorResponse,
)
from .utils import get_json_size_mb

_log = get_logger("engine")


class ApiDiffEngine:
    """
    Compares two (already fetched and modified) response documents.

    1. Validation: payload size limits
    2. Comparison: structural walk producing Difference records
    3. Reporting: summary counts and execution metadata
    """

    VERSION = "1.0.0"

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
        """
        self.config = config or EngineConfig()

    def compare(self, left: Any, right: Any) -> DiffReport | ErrorResponse:
        """
        Compare two JSON documents.

        Args:
            left: The first response document
            right: The second response document

        Returns:
            DiffReport on success, ErrorResponse on validation/processing errors
        """
        start_time = time.time()

        try:
            self._validate_inputs(left, right)

            comparator = Comparator(self.config)
            differences = comparator.compare(left, right)

            duration_ms = int((time.time() - start_time) * 1000)
            report = DiffReport(
                is_match=len(differences) == 0,
                execution=ExecutionInfo(
                    duration_ms=duration_ms,
                    timestamp=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
                    engine_version=self.VERSION
                ),
                summary=Summary.from_differences(differences),
                differences=differences
            )

            _log.debug(
                "comparison_complete",
                differences=report.summary.total,
                nodes_visited=comparator.nodes_visited,
                duration_ms=duration_ms,
            )
            return report

        except ValidationError as e:
            return self._create_error_response("VALIDATION_ERROR", e.message, e.details)
        except PayloadSizeError as e:
            return self._create_error_response(
                "PAYLOAD_SIZE_ERROR",
                str(e),
                {"size_mb": e.size_mb, "limit_mb": e.limit_mb}
            )
        except MaxDepthExceededError as e:
            return self._create_error_response(
                "MAX_DEPTH_ERROR",
                str(e),
                {"depth": e.depth, "path": e.path}
            )
        except CircularReferenceError as e:
            return self._create_error_response(
                "CIRCULAR_REFERENCE_ERROR",
                str(e),
                {"path": e.path}
            )
        except UnsupportedValueError as e:
            return self._create_error_response(
                "UNSUPPORTED_VALUE_ERROR",
                str(e),
                {"type": e.value_type, "path": e.path}
            )
        except Exception as e:
            _log.exception("comparison_crashed")
            return self._create_error_response(
                "PROCESSING_ERROR",
                str(e),
                {"type": type(e).__name__}
            )

    def _validate_inputs(self, left: Any, right: Any):
        """Validate input payloads."""
        if not isinstance(self.config.max_depth, int) or self.config.max_depth < 1:
            raise ValidationError(
                "max_depth must be a positive integer",
                {"max_depth": self.config.max_depth}
            )

        for payload in (left, right):
            try:
                size = get_json_size_mb(payload)
            except ValueError:
                # Circular documents cannot be encoded; the comparator reports them
                continue
            if size > self.config.max_payload_size_mb:
                raise PayloadSizeError(size, self.config.max_payload_size_mb)

    def _create_error_response(self, code: str, message: str, details: dict) -> ErrorResponse:
        """Create an error response."""
        _log.warning("comparison_failed", code=code, error=message)
        return ErrorResponse(
            success=False,
            error={
                "code": code,
                "message": message,
                "details": details
            }
        )


def compare_documents(
    left: Any,
    right: Any,
    config: Optional[EngineConfig] = None
) -> DiffReport | ErrorResponse:
    """
    Convenience function to compare two JSON documents.

    Args:
        left: The first response document
        right: The second response document
        config: Optional engine configuration

    Returns:
        DiffReport on success, ErrorResponse on errors
    """
    engine = ApiDiffEngine(config)
    return engine.compare(left, right)
