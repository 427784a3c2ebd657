"""
apidiff - API Response Comparer

Issues two HTTP requests, optionally modifies each JSON response, and
lists the structural differences between the two results as
path-addressed added/missing/changed records.
"""

from .comparator import Comparator, compare
from .engine import ApiDiffEngine, compare_documents
from .models import (
    ABSENT,
    EngineConfig,
    DiffReport,
    Difference,
    DiffKind,
    ErrorResponse,
    FetchResult,
    JsonKind,
    RequestConfig,
    Summary,
)
from .client import RequestIssuer
from .modifier import (
    ModifierOutcome,
    ResponseModifier,
    apply_modifier,
)
from .render import (
    render_differences,
    render_report,
    render_visual_diff,
)
from .runner import (
    ScenarioRunner,
    ScenarioResult,
    GlobalReport,
    run_scenarios,
)

__version__ = "1.0.0"
__all__ = [
    # Comparison
    "Comparator",
    "compare",
    "ApiDiffEngine",
    "compare_documents",
    "EngineConfig",
    # Records and reports
    "ABSENT",
    "Difference",
    "DiffKind",
    "JsonKind",
    "DiffReport",
    "Summary",
    "ErrorResponse",
    # Requests and modifiers
    "RequestConfig",
    "FetchResult",
    "RequestIssuer",
    "ModifierOutcome",
    "ResponseModifier",
    "apply_modifier",
    # Presentation
    "render_differences",
    "render_report",
    "render_visual_diff",
    # Scenarios
    "ScenarioRunner",
    "ScenarioResult",
    "GlobalReport",
    "run_scenarios",
]
