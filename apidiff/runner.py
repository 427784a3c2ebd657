"""Scenario runner: compares many response pairs described in files."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .client import RequestIssuer
from .config import load_engine_config, load_file
from .engine import ApiDiffEngine
from .exceptions import ApiDiffError, ConfigError
from .log import get_logger
from .models import DiffKind, DiffReport, EngineConfig, RequestConfig
from .modifier import apply_modifier

_log = get_logger("runner")

SCENARIO_PATTERNS = ("*.json", "*.yaml", "*.yml")


@dataclass
class ScenarioResult:
    """Result of a single scenario."""
    name: str
    scenario_path: str
    passed: bool
    diff_report: Optional[dict] = None
    error: Optional[str] = None
    fetch: Optional[dict] = None
    modifier_errors: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "scenario_path": self.scenario_path,
            "passed": self.passed,
        }
        if self.diff_report:
            result["diff_report"] = self.diff_report
        if self.error:
            result["error"] = self.error
        if self.fetch:
            result["fetch"] = self.fetch
        if self.modifier_errors:
            result["modifier_errors"] = self.modifier_errors
        return result


@dataclass
class GlobalReport:
    """Report across all scenarios."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    scenarios: list[ScenarioResult] = field(default_factory=list)
    breakdown: dict[str, list[str]] = field(default_factory=dict)
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        if not self.breakdown:
            self.breakdown = {
                "no_changes": [],
                "with_changes": [],
                "entries_added": [],
                "entries_removed": [],
                "errors": []
            }

    @property
    def pass_rate(self) -> str:
        return f"{(self.passed / self.total * 100):.1f}%" if self.total > 0 else "0.0%"

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "summary": {
                "total_scenarios": self.total,
                "passed": self.passed,
                "failed": self.failed,
                "pass_rate": self.pass_rate
            },
            "breakdown": self.breakdown,
            "scenarios": [s.to_dict() for s in self.scenarios]
        }

    def print_summary(self):
        print(f"\nScenario Results: {self.passed}/{self.total} passed ({self.pass_rate})")
        if self.failed > 0:
            print(f"  Failed: {self.failed}")

        labels = {
            "no_changes": "No changes",
            "with_changes": "With changes",
            "entries_added": "Entries added",
            "entries_removed": "Entries removed",
            "errors": "Errors",
        }
        for key, label in labels.items():
            if self.breakdown.get(key):
                print(f"  {label}: {len(self.breakdown[key])} scenarios")


def _normalize_expected(expected: list) -> list[tuple[tuple[str, ...], str]]:
    """Expected differences as (path, kind) pairs; paths may be lists or dotted strings."""
    normalized = []
    for entry in expected:
        if not isinstance(entry, dict) or "kind" not in entry:
            raise ConfigError("expected_differences entries need 'path' and 'kind'")
        path = entry.get("path", [])
        if isinstance(path, str):
            path = path.split(".") if path else []
        normalized.append((tuple(str(p) for p in path), str(entry["kind"])))
    return normalized


def _modifier_spec(spec: Any) -> tuple[Optional[str], Optional[list]]:
    """A modifier may be a snippet, a list of operations, or {modifier, operations}."""
    if spec is None:
        return None, None
    if isinstance(spec, str):
        return spec, None
    if isinstance(spec, list):
        return None, spec
    if isinstance(spec, dict):
        return spec.get("modifier"), spec.get("operations")
    raise ConfigError(f"unsupported modifier definition of type {type(spec).__name__}")


class ScenarioRunner:
    """Runs scenario files through the engine."""

    def __init__(
        self,
        engine_config: Optional[EngineConfig] = None,
        issuer: Optional[RequestIssuer] = None
    ):
        self.engine_config = engine_config or EngineConfig()
        self.issuer = issuer or RequestIssuer(timeout=self.engine_config.request_timeout_seconds)

    def run_scenario(self, scenario: dict, name: str, scenario_path: str) -> ScenarioResult:
        """Run a single scenario."""
        result = ScenarioResult(name=name, scenario_path=scenario_path, passed=False)

        try:
            if not isinstance(scenario, dict):
                raise ConfigError("scenario must be a mapping", scenario_path)

            left, right = self._resolve_documents(scenario, result)
            if result.error:
                return result

            config = self.engine_config
            if scenario.get("engine"):
                config = load_engine_config({**vars(self.engine_config), **scenario["engine"]})

            report = ApiDiffEngine(config).compare(left, right)
            if not isinstance(report, DiffReport):
                result.diff_report = report.to_dict()
                result.error = (report.error or {}).get("message", "comparison failed")
                return result

            result.diff_report = report.to_dict()
            result.passed = self._meets_expectations(scenario, report)

        except ApiDiffError as e:
            result.error = str(e)
        except Exception as e:
            _log.exception("scenario_crashed", scenario=name)
            result.error = f"{type(e).__name__}: {e}"

        return result

    def _resolve_documents(self, scenario: dict, result: ScenarioResult) -> tuple[Any, Any]:
        modifiers = scenario.get("modifiers") or {}

        if "requests" in scenario:
            requests = scenario["requests"] or {}
            if "left" not in requests or "right" not in requests:
                raise ConfigError("'requests' needs both 'left' and 'right'", result.scenario_path)
            left_request = RequestConfig.from_dict(requests["left"], name="left")
            right_request = RequestConfig.from_dict(requests["right"], name="right")

            left_fetch, right_fetch = self.issuer.fetch_pair_sync(left_request, right_request)
            result.fetch = {"left": left_fetch.to_dict(), "right": right_fetch.to_dict()}
            failures = [
                f"{side}: {fetched.error}"
                for side, fetched in (("left", left_fetch), ("right", right_fetch))
                if not fetched.ok
            ]
            if failures:
                result.error = "; ".join(failures)
                return None, None

            sides = (
                ("left", left_fetch.value, left_request),
                ("right", right_fetch.value, right_request),
            )
        elif "left" in scenario and "right" in scenario:
            sides = (
                ("left", scenario["left"], None),
                ("right", scenario["right"], None),
            )
        else:
            raise ConfigError(
                "scenario needs inline 'left'/'right' documents or 'requests'",
                result.scenario_path
            )

        values = []
        for side, raw, request in sides:
            source, operations = _modifier_spec(modifiers.get(side))
            outcome = apply_modifier(raw, request, source=source, operations=operations, side=side)
            if outcome.error:
                result.modifier_errors[side] = outcome.error
            values.append(outcome.value)

        return values[0], values[1]

    def _meets_expectations(self, scenario: dict, report: DiffReport) -> bool:
        if "expected_differences" in scenario:
            expected = _normalize_expected(scenario["expected_differences"] or [])
            actual = [(d.path, d.kind.value) for d in report.differences]
            return actual == expected

        expected_match = scenario.get("expected_match", True)
        if not isinstance(expected_match, bool):
            raise ConfigError(
                f"'expected_match' must be true or false, got {expected_match!r}",
                scenario.get("name")
            )
        return report.is_match == expected_match

    def run_folder(self, folder: str, print_report: bool = True) -> GlobalReport:
        """Run all scenario files in a folder."""
        report = GlobalReport()
        folder_path = Path(folder)
        if not folder_path.is_dir():
            raise ConfigError("scenario folder not found", str(folder_path))

        files = sorted({p for pattern in SCENARIO_PATTERNS for p in folder_path.glob(pattern)})
        for scenario_file in files:
            try:
                scenario = load_file(scenario_file)
            except ConfigError as e:
                scenario, load_error = None, str(e)
            else:
                load_error = None

            default_name = scenario_file.stem
            name = scenario.get("name", default_name) if isinstance(scenario, dict) else default_name

            if load_error:
                result = ScenarioResult(name, str(scenario_file), passed=False, error=load_error)
            else:
                result = self.run_scenario(scenario, name, str(scenario_file))

            self._record(report, result, print_report)

        if print_report:
            report.print_summary()

        _log.info("scenarios_complete", total=report.total, passed=report.passed, failed=report.failed)
        return report

    def _record(self, report: GlobalReport, result: ScenarioResult, print_report: bool):
        report.scenarios.append(result)
        report.total += 1

        if result.passed:
            report.passed += 1
        else:
            report.failed += 1

        if print_report:
            print(f"{'PASS' if result.passed else 'FAIL'}: {result.name}")

        if result.error:
            report.breakdown["errors"].append(result.name)
            return

        differences = (result.diff_report or {}).get("differences", [])
        if not differences:
            report.breakdown["no_changes"].append(result.name)
            return

        report.breakdown["with_changes"].append(result.name)
        kinds = {d["kind"] for d in differences}
        if DiffKind.ADDED.value in kinds:
            report.breakdown["entries_added"].append(result.name)
        if DiffKind.MISSING.value in kinds:
            report.breakdown["entries_removed"].append(result.name)


def run_scenarios(
    folder: str,
    engine_config: Optional[EngineConfig] = None,
    print_report: bool = True,
    issuer: Optional[RequestIssuer] = None
) -> GlobalReport:
    """
    Run every scenario in a folder.

        from apidiff import run_scenarios
        report = run_scenarios("scenarios/")
    """
    runner = ScenarioRunner(engine_config, issuer)
    return runner.run_folder(folder, print_report)
