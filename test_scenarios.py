"""Tests for configuration, rendering, the scenario runner and the CLI."""

import json

import httpx
import pytest
import yaml

from apidiff import RequestIssuer, ScenarioRunner, compare, render_differences, render_visual_diff
from apidiff import cli
from apidiff.config import load_engine_config, load_session
from apidiff.engine import compare_documents
from apidiff.exceptions import ConfigError
from apidiff.models import LogLevel
from apidiff.render import NO_DIFFERENCES, render_report


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


class TestEngineConfig:
    """Test environment and override handling."""

    def test_defaults(self, monkeypatch):
        for key in ("MAX_DEPTH", "MAX_PAYLOAD_MB", "FALSY_AS_ABSENT", "REQUEST_TIMEOUT", "LOG_LEVEL"):
            monkeypatch.delenv(f"APIDIFF_{key}", raising=False)
        config = load_engine_config()
        assert config.max_depth == 200
        assert config.falsy_as_absent is True
        assert config.log_level == LogLevel.INFO

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("APIDIFF_MAX_DEPTH", "10000")
        monkeypatch.setenv("APIDIFF_FALSY_AS_ABSENT", "false")
        monkeypatch.setenv("APIDIFF_LOG_LEVEL", "DEBUG")
        config = load_engine_config()
        assert config.max_depth == 400
        assert config.falsy_as_absent is False
        assert config.log_level == LogLevel.DEBUG

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("APIDIFF_MAX_DEPTH", "deep")
        with pytest.raises(ConfigError):
            load_engine_config()

    def test_overrides(self):
        config = load_engine_config({"falsy_as_absent": False, "log_level": "warning"})
        assert config.falsy_as_absent is False
        assert config.log_level == LogLevel.WARNING

    def test_unknown_override(self):
        with pytest.raises(ConfigError):
            load_engine_config({"colour": "blue"})

    def test_invalid_log_level(self):
        with pytest.raises(ConfigError):
            load_engine_config({"log_level": "loud"})

    def test_override_depth_is_clamped(self):
        assert load_engine_config({"max_depth": 5000}).max_depth == 400
        assert load_engine_config({"max_depth": 0}).max_depth == 1

    def test_override_string_bool(self):
        assert load_engine_config({"falsy_as_absent": "false"}).falsy_as_absent is False
        assert load_engine_config({"falsy_as_absent": "yes"}).falsy_as_absent is True

    def test_override_bad_values(self):
        with pytest.raises(ConfigError):
            load_engine_config({"falsy_as_absent": "sometimes"})
        with pytest.raises(ConfigError):
            load_engine_config({"max_depth": "deep"})
        with pytest.raises(ConfigError):
            load_engine_config({"request_timeout_seconds": True})

    def test_override_rejects_non_field_attributes(self):
        with pytest.raises(ConfigError):
            load_engine_config({"__class__": dict})
        with pytest.raises(ConfigError):
            load_engine_config({"__dict__": {}})


class TestSession:
    """Test loading session files."""

    def test_load_yaml_session(self, tmp_path):
        path = write_yaml(tmp_path / "session.yaml", {
            "name": "users",
            "left": {"url": "https://a.test/users", "headers": {"Accept": "application/json"}},
            "right": {"url": "https://b.test/users", "modifier": "return response"},
            "engine": {"falsy_as_absent": False},
        })
        session = load_session(path)
        assert session.name == "users"
        assert session.left.headers == {"Accept": "application/json"}
        assert session.right.modifier == "return response"
        assert session.engine.falsy_as_absent is False

    def test_missing_side(self, tmp_path):
        path = write_yaml(tmp_path / "session.yaml", {"left": {"url": "https://a.test"}})
        with pytest.raises(ConfigError):
            load_session(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_session(tmp_path / "nope.yaml")

    def test_bad_request_block(self, tmp_path):
        path = write_yaml(tmp_path / "session.yaml", {
            "left": {"url": "https://a.test", "method": "FETCH"},
            "right": {"url": "https://b.test"},
        })
        with pytest.raises(ConfigError):
            load_session(path)


class TestRender:
    """Test text rendering."""

    def test_no_differences(self):
        assert render_differences([]) == NO_DIFFERENCES

    def test_detailed_listing(self):
        text = render_differences(compare({"a": {"b": 1}, "c": 1}, {"a": {"b": 2}}))
        assert "Path: a.b  [changed]" in text
        assert "Path: c  [missing]" in text
        assert "undefined" in text

    def test_root_path(self):
        text = render_differences(compare(1, "1"))
        assert "Path: <root>" in text

    def test_unified_visual_diff(self):
        text = render_visual_diff({"a": 1}, {"a": 2})
        assert "--- Response 1" in text
        assert "+++ Response 2" in text
        assert '-  "a": 1' in text
        assert '+  "a": 2' in text

    def test_side_by_side_visual_diff(self):
        text = render_visual_diff({"a": 1}, {"a": 2}, side_by_side=True)
        assert "Response 1" in text
        assert any(line.startswith("~") for line in text.splitlines())

    def test_visual_diff_nothing_to_show(self):
        assert render_visual_diff(None, None) == ""

    def test_report_summary(self):
        text = render_report(compare_documents({"a": 1}, {"b": 1}))
        assert text.startswith("2 difference(s): 1 added, 1 missing, 0 changed")


class TestScenarioRunner:
    """Test running scenario folders."""

    def test_inline_scenarios(self, tmp_path):
        write_yaml(tmp_path / "01_same.yaml", {
            "name": "same",
            "left": {"a": 1},
            "right": {"a": 1},
        })
        write_yaml(tmp_path / "02_expected_diffs.yaml", {
            "name": "expected",
            "left": {"a": 1, "b": 2},
            "right": {"b": 2, "c": 3},
            "expected_differences": [
                {"path": ["a"], "kind": "missing"},
                {"path": "c", "kind": "added"},
            ],
        })
        (tmp_path / "03_unexpected.json").write_text(
            json.dumps({"name": "unexpected", "left": [1], "right": [2]}),
            encoding="utf-8",
        )

        report = ScenarioRunner().run_folder(str(tmp_path), print_report=False)

        assert report.total == 3
        assert report.passed == 2
        assert report.failed == 1
        assert report.breakdown["no_changes"] == ["same"]
        assert report.breakdown["with_changes"] == ["expected", "unexpected"]
        assert report.breakdown["entries_added"] == ["expected"]
        assert report.breakdown["entries_removed"] == ["expected"]
        assert report.to_dict()["summary"]["pass_rate"] == "66.7%"

    def test_modifiers_and_expected_match_false(self, tmp_path):
        write_yaml(tmp_path / "modified.yaml", {
            "name": "modified",
            "left": {"ip": "", "ts": 1},
            "right": {"ip": "0.0.0.0", "ts": 2},
            "modifiers": {
                "left": "if response['ip'] == '':\n    response['ip'] = '0.0.0.0'\nreturn response",
                "right": [{"op": "drop", "path": "$.ts"}],
            },
            "expected_differences": [{"path": ["ts"], "kind": "missing"}],
        })
        write_yaml(tmp_path / "differs.yaml", {
            "name": "differs",
            "left": {"v": "x"},
            "right": {"v": "y"},
            "expected_match": False,
        })

        report = ScenarioRunner().run_folder(str(tmp_path), print_report=False)
        assert report.failed == 0

    def test_scenario_engine_block(self, tmp_path):
        write_yaml(tmp_path / "strict.yaml", {
            "left": {"x": 0},
            "right": {"x": 5},
            "engine": {"falsy_as_absent": False},
            "expected_differences": [{"path": ["x"], "kind": "changed"}],
        })
        report = ScenarioRunner().run_folder(str(tmp_path), print_report=False)
        assert report.passed == 1

    def test_dotted_path_expectations(self, tmp_path):
        write_yaml(tmp_path / "dotted.yaml", {
            "left": {"user": {"tags": ["a", "b"], "name": "x"}},
            "right": {"user": {"tags": ["a"], "name": "y"}},
            "expected_differences": [
                {"path": "user.tags.1", "kind": "missing"},
                {"path": "user.name", "kind": "changed"},
            ],
        })
        report = ScenarioRunner().run_folder(str(tmp_path), print_report=False)
        assert report.passed == 1

    def test_expected_match_must_be_boolean(self, tmp_path):
        (tmp_path / "quoted.json").write_text(
            json.dumps({"left": {"v": 1}, "right": {"v": 2}, "expected_match": "false"}),
            encoding="utf-8",
        )
        report = ScenarioRunner().run_folder(str(tmp_path), print_report=False)
        assert report.failed == 1
        assert report.breakdown["errors"] == ["quoted"]
        assert "expected_match" in report.scenarios[0].error

    def test_json_scenarios_keep_json_numbers(self, tmp_path):
        (tmp_path / "numbers.json").write_text(
            '{"left": {"x": 1e3, "y": 1E+5}, "right": {"x": 1000, "y": 100000}}',
            encoding="utf-8",
        )
        report = ScenarioRunner().run_folder(str(tmp_path), print_report=False)
        assert report.passed == 1

    def test_broken_scenarios_do_not_abort_the_run(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("left: [unclosed", encoding="utf-8")
        write_yaml(tmp_path / "incomplete.yaml", {"left": {"a": 1}})
        write_yaml(tmp_path / "ok.yaml", {"left": 1, "right": 1})

        report = ScenarioRunner().run_folder(str(tmp_path), print_report=False)

        assert report.total == 3
        assert report.passed == 1
        assert sorted(report.breakdown["errors"]) == ["bad", "incomplete"]

    def test_request_scenarios(self, tmp_path):
        def handler(request):
            if request.url.host == "old.test":
                return httpx.Response(200, json={"id": 1, "status": "PAID"})
            return httpx.Response(200, json={"id": 1, "status": "paid"})

        write_yaml(tmp_path / "requests.yaml", {
            "name": "status casing",
            "requests": {
                "left": {"url": "https://old.test/invoices/1"},
                "right": {"url": "https://new.test/invoices/1"},
            },
            "expected_differences": [{"path": ["status"], "kind": "changed"}],
        })

        issuer = RequestIssuer(transport=httpx.MockTransport(handler))
        report = ScenarioRunner(issuer=issuer).run_folder(str(tmp_path), print_report=False)

        assert report.passed == 1
        assert report.scenarios[0].fetch["left"]["status_code"] == 200

    def test_request_failure_is_reported(self, tmp_path):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        write_yaml(tmp_path / "down.yaml", {
            "requests": {
                "left": {"url": "https://a.test"},
                "right": {"url": "https://b.test"},
            },
        })

        issuer = RequestIssuer(transport=httpx.MockTransport(handler))
        report = ScenarioRunner(issuer=issuer).run_folder(str(tmp_path), print_report=False)

        assert report.failed == 1
        assert "refused" in report.scenarios[0].error

    def test_missing_folder(self, tmp_path):
        with pytest.raises(ConfigError):
            ScenarioRunner().run_folder(str(tmp_path / "missing"), print_report=False)


class TestCli:
    """Test the command-line interface."""

    @pytest.fixture(autouse=True)
    def no_logging_setup(self, monkeypatch):
        monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)

    def test_diff_identical(self, tmp_path, capsys):
        left = tmp_path / "left.json"
        right = tmp_path / "right.json"
        left.write_text('{"a": 1}', encoding="utf-8")
        right.write_text('{"a": 1}', encoding="utf-8")

        assert cli.main(["diff", str(left), str(right)]) == cli.EXIT_OK
        assert NO_DIFFERENCES in capsys.readouterr().out

    def test_diff_json_output(self, tmp_path, capsys):
        left = tmp_path / "left.json"
        right = tmp_path / "right.yaml"
        left.write_text('{"a": 1, "b": [1, 2]}', encoding="utf-8")
        right.write_text("a: 2\nb: [1]\n", encoding="utf-8")

        assert cli.main(["diff", str(left), str(right), "--json"]) == cli.EXIT_DIFFERENCES

        data = json.loads(capsys.readouterr().out)
        assert data["differences"] == [
            {"path": ["a"], "kind": "changed", "left": 1, "right": 2},
            {"path": ["b", "1"], "kind": "missing", "left": 2},
        ]

    def test_diff_with_modifier_and_strict_presence(self, tmp_path, capsys):
        left = tmp_path / "left.json"
        right = tmp_path / "right.json"
        modifier = tmp_path / "mod.py"
        left.write_text('{"x": 0, "ts": 1}', encoding="utf-8")
        right.write_text('{"x": 5}', encoding="utf-8")
        modifier.write_text("response.pop('ts')\nreturn response\n", encoding="utf-8")

        code = cli.main([
            "diff", str(left), str(right),
            "--left-modifier", str(modifier),
            "--strict-presence", "--visual",
        ])

        out = capsys.readouterr().out
        assert code == cli.EXIT_DIFFERENCES
        assert "Path: x  [changed]" in out
        assert "Visual Difference" in out

    def test_diff_json_exponent_numbers(self, tmp_path, capsys):
        left = tmp_path / "left.json"
        right = tmp_path / "right.json"
        left.write_text('{"x": 1e3}', encoding="utf-8")
        right.write_text('{"x": 1000}', encoding="utf-8")

        assert cli.main(["diff", str(left), str(right), "--json"]) == cli.EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["total"] == 0

    def test_diff_missing_file(self, tmp_path, capsys):
        code = cli.main(["diff", str(tmp_path / "a.json"), str(tmp_path / "b.json")])
        assert code == cli.EXIT_USAGE
        assert "file not found" in capsys.readouterr().err

    def test_run_writes_report(self, tmp_path):
        scenarios = tmp_path / "scenarios"
        scenarios.mkdir()
        write_yaml(scenarios / "one.yaml", {"left": {"a": 1}, "right": {"a": 1}})
        report_path = tmp_path / "report.json"

        code = cli.main(["run", str(scenarios), "--report", str(report_path), "-q"])

        assert code == cli.EXIT_OK
        report = json.loads(report_path.read_text(encoding="utf-8"))
        assert report["summary"]["passed"] == 1

    def test_fetch_session(self, tmp_path, monkeypatch, capsys):
        def handler(request):
            if request.url.host == "old.test":
                return httpx.Response(200, json={"id": 1, "ip": "", "requestId": "a"})
            return httpx.Response(200, json={"id": 1, "ip": "0.0.0.0", "requestId": "b"})

        monkeypatch.setattr(
            cli,
            "RequestIssuer",
            lambda timeout: RequestIssuer(timeout=timeout, transport=httpx.MockTransport(handler)),
        )
        session = write_yaml(tmp_path / "session.yaml", {
            "left": {
                "url": "https://old.test/me",
                "modifier": "response['ip'] = response['ip'] or '0.0.0.0'\nreturn response",
                "operations": [{"op": "drop", "path": "$.requestId"}],
            },
            "right": {
                "url": "https://new.test/me",
                "operations": [{"op": "drop", "path": "$.requestId"}],
            },
        })

        assert cli.main(["fetch", str(session)]) == cli.EXIT_OK
        assert NO_DIFFERENCES in capsys.readouterr().out
