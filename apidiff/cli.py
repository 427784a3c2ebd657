"""Command-line interface for apidiff."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .client import RequestIssuer
from .config import load_engine_config, load_file, load_session
from .engine import ApiDiffEngine
from .exceptions import ConfigError
from .log import setup_logging
from .models import ABSENT, DiffReport
from .modifier import apply_modifier
from .render import render_report, render_visual_diff
from .runner import run_scenarios

EXIT_OK = 0
EXIT_DIFFERENCES = 1
EXIT_USAGE = 2


def _read_modifier(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    modifier_path = Path(path)
    if not modifier_path.exists():
        raise ConfigError("modifier file not found", path)
    return modifier_path.read_text(encoding="utf-8")


def _emit(report, left, right, args) -> int:
    if args.json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        if args.visual:
            visual = render_visual_diff(left, right, side_by_side=args.side_by_side)
            if visual:
                print("Visual Difference")
                print(visual)
                print()
        print(render_report(report))

    if not isinstance(report, DiffReport):
        return EXIT_USAGE
    return EXIT_OK if report.is_match else EXIT_DIFFERENCES


def cmd_diff(args) -> int:
    """Compare two JSON/YAML documents on disk."""
    overrides = {"falsy_as_absent": False} if args.strict_presence else {}
    config = load_engine_config(overrides)

    left = load_file(args.left)
    right = load_file(args.right)

    left = apply_modifier(left, source=_read_modifier(args.left_modifier), side="left").value
    right = apply_modifier(right, source=_read_modifier(args.right_modifier), side="right").value

    report = ApiDiffEngine(config).compare(left, right)
    return _emit(report, left, right, args)


def cmd_fetch(args) -> int:
    """Issue both requests of a session file and compare the responses."""
    session = load_session(args.session)
    if args.strict_presence:
        session.engine.falsy_as_absent = False

    issuer = RequestIssuer(timeout=session.engine.request_timeout_seconds)
    left_fetch, right_fetch = issuer.fetch_pair_sync(session.left, session.right)

    for side, fetched in (("left", left_fetch), ("right", right_fetch)):
        if not fetched.ok:
            print(f"Request {side} failed: {fetched.error}", file=sys.stderr)

    left = apply_modifier(left_fetch.value, session.left, side="left").value if left_fetch.ok else ABSENT
    right = apply_modifier(right_fetch.value, session.right, side="right").value if right_fetch.ok else ABSENT

    if left is ABSENT or right is ABSENT:
        return EXIT_USAGE

    report = ApiDiffEngine(session.engine).compare(left, right)
    return _emit(report, left, right, args)


def cmd_run(args) -> int:
    """Run a folder of scenarios and optionally write a JSON report."""
    report = run_scenarios(
        args.folder,
        engine_config=load_engine_config(),
        print_report=not args.quiet
    )

    if args.report:
        with open(args.report, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), indent=2, fp=f, default=str)
        if not args.quiet:
            print(f"\nReport saved to: {args.report}")

    return EXIT_OK if report.failed == 0 else EXIT_DIFFERENCES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apidiff",
        description="Compare the JSON responses of two API requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  apidiff diff before.json after.json --visual
  apidiff fetch session.yaml --json
  apidiff run scenarios/ --report report.json
        """
    )
    parser.add_argument("--log-level", default=None, help="debug, info, warning or error")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_output_flags(sub):
        sub.add_argument("--json", action="store_true", help="Print the report as JSON")
        sub.add_argument("--visual", action="store_true", help="Also print a line diff")
        sub.add_argument("--side-by-side", action="store_true", help="Two-column visual diff")
        sub.add_argument(
            "--strict-presence",
            action="store_true",
            help="Only null counts as absent (0, '' and false compare as values)"
        )

    diff_parser = subparsers.add_parser("diff", help="Compare two JSON/YAML files")
    diff_parser.add_argument("left", help="Left document")
    diff_parser.add_argument("right", help="Right document")
    diff_parser.add_argument("--left-modifier", help="File with a modifier snippet for the left side")
    diff_parser.add_argument("--right-modifier", help="File with a modifier snippet for the right side")
    add_output_flags(diff_parser)
    diff_parser.set_defaults(handler=cmd_diff)

    fetch_parser = subparsers.add_parser("fetch", help="Issue the requests of a session file")
    fetch_parser.add_argument("session", help="Session YAML/JSON file")
    add_output_flags(fetch_parser)
    fetch_parser.set_defaults(handler=cmd_fetch)

    run_parser = subparsers.add_parser("run", help="Run a folder of scenarios")
    run_parser.add_argument("folder", help="Folder with scenario files")
    run_parser.add_argument("-r", "--report", help="Path to output JSON report")
    run_parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")
    run_parser.set_defaults(handler=cmd_run)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        level = args.log_level or load_engine_config().log_level.value
        setup_logging(level)
        return args.handler(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
