#!/usr/bin/env python3
"""
Validate and lint the decision trees in one or more markdown files.

Exit status: 2 if any tree has errors, 1 with --strict if any tree has
warnings, otherwise 0.

Usage (from project root):
  python scripts/lint_trees.py docs/decisions.md [more.md ...] [--strict] [--json]
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from branchwise.engine.formatting import format_lint_results  # noqa: E402
from branchwise.services.tree_service import exit_status, lint_files  # noqa: E402
from branchwise.utils.logging import configure_logging  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lint markdown decision trees.")
    parser.add_argument("files", nargs="+", type=Path, help="Markdown files to lint")
    parser.add_argument("--strict", action="store_true", help="Exit 1 when any tree has warnings")
    parser.add_argument("--json", action="store_true", help="Print reports as JSON")
    parser.add_argument("--no-suggestions", action="store_true", help="Hide suggestions in text output")
    parser.add_argument("--log-level", default="WARNING", help="Log level for the console (default: WARNING)")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level)

    reports = lint_files(args.files)
    status = exit_status(reports, strict=args.strict)

    if args.json:
        payload = {"exit_status": status, "reports": [r.model_dump() for r in reports]}
        print(json.dumps(payload, indent=2))
        return status

    if not reports:
        print("No decision trees found")
    for report in reports:
        label = f"{report.source}: {report.tree_name}" if report.tree_name else str(report.source)
        print(f"== {label} ==")
        print(format_lint_results(report.combined(), show_suggestions=not args.no_suggestions))
    return status


if __name__ == "__main__":
    sys.exit(main())
