"""
File-level orchestration for the engine: parse documents, then validate and
lint every tree they contain. One bad tree or unreadable file becomes a report
with errors; the batch always runs to the end.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from branchwise.engine.linter import lint_tree
from branchwise.engine.parser import parse_document
from branchwise.engine.validator import validate_tree
from branchwise.models.decision_tree import TreeCheckResult
from branchwise.utils.logging import log_lint_result, log_parse_result

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_WARNINGS = 1
EXIT_ERRORS = 2


class TreeReport(BaseModel):
    """Validation and lint findings for one tree (or one unreadable source)."""

    source: Optional[str] = None
    tree_name: str = ""
    validation: TreeCheckResult = Field(default_factory=TreeCheckResult)
    lint: TreeCheckResult = Field(default_factory=TreeCheckResult)

    @property
    def errors(self) -> list[str]:
        return self.validation.errors + self.lint.errors

    @property
    def warnings(self) -> list[str]:
        return self.validation.warnings + self.lint.warnings

    @property
    def suggestions(self) -> list[str]:
        return self.validation.suggestions + self.lint.suggestions

    def combined(self) -> TreeCheckResult:
        """Validation and lint findings merged into one result (for formatting)."""
        return TreeCheckResult(
            errors=self.errors, warnings=self.warnings, suggestions=self.suggestions
        ).finalize()


def lint_markdown(markdown: str, source: Optional[str] = None) -> list[TreeReport]:
    """Validate and lint every tree in a markdown document."""
    start = time.perf_counter()
    trees = parse_document(markdown)
    log_parse_result(logger, source or "<memory>", [t.name for t in trees], time.perf_counter() - start)

    reports = []
    for tree in trees:
        try:
            report = TreeReport(
                source=source, tree_name=tree.name, validation=validate_tree(tree), lint=lint_tree(tree)
            )
        except Exception as e:
            logger.exception("Analysis of tree %r failed: %s", tree.name, e)
            failed = TreeCheckResult(errors=[f"Analysis failed: {e}"]).finalize()
            report = TreeReport(source=source, tree_name=tree.name, validation=failed)
        log_lint_result(
            logger,
            tree.name,
            errors=len(report.errors),
            warnings=len(report.warnings),
            suggestions=len(report.suggestions),
            source=source,
        )
        reports.append(report)
    return reports


def lint_files(paths: list[Union[str, Path]]) -> list[TreeReport]:
    reports: list[TreeReport] = []
    for path in paths:
        path = Path(path)
        try:
            markdown = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Could not read %s: %s", path, e)
            failed = TreeCheckResult(errors=[f"Could not read file: {e}"]).finalize()
            reports.append(TreeReport(source=str(path), validation=failed))
            continue
        file_reports = lint_markdown(markdown, source=str(path))
        if not file_reports:
            logger.warning("No decision trees found in %s", path)
        reports.extend(file_reports)
    return reports


def exit_status(reports: list[TreeReport], strict: bool = False) -> int:
    """2 if any report has errors; 1 if strict and any has warnings; else 0."""
    if any(r.errors for r in reports):
        return EXIT_ERRORS
    if strict and any(r.warnings for r in reports):
        return EXIT_WARNINGS
    return EXIT_OK
