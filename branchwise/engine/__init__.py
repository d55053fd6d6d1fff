"""
Decision tree engine: parsing, condition evaluation, validation, linting,
diffing and rendering. Pure functions over in-memory trees; no I/O.
"""

from branchwise.engine.conditions import evaluate, filter_branches, is_simple_condition
from branchwise.engine.differ import apply_patch, diff_trees, generate_patch
from branchwise.engine.formatting import format_diff, format_lint_results, get_lint_severity
from branchwise.engine.line_classifier import ClassifiedLine, classify_line
from branchwise.engine.linter import lint_tree
from branchwise.engine.parser import parse_document, parse_tree_body
from branchwise.engine.serializer import to_html, to_markdown, to_mermaid, to_svg
from branchwise.engine.traversal import find_branch, select_path
from branchwise.engine.validator import detect_cycles, validate_tree

__all__ = [
    "ClassifiedLine",
    "apply_patch",
    "classify_line",
    "detect_cycles",
    "diff_trees",
    "evaluate",
    "filter_branches",
    "find_branch",
    "format_diff",
    "format_lint_results",
    "generate_patch",
    "get_lint_severity",
    "is_simple_condition",
    "lint_tree",
    "parse_document",
    "parse_tree_body",
    "select_path",
    "to_html",
    "to_markdown",
    "to_mermaid",
    "to_svg",
    "validate_tree",
]
