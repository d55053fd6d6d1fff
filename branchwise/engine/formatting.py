"""Plain-text reports for lint and diff results (CLI and text API responses)."""

from typing import Any, Optional

from branchwise.models.decision_tree import BranchMetadata, TreeCheckResult, TreeDiff

ERROR_KEYWORDS = ("circular", "invalid", "error")
WARNING_KEYWORDS = ("warn", "unbalanced", "inconsistent", "multiple")


def get_lint_severity(message: Optional[str]) -> str:
    """Classify a lint message as 'error', 'warning' or 'info' by its wording."""
    if not message:
        return "info"
    lowered = message.lower()
    if any(k in lowered for k in ERROR_KEYWORDS):
        return "error"
    if any(k in lowered for k in WARNING_KEYWORDS):
        return "warning"
    return "info"


def _numbered(title: str, items: list[str]) -> list[str]:
    return [f"{title}:"] + [f"  {i}. {item}" for i, item in enumerate(items, start=1)] + [""]


def format_lint_results(results: Optional[TreeCheckResult], show_suggestions: bool = True) -> str:
    if results is None:
        return "No lint results available"

    lines = [""]
    if not results.errors and not results.warnings:
        lines.append("No issues found")
        if show_suggestions and results.suggestions:
            lines.append("")
            lines.extend(_numbered(f"Suggestions ({len(results.suggestions)})", results.suggestions))
        else:
            lines.append("")
        return "\n".join(lines)

    lines.append(f"Found {len(results.errors)} error(s) and {len(results.warnings)} warning(s)")
    lines.append("")
    if results.errors:
        lines.extend(_numbered("Errors", results.errors))
    if results.warnings:
        lines.extend(_numbered("Warnings", results.warnings))
    if show_suggestions and results.suggestions:
        lines.extend(_numbered("Suggestions", results.suggestions))
    return "\n".join(lines)


def format_metadata(metadata: Optional[BranchMetadata]) -> str:
    if metadata is None:
        return ""
    parts = []
    if metadata.recommended:
        parts.append("[RECOMMENDED]")
    for key, value in metadata.as_dict().items():
        if key != "recommended":
            parts.append(f"[{key}: {value}]")
    return " ".join(parts)


def _display(value: Any) -> str:
    return "(none)" if value is None or value == "" else str(value)


def format_diff(diff: Optional[TreeDiff], verbose: bool = False) -> str:
    """Summary, then changes: removed, modified, added (ties by path)."""
    if diff is None:
        return "No diff data available"

    lines = ["", f"Tree Diff: {diff.name}", ""]
    if diff.root_changed:
        lines.extend(["~ Root question changed:", f"  - {diff.old_root}", f"  + {diff.new_root}", ""])

    stats = diff.stats
    lines.extend(
        [
            "Summary:",
            f"  + {stats.added} added",
            f"  - {stats.removed} removed",
            f"  ~ {stats.modified} modified",
            f"  = {stats.unchanged} unchanged",
            "",
        ]
    )

    if not diff.changes:
        lines.append("No changes detected")
        lines.append("")
        return "\n".join(lines)

    lines.extend(["Changes:", ""])
    symbols = {"added": "+", "removed": "-", "modified": "~"}
    order = {"removed": 0, "modified": 1, "added": 2}
    for change in sorted(diff.changes, key=lambda c: (order[c.type], c.path)):
        lines.append(f"{symbols[change.type]} {change.path}")
        if not verbose:
            continue
        if change.type == "modified":
            for mod in change.modifications:
                lines.append(f"    {mod.field}:")
                lines.append(f"      - {_display(mod.old_value)}")
                lines.append(f"      + {_display(mod.new_value)}")
        else:
            meta = format_metadata(change.branch.metadata)
            if meta:
                lines.append(f"  {meta}")
    lines.append("")
    return "\n".join(lines)
