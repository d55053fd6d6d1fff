"""Tests for plain-text lint and diff reports."""

from branchwise.engine.differ import diff_trees
from branchwise.engine.formatting import format_diff, format_lint_results
from branchwise.models.decision_tree import Branch, BranchMetadata, Tree, TreeCheckResult


def test_format_lint_results_with_issues():
    result = TreeCheckResult(
        errors=["Circular reference detected: x"],
        warnings=["Unbalanced tree detected"],
        suggestions=["Consider adding priority metadata"],
    ).finalize()
    text = format_lint_results(result)
    assert "Found 1 error(s) and 1 warning(s)" in text
    assert "Errors:\n  1. Circular reference detected: x" in text
    assert "Warnings:\n  1. Unbalanced tree detected" in text
    assert "Suggestions:\n  1. Consider adding priority metadata" in text
    assert "Suggestions" not in format_lint_results(result, show_suggestions=False)


def test_format_lint_results_clean():
    assert "No issues found" in format_lint_results(TreeCheckResult())
    text = format_lint_results(TreeCheckResult(suggestions=["Add one"]))
    assert "Suggestions (1):" in text
    assert format_lint_results(None) == "No lint results available"


def test_format_diff_orders_removed_modified_added():
    old = Tree(name="T", root="Q?", branches=[Branch(text="Keep", outcome="a"), Branch(text="Drop")])
    new = Tree(
        name="T",
        root="Q?",
        branches=[Branch(text="Keep", outcome="b"), Branch(text="New", metadata=BranchMetadata(weight=3))],
    )
    text = format_diff(diff_trees(old, new), verbose=True)
    assert "Tree Diff: T" in text
    assert "  + 1 added" in text
    assert text.index("- Drop") < text.index("~ Keep") < text.index("+ New")
    assert "    outcome:\n      - a\n      + b" in text
    assert "  [weight: 3]" in text


def test_format_diff_without_changes():
    tree = Tree(name="T", root="Q?", branches=[Branch(text="A")])
    assert "No changes detected" in format_diff(diff_trees(tree, tree))
    assert format_diff(None) == "No diff data available"
