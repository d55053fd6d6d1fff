"""Tests for the advisory lint pass."""

from branchwise.engine.formatting import get_lint_severity
from branchwise.engine.linter import lint_tree
from branchwise.engine.parser import parse_document
from branchwise.models.decision_tree import Branch, BranchMetadata, Tree


def _tree(branches, root="Which option?"):
    return Tree(name="Lint", root=root, branches=branches)


def test_none_tree_is_invalid():
    result = lint_tree(None)
    assert result.valid is False
    assert result.errors == ["Invalid tree structure"]


def test_circular_reference_is_the_only_error():
    a = Branch(text="A", outcome="x")
    b = Branch(text="B", level=2)
    a.children.append(b)
    b.children.append(a)
    result = lint_tree(_tree([a], root="Plan"))
    assert result.valid is False
    assert len(result.errors) == 1
    assert result.errors[0].startswith('Circular reference detected: "A" references itself')


def test_composite_identity_allows_same_text_with_different_outcome():
    tree = _tree([Branch(text="Retry", outcome="first", children=[Branch(text="Retry", level=2, outcome="second")])])
    assert lint_tree(tree).errors == []


def test_duplicate_sibling_conditions():
    tree = _tree(
        [
            Branch(text="A", condition="has_api"),
            Branch(text="B", condition="has_api"),
            Branch(text="C", condition="ELSE"),
            Branch(text="D", condition="ELSE"),
        ],
        root="Plan",
    )
    warnings = lint_tree(tree).warnings
    duplicates = [w for w in warnings if w.startswith("Duplicate condition")]
    assert duplicates == ['Duplicate condition "has_api" found 2 times - may indicate redundant branches']


def test_large_depth_variance():
    node = Branch(text="L6", level=6)
    for depth in range(5, 0, -1):
        node = Branch(text=f"L{depth}", level=depth, children=[node])
    tree = _tree([node, Branch(text="Flat")], root="Plan")
    warnings = lint_tree(tree).warnings
    assert any(w.startswith("Large depth variance: deepest path (6) is 5 levels deeper") for w in warnings)
    # average is 3.5, so 6 is not more than twice the average
    assert not any(w.startswith("Unbalanced tree detected") for w in warnings)


def test_missing_common_options_one_suggestion_per_category():
    tree = _tree([Branch(text="React"), Branch(text="Vue"), Branch(text="Other framework")])
    suggestions = lint_tree(tree).suggestions
    assert any('"None of the above"' in s for s in suggestions)
    assert any('"Not sure/Need help"' in s for s in suggestions)
    assert not any('"Other/Custom"' in s for s in suggestions)


def test_non_question_root_gets_no_common_option_suggestions():
    tree = _tree([Branch(text="A"), Branch(text="B"), Branch(text="C")], root="Deploy plan")
    assert not any("option for users" in s for s in lint_tree(tree).suggestions)


def test_metadata_consistency():
    tree = _tree(
        [
            Branch(text="Postgres", metadata=BranchMetadata(weight=8, recommended=True)),
            Branch(text="MySQL", metadata=BranchMetadata(recommended=True)),
            Branch(text="Mongo"),
            Branch(text="Redis"),
            Branch(text="None of the above"),
        ],
        root="Which database?",
    )
    result = lint_tree(tree)
    assert any(w.startswith("Inconsistent weight metadata: only 1 of 5") for w in result.warnings)
    assert any(w.startswith("Multiple branches marked as recommended (2)") for w in result.warnings)
    assert any("priority metadata" in s for s in result.suggestions)
    assert any("risk metadata" in s for s in result.suggestions)
    assert result.valid is True


def test_conditional_syntax_reported_per_occurrence():
    tree = _tree(
        [
            Branch(text="A", condition="x > 1"),
            Branch(text="B", condition="y == 2"),
            Branch(text="C", condition="ELSE"),
        ],
        root="Plan",
    )
    syntax = [w for w in lint_tree(tree).warnings if w.startswith("Potentially invalid conditional syntax")]
    assert len(syntax) == 2


def test_orphan_else_grouped_by_depth():
    tree = _tree(
        [
            Branch(text="A", children=[Branch(text="Fallback", level=2, condition="ELSE")]),
            Branch(text="B"),
        ],
        root="Plan",
    )
    warnings = lint_tree(tree).warnings
    assert any(w.startswith("[ELSE] branch found without corresponding [IF:] condition at level 2") for w in warnings)

    guarded_elsewhere = _tree(
        [
            Branch(text="A", children=[Branch(text="Fallback", level=2, condition="ELSE")]),
            Branch(text="B", children=[Branch(text="Guarded", level=2, condition="flag")]),
        ],
        root="Plan",
    )
    assert not any("[ELSE] branch found" in w for w in lint_tree(guarded_elsewhere).warnings)


def test_lint_severity_keywords():
    assert get_lint_severity("Circular reference detected") == "error"
    assert get_lint_severity("Unbalanced tree detected") == "warning"
    assert get_lint_severity("Consider adding priority metadata") == "info"
    assert get_lint_severity("") == "info"


def test_very_deep_tree_lints_without_recursion_error(deep_markdown):
    tree = parse_document(deep_markdown)[0]
    result = lint_tree(tree)
    assert result.errors == []
    assert result.warnings == []


def test_circular_reference_path_lists_ancestors():
    c = Branch(text="C", level=3)
    b = Branch(text="B", level=2, children=[c])
    a = Branch(text="A", children=[b])
    c.children.append(a)
    result = lint_tree(_tree([a], root="Plan"))
    assert result.errors == ['Circular reference detected: "A" references itself in the path: Plan → A → B → C']
