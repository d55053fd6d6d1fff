"""Tests for structural validation."""

from branchwise.engine.parser import parse_document
from branchwise.engine.validator import (
    check_tree_balance,
    detect_cycles,
    find_incomplete_conditionals,
    validate_metadata,
    validate_tree,
)
from branchwise.models.decision_tree import Branch, BranchMetadata, Tree


def _tree(branches, root="Which option?"):
    return Tree(name="T", root=root, branches=branches)


def test_missing_root_short_circuits():
    result = validate_tree(Tree(name="T", root="", branches=[]))
    assert result.valid is False
    assert result.errors == ["Tree must have a root question"]
    assert result.warnings == []
    assert result.suggestions == []


def test_missing_branches_short_circuits():
    result = validate_tree(_tree([]))
    assert result.errors == ["Tree must have at least one branch"]
    assert validate_tree(None).errors == ["Tree must have a root question"]


def test_cycle_through_ancestor_object():
    parent = Branch(text="Parent")
    child = Branch(text="Child", level=2)
    parent.children.append(child)
    child.children.append(parent)
    tree = _tree([parent])

    assert detect_cycles(tree) is True
    result = validate_tree(tree)
    assert "Circular reference detected in tree structure" in result.errors


def test_acyclic_deep_tree_has_no_cycle():
    node = Branch(text="level 6", level=6)
    for depth in range(5, 0, -1):
        node = Branch(text=f"level {depth}", level=depth, children=[node])
    assert detect_cycles(_tree([node])) is False


def test_same_text_in_separate_subtrees_is_not_a_cycle():
    tree = _tree(
        [
            Branch(text="A", children=[Branch(text="Shared", level=2)]),
            Branch(text="B", children=[Branch(text="Shared", level=2)]),
        ]
    )
    assert detect_cycles(tree) is False


def test_text_identity_flags_repeated_text_on_one_path():
    # Known limitation: identity is the branch text, so a child repeating its
    # parent's wording reads as a cycle even though the objects differ.
    tree = _tree([Branch(text="Retry", children=[Branch(text="Retry", level=2)])])
    assert detect_cycles(tree) is True


def test_orphan_count_is_reported():
    tree = _tree([Branch(text="Top", children=[Branch(text="Skipped a level", level=3)])])
    result = validate_tree(tree)
    assert result.errors == ["Found 1 orphaned branch(es)"]


def test_balance_warning_at_spread_of_two():
    deep = Branch(text="A", children=[Branch(text="B", level=2, children=[Branch(text="C", level=3)])])
    tree = _tree([deep, Branch(text="Shallow")])
    assert check_tree_balance(tree) == {"max_depth": 3, "min_depth": 1, "unbalanced": True}
    assert "Tree is unbalanced: max depth 3, min depth 1" in validate_tree(tree).warnings

    balanced = _tree([Branch(text="A", children=[Branch(text="B", level=2)]), Branch(text="C")])
    assert check_tree_balance(balanced)["unbalanced"] is False


def test_incomplete_conditionals_name_the_parent():
    tree = _tree(
        [
            Branch(text="Backend", children=[Branch(text="Postgres", level=2, condition="has_database")]),
            Branch(text="Frontend", condition="typescript"),
            Branch(text="Fallback", condition="ELSE"),
        ]
    )
    assert find_incomplete_conditionals(tree) == ["Backend"]
    assert '[IF:] without [ELSE] under "Backend"' in validate_tree(tree).warnings


def test_incomplete_conditionals_at_top_level_name_the_root():
    tree = _tree([Branch(text="Only", condition="flag")], root="Deploy where?")
    assert find_incomplete_conditionals(tree) == ["Deploy where?"]


def test_unsupported_condition_syntax_is_counted_once():
    tree = _tree(
        [
            Branch(text="A", condition="version > 2"),
            Branch(text="B", condition="x == y"),
            Branch(text="C", condition="(a OR b) AND c"),
            Branch(text="D", condition="ELSE"),
        ]
    )
    warnings = validate_tree(tree).warnings
    assert "Found 2 condition(s) with unsupported syntax" in warnings


def test_metadata_ranges_are_warnings():
    tree = _tree(
        [
            Branch(text="Heavy", metadata=BranchMetadata(weight=11)),
            Branch(text="Odd", metadata=BranchMetadata(risk="extreme", recommended=True)),
        ]
    )
    issues = validate_metadata(tree)
    assert issues == [
        'Invalid weight 11 in "Heavy": must be 1-10',
        'Invalid risk "extreme" in "Odd": must be high, medium or low',
    ]
    result = validate_tree(tree)
    assert result.valid is True
    assert result.suggestions == []


def test_very_deep_tree_validates_without_recursion_error(deep_markdown):
    tree = parse_document(deep_markdown)[0]
    assert detect_cycles(tree) is False
    result = validate_tree(tree)
    assert result.errors == []
    assert result.valid is True


def test_cycle_found_far_below_the_top():
    top = Branch(text="bottom", level=1500, children=[Branch(text="n700", level=1501)])
    for depth in range(1499, 0, -1):
        top = Branch(text=f"n{depth}", level=depth, children=[top])
    assert detect_cycles(_tree([top])) is True
