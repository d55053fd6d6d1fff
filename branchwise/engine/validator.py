"""
Tree validator: structural and semantic well-formedness of a parsed tree.

Errors (missing root/branches, cycles, orphans) make a tree invalid; warnings
(balance, incomplete conditionals, condition syntax, metadata ranges) and
suggestions never do. Validation returns a result, it does not raise.
"""

import logging
from typing import Optional

from branchwise.engine.conditions import is_simple_condition
from branchwise.engine.traversal import iter_branches, iter_sibling_groups, leaf_depths
from branchwise.models.decision_tree import (
    ELSE_CONDITION,
    LEVEL_FIELDS,
    METADATA_LEVELS,
    Branch,
    Tree,
    TreeCheckResult,
)

logger = logging.getLogger(__name__)

WEIGHT_MIN = 1
WEIGHT_MAX = 10
UNBALANCED_DEPTH_SPREAD = 2


def validate_tree(tree: Optional[Tree]) -> TreeCheckResult:
    """Run every check and collect errors, warnings and suggestions."""
    result = TreeCheckResult()

    if tree is None or not tree.root:
        result.errors.append("Tree must have a root question")
        return result.finalize()
    if not tree.branches:
        result.errors.append("Tree must have at least one branch")
        return result.finalize()

    if detect_cycles(tree):
        result.errors.append("Circular reference detected in tree structure")

    orphans = find_orphaned_branches(tree)
    if orphans:
        result.errors.append(f"Found {len(orphans)} orphaned branch(es)")

    balance = check_tree_balance(tree)
    if balance["unbalanced"]:
        result.warnings.append(
            f"Tree is unbalanced: max depth {balance['max_depth']}, min depth {balance['min_depth']}"
        )

    for parent_label in find_incomplete_conditionals(tree):
        result.warnings.append(f'[IF:] without [ELSE] under "{parent_label}"')

    invalid_conditions = find_invalid_conditions(tree)
    if invalid_conditions:
        result.warnings.append(
            f"Found {len(invalid_conditions)} condition(s) with unsupported syntax"
        )

    result.warnings.extend(validate_metadata(tree))

    if not has_recommendation(tree):
        result.suggestions.append("Consider adding [recommended] to guide users")

    logger.debug(
        "Validated tree %r: %d errors, %d warnings", tree.name, len(result.errors), len(result.warnings)
    )
    return result.finalize()


def detect_cycles(tree: Tree) -> bool:
    """
    Depth-first search keyed by branch text. Only a text that reappears on the
    current root-to-node path counts; equal texts in separate subtrees do not.
    Walks with an explicit stack, so nesting depth is not bounded by recursion.
    """
    for top in tree.branches:
        path: set[str] = set()
        # (branch, leaving): leaving entries pop the branch text off the path
        stack: list[tuple[Branch, bool]] = [(top, False)]
        while stack:
            branch, leaving = stack.pop()
            if leaving:
                path.discard(branch.text)
                continue
            if branch.text in path:
                return True
            path.add(branch.text)
            stack.append((branch, True))
            stack.extend((child, False) for child in reversed(branch.children))
    return False


def find_orphaned_branches(tree: Tree) -> list[Branch]:
    """Branches whose level skips past parent level + 1 (a missing ancestor)."""
    orphans: list[Branch] = []
    seen: set[int] = set()
    stack: list[tuple[Branch, int]] = [(b, 0) for b in tree.branches]
    while stack:
        branch, parent_level = stack.pop()
        if id(branch) in seen:
            continue
        seen.add(id(branch))
        if branch.level > parent_level + 1:
            orphans.append(branch)
        stack.extend((child, branch.level) for child in branch.children)
    return orphans


def check_tree_balance(tree: Tree) -> dict:
    depths = leaf_depths(tree.branches)
    if not depths:
        return {"max_depth": 0, "min_depth": 0, "unbalanced": False}
    max_depth, min_depth = max(depths), min(depths)
    return {
        "max_depth": max_depth,
        "min_depth": min_depth,
        "unbalanced": max_depth - min_depth >= UNBALANCED_DEPTH_SPREAD,
    }


def find_incomplete_conditionals(tree: Tree) -> list[str]:
    """Labels of the nesting groups that guard with [IF:] but offer no [ELSE]."""
    incomplete: list[str] = []
    for parent, group in iter_sibling_groups(tree):
        has_if = any(b.condition and b.condition != ELSE_CONDITION for b in group)
        has_else = any(b.condition == ELSE_CONDITION for b in group)
        if has_if and not has_else:
            incomplete.append(_group_label(tree, parent))
    return incomplete


def _group_label(tree: Tree, parent: Optional[Branch]) -> str:
    if parent is None:
        return tree.root
    if parent.text:
        return parent.text
    return f"[IF: {parent.condition}]" if parent.condition else "(unnamed branch)"


def find_invalid_conditions(tree: Tree) -> list[Branch]:
    return [
        b
        for b in iter_branches(tree.branches)
        if b.condition and b.condition != ELSE_CONDITION and not is_simple_condition(b.condition)
    ]


def validate_metadata(tree: Tree) -> list[str]:
    """Range check for weight, enum check for priority/risk/complexity/cost."""
    issues: list[str] = []
    for branch in iter_branches(tree.branches):
        if branch.metadata is None:
            continue
        weight = branch.metadata.weight
        if weight is not None and not WEIGHT_MIN <= weight <= WEIGHT_MAX:
            issues.append(f'Invalid weight {weight} in "{branch.text}": must be {WEIGHT_MIN}-{WEIGHT_MAX}')
        for field in LEVEL_FIELDS:
            value = getattr(branch.metadata, field)
            if value is not None and value not in METADATA_LEVELS:
                issues.append(f'Invalid {field} "{value}" in "{branch.text}": must be high, medium or low')
    return issues


def has_recommendation(tree: Tree) -> bool:
    return any(
        b.metadata is not None and b.metadata.recommended is True for b in iter_branches(tree.branches)
    )
