"""
Tree linter: advisory semantic checks on top of validation.

Only circular references are errors here. Everything else (duplicate guards,
depth spread, missing catch-all options, metadata coverage, condition syntax,
stray [ELSE]) is a warning or a suggestion, so linting a batch of files never
fails on style alone.
"""

import logging
from collections import Counter, defaultdict
from typing import Optional

from branchwise.engine.conditions import is_simple_condition
from branchwise.engine.traversal import iter_branches, iter_sibling_groups, iter_with_depth, leaf_depths
from branchwise.models.decision_tree import ELSE_CONDITION, Branch, Tree, TreeCheckResult

logger = logging.getLogger(__name__)

COMMON_OPTIONS = [
    (("none", "none of the above", "skip", "not applicable"), '"None of the above"'),
    (("other", "custom", "manual"), '"Other/Custom"'),
    (("not sure", "undecided", "need help"), '"Not sure/Need help"'),
]
QUESTION_MARKERS = ("?", "which", "what", "how")
TECHNICAL_KEYWORDS = ("database", "api", "deployment", "architecture", "implementation", "technology")

MIN_BRANCHES_FOR_COMMON_OPTIONS = 3
MIN_BRANCHES_FOR_PRIORITY = 5
MIN_BRANCHES_FOR_RISK = 3
WEIGHT_COVERAGE = 0.5
MAX_DEPTH_OVER_AVERAGE = 2
MAX_DEPTH_SPREAD = 4


def lint_tree(tree: Optional[Tree]) -> TreeCheckResult:
    """Run every lint rule and collect the findings."""
    result = TreeCheckResult()
    if tree is None:
        result.errors.append("Invalid tree structure")
        return result.finalize()

    check_circular_references(tree, result)
    check_duplicate_conditions(tree, result)
    check_unbalanced_tree(tree, result)
    check_missing_common_options(tree, result)
    check_metadata_consistency(tree, result)
    check_conditional_syntax(tree, result)
    check_orphan_else(tree, result)

    logger.debug(
        "Linted tree %r: %d errors, %d warnings, %d suggestions",
        tree.name,
        len(result.errors),
        len(result.warnings),
        len(result.suggestions),
    )
    return result.finalize()


def branch_identifier(branch: Branch) -> str:
    return f"{branch.text}|{branch.outcome or ''}|{branch.condition or ''}"


def check_circular_references(tree: Tree, result: TreeCheckResult) -> None:
    """
    A branch whose identifier is already on the current path is a cycle. At most
    one error per top-level branch.
    """
    for top in tree.branches:
        on_stack: set[str] = set()
        path: list[str] = [tree.root]
        stack: list[tuple[Branch, bool]] = [(top, False)]
        while stack:
            branch, leaving = stack.pop()
            key = branch_identifier(branch)
            if leaving:
                on_stack.discard(key)
                path.pop()
                continue
            if key in on_stack:
                result.errors.append(
                    f'Circular reference detected: "{branch.text}" references itself in the path: '
                    f"{' → '.join(path)}"
                )
                break
            on_stack.add(key)
            path.append(branch.text)
            stack.append((branch, True))
            stack.extend((child, False) for child in reversed(branch.children))


def check_duplicate_conditions(tree: Tree, result: TreeCheckResult) -> None:
    for _parent, group in iter_sibling_groups(tree):
        counts = Counter(b.condition for b in group if b.condition and b.condition != ELSE_CONDITION)
        for condition, count in counts.items():
            if count > 1:
                result.warnings.append(
                    f'Duplicate condition "{condition}" found {count} times - may indicate redundant branches'
                )


def check_unbalanced_tree(tree: Tree, result: TreeCheckResult) -> None:
    depths = leaf_depths(tree.branches)
    if not depths:
        return
    max_depth, min_depth = max(depths), min(depths)
    average = sum(depths) / len(depths)

    if max_depth > average * MAX_DEPTH_OVER_AVERAGE:
        result.warnings.append(
            f"Unbalanced tree detected: deepest path is {max_depth} levels while average is "
            f"{average:.1f} levels. Consider restructuring for better readability."
        )
    if max_depth - min_depth > MAX_DEPTH_SPREAD:
        result.warnings.append(
            f"Large depth variance: deepest path ({max_depth}) is {max_depth - min_depth} levels "
            f"deeper than shallowest ({min_depth}). This may confuse users."
        )


def check_missing_common_options(tree: Tree, result: TreeCheckResult) -> None:
    """Interrogative roots with 3+ choices should offer the usual escape hatches."""
    root = tree.root.lower()
    if not any(marker in root for marker in QUESTION_MARKERS):
        return
    if len(tree.branches) < MIN_BRANCHES_FOR_COMMON_OPTIONS:
        return

    top_level_texts = [b.text.lower() for b in tree.branches]
    for synonyms, label in COMMON_OPTIONS:
        present = any(s in text for s in synonyms for text in top_level_texts)
        if not present:
            result.suggestions.append(
                f"Consider adding a {label} option for users who don't fit the listed choices"
            )


def check_metadata_consistency(tree: Tree, result: TreeCheckResult) -> None:
    branches = list(iter_branches(tree.branches))
    total = len(branches)
    with_metadata = [b.metadata for b in branches if b.metadata is not None]
    weighted = sum(1 for m in with_metadata if m.weight is not None)
    prioritised = sum(1 for m in with_metadata if m.priority is not None)
    risk_rated = sum(1 for m in with_metadata if m.risk is not None)
    recommended = sum(1 for m in with_metadata if m.recommended is True)

    if weighted and weighted < total * WEIGHT_COVERAGE:
        result.warnings.append(
            f"Inconsistent weight metadata: only {weighted} of {total} branches have weights. "
            "Consider adding weights to all branches or removing them."
        )

    if total >= MIN_BRANCHES_FOR_PRIORITY and not prioritised:
        result.suggestions.append(
            "Consider adding priority metadata to help users understand which options to consider first"
        )

    if total >= MIN_BRANCHES_FOR_RISK and not risk_rated:
        root = tree.root.lower()
        if any(keyword in root for keyword in TECHNICAL_KEYWORDS):
            result.suggestions.append(
                "Consider adding risk metadata to help users understand the trade-offs of each option"
            )

    if recommended > 1:
        result.warnings.append(
            f"Multiple branches marked as recommended ({recommended}). "
            "Consider having only one recommended option per level."
        )


def check_conditional_syntax(tree: Tree, result: TreeCheckResult) -> None:
    for branch in iter_branches(tree.branches):
        condition = branch.condition
        if not condition or condition == ELSE_CONDITION:
            continue
        if not is_simple_condition(condition):
            result.warnings.append(
                f'Potentially invalid conditional syntax: "{condition}" in branch "{branch.text}". '
                'Use simple conditions like "has_database" or "serverless AND typescript".'
            )


def check_orphan_else(tree: Tree, result: TreeCheckResult) -> None:
    """[ELSE] at a depth where no branch carries an [IF:] guard."""
    by_depth: dict[int, list[Branch]] = defaultdict(list)
    for branch, depth in iter_with_depth(tree.branches):
        by_depth[depth].append(branch)

    for depth in sorted(by_depth):
        group = by_depth[depth]
        has_else = any(b.condition == ELSE_CONDITION for b in group)
        has_if = any(b.condition and b.condition != ELSE_CONDITION for b in group)
        if has_else and not has_if:
            result.warnings.append(
                f"[ELSE] branch found without corresponding [IF:] condition at level {depth}. "
                "ELSE should only be used as a fallback for conditional branches."
            )
