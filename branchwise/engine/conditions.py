"""
Condition evaluator for [IF: ...] guards.

Grammar, loosest binding first: OR, AND, NOT; parentheses override. A bare
identifier is true only when the context maps it to the boolean True. Unknown
identifiers, non-mapping contexts and malformed expressions all evaluate to
False; evaluation never raises.
"""

import re
from collections.abc import Mapping
from typing import Any, Optional

from branchwise.models.decision_tree import ELSE_CONDITION, Branch

SIMPLE_CONDITION_RE = re.compile(
    r"^[a-z_][a-z0-9_]*(\s+(AND|OR)\s+[a-z_][a-z0-9_]*)*$", re.IGNORECASE
)
NEGATED_CONDITION_RE = re.compile(r"^NOT\s+[a-z_][a-z0-9_]*$", re.IGNORECASE)


def _is_wrapped(expr: str) -> bool:
    """True when the whole expression sits inside one matching pair of parentheses."""
    if not (expr.startswith("(") and expr.endswith(")")):
        return False
    depth = 0
    for idx, char in enumerate(expr):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return idx == len(expr) - 1
    return False


def _split_top_level(expr: str, operator: str) -> Optional[tuple[str, str]]:
    """Split at the first ` OPERATOR ` outside parentheses, or None."""
    token = f" {operator} "
    depth = 0
    for idx, char in enumerate(expr):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and expr.startswith(token, idx):
            return expr[:idx], expr[idx + len(token):]
    return None


def evaluate(expression: Any, context: Any = None) -> bool:
    """Evaluate a guard expression against a context mapping of identifier -> bool."""
    if not isinstance(expression, str):
        return False
    expr = expression.strip()
    if not expr:
        return False
    if expr == ELSE_CONDITION:
        return True

    if _is_wrapped(expr):
        return evaluate(expr[1:-1], context)

    parts = _split_top_level(expr, "OR")
    if parts is not None:
        return evaluate(parts[0], context) or evaluate(parts[1], context)

    parts = _split_top_level(expr, "AND")
    if parts is not None:
        return evaluate(parts[0], context) and evaluate(parts[1], context)

    if expr.startswith("NOT "):
        return not evaluate(expr[4:], context)

    if not isinstance(context, Mapping):
        return False
    return context.get(expr) is True


def is_simple_condition(condition: str) -> bool:
    """
    Allow-list used by the validator and linter: `ident`, `ident AND|OR ident ...`
    or `NOT ident`. Anything with parentheses is accepted without deeper parsing.
    """
    if "(" in condition or ")" in condition:
        return True
    condition = condition.strip()
    return bool(SIMPLE_CONDITION_RE.match(condition) or NEGATED_CONDITION_RE.match(condition))


def filter_branches(branches: list[Branch], context: Any) -> list[Branch]:
    """
    Keep the branches that apply in `context`, recursively. Unconditional
    branches always apply; an ELSE branch applies only when no guarded sibling
    matched. Returns copies, the input tree is left untouched.
    """
    guarded_match = any(
        b.condition and b.condition != ELSE_CONDITION and evaluate(b.condition, context)
        for b in branches
    )
    kept: list[Branch] = []
    for branch in branches:
        if branch.is_else:
            if guarded_match:
                continue
        elif branch.condition and not evaluate(branch.condition, context):
            continue
        kept.append(branch.model_copy(update={"children": filter_branches(branch.children, context)}))
    return kept
