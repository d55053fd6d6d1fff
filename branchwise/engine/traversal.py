"""
Walkers shared by the validator, linter, differ and serializer.

Every walker visits a branch object at most once, so a hand-built tree whose
children point back at an ancestor is still walked to completion.
"""

from typing import Any, Iterator, Optional

from branchwise.models.decision_tree import Branch, Selection, Tree


def iter_branches(branches: list[Branch]) -> Iterator[Branch]:
    """Pre-order walk over a branch list and all descendants."""
    seen: set[int] = set()
    stack = list(reversed(branches))
    while stack:
        branch = stack.pop()
        if id(branch) in seen:
            continue
        seen.add(id(branch))
        yield branch
        stack.extend(reversed(branch.children))


def iter_sibling_groups(tree: Tree) -> Iterator[tuple[Optional[Branch], list[Branch]]]:
    """Yield (parent, children) for every nesting group; parent is None at top level."""
    yield None, tree.branches
    for branch in iter_branches(tree.branches):
        if branch.children:
            yield branch, branch.children


def iter_with_depth(branches: list[Branch], depth: int = 1) -> Iterator[tuple[Branch, int]]:
    """Pre-order walk yielding (branch, depth), depth 1 at the top level."""
    seen: set[int] = set()
    stack = [(b, depth) for b in reversed(branches)]
    while stack:
        branch, current = stack.pop()
        if id(branch) in seen:
            continue
        seen.add(id(branch))
        yield branch, current
        stack.extend((child, current + 1) for child in reversed(branch.children))


def leaf_depths(branches: list[Branch]) -> list[int]:
    """Depth of every leaf, counting 1 at the top level."""
    return [depth for branch, depth in iter_with_depth(branches) if branch.is_leaf]


def find_branch(tree: Tree, path: list[str]) -> Optional[Branch]:
    """Resolve a breadcrumb (list of branch texts) to the first matching branch."""
    if not path:
        return None
    candidates = tree.branches
    found: Optional[Branch] = None
    for text in path:
        found = next((b for b in candidates if b.text == text), None)
        if found is None:
            return None
        candidates = found.children
    return found


def select_path(tree: Tree, path: list[str], context: Optional[dict[str, Any]] = None) -> Selection:
    """
    Build the selection tuple for a decision record. Raises KeyError when the
    breadcrumb does not resolve in this tree.
    """
    branch = find_branch(tree, path)
    if branch is None:
        raise KeyError(f"Path {' → '.join(path) or '(empty)'} not found in tree '{tree.name}'")
    return Selection(
        tree_name=tree.name,
        selected_path=list(path),
        metadata=branch.metadata.as_dict() if branch.metadata else {},
        context=dict(context or {}),
    )
