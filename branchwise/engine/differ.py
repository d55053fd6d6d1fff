"""
Tree differ: structural comparison of two tree revisions, plus forward patches.

Branches are matched by breadcrumb path. A top-level branch's path is its text;
any other branch's path is its parent's path + '/' + its text, even when the
parent path is empty (a bare [IF: ...] wrapper), so "/Turso" is the child of an
unnamed top-level wrapper and "Turso" is a top-level branch. Two same-text
siblings under one parent share a path, so the later one wins in the flattened
map; this is a known limitation of text identity.
"""

import logging
from typing import Optional

from branchwise.models.decision_tree import (
    Branch,
    BranchChange,
    BranchMetadata,
    DiffStats,
    FieldChange,
    PatchOperation,
    RootChange,
    Tree,
    TreeDiff,
    TreePatch,
)

logger = logging.getLogger(__name__)

CHANGE_ORDER = {"removed": 0, "modified": 1, "added": 2}
PLAIN_FIELDS = ("text", "outcome", "condition")


def branch_path(parent_path: Optional[str], branch: Branch) -> str:
    """parent_path is None for top-level branches."""
    return branch.text if parent_path is None else f"{parent_path}/{branch.text}"


def parent_path_of(path: str, text: str) -> Optional[str]:
    """Inverse of branch_path: None when `path` names a top-level branch."""
    if path == text:
        return None
    return path[: len(path) - len(text) - 1]


def _walk_paths(branches: list[Branch]):
    """Pre-order (path, branch, container) triples; each branch object once."""
    seen: set[int] = set()
    stack: list[tuple[Optional[str], Branch, list[Branch]]] = [(None, b, branches) for b in reversed(branches)]
    while stack:
        parent_path, branch, container = stack.pop()
        if id(branch) in seen:
            continue
        seen.add(id(branch))
        path = branch_path(parent_path, branch)
        yield path, branch, container
        stack.extend((path, child, branch.children) for child in reversed(branch.children))


def flatten_branches(branches: list[Branch]) -> dict[str, Branch]:
    """Pre-order map of breadcrumb path -> branch."""
    return {path: branch for path, branch, _container in _walk_paths(branches)}


def compare_branches(old: Branch, new: Branch) -> list[FieldChange]:
    """Field-level differences: text, outcome, condition and every metadata key."""
    changes: list[FieldChange] = []
    for field in PLAIN_FIELDS:
        old_value, new_value = getattr(old, field), getattr(new, field)
        if old_value != new_value:
            changes.append(FieldChange(field=field, old_value=old_value, new_value=new_value))

    old_meta = old.metadata.as_dict() if old.metadata else {}
    new_meta = new.metadata.as_dict() if new.metadata else {}
    keys = list(old_meta) + [k for k in new_meta if k not in old_meta]
    for key in keys:
        if old_meta.get(key) != new_meta.get(key):
            changes.append(
                FieldChange(field=f"metadata.{key}", old_value=old_meta.get(key), new_value=new_meta.get(key))
            )
    return changes


def _detached(branch: Branch) -> Branch:
    return branch.model_copy(update={"children": []})


def diff_trees(old: Optional[Tree], new: Optional[Tree]) -> TreeDiff:
    """Compare two trees. Raises ValueError when either tree is missing."""
    if old is None or new is None:
        raise ValueError("Both trees are required for comparison")

    old_map = flatten_branches(old.branches)
    new_map = flatten_branches(new.branches)

    changes: list[BranchChange] = []
    for path in list(old_map) + [p for p in new_map if p not in old_map]:
        before, after = old_map.get(path), new_map.get(path)
        if before is None:
            changes.append(BranchChange(type="added", path=path, text=after.text, branch=_detached(after)))
        elif after is None:
            changes.append(BranchChange(type="removed", path=path, text=before.text, branch=_detached(before)))
        else:
            modifications = compare_branches(before, after)
            if modifications:
                changes.append(
                    BranchChange(
                        type="modified",
                        path=path,
                        text=after.text,
                        branch=_detached(after),
                        old_branch=_detached(before),
                        modifications=modifications,
                    )
                )

    changes.sort(key=lambda c: (CHANGE_ORDER[c.type], c.path))

    added = sum(1 for c in changes if c.type == "added")
    removed = sum(1 for c in changes if c.type == "removed")
    modified = sum(1 for c in changes if c.type == "modified")
    # Coarse: compares branch totals, not an exact count of untouched paths.
    unchanged = max(0, max(len(old_map), len(new_map)) - (added + removed + modified))

    logger.debug("Diffed tree %r: +%d -%d ~%d", new.name or old.name, added, removed, modified)
    return TreeDiff(
        name=new.name or old.name,
        root_changed=old.root != new.root,
        old_root=old.root,
        new_root=new.root,
        changes=changes,
        stats=DiffStats(added=added, removed=removed, modified=modified, unchanged=unchanged),
    )


# -----------------------------------------------------------------------------
# Patches
# -----------------------------------------------------------------------------


def generate_patch(diff: Optional[TreeDiff]) -> TreePatch:
    """Turn a diff into add/remove/replace operations that rebuild the new tree."""
    if diff is None:
        raise ValueError("Diff object is required")

    patch = TreePatch(
        name=diff.name,
        root_change=RootChange(from_root=diff.old_root, to_root=diff.new_root) if diff.root_changed else None,
    )
    for change in diff.changes:
        if change.type == "added":
            branch = change.branch
            patch.operations.append(
                PatchOperation(
                    op="add",
                    path=change.path,
                    value={
                        "text": branch.text,
                        "outcome": branch.outcome,
                        "condition": branch.condition,
                        "metadata": branch.metadata.as_dict() if branch.metadata else None,
                    },
                )
            )
        elif change.type == "removed":
            patch.operations.append(PatchOperation(op="remove", path=change.path))
        else:
            for mod in change.modifications:
                patch.operations.append(
                    PatchOperation(
                        op="replace",
                        path=f"{change.path}/{mod.field}",
                        old_value=mod.old_value,
                        new_value=mod.new_value,
                    )
                )
    return patch


def _index(tree: Tree) -> dict[str, tuple[Branch, list[Branch]]]:
    """path -> (branch, the list that holds it)."""
    return {path: (branch, container) for path, branch, container in _walk_paths(tree.branches)}


def _remove_identity(container: list[Branch], target: Branch) -> None:
    for idx, branch in enumerate(container):
        if branch is target:
            del container[idx]
            return


def _apply_replace(branch: Branch, field: str, value) -> None:
    if field == "text":
        branch.text = value or ""
        return
    if field in PLAIN_FIELDS:
        setattr(branch, field, value)
        return
    key = field.split(".", 1)[1]
    metadata = branch.metadata.as_dict() if branch.metadata else {}
    if value is None:
        metadata.pop(key, None)
    else:
        metadata[key] = value
    branch.metadata = BranchMetadata(**metadata) if metadata else None


def apply_patch(tree: Optional[Tree], patch: Optional[TreePatch]) -> Tree:
    """
    Apply a patch to a deep copy of `tree`. Removals go first (deepest first),
    then field replacements, then additions in path order so parents exist
    before their children. Operations whose target no longer resolves are skipped.
    """
    if tree is None or patch is None:
        raise ValueError("Both tree and patch are required")

    patched = tree.model_copy(deep=True)
    if patch.root_change is not None:
        patched.root = patch.root_change.to_root

    removals = sorted((op for op in patch.operations if op.op == "remove"), key=lambda op: -op.path.count("/"))
    for op in removals:
        entry = _index(patched).get(op.path)
        if entry is None:
            logger.warning("Patch remove skipped, path not found: %s", op.path)
            continue
        _remove_identity(entry[1], entry[0])

    for op in (op for op in patch.operations if op.op == "replace"):
        target_path, field = op.path.rsplit("/", 1)
        entry = _index(patched).get(target_path)
        if entry is None:
            logger.warning("Patch replace skipped, path not found: %s", target_path)
            continue
        _apply_replace(entry[0], field, op.new_value)

    for op in sorted((op for op in patch.operations if op.op == "add"), key=lambda op: op.path):
        value = op.value or {}
        text = value.get("text") or ""
        parent_path = parent_path_of(op.path, text)
        if parent_path is not None:
            entry = _index(patched).get(parent_path)
            if entry is None:
                logger.warning("Patch add skipped, parent not found: %s", parent_path)
                continue
            container, level = entry[0].children, entry[0].level + 1
        else:
            container, level = patched.branches, 1
        metadata = value.get("metadata")
        container.append(
            Branch(
                text=text,
                level=level,
                condition=value.get("condition"),
                outcome=value.get("outcome"),
                metadata=BranchMetadata(**metadata) if metadata else None,
            )
        )

    return patched
