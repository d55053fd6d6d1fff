"""
Branchwise data models.

Tree and Branch are the parsed representation of a markdown decision tree;
the remaining models describe validation, lint, diff and patch results.
"""

from branchwise.models.decision_tree import (
    ELSE_CONDITION,
    LEVEL_FIELDS,
    METADATA_LEVELS,
    Branch,
    BranchChange,
    BranchMetadata,
    DecisionFilters,
    DecisionRecord,
    DiffStats,
    FieldChange,
    PatchOperation,
    RootChange,
    Selection,
    Tree,
    TreeCheckResult,
    TreeDiff,
    TreePatch,
    get_tree_json_schema,
)

__all__ = [
    "ELSE_CONDITION",
    "LEVEL_FIELDS",
    "METADATA_LEVELS",
    "Branch",
    "BranchChange",
    "BranchMetadata",
    "DecisionFilters",
    "DecisionRecord",
    "DiffStats",
    "FieldChange",
    "PatchOperation",
    "RootChange",
    "Selection",
    "Tree",
    "TreeCheckResult",
    "TreeDiff",
    "TreePatch",
    "get_tree_json_schema",
]
