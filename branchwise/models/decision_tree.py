"""
Markdown decision tree data model for Branchwise.

A Tree is parsed from one `## Decision Tree: <Name>` block. Branches nest via
`children`; conditions, metadata tags and outcomes are optional and stay None
when the source line did not carry them. Analysis results (validation, lint,
diff, patch) are also modelled here so the API and the engine share one
contract. All models are Pydantic v2.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

ELSE_CONDITION = "ELSE"
METADATA_LEVELS = ("high", "medium", "low")
LEVEL_FIELDS = ("priority", "risk", "complexity", "cost")


# -----------------------------------------------------------------------------
# Branch metadata
# -----------------------------------------------------------------------------


class BranchMetadata(BaseModel):
    """Bracketed tags attached to a branch line ([weight: N], [risk: low], ...)."""

    weight: Optional[int] = Field(None, description="Advisory weight, expected range 1-10")
    priority: Optional[str] = Field(None, description="high | medium | low")
    risk: Optional[str] = Field(None, description="high | medium | low")
    complexity: Optional[str] = Field(None, description="high | medium | low")
    cost: Optional[str] = Field(None, description="high | medium | low")
    recommended: Optional[bool] = Field(None, description="Set to True by [recommended]; absent otherwise")

    model_config = {"extra": "allow"}

    def as_dict(self) -> dict[str, Any]:
        """Only the populated keys, in tag order."""
        return self.model_dump(exclude_none=True)


# -----------------------------------------------------------------------------
# Branch and Tree
# -----------------------------------------------------------------------------


class Branch(BaseModel):
    """
    One node of a decision tree: a choice, a sub-question or a conditional guard.

    - text: label, may be empty for a bare [IF: ...] wrapper
    - level: nesting depth derived from the source indentation (1 = top level)
    - condition: boolean expression, or the ELSE sentinel
    - outcome: free text after the arrow
    """

    text: str = Field("", description="Branch label")
    level: int = Field(1, description="Nesting depth derived from indentation")
    condition: Optional[str] = Field(None, description="Guard expression or 'ELSE'")
    metadata: Optional[BranchMetadata] = Field(None, description="Parsed metadata tags")
    outcome: Optional[str] = Field(None, description="Result of choosing this branch")
    children: list["Branch"] = Field(default_factory=list, description="Ordered child branches")

    model_config = {"extra": "forbid"}

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def is_else(self) -> bool:
        return self.condition == ELSE_CONDITION


class Tree(BaseModel):
    """A parsed `## Decision Tree` block: name, root question and top-level branches."""

    name: str = Field(..., description="Identifier taken from the header")
    root: str = Field("", description="Root question (first non-empty line of the block)")
    branches: list[Branch] = Field(default_factory=list, description="Top-level branches in document order")

    model_config = {"extra": "forbid"}


# -----------------------------------------------------------------------------
# Validation / lint results
# -----------------------------------------------------------------------------


class TreeCheckResult(BaseModel):
    """Outcome of validate_tree or lint_tree. Only errors affect `valid`."""

    valid: bool = Field(True, description="True iff errors is empty")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    def finalize(self) -> "TreeCheckResult":
        self.valid = len(self.errors) == 0
        return self


# -----------------------------------------------------------------------------
# Diff and patch
# -----------------------------------------------------------------------------


class FieldChange(BaseModel):
    """A single field that differs between two revisions of the same branch."""

    field: str = Field(..., description="text, outcome, condition or metadata.<key>")
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None


class BranchChange(BaseModel):
    """An added, removed or modified branch, keyed by breadcrumb path."""

    type: Literal["added", "removed", "modified"]
    path: str = Field(..., description="Breadcrumb path (branch texts joined by '/')")
    text: str
    branch: Branch = Field(..., description="New branch (old branch for removals)")
    old_branch: Optional[Branch] = None
    modifications: list[FieldChange] = Field(default_factory=list)


class DiffStats(BaseModel):
    added: int = 0
    removed: int = 0
    modified: int = 0
    unchanged: int = 0


class TreeDiff(BaseModel):
    """Structural comparison of two tree revisions."""

    name: str
    root_changed: bool = False
    old_root: str = ""
    new_root: str = ""
    changes: list[BranchChange] = Field(default_factory=list)
    stats: DiffStats = Field(default_factory=DiffStats)


class RootChange(BaseModel):
    from_root: str
    to_root: str


class PatchOperation(BaseModel):
    """One forward-patch step: add a branch, remove a branch, or replace a field."""

    op: Literal["add", "remove", "replace"]
    path: str
    value: Optional[dict[str, Any]] = Field(None, description="Branch fields for 'add'")
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None


class TreePatch(BaseModel):
    version: str = "1.0"
    name: str
    root_change: Optional[RootChange] = None
    operations: list[PatchOperation] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Selection (handed to the decision record store)
# -----------------------------------------------------------------------------


class Selection(BaseModel):
    """Which branch a user picked in which tree, with the context it was picked in."""

    tree_name: str
    selected_path: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    context: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class DecisionRecord(Selection):
    """A stored Selection with its id and revert state."""

    id: str
    reverted: bool = False
    reverted_at: Optional[datetime] = None
    revert_reason: Optional[str] = None


class DecisionFilters(BaseModel):
    """Store query filters; every field is optional and they combine with AND."""

    tree_name: Optional[str] = None
    phase: Optional[str] = Field(None, description="Matches context['phase'] of the recorded selection")
    reverted: Optional[bool] = None
    after: Optional[datetime] = None
    before: Optional[datetime] = None


# -----------------------------------------------------------------------------
# JSON Schema
# -----------------------------------------------------------------------------

SCHEMA_VERSION = "1.0.0"


def get_tree_json_schema() -> dict[str, Any]:
    """Return the JSON schema for a parsed Tree (Branch recursion under $defs)."""
    tree_schema = Tree.model_json_schema()
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "title": "Branchwise Decision Tree",
        "version": SCHEMA_VERSION,
        **{k: v for k, v in tree_schema.items() if k not in ("$schema", "title")},
    }
