"""
Line classifier: one physical line of a decision tree block -> Branch stub.

Each tag extractor is a pure function taking the current content and returning
(value, remaining_content), so they can be tested and reused on their own.
classify_line chains them in a fixed order: condition, weight, priority, risk,
complexity, cost, recommended, outcome.
"""

import re
from typing import NamedTuple, Optional

from branchwise.models.decision_tree import (
    ELSE_CONDITION,
    LEVEL_FIELDS,
    Branch,
    BranchMetadata,
)

# Box-drawing connectors (├─ └─) and their ASCII fallbacks (|-- `-- +--),
# optionally preceded by vertical continuation glyphs used for alignment.
BRANCH_MARKER_RE = re.compile(r"^(?P<lead>[\s│|]*)(?P<marker>[├└]─+|\|--+|`--+|\+--+)\s*")
CONTINUATION_ONLY_RE = re.compile(r"^[\s│|]*$")

IF_RE = re.compile(r"^\[IF:\s*([^\]]+)\]\s*")
ELSE_RE = re.compile(r"^\[ELSE\]\s*")
WEIGHT_RE = re.compile(r"\s*\[weight:\s*(-?\d+)\]", re.IGNORECASE)
RECOMMENDED_RE = re.compile(r"\s*\[recommended\]", re.IGNORECASE)
OUTCOME_RE = re.compile(r"\s*→\s*(.*)$")

_LEVEL_TAG_RES = {
    field: re.compile(r"\s*\[" + field + r":\s*(high|medium|low)\]", re.IGNORECASE)
    for field in LEVEL_FIELDS
}


class ClassifiedLine(NamedTuple):
    """A branch stub plus the column its marker sits at (used to build hierarchy)."""

    branch: Branch
    indent: int


# -----------------------------------------------------------------------------
# Pure extractors
# -----------------------------------------------------------------------------


def strip_branch_marker(line: str) -> tuple[Optional[int], str]:
    """
    Remove a leading connector. Returns (marker_column, content); marker_column
    is None when the line carries no recognised marker.
    """
    match = BRANCH_MARKER_RE.match(line)
    if match:
        return len(match.group("lead")), line[match.end():].strip()
    return None, line.strip()


def extract_condition(content: str) -> tuple[Optional[str], str]:
    match = IF_RE.match(content)
    if match:
        return match.group(1).strip(), content[match.end():]
    match = ELSE_RE.match(content)
    if match:
        return ELSE_CONDITION, content[match.end():]
    return None, content


def extract_weight(content: str) -> tuple[Optional[int], str]:
    """[weight: N] -> int. Range is not checked here; the validator flags it."""
    match = WEIGHT_RE.search(content)
    if not match:
        return None, content
    return int(match.group(1)), content[:match.start()] + content[match.end():]


def extract_level_tag(content: str, field: str) -> tuple[Optional[str], str]:
    """[priority|risk|complexity|cost: high|medium|low] -> lower-cased level."""
    match = _LEVEL_TAG_RES[field].search(content)
    if not match:
        return None, content
    return match.group(1).lower(), content[:match.start()] + content[match.end():]


def extract_recommended(content: str) -> tuple[bool, str]:
    match = RECOMMENDED_RE.search(content)
    if not match:
        return False, content
    return True, content[:match.start()] + content[match.end():]


def extract_outcome(content: str) -> tuple[Optional[str], str]:
    match = OUTCOME_RE.search(content)
    if not match:
        return None, content
    outcome = match.group(1).strip()
    return (outcome or None), content[:match.start()]


def extract_metadata(content: str) -> tuple[Optional[BranchMetadata], str]:
    """Run every metadata extractor; None when no tag was present."""
    values: dict = {}
    weight, content = extract_weight(content)
    if weight is not None:
        values["weight"] = weight
    for field in LEVEL_FIELDS:
        level, content = extract_level_tag(content, field)
        if level is not None:
            values[field] = level
    recommended, content = extract_recommended(content)
    if recommended:
        values["recommended"] = True
    if not values:
        return None, content
    return BranchMetadata(**values), content


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------


def classify_line(line: str) -> Optional[ClassifiedLine]:
    """
    Classify one line of a tree body. Returns None for blank lines and for
    tree-art filler made only of continuation glyphs.
    """
    if CONTINUATION_ONLY_RE.match(line):
        return None
    first_visible = len(line) - len(line.lstrip())
    level = first_visible // 2

    marker_column, content = strip_branch_marker(line)
    if not content:
        return None
    indent = marker_column if marker_column is not None else first_visible

    condition, content = extract_condition(content)
    metadata, content = extract_metadata(content)
    outcome, content = extract_outcome(content)

    branch = Branch(
        text=content.strip(),
        level=level,
        condition=condition,
        metadata=metadata,
        outcome=outcome,
    )
    return ClassifiedLine(branch=branch, indent=indent)
