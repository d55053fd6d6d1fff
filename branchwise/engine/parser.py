"""
Tree parser: markdown document -> list of Tree.

Scans for `## Decision Tree: <Name>` headers, takes the next fenced code block
as the tree body and builds the hierarchy with an explicit stack keyed by the
column of each branch marker. Parsing never raises: a block without a fence or
without a root line is simply omitted.
"""

import logging
import re
from typing import Optional

from branchwise.engine.line_classifier import classify_line
from branchwise.models.decision_tree import Branch, Tree

logger = logging.getLogger(__name__)

TREE_HEADER_RE = re.compile(r"^##\s+Decision Tree:\s*(.+)$")
FENCE = "```"

# Columns per nesting step in drawn tree art ("│   ├─ ").
NEST_WIDTH = 4
# Column the first level of connectors is drawn at, under the root question.
TOP_LEVEL_COLUMN = 2


def parse_document(markdown: str) -> list[Tree]:
    """Parse every decision tree block in a markdown document, in document order."""
    trees: list[Tree] = []
    if not markdown:
        return trees
    lines = markdown.splitlines()

    i = 0
    while i < len(lines):
        header = TREE_HEADER_RE.match(lines[i].rstrip())
        if not header:
            i += 1
            continue
        name = header.group(1).strip()

        # Free text between the header and the fenced block is skipped.
        i += 1
        while i < len(lines) and not lines[i].strip().startswith(FENCE):
            i += 1
        if i >= len(lines):
            logger.debug("Decision tree %r has no fenced block; skipped", name)
            break

        i += 1
        body: list[str] = []
        while i < len(lines) and not lines[i].strip().startswith(FENCE):
            body.append(lines[i])
            i += 1

        tree = parse_tree_body(name, body)
        if tree is not None:
            trees.append(tree)
        else:
            logger.debug("Decision tree %r has no root question; skipped", name)
        i += 1

    return trees


def parse_tree_body(name: str, lines: list[str]) -> Optional[Tree]:
    """Build a Tree from the lines inside one fenced block. None if there is no root."""
    root_index = next((idx for idx, line in enumerate(lines) if line.strip()), None)
    if root_index is None:
        return None
    root = lines[root_index].strip()

    branches: list[Branch] = []
    stack: list[tuple[Branch, int]] = []

    for line in lines[root_index + 1:]:
        classified = classify_line(line)
        if classified is None:
            continue
        branch, indent = classified

        while stack and stack[-1][1] >= indent:
            stack.pop()

        if not stack:
            branch.level = 1 + max(0, (indent - TOP_LEVEL_COLUMN) // NEST_WIDTH)
            branches.append(branch)
        else:
            parent, parent_indent = stack[-1]
            # A jump of more than one nesting step keeps its extra depth so the
            # validator can report the missing intermediate ancestor.
            branch.level = parent.level + max(1, (indent - parent_indent) // NEST_WIDTH)
            parent.children.append(branch)

        stack.append((branch, indent))

    return Tree(name=name, root=root, branches=branches)
