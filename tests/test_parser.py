"""Tests for markdown -> Tree parsing."""

from branchwise.engine.parser import parse_document, parse_tree_body
from branchwise.engine.serializer import to_markdown
from branchwise.engine.traversal import iter_branches
from branchwise.engine.validator import find_orphaned_branches, validate_tree

SIMPLE_CHOICE = """\
## Decision Tree: Simple Choice
```
Which framework?
  ├─ React → Modern and popular
  └─ Vue → Easy to learn
```
"""

NESTED = """\
# Planning notes

## Decision Tree: Database Setup

Some free text that is not part of the tree.

```
Which database should we use?
  ├─ [IF: has_database] PostgreSQL [recommended] [weight: 8] [risk: low]
  │   ├─ Managed service → RDS
  │   └─ Self-hosted [complexity: high] → Docker
  ├─ SQLite [weight: 4]
  │   └─ [IF: serverless] Turso
  │       └─ Embedded replicas
  └─ [ELSE] No database → Files on disk
```

## Decision Tree: Testing
```
How do we test?
  |-- Unit tests
  |   `-- pytest
  `-- End to end
```
"""


def test_simple_choice_end_to_end():
    trees = parse_document(SIMPLE_CHOICE)
    assert len(trees) == 1
    tree = trees[0]
    assert tree.name == "Simple Choice"
    assert tree.root == "Which framework?"
    assert [b.text for b in tree.branches] == ["React", "Vue"]
    assert [b.outcome for b in tree.branches] == ["Modern and popular", "Easy to learn"]
    assert all(b.children == [] for b in tree.branches)

    result = validate_tree(tree)
    assert result.valid is True
    assert result.errors == []
    assert result.suggestions == ["Consider adding [recommended] to guide users"]


def test_nested_structure_and_levels():
    trees = parse_document(NESTED)
    assert [t.name for t in trees] == ["Database Setup", "Testing"]
    db = trees[0]
    assert db.root == "Which database should we use?"
    postgres, sqlite, no_db = db.branches
    assert postgres.condition == "has_database"
    assert postgres.metadata.as_dict() == {"recommended": True, "weight": 8, "risk": "low"}
    assert [c.text for c in postgres.children] == ["Managed service", "Self-hosted"]
    assert postgres.children[1].metadata.complexity == "high"
    assert postgres.children[1].outcome == "Docker"
    assert sqlite.children[0].condition == "serverless"
    assert sqlite.children[0].children[0].text == "Embedded replicas"
    assert no_db.condition == "ELSE"
    assert no_db.outcome == "Files on disk"

    def check_levels(branches, expected):
        for branch in branches:
            assert branch.level == expected
            check_levels(branch.children, expected + 1)

    check_levels(db.branches, 1)
    assert find_orphaned_branches(db) == []


def test_ascii_tree_art():
    testing = parse_document(NESTED)[1]
    assert testing.root == "How do we test?"
    assert [b.text for b in testing.branches] == ["Unit tests", "End to end"]
    assert testing.branches[0].children[0].text == "pytest"
    assert testing.branches[0].children[0].level == 2


def test_header_without_fence_or_root_is_skipped():
    doc = "## Decision Tree: Empty\n```\n\n```\n\n## Decision Tree: No fence\njust prose\n"
    assert parse_document(doc) == []
    assert parse_document("") == []


def test_misindented_child_surfaces_as_orphan_not_crash():
    tree = parse_tree_body(
        "Broken",
        [
            "Pick one?",
            "  ├─ Parent",
            "  │       └─ Too deep",
            "  └─ Sibling",
        ],
    )
    assert tree is not None
    parent = tree.branches[0]
    assert parent.children[0].text == "Too deep"
    assert parent.children[0].level == parent.level + 2
    result = validate_tree(tree)
    assert result.valid is False
    assert "Found 1 orphaned branch(es)" in result.errors


def test_round_trip_through_markdown():
    original = parse_document(NESTED)[0]
    reparsed = parse_document(to_markdown(original))
    assert len(reparsed) == 1
    again = reparsed[0]
    assert again.name == original.name
    assert again.root == original.root
    assert len(again.branches) == len(original.branches)

    def shape(tree):
        return [
            (b.text, b.condition, b.outcome, b.metadata.as_dict() if b.metadata else None, b.level)
            for b in iter_branches(tree.branches)
        ]

    assert shape(again) == shape(original)
