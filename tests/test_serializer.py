"""Tests for markdown and Mermaid rendering."""

from branchwise.engine.serializer import format_branch_line, to_html, to_markdown, to_mermaid, to_svg
from branchwise.models.decision_tree import Branch, BranchMetadata, Tree


def _tree():
    return Tree(
        name="Storage",
        root="Which store?",
        branches=[
            Branch(
                text="Postgres",
                condition="has_database",
                metadata=BranchMetadata(weight=8, risk="low", recommended=True),
                children=[Branch(text="RDS", level=2, outcome="Managed")],
            ),
            Branch(text="Files", condition="ELSE", outcome='Plain "json"'),
        ],
    )


def test_format_branch_line_tag_order():
    branch = _tree().branches[0]
    assert format_branch_line(branch) == "[IF: has_database] Postgres [weight: 8] [risk: low] [recommended]"
    assert format_branch_line(Branch(outcome="Done")) == "→ Done"


def test_to_markdown_draws_canonical_art():
    markdown = to_markdown(_tree())
    assert markdown.splitlines() == [
        "## Decision Tree: Storage",
        "",
        "```",
        "Which store?",
        "  ├─ [IF: has_database] Postgres [weight: 8] [risk: low] [recommended]",
        "  │   └─ RDS → Managed",
        '  └─ [ELSE] Files → Plain "json"',
        "```",
    ]
    body = to_markdown(_tree(), include_header=False)
    assert body.startswith("Which store?\n")


def test_to_mermaid():
    chart = to_mermaid(_tree())
    lines = chart.splitlines()
    assert lines[0] == "flowchart TD"
    assert '    root["Which store?"]' in lines
    assert '    root -->|"has_database"| n1' in lines
    assert "    n1 --> n2" in lines
    assert '    n3["Files → Plain #quot;json#quot;"]' in lines
    assert "    class n1 recommended" in lines


def test_to_html_escapes_user_text():
    tree = Tree(
        name="<Ops>",
        root="Which & why?",
        branches=[
            Branch(
                text="<script>alert(1)</script>",
                condition="has_api",
                outcome="a < b",
                metadata=BranchMetadata(weight=3, priority="high", recommended=True),
                children=[Branch(text="Child", level=2)],
            )
        ],
    )
    page = to_html(tree)
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>Decision Tree: &lt;Ops&gt;</title>" in page
    assert "Which &amp; why?" in page
    assert "<script>" not in page
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page
    assert '<span class="outcome">→ a &lt; b</span>' in page
    assert "★ Recommended" in page
    assert "Weight: 3" in page
    assert page.count("<details open>") == 2
    assert page.count("</details>") == 2
    # the child sits inside its parent's list
    assert page.index("<ul>") < page.index("Child") < page.index("</ul>")


def test_to_svg_lays_out_nodes_and_edges():
    svg = to_svg(_tree())
    assert svg.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert svg.rstrip().endswith("</svg>")
    assert svg.count("<rect ") == 3
    assert svg.count('<line class="edge"') == 1
    assert svg.count("node-recommended") == 2  # style rule + the Postgres node
    assert "Weight: 8" in svg
    assert "Plain &quot;json&quot;" not in svg  # outcomes are not drawn
    assert ">Storage</text>" in svg


def test_svg_truncates_long_labels():
    tree = Tree(name="T", root="Pick", branches=[Branch(text="x" * 40)])
    assert f">{'x' * 22}...</text>" in to_svg(tree)


def test_renderers_handle_very_deep_trees(deep_markdown):
    from branchwise.engine.parser import parse_document

    tree = parse_document(deep_markdown)[0]
    assert len(to_markdown(tree).splitlines()) == 1200 + 5
    assert to_mermaid(tree).count(" --> ") == 1200
    assert to_html(tree).count("<details open>") == 1200
    assert to_svg(tree).count("<rect ") == 1200
