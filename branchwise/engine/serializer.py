"""
Read-only renderers for parsed trees: markdown (re-parseable), Mermaid,
standalone HTML and SVG. All walks use explicit stacks.

to_markdown draws canonical tree art (connectors at column 2, four columns per
nesting step), so parse_document(to_markdown(tree)) gives back the same texts,
conditions, outcomes and metadata at every depth.
"""

from html import escape
from typing import Optional

from branchwise.models.decision_tree import ELSE_CONDITION, LEVEL_FIELDS, Branch, Tree

FENCE = "```"
MIDDLE = "├─"
LAST = "└─"


def format_branch_line(branch: Branch) -> str:
    """Branch content without the connector: condition, text, tags, outcome."""
    parts: list[str] = []
    if branch.condition == ELSE_CONDITION:
        parts.append("[ELSE]")
    elif branch.condition:
        parts.append(f"[IF: {branch.condition}]")
    if branch.text:
        parts.append(branch.text)
    if branch.metadata is not None:
        meta = branch.metadata
        if meta.weight is not None:
            parts.append(f"[weight: {meta.weight}]")
        for field in LEVEL_FIELDS:
            value = getattr(meta, field)
            if value is not None:
                parts.append(f"[{field}: {value}]")
        if meta.recommended:
            parts.append("[recommended]")
    line = " ".join(parts)
    if branch.outcome:
        line = f"{line} → {branch.outcome}" if line else f"→ {branch.outcome}"
    return line


def to_markdown(tree: Tree, include_header: bool = True) -> str:
    lines: list[str] = []
    if include_header:
        lines.extend([f"## Decision Tree: {tree.name}", "", FENCE])
    lines.append(tree.root)
    stack = [(b, "  ", i == len(tree.branches) - 1) for i, b in reversed(list(enumerate(tree.branches)))]
    while stack:
        branch, prefix, last = stack.pop()
        lines.append(f"{prefix}{LAST if last else MIDDLE} {format_branch_line(branch)}".rstrip())
        child_prefix = prefix + ("    " if last else "│   ")
        count = len(branch.children)
        stack.extend((child, child_prefix, i == count - 1) for i, child in reversed(list(enumerate(branch.children))))
    if include_header:
        lines.append(FENCE)
    return "\n".join(lines) + "\n"


def _mermaid_label(text: str) -> str:
    return '"' + text.replace('"', "#quot;") + '"'


def to_mermaid(tree: Tree) -> str:
    """Mermaid flowchart; guards become edge labels, [recommended] nodes get a class."""
    lines = ["flowchart TD", f"    root[{_mermaid_label(tree.root)}]"]
    recommended: list[str] = []
    counter = 0

    stack = [(b, "root") for b in reversed(tree.branches)]
    while stack:
        branch, parent_id = stack.pop()
        counter += 1
        node_id = f"n{counter}"
        label = branch.text or (f"IF {branch.condition}" if branch.condition else "(empty)")
        if branch.outcome:
            label = f"{label} → {branch.outcome}"
        lines.append(f"    {node_id}[{_mermaid_label(label)}]")
        if branch.condition:
            lines.append(f"    {parent_id} -->|{_mermaid_label(branch.condition)}| {node_id}")
        else:
            lines.append(f"    {parent_id} --> {node_id}")
        if branch.metadata is not None and branch.metadata.recommended:
            recommended.append(node_id)
        stack.extend((child, node_id) for child in reversed(branch.children))

    if recommended:
        lines.append("    classDef recommended fill:#dcfce7,stroke:#166534")
        lines.append(f"    class {','.join(recommended)} recommended")
    return "\n".join(lines) + "\n"


# -----------------------------------------------------------------------------
# HTML (standalone page with collapsible <details> per branch)
# -----------------------------------------------------------------------------

HTML_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f5f5f5; color: #333; padding: 2rem; }
.container { max-width: 1200px; margin: 0 auto; background: white; padding: 2rem; border-radius: 8px; }
.root-question { font-size: 1.25rem; color: #555; margin-bottom: 2rem; }
details { margin: 0.5rem 0; padding-left: 1rem; border-left: 2px solid #e0e0e0; }
details[open] { border-left-color: #3498db; }
summary { cursor: pointer; padding: 0.5rem 1rem; background: #f8f9fa; border-radius: 4px; }
ul { list-style: none; padding-left: 1rem; }
.badge { display: inline-block; padding: 0.1rem 0.4rem; border-radius: 3px; font-size: 0.75rem; color: white; background: #7f8c8d; }
.badge-recommended { background: #27ae60; }
.badge-weight { background: #f39c12; }
.badge-high { background: #e74c3c; }
.badge-medium { background: #f39c12; }
.badge-low { background: #27ae60; }
.badge-condition { background: #3498db; }
.outcome { color: #7f8c8d; font-style: italic; }
"""


def _html_summary(branch: Branch) -> str:
    parts: list[str] = []
    if branch.condition == ELSE_CONDITION:
        parts.append('<span class="badge badge-condition">ELSE</span>')
    elif branch.condition:
        parts.append(f'<span class="badge badge-condition">IF {escape(branch.condition)}</span>')
    meta = branch.metadata
    if meta is not None:
        if meta.recommended:
            parts.append('<span class="badge badge-recommended">★ Recommended</span>')
        if meta.weight is not None:
            parts.append(f'<span class="badge badge-weight">Weight: {meta.weight}</span>')
        if meta.priority:
            parts.append(f'<span class="badge badge-{escape(meta.priority)}">{escape(meta.priority)}</span>')
        if meta.risk:
            parts.append(f'<span class="badge badge-{escape(meta.risk)}">Risk: {escape(meta.risk)}</span>')
    parts.append(escape(branch.text))
    if branch.outcome:
        parts.append(f'<span class="outcome">→ {escape(branch.outcome)}</span>')
    return " ".join(p for p in parts if p)


def _html_branches(branches: list[Branch]) -> str:
    out: list[str] = []
    # ("html", markup) entries are closing tags queued behind a branch's subtree
    stack: list[tuple[str, object]] = [("branch", b) for b in reversed(branches)]
    while stack:
        kind, item = stack.pop()
        if kind == "html":
            out.append(item)
            continue
        out.append(f"<details open>\n<summary>{_html_summary(item)}</summary>\n")
        stack.append(("html", "</details>\n"))
        if item.children:
            stack.append(("html", "</ul>\n"))
            for child in reversed(item.children):
                stack.extend([("html", "</li>\n"), ("branch", child), ("html", "<li>\n")])
            stack.append(("html", "<ul>\n"))
    return "".join(out)


def to_html(tree: Tree) -> str:
    """Standalone HTML page; every user-supplied string is escaped."""
    name = escape(tree.name)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Decision Tree: {name}</title>
<style>{HTML_STYLE}</style>
</head>
<body>
<div class="container">
<h1>Decision Tree: {name}</h1>
<p class="root-question">{escape(tree.root)}</p>
<div id="tree">
{_html_branches(tree.branches)}</div>
</div>
</body>
</html>
"""


# -----------------------------------------------------------------------------
# SVG (top-down layout: leaves take consecutive columns, parents are centred)
# -----------------------------------------------------------------------------

NODE_WIDTH = 200
NODE_HEIGHT = 60
HORIZONTAL_SPACING = 250
VERTICAL_SPACING = 100
SVG_MARGIN = 50
SVG_LABEL_MAX = 25


def _truncate(text: str, max_length: int = SVG_LABEL_MAX) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def _layout(branches: list[Branch]) -> list[dict]:
    """One node dict per branch in pre-order: id, branch, parent, x, y."""
    nodes: list[dict] = []
    children_of: dict[int, list[int]] = {}
    seen: set[int] = set()
    stack: list[tuple[Branch, Optional[int], int]] = [(b, None, 0) for b in reversed(branches)]
    while stack:
        branch, parent, depth = stack.pop()
        if id(branch) in seen:
            continue
        seen.add(id(branch))
        node_id = len(nodes)
        nodes.append({"id": node_id, "branch": branch, "parent": parent, "x": 0.0, "y": depth * VERTICAL_SPACING})
        children_of[node_id] = []
        if parent is not None:
            children_of[parent].append(node_id)
        stack.extend((child, node_id, depth + 1) for child in reversed(branch.children))

    # pre-order meets leaves left to right
    column = 0
    for node in nodes:
        if not children_of[node["id"]]:
            node["x"] = column * HORIZONTAL_SPACING
            column += 1
    for node in reversed(nodes):
        kids = children_of[node["id"]]
        if kids:
            node["x"] = (nodes[kids[0]]["x"] + nodes[kids[-1]]["x"]) / 2
    return nodes


def to_svg(tree: Tree) -> str:
    """Static SVG drawing of the branches, titled with the tree name."""
    nodes = _layout(tree.branches)
    half_w, half_h = NODE_WIDTH / 2, NODE_HEIGHT / 2
    min_x = min((n["x"] for n in nodes), default=0) - half_w - SVG_MARGIN
    max_x = max((n["x"] for n in nodes), default=0) + half_w + SVG_MARGIN
    min_y = -half_h - 2 * SVG_MARGIN
    max_y = max((n["y"] for n in nodes), default=0) + half_h + SVG_MARGIN

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="{min_x:g} {min_y:g} {max_x - min_x:g} {max_y - min_y:g}">',
        "  <style>",
        "    .node { fill: #f8f9fa; stroke: #3498db; stroke-width: 2; }",
        "    .node-recommended { fill: #d4edda; stroke: #27ae60; }",
        "    .text { font-family: Arial, sans-serif; font-size: 14px; text-anchor: middle; }",
        "    .title { font-family: Arial, sans-serif; font-size: 20px; font-weight: bold; text-anchor: middle; }",
        "    .edge { stroke: #95a5a6; stroke-width: 2; fill: none; }",
        "    .badge { font-family: Arial, sans-serif; font-size: 10px; fill: #666; text-anchor: middle; }",
        "  </style>",
        f'  <text class="title" x="{(min_x + max_x) / 2:g}" y="{min_y + 30:g}">{escape(tree.name)}</text>',
        '  <g id="edges">',
    ]
    for node in nodes:
        if node["parent"] is None:
            continue
        parent = nodes[node["parent"]]
        lines.append(
            f'    <line class="edge" x1="{parent["x"]:g}" y1="{parent["y"] + half_h:g}" '
            f'x2="{node["x"]:g}" y2="{node["y"] - half_h:g}" />'
        )
    lines.extend(["  </g>", '  <g id="nodes">'])
    for node in nodes:
        branch: Branch = node["branch"]
        meta = branch.metadata
        css = "node node-recommended" if meta is not None and meta.recommended else "node"
        label = branch.text or (f"IF {branch.condition}" if branch.condition else "")
        lines.append("    <g>")
        lines.append(
            f'      <rect class="{css}" x="{node["x"] - half_w:g}" y="{node["y"] - half_h:g}" '
            f'width="{NODE_WIDTH}" height="{NODE_HEIGHT}" rx="5" />'
        )
        lines.append(f'      <text class="text" x="{node["x"]:g}" y="{node["y"]:g}">{escape(_truncate(label))}</text>')
        if meta is not None and meta.weight is not None:
            lines.append(f'      <text class="badge" x="{node["x"]:g}" y="{node["y"] + 15:g}">Weight: {meta.weight}</text>')
        lines.append("    </g>")
    lines.extend(["  </g>", "</svg>"])
    return "\n".join(lines) + "\n"
