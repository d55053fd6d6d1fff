"""
Stateless tree routes: parse, validate, lint, diff, patch, evaluate, filter,
export. Only /lint (run log) and /select (decision store) touch the database.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from branchwise.database import get_db
from branchwise.engine.conditions import evaluate, filter_branches, is_simple_condition
from branchwise.engine.differ import apply_patch, diff_trees, generate_patch
from branchwise.engine.formatting import format_diff, format_lint_results
from branchwise.engine.parser import parse_document
from branchwise.engine.serializer import to_html, to_markdown, to_mermaid, to_svg
from branchwise.engine.traversal import select_path
from branchwise.engine.validator import validate_tree
from branchwise.models.decision_tree import (
    DecisionRecord,
    Tree,
    TreeCheckResult,
    TreeDiff,
    TreePatch,
    get_tree_json_schema,
)
from branchwise.models_db import LintRunModel
from branchwise.services.context_service import load_project_context
from branchwise.services.decision_store import DecisionStore, SqlDecisionStore
from branchwise.services.tree_service import TreeReport, exit_status, lint_markdown
from branchwise.utils.logging import log_diff_result, log_validation_result

logger = logging.getLogger(__name__)

router = APIRouter()


# -----------------------------------------------------------------------------
# Request bodies
# -----------------------------------------------------------------------------


class MarkdownBody(BaseModel):
    markdown: str = Field(..., description="Markdown document containing '## Decision Tree:' blocks")
    source: Optional[str] = Field(None, description="Label for logs and reports, e.g. a file path")


class TreeBody(BaseModel):
    tree: Tree


class DiffBody(BaseModel):
    old: Optional[Tree] = None
    new: Optional[Tree] = None


class PatchBody(BaseModel):
    tree: Optional[Tree] = None
    patch: Optional[TreePatch] = None


class EvaluateBody(BaseModel):
    expression: Optional[str] = None
    context: dict[str, Any] = Field(default_factory=dict)
    project_root: Optional[str] = Field(None, description="Directory to derive context facts from; explicit context wins")


class FilterBody(BaseModel):
    tree: Tree
    context: dict[str, Any] = Field(default_factory=dict)
    project_root: Optional[str] = Field(None, description="Directory to derive context facts from; explicit context wins")


class SelectBody(BaseModel):
    tree: Tree
    path: list[str] = Field(..., description="Branch texts from the top level down")
    context: dict[str, Any] = Field(default_factory=dict)


class LintResponse(BaseModel):
    reports: list[TreeReport]
    exit_status: int


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _lint_response(db: Session, markdown: str, source: Optional[str], strict: bool, fmt: str):
    reports = lint_markdown(markdown, source=source)
    for report in reports:
        db.add(
            LintRunModel(
                tree_name=report.tree_name,
                source=source,
                errors=len(report.errors),
                warnings=len(report.warnings),
                suggestions=len(report.suggestions),
            )
        )
    db.commit()

    status = exit_status(reports, strict=strict)
    if fmt == "text":
        body = "\n".join(f"== {r.tree_name} ==\n{format_lint_results(r.combined())}" for r in reports)
        return PlainTextResponse(body or "No decision trees found\n", headers={"X-Exit-Status": str(status)})
    return LintResponse(reports=reports, exit_status=status)


def _resolve_context(context: dict[str, Any], project_root: Optional[str]) -> dict[str, Any]:
    """Project facts from project_root (if given) overlaid with the explicit context."""
    if not project_root:
        return context
    root = Path(project_root)
    if not root.is_dir():
        raise HTTPException(status_code=400, detail=f"Project root not found: {project_root}")
    return {**load_project_context(root), **context}


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@router.get("/schema")
def tree_schema():
    """JSON schema of the parsed tree model."""
    return get_tree_json_schema()


@router.post("/parse", response_model=list[Tree])
def parse_trees(body: MarkdownBody):
    """Parse every '## Decision Tree:' block in the document."""
    return parse_document(body.markdown)


@router.post("/validate", response_model=TreeCheckResult)
def validate(body: TreeBody):
    result = validate_tree(body.tree)
    log_validation_result(logger, body.tree.name, len(result.errors), len(result.warnings))
    return result


@router.post("/lint")
def lint(
    body: MarkdownBody,
    strict: bool = Query(False, description="Treat warnings as failures in exit_status"),
    format: str = Query("json", pattern="^(json|text)$"),
    db: Session = Depends(get_db),
):
    """Validate and lint every tree in the document; exit_status is 0, 1 (strict warnings) or 2 (errors)."""
    return _lint_response(db, body.markdown, body.source, strict, format)


@router.post("/upload")
async def upload_markdown(
    file: UploadFile,
    strict: bool = Query(False),
    format: str = Query("json", pattern="^(json|text)$"),
    db: Session = Depends(get_db),
):
    """Lint an uploaded markdown file."""
    raw = await file.read()
    try:
        markdown = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded markdown")
    return _lint_response(db, markdown, file.filename, strict, format)


@router.post("/diff", response_model=TreeDiff)
def diff(
    body: DiffBody,
    format: str = Query("json", pattern="^(json|text)$"),
    verbose: bool = Query(False, description="Text format only: include field-level changes"),
):
    try:
        result = diff_trees(body.old, body.new)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_diff_result(
        logger,
        result.name,
        result.stats.added,
        result.stats.removed,
        result.stats.modified,
        root_changed=result.root_changed,
    )
    if format == "text":
        return PlainTextResponse(format_diff(result, verbose=verbose))
    return result


@router.post("/patch/generate", response_model=TreePatch)
def patch_generate(body: DiffBody):
    """Diff two trees and return the patch that turns old into new."""
    try:
        return generate_patch(diff_trees(body.old, body.new))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/patch", response_model=Tree)
def patch_apply(body: PatchBody):
    try:
        return apply_patch(body.tree, body.patch)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/evaluate")
def evaluate_expression(body: EvaluateBody):
    """Evaluate a guard expression against a context of boolean facts."""
    context = _resolve_context(body.context, body.project_root)
    simple = bool(body.expression) and is_simple_condition(body.expression)
    return {"expression": body.expression, "result": evaluate(body.expression, context), "simple": simple}


@router.post("/filter", response_model=Tree)
def filter_tree(body: FilterBody):
    """The tree with only the branches that apply in the given context."""
    context = _resolve_context(body.context, body.project_root)
    return body.tree.model_copy(update={"branches": filter_branches(body.tree.branches, context)})


@router.post("/export/mermaid", response_class=PlainTextResponse)
def export_mermaid(body: TreeBody):
    return PlainTextResponse(to_mermaid(body.tree))


@router.post("/export/markdown", response_class=PlainTextResponse)
def export_markdown(body: TreeBody):
    return PlainTextResponse(to_markdown(body.tree))


@router.post("/export/html", response_class=HTMLResponse)
def export_html(body: TreeBody):
    """Standalone page with collapsible branches."""
    return HTMLResponse(to_html(body.tree))


@router.post("/export/svg")
def export_svg(body: TreeBody):
    return Response(to_svg(body.tree), media_type="image/svg+xml")


@router.post("/select", response_model=DecisionRecord, status_code=201)
def select(body: SelectBody, db: Session = Depends(get_db)):
    """Resolve a breadcrumb in the tree and record the selection."""
    try:
        selection = select_path(body.tree, body.path, body.context)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=e.args[0])
    store: DecisionStore = SqlDecisionStore(db)
    return store.append(selection)
