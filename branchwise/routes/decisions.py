"""
Decision record routes: record, query, revert, delete, stats and export.
"""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from branchwise.database import get_db
from branchwise.models.decision_tree import DecisionFilters, DecisionRecord, Selection
from branchwise.services.decision_store import SqlDecisionStore

router = APIRouter()


class RevertBody(BaseModel):
    reason: str = ""


class DecisionUpdate(BaseModel):
    selected_path: Optional[list[str]] = None
    metadata: Optional[dict[str, Any]] = None
    context: Optional[dict[str, Any]] = None
    revert_reason: Optional[str] = None

    model_config = {"extra": "forbid"}


def get_store(db: Session = Depends(get_db)) -> SqlDecisionStore:
    return SqlDecisionStore(db)


def decision_filters(
    tree_name: Optional[str] = Query(None, description="Only decisions for this tree"),
    phase: Optional[str] = Query(None, description="Only decisions whose context phase matches"),
    reverted: Optional[bool] = Query(None),
    after: Optional[datetime] = Query(None),
    before: Optional[datetime] = Query(None),
) -> DecisionFilters:
    return DecisionFilters(tree_name=tree_name, phase=phase, reverted=reverted, after=after, before=before)


@router.post("/", response_model=DecisionRecord, status_code=201)
def record_decision(selection: Selection, store: SqlDecisionStore = Depends(get_store)):
    return store.append(selection)


@router.get("/", response_model=list[DecisionRecord])
def list_decisions(
    filters: DecisionFilters = Depends(decision_filters),
    store: SqlDecisionStore = Depends(get_store),
):
    """Decisions matching all given filters, oldest first."""
    return store.query(filters)


@router.get("/recent", response_model=list[DecisionRecord])
def recent_decisions(limit: int = Query(10, ge=1, le=500), store: SqlDecisionStore = Depends(get_store)):
    return store.recent(limit)


@router.get("/history/{tree_name}", response_model=list[DecisionRecord])
def tree_history(tree_name: str, store: SqlDecisionStore = Depends(get_store)):
    """Decisions for one tree, newest first."""
    return store.history(tree_name)


@router.get("/stats")
def decision_stats(store: SqlDecisionStore = Depends(get_store)):
    return store.statistics()


@router.get("/export", response_class=PlainTextResponse)
def export_decisions(
    format: str = Query("json", pattern="^(json|csv)$"),
    filters: DecisionFilters = Depends(decision_filters),
    store: SqlDecisionStore = Depends(get_store),
):
    if format == "csv":
        return PlainTextResponse(store.export_csv(filters), media_type="text/csv")
    return PlainTextResponse(store.export_json(filters), media_type="application/json")


@router.get("/{decision_id}", response_model=DecisionRecord)
def get_decision(decision_id: str, store: SqlDecisionStore = Depends(get_store)):
    record = store.get(decision_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Decision not found")
    return record


@router.patch("/{decision_id}", response_model=DecisionRecord)
def update_decision(decision_id: str, body: DecisionUpdate, store: SqlDecisionStore = Depends(get_store)):
    record = store.update(decision_id, body.model_dump(exclude_unset=True))
    if record is None:
        raise HTTPException(status_code=404, detail="Decision not found")
    return record


@router.post("/{decision_id}/revert", response_model=DecisionRecord)
def revert_decision(decision_id: str, body: Optional[RevertBody] = None, store: SqlDecisionStore = Depends(get_store)):
    record = store.revert(decision_id, (body or RevertBody()).reason)
    if record is None:
        raise HTTPException(status_code=404, detail="Decision not found")
    return record


@router.delete("/{decision_id}", status_code=204)
def delete_decision(decision_id: str, store: SqlDecisionStore = Depends(get_store)):
    if not store.delete(decision_id):
        raise HTTPException(status_code=404, detail="Decision not found")
