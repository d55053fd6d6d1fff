"""
Decision record store: persists Selections produced by the engine.

DecisionStore is the interface the HTTP layer and scripts depend on;
SqlDecisionStore implements it on the SQLAlchemy session from
branchwise.database. Every write commits its own transaction, so concurrent
writers are serialized by the database. Lookups of unknown ids return None or
False; they never raise.
"""

import csv
import io
import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol

from sqlalchemy.orm import Session

from branchwise.models.decision_tree import DecisionFilters, DecisionRecord, Selection
from branchwise.models_db import DecisionRecordModel

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)
UPDATABLE_FIELDS = ("selected_path", "metadata", "context", "reverted", "revert_reason")
CSV_HEADERS = [
    "ID",
    "Tree",
    "Selected Path",
    "Timestamp",
    "Reverted",
    "Phase",
    "Task",
    "Weight",
    "Priority",
    "Risk",
]


class DecisionStore(Protocol):
    def append(self, selection: Selection) -> DecisionRecord: ...

    def query(self, filters: Optional[DecisionFilters] = None) -> list[DecisionRecord]: ...

    def update(self, decision_id: str, patch: dict[str, Any]) -> Optional[DecisionRecord]: ...


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite DateTime columns drop tzinfo; store and compare everything as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _phase_of(context: dict[str, Any]) -> Optional[str]:
    phase = context.get("phase")
    return str(phase) if phase is not None else None


def _to_record(row: DecisionRecordModel) -> DecisionRecord:
    return DecisionRecord(
        id=row.id,
        tree_name=row.tree_name,
        selected_path=list(row.selected_path or []),
        metadata=dict(row.extra_metadata or {}),
        context=dict(row.context or {}),
        timestamp=row.timestamp,
        reverted=row.reverted,
        reverted_at=row.reverted_at,
        revert_reason=row.revert_reason,
    )


class SqlDecisionStore:
    """DecisionStore backed by the decision_records table."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, decision_id: str) -> Optional[DecisionRecordModel]:
        return self.db.query(DecisionRecordModel).filter(DecisionRecordModel.id == decision_id).first()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def append(self, selection: Selection) -> DecisionRecord:
        row = DecisionRecordModel(
            id=str(uuid.uuid4()),
            tree_name=selection.tree_name,
            selected_path=list(selection.selected_path),
            extra_metadata=dict(selection.metadata),
            context=dict(selection.context),
            phase=_phase_of(selection.context),
            timestamp=_naive_utc(selection.timestamp),
            reverted=False,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("Recorded decision %s for tree %r: %s", row.id, row.tree_name, " → ".join(row.selected_path))
        return _to_record(row)

    def update(self, decision_id: str, patch: dict[str, Any]) -> Optional[DecisionRecord]:
        """Apply a partial update. Raises ValueError for fields that cannot be changed."""
        unknown = sorted(set(patch) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValueError(f"Cannot update decision field(s): {', '.join(unknown)}")
        row = self._row(decision_id)
        if row is None:
            return None
        if "selected_path" in patch:
            row.selected_path = list(patch["selected_path"] or [])
        if "metadata" in patch:
            row.extra_metadata = dict(patch["metadata"] or {})
        if "context" in patch:
            row.context = dict(patch["context"] or {})
            row.phase = _phase_of(row.context)
        if "reverted" in patch:
            row.reverted = bool(patch["reverted"])
            row.reverted_at = datetime.utcnow() if row.reverted else None
        if "revert_reason" in patch:
            row.revert_reason = patch["revert_reason"]
        self.db.commit()
        self.db.refresh(row)
        return _to_record(row)

    def revert(self, decision_id: str, reason: str = "") -> Optional[DecisionRecord]:
        return self.update(decision_id, {"reverted": True, "revert_reason": reason})

    def delete(self, decision_id: str) -> bool:
        row = self._row(decision_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted decision %s", decision_id)
        return True

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, decision_id: str) -> Optional[DecisionRecord]:
        row = self._row(decision_id)
        return _to_record(row) if row is not None else None

    def query(self, filters: Optional[DecisionFilters] = None) -> list[DecisionRecord]:
        """Records matching every given filter, oldest first."""
        filters = filters or DecisionFilters()
        q = self.db.query(DecisionRecordModel)
        if filters.tree_name:
            q = q.filter(DecisionRecordModel.tree_name == filters.tree_name)
        if filters.phase:
            q = q.filter(DecisionRecordModel.phase == filters.phase)
        if filters.reverted is not None:
            q = q.filter(DecisionRecordModel.reverted == filters.reverted)
        if filters.after is not None:
            q = q.filter(DecisionRecordModel.timestamp >= _naive_utc(filters.after))
        if filters.before is not None:
            q = q.filter(DecisionRecordModel.timestamp <= _naive_utc(filters.before))
        rows = q.order_by(DecisionRecordModel.timestamp.asc()).all()
        return [_to_record(r) for r in rows]

    def history(self, tree_name: str) -> list[DecisionRecord]:
        """Decisions for one tree, newest first."""
        return list(reversed(self.query(DecisionFilters(tree_name=tree_name))))

    def recent(self, limit: int = 10) -> list[DecisionRecord]:
        rows = (
            self.db.query(DecisionRecordModel)
            .order_by(DecisionRecordModel.timestamp.desc())
            .limit(max(0, limit))
            .all()
        )
        return [_to_record(r) for r in rows]

    def statistics(self, now: Optional[datetime] = None) -> dict[str, Any]:
        records = self.query()
        cutoff = (_naive_utc(now) or datetime.utcnow()) - RECENT_WINDOW
        by_tree: dict[str, int] = {}
        by_phase: dict[str, int] = {}
        for record in records:
            by_tree[record.tree_name] = by_tree.get(record.tree_name, 0) + 1
            phase = _phase_of(record.context)
            if phase:
                by_phase[phase] = by_phase.get(phase, 0) + 1
        reverted = sum(1 for r in records if r.reverted)
        return {
            "total": len(records),
            "reverted": reverted,
            "active": len(records) - reverted,
            "by_tree": by_tree,
            "by_phase": by_phase,
            "recent_count": sum(1 for r in records if r.timestamp > cutoff),
        }

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export_json(self, filters: Optional[DecisionFilters] = None) -> str:
        return json.dumps([r.model_dump(mode="json") for r in self.query(filters)], indent=2)

    def export_csv(self, filters: Optional[DecisionFilters] = None) -> str:
        records = self.query(filters)
        if not records:
            return "No decisions to export"
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for r in records:
            writer.writerow(
                [
                    r.id,
                    r.tree_name,
                    " → ".join(r.selected_path),
                    r.timestamp.isoformat(),
                    "Yes" if r.reverted else "No",
                    r.context.get("phase", ""),
                    r.context.get("task", ""),
                    r.metadata.get("weight", ""),
                    r.metadata.get("priority", ""),
                    r.metadata.get("risk", ""),
                ]
            )
        return buffer.getvalue().rstrip("\n")
