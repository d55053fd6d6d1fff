"""
Health and usage metrics for /api/health and /api/metrics.

- Health: DB connectivity
- Metrics: decision record counts and lint run totals
"""

import logging
from typing import Any

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from branchwise import __version__
from branchwise.models_db import DecisionRecordModel, LintRunModel

logger = logging.getLogger(__name__)


def check_db(db: Session) -> tuple[bool, str]:
    """Check database connectivity. Returns (ok, message)."""
    try:
        db.execute(text("SELECT 1"))
        return True, "ok"
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        return False, str(e)


def get_health(db: Session) -> dict[str, Any]:
    db_ok, db_msg = check_db(db)
    return {
        "status": "healthy" if db_ok else "unhealthy",
        "version": __version__,
        "checks": {
            "database": {"status": "up" if db_ok else "down", "message": db_msg},
        },
    }


def get_metrics(db: Session) -> dict[str, Any]:
    """Aggregate counts from the decision and lint run tables."""
    decisions_total = db.query(func.count(DecisionRecordModel.id)).scalar() or 0
    decisions_reverted = (
        db.query(func.count(DecisionRecordModel.id)).filter(DecisionRecordModel.reverted.is_(True)).scalar() or 0
    )
    lint_stats = db.query(
        func.count(LintRunModel.id).label("runs"),
        func.coalesce(func.sum(LintRunModel.errors), 0).label("errors"),
        func.coalesce(func.sum(LintRunModel.warnings), 0).label("warnings"),
    ).first()
    return {
        "decisions_recorded": decisions_total,
        "decisions_reverted": decisions_reverted,
        "lint_runs": lint_stats.runs or 0,
        "lint_errors": int(lint_stats.errors or 0),
        "lint_warnings": int(lint_stats.warnings or 0),
    }
