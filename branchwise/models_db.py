"""
SQLAlchemy ORM models for Branchwise (persisted in SQLite).

Decision records are the persisted form of a Selection; lint runs keep a small
audit trail of what the lint endpoint saw.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from branchwise.database import Base


class DecisionRecordModel(Base):
    """One recorded branch selection."""

    __tablename__ = "decision_records"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    tree_name: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    selected_path: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    extra_metadata: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)  # 'metadata' is reserved by SQLAlchemy
    context: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    phase: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)  # copied from context["phase"]
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    reverted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    reverted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    revert_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class LintRunModel(Base):
    """Result counts of one lint request (one row per tree linted)."""

    __tablename__ = "lint_runs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tree_name: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    source: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    warnings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    suggestions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    run_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
