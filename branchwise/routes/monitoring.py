"""Health and metrics endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from branchwise.database import get_db
from branchwise.services.monitoring_service import get_health, get_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/health", summary="Health check")
def health(db: Session = Depends(get_db)):
    """Health check for load balancers. Does not require authentication."""
    return get_health(db)


@router.get("/metrics", summary="Usage metrics")
def metrics(db: Session = Depends(get_db)):
    """Decision record and lint run counts as JSON."""
    return get_metrics(db)
