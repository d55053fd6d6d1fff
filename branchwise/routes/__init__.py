"""API routes for the Branchwise service."""

from fastapi import APIRouter

from branchwise.routes import decisions, monitoring, trees

api_router = APIRouter(prefix="/api", tags=["api"])

api_router.include_router(monitoring.router)
api_router.include_router(trees.router, prefix="/trees", tags=["trees"])
api_router.include_router(decisions.router, prefix="/decisions", tags=["decisions"])
