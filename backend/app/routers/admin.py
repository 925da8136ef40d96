"""
Router du tableau de bord administrateur.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import require_roles
from app.auth.session import SessionContext
from app.database import get_db
from app.schemas.assignment import PendingGradeReview
from app.schemas.profile import DashboardStats
from app.services import grading_service, profile_service

router = APIRouter(prefix="/api/v1/admin", tags=["Administration"])


@router.get("/stats", response_model=DashboardStats, summary="Statistiques globales")
def get_stats(
    ctx: SessionContext = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    return profile_service.get_dashboard_stats(db)


@router.get("/grade-reviews", response_model=List[PendingGradeReview], summary="Notes à valider")
def list_pending_reviews(
    ctx: SessionContext = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    """Remises notées en attente de validation, de la plus récemment notée à la plus ancienne."""
    return grading_service.list_pending_reviews(db, ctx)
