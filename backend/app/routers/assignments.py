"""
Router des devoirs et des remises des élèves.
La création d'un devoir se fait via /api/v1/courses/{course_id}/assignments.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context, require_roles
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.assignment import AssignmentResponse, SubmissionCreate, SubmissionResponse
from app.services import assignment_service

router = APIRouter(prefix="/api/v1/assignments", tags=["Devoirs"])


@router.get("/upcoming", response_model=List[AssignmentResponse], summary="Mes devoirs à venir")
def list_upcoming(
    ctx: SessionContext = Depends(require_roles("student")),
    db: Session = Depends(get_db),
):
    return assignment_service.list_my_upcoming_assignments(db, ctx)


@router.get("/{assignment_id}", response_model=AssignmentResponse, summary="Détail d'un devoir")
def get_assignment(
    assignment_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        assignment = assignment_service.get_assignment(db, ctx, assignment_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
    if assignment is None:
        raise HTTPException(status_code=404, detail="Devoir introuvable.")
    return assignment


@router.post(
    "/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    summary="Remettre (ou remplacer) ma remise",
)
def submit_assignment(
    assignment_id: uuid.UUID,
    data: SubmissionCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """
    Crée ou met à jour la remise de l'élève connecté.
    Une remise après l'échéance est marquée en retard.
    """
    try:
        return assignment_service.submit_assignment(db, ctx, assignment_id, data)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get(
    "/{assignment_id}/submissions",
    response_model=List[SubmissionResponse],
    summary="Remises d'un devoir",
)
def list_submissions(
    assignment_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return assignment_service.list_assignment_submissions(db, ctx, assignment_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get(
    "/{assignment_id}/submissions/me",
    response_model=SubmissionResponse,
    summary="Ma remise pour ce devoir",
)
def get_my_submission(
    assignment_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    submission = assignment_service.get_my_submission(db, ctx, assignment_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Remise introuvable.")
    return submission
