"""
Router des remises : notation, validation administrative et commentaires.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.assignment import CommentCreate, CommentResponse, GradeSubmit, SubmissionResponse
from app.services import assignment_service, grading_service

router = APIRouter(prefix="/api/v1/submissions", tags=["Remises"])


@router.get("/{submission_id}", response_model=SubmissionResponse, summary="Détail d'une remise")
def get_submission(
    submission_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        submission = assignment_service.get_submission(db, ctx, submission_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
    if submission is None:
        raise HTTPException(status_code=404, detail="Remise introuvable.")
    return submission


@router.post("/{submission_id}/grade", response_model=SubmissionResponse, summary="Noter une remise")
def grade_submission(
    submission_id: uuid.UUID,
    data: GradeSubmit,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """
    Enregistre la note (entre 0 et le barème du devoir) et la soumet à validation.
    L'élève et les administrateurs sont notifiés.
    """
    try:
        return grading_service.grade_submission(db, ctx, submission_id, data.grade, data.feedback)
    except PermissionError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise to_http_exception(e, conflict_status=400)


@router.post("/{submission_id}/approve-grade", response_model=SubmissionResponse, summary="Valider une note (admin)")
def approve_grade(
    submission_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return grading_service.approve_grade(db, ctx, submission_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.post("/{submission_id}/reject-grade", response_model=SubmissionResponse, summary="Refuser une note (admin)")
def reject_grade(
    submission_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Efface la note et le commentaire. L'élève et l'enseignant sont notifiés."""
    try:
        return grading_service.reject_grade(db, ctx, submission_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


# --- Commentaires ---

@router.post(
    "/{submission_id}/comments",
    response_model=CommentResponse,
    status_code=201,
    summary="Commenter une remise",
)
def add_comment(
    submission_id: uuid.UUID,
    data: CommentCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return assignment_service.add_comment(db, ctx, submission_id, data.content)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/{submission_id}/comments", response_model=List[CommentResponse], summary="Commentaires d'une remise")
def list_comments(
    submission_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return assignment_service.list_comments(db, ctx, submission_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
