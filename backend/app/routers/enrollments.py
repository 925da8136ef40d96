"""
Router du circuit d'inscription : demandes des élèves, décisions de l'enseignant
ou de l'administrateur, inscriptions de l'élève connecté.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.enrollment import (
    EnrollmentGradeUpdate,
    EnrollmentRequestCreate,
    EnrollmentRequestResponse,
    EnrollmentResponse,
    RequestStatus,
)
from app.services import enrollment_service

router = APIRouter(prefix="/api/v1/enrollments", tags=["Inscriptions"])


@router.post(
    "/requests",
    response_model=EnrollmentRequestResponse,
    status_code=201,
    summary="Demander l'inscription à un cours",
)
def request_enrollment(
    data: EnrollmentRequestCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """
    Crée une demande en attente et notifie l'enseignant du cours.
    Refusée (409) si l'élève est déjà inscrit ou a déjà une demande en attente.
    """
    try:
        return enrollment_service.request_enrollment(db, ctx, data.course_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/requests", response_model=List[EnrollmentRequestResponse], summary="Lister les demandes")
def list_requests(
    course_id: Optional[uuid.UUID] = None,
    status: Optional[RequestStatus] = None,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Admin : toutes. Enseignant : celles de ses cours. Élève : les siennes."""
    return enrollment_service.list_requests(db, ctx, course_id, status)


@router.post(
    "/requests/{request_id}/approve",
    response_model=EnrollmentRequestResponse,
    summary="Accepter une demande",
)
def approve_request(
    request_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Accepte la demande, crée l'inscription et notifie l'élève en une seule transaction."""
    try:
        return enrollment_service.approve_request(db, ctx, request_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.post(
    "/requests/{request_id}/reject",
    response_model=EnrollmentRequestResponse,
    summary="Refuser une demande",
)
def reject_request(
    request_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return enrollment_service.reject_request(db, ctx, request_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.delete("/requests/{request_id}", status_code=204, summary="Annuler ma demande")
def cancel_request(
    request_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        enrollment_service.cancel_request(db, ctx, request_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/me", response_model=List[EnrollmentResponse], summary="Mes inscriptions")
def list_my_enrollments(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return enrollment_service.list_my_enrollments(db, ctx)


@router.put("/{enrollment_id}/grade", response_model=EnrollmentResponse, summary="Note finale du cours")
def update_enrollment_grade(
    enrollment_id: uuid.UUID,
    data: EnrollmentGradeUpdate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        result = enrollment_service.update_enrollment_grade(db, ctx, enrollment_id, data.grade)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
    if result is None:
        raise HTTPException(status_code=404, detail="Inscription introuvable.")
    return result


@router.delete("/{enrollment_id}", status_code=204, summary="Désinscrire un élève")
def remove_enrollment(
    enrollment_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        success = enrollment_service.remove_enrollment(db, ctx, enrollment_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
    if not success:
        raise HTTPException(status_code=404, detail="Inscription introuvable.")
