"""
Router des demandes de passage au rôle enseignant.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context, require_roles
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.enrollment import RequestStatus
from app.schemas.teacher_request import TeacherRequestResponse
from app.services import teacher_request_service

router = APIRouter(prefix="/api/v1/teacher-requests", tags=["Demandes enseignant"])


@router.post("", response_model=TeacherRequestResponse, status_code=201, summary="Demander le rôle enseignant")
def create_teacher_request(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return teacher_request_service.create_teacher_request(db, ctx)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("", response_model=List[TeacherRequestResponse], summary="Lister les demandes (admin)")
def list_teacher_requests(
    status: Optional[RequestStatus] = None,
    ctx: SessionContext = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    return teacher_request_service.list_teacher_requests(db, ctx, status)


@router.post("/{request_id}/approve", response_model=TeacherRequestResponse, summary="Accepter une demande (admin)")
def approve_teacher_request(
    request_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return teacher_request_service.approve_teacher_request(db, ctx, request_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.post("/{request_id}/reject", response_model=TeacherRequestResponse, summary="Refuser une demande (admin)")
def reject_teacher_request(
    request_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return teacher_request_service.reject_teacher_request(db, ctx, request_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
