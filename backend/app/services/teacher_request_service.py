"""
Service des demandes de passage au rôle enseignant.
Un élève en fait la demande, un administrateur l'accepte (le rôle du profil
devient teacher) ou la refuse.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.profile import Profile
from app.models.teacher_request import TeacherRequest
from app.schemas.notification import NotificationDraft
from app.schemas.profile import ProfileSummary
from app.schemas.teacher_request import TeacherRequestResponse
from app.services import notification_service

logger = logging.getLogger(__name__)


def create_teacher_request(db: Session, ctx: SessionContext) -> TeacherRequestResponse:
    """Enregistre la demande et notifie tous les administrateurs."""
    if ctx.role != "student":
        raise PermissionError("Seuls les élèves peuvent demander le rôle enseignant.")

    pending = db.execute(
        select(TeacherRequest).where(
            TeacherRequest.user_id == ctx.user_id,
            TeacherRequest.status == "pending",
        )
    ).scalar()
    if pending:
        raise ValueError("Une demande est déjà en attente.")

    request = TeacherRequest(id=uuid.uuid4(), user_id=ctx.user_id, status="pending")
    db.add(request)

    notification_service.notify_admins(
        db,
        title="Demande de rôle enseignant",
        message=f"{ctx.profile.first_name} {ctx.profile.last_name} demande à devenir enseignant.",
        type="teacher_request",
        link="/dashboard/admin/teacher-requests",
        related_id=request.id,
    )

    db.commit()
    db.refresh(request)
    logger.info("Demande de rôle enseignant %s par %s", request.id, ctx.user_id)
    return _to_response(request)


def approve_teacher_request(db: Session, ctx: SessionContext, request_id: uuid.UUID) -> TeacherRequestResponse:
    request = _get_pending_or_raise(db, ctx, request_id)
    profile = db.get(Profile, request.user_id)
    if profile is None:
        raise ValueError("Profil introuvable.")

    request.status = "approved"
    profile.role = "teacher"

    notification_service.notify(db, [
        NotificationDraft(
            user_id=profile.id,
            title="Demande acceptée",
            message="Votre demande pour devenir enseignant a été acceptée.",
            type="teacher_approved",
            link="/dashboard",
            related_id=request.id,
        )
    ])

    db.commit()
    db.refresh(request)
    logger.info("Demande %s acceptée : %s devient enseignant", request.id, profile.id)
    return _to_response(request, profile)


def reject_teacher_request(db: Session, ctx: SessionContext, request_id: uuid.UUID) -> TeacherRequestResponse:
    request = _get_pending_or_raise(db, ctx, request_id)
    request.status = "rejected"

    notification_service.notify(db, [
        NotificationDraft(
            user_id=request.user_id,
            title="Demande refusée",
            message="Votre demande pour devenir enseignant a été refusée.",
            type="teacher_rejected",
            related_id=request.id,
        )
    ])

    db.commit()
    db.refresh(request)
    logger.info("Demande %s refusée", request.id)
    return _to_response(request)


def list_teacher_requests(
    db: Session, ctx: SessionContext, status: Optional[str] = None
) -> list[TeacherRequestResponse]:
    if not ctx.is_admin:
        raise PermissionError("Réservé aux administrateurs.")
    query = select(TeacherRequest, Profile).join(Profile, Profile.id == TeacherRequest.user_id)
    if status is not None:
        query = query.where(TeacherRequest.status == status)
    rows = db.execute(query.order_by(TeacherRequest.created_at.desc())).all()
    return [_to_response(r, p) for r, p in rows]


def _get_pending_or_raise(db: Session, ctx: SessionContext, request_id: uuid.UUID) -> TeacherRequest:
    if not ctx.is_admin:
        raise PermissionError("Réservé aux administrateurs.")
    request = db.get(TeacherRequest, request_id)
    if request is None:
        raise ValueError("Demande introuvable.")
    if request.status != "pending":
        raise ValueError(f"La demande est déjà traitée (statut {request.status}).")
    return request


def _to_response(request: TeacherRequest, profile: Optional[Profile] = None) -> TeacherRequestResponse:
    return TeacherRequestResponse(
        id=request.id,
        user_id=request.user_id,
        status=request.status,
        created_at=request.created_at,
        user=ProfileSummary.model_validate(profile) if profile else None,
    )
