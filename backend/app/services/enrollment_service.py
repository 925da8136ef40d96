"""
Service métier pour les inscriptions aux cours.

Deux chemins mènent à une inscription (enrollments) :
  1. Demande d'un élève (enrollment_requests) : pending → approved | rejected
     - approved : la demande est acceptée ET l'inscription créée ET l'élève notifié,
       dans une seule transaction.
     - rejected : aucune inscription créée, l'élève est notifié.
     - Un élève refusé peut redemander : une nouvelle ligne pending est créée,
       l'ancienne ligne rejected est conservée.
  2. Inscription directe par l'enseignant du cours ou un administrateur.

Les deux chemins vérifient l'absence d'inscription existante ; la contrainte
unique (student_id, course_id) tranche les courses entre écritures concurrentes.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentRequest
from app.models.profile import Profile
from app.schemas.enrollment import (
    EnrollmentRequestResponse,
    EnrollmentResponse,
    EnrollmentStatusResponse,
)
from app.schemas.notification import NotificationDraft
from app.schemas.profile import ProfileSummary
from app.services import notification_service
from app.services.course_service import ensure_can_manage, get_course_or_raise

logger = logging.getLogger(__name__)

ALREADY_ENROLLED = "L'élève est déjà inscrit à ce cours."


# ============================================================
# Demandes d'inscription
# ============================================================

def request_enrollment(db: Session, ctx: SessionContext, course_id: uuid.UUID) -> EnrollmentRequestResponse:
    """
    Crée une demande d'inscription en attente et notifie l'enseignant du cours.

    Refusée si l'élève est déjà inscrit ou a déjà une demande en attente pour ce cours.
    Une demande précédemment refusée n'empêche pas d'en créer une nouvelle.
    """
    if ctx.role != "student":
        raise PermissionError("Seuls les élèves peuvent demander une inscription.")

    course = get_course_or_raise(db, course_id)

    if _find_enrollment(db, ctx.user_id, course.id) is not None:
        raise ValueError("Vous êtes déjà inscrit à ce cours.")

    pending = db.execute(
        select(EnrollmentRequest).where(
            EnrollmentRequest.student_id == ctx.user_id,
            EnrollmentRequest.course_id == course.id,
            EnrollmentRequest.status == "pending",
        )
    ).scalar()
    if pending:
        raise ValueError("Une demande d'inscription est déjà en attente pour ce cours.")

    request = EnrollmentRequest(
        id=uuid.uuid4(),
        student_id=ctx.user_id,
        course_id=course.id,
        status="pending",
    )
    db.add(request)

    notification_service.notify(db, [
        NotificationDraft(
            user_id=course.instructor_id,
            title="Nouvelle demande d'inscription",
            message=f"Un élève demande à s'inscrire au cours {course.code} : {course.title}",
            type="enrollment_request",
            link=f"/dashboard/courses/{course.id}/requests",
            related_id=request.id,
        )
    ])

    db.commit()
    db.refresh(request)

    logger.info("Demande d'inscription %s : élève %s → cours %s", request.id, ctx.user_id, course.id)
    return _request_to_response(request, course=course)


def approve_request(db: Session, ctx: SessionContext, request_id: uuid.UUID) -> EnrollmentRequestResponse:
    """
    Accepte une demande en attente : statut approved, création de l'inscription
    (sauf si l'élève a déjà été inscrit directement entre-temps) et notification
    de l'élève. Le tout est commité en une seule transaction.
    """
    request = _get_request_or_raise(db, request_id)
    course = get_course_or_raise(db, request.course_id)
    ensure_can_manage(ctx, course)
    _ensure_pending(request)

    request.status = "approved"

    if _find_enrollment(db, request.student_id, course.id) is None:
        db.add(Enrollment(
            id=uuid.uuid4(),
            student_id=request.student_id,
            course_id=course.id,
            status="active",
        ))

    notification_service.notify(db, [
        NotificationDraft(
            user_id=request.student_id,
            title="Demande d'inscription acceptée",
            message=f"Votre demande d'inscription au cours {course.code} a été acceptée.",
            type="enrollment_approved",
            link=f"/dashboard/courses/{course.id}",
            related_id=course.id,
        )
    ])

    _commit(db)
    db.refresh(request)

    logger.info("Demande %s acceptée par %s", request.id, ctx.user_id)
    return _request_to_response(request, course=course)


def reject_request(db: Session, ctx: SessionContext, request_id: uuid.UUID) -> EnrollmentRequestResponse:
    """Refuse une demande en attente et notifie l'élève. Aucune inscription n'est créée."""
    request = _get_request_or_raise(db, request_id)
    course = get_course_or_raise(db, request.course_id)
    ensure_can_manage(ctx, course)
    _ensure_pending(request)

    request.status = "rejected"

    notification_service.notify(db, [
        NotificationDraft(
            user_id=request.student_id,
            title="Demande d'inscription refusée",
            message=f"Votre demande d'inscription au cours {course.code} a été refusée.",
            type="enrollment_rejected",
            link=f"/dashboard/courses/{course.id}",
            related_id=course.id,
        )
    ])

    db.commit()
    db.refresh(request)

    logger.info("Demande %s refusée par %s", request.id, ctx.user_id)
    return _request_to_response(request, course=course)


def cancel_request(db: Session, ctx: SessionContext, request_id: uuid.UUID) -> None:
    """Supprime une demande en attente. Seul l'élève qui l'a créée peut l'annuler."""
    request = _get_request_or_raise(db, request_id)
    if request.student_id != ctx.user_id:
        raise PermissionError("Vous ne pouvez annuler que vos propres demandes.")
    if request.status != "pending":
        raise ValueError("Seule une demande en attente peut être annulée.")

    db.delete(request)
    db.commit()
    logger.info("Demande %s annulée par l'élève %s", request_id, ctx.user_id)


def list_requests(
    db: Session,
    ctx: SessionContext,
    course_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
) -> list[EnrollmentRequestResponse]:
    """
    Liste les demandes visibles par l'utilisateur, de la plus récente à la plus ancienne :
    - admin : toutes
    - enseignant : celles de ses cours
    - élève : les siennes
    """
    query = (
        select(EnrollmentRequest, Course, Profile)
        .join(Course, Course.id == EnrollmentRequest.course_id)
        .join(Profile, Profile.id == EnrollmentRequest.student_id)
    )
    if ctx.role == "student":
        query = query.where(EnrollmentRequest.student_id == ctx.user_id)
    elif ctx.role == "teacher":
        query = query.where(Course.instructor_id == ctx.user_id)

    if course_id is not None:
        query = query.where(EnrollmentRequest.course_id == course_id)
    if status is not None:
        query = query.where(EnrollmentRequest.status == status)

    rows = db.execute(query.order_by(EnrollmentRequest.created_at.desc())).all()
    return [_request_to_response(r, course=c, student=s) for r, c, s in rows]


def get_request_status(db: Session, ctx: SessionContext, course_id: uuid.UUID) -> EnrollmentStatusResponse:
    """Indique si l'utilisateur est inscrit au cours et retourne sa dernière demande."""
    course = get_course_or_raise(db, course_id)
    enrolled = _find_enrollment(db, ctx.user_id, course.id) is not None

    latest = db.execute(
        select(EnrollmentRequest)
        .where(
            EnrollmentRequest.student_id == ctx.user_id,
            EnrollmentRequest.course_id == course.id,
        )
        .order_by(EnrollmentRequest.created_at.desc())
        .limit(1)
    ).scalar()

    return EnrollmentStatusResponse(
        course_id=course.id,
        enrolled=enrolled,
        request=_request_to_response(latest, course=course) if latest else None,
    )


# ============================================================
# Inscriptions directes
# ============================================================

def enroll_student(
    db: Session, ctx: SessionContext, course_id: uuid.UUID, student_id: uuid.UUID
) -> EnrollmentResponse:
    """Inscrit directement un élève (sans demande) et le notifie."""
    course = get_course_or_raise(db, course_id)
    ensure_can_manage(ctx, course)

    student = db.get(Profile, student_id)
    if student is None or student.role != "student":
        raise ValueError("Élève introuvable.")

    if _find_enrollment(db, student.id, course.id) is not None:
        raise ValueError(ALREADY_ENROLLED)

    enrollment = Enrollment(
        id=uuid.uuid4(),
        student_id=student.id,
        course_id=course.id,
        status="active",
    )
    db.add(enrollment)

    notification_service.notify(db, [
        NotificationDraft(
            user_id=student.id,
            title="Nouvelle inscription à un cours",
            message=f"Vous avez été inscrit au cours {course.code} : {course.title}",
            type="enrollment",
            link=f"/dashboard/courses/{course.id}",
            related_id=course.id,
        )
    ])

    _commit(db)
    db.refresh(enrollment)

    logger.info("Inscription directe : élève %s → cours %s (par %s)", student.id, course.id, ctx.user_id)
    return _enrollment_to_response(enrollment, student=student)


def remove_enrollment(db: Session, ctx: SessionContext, enrollment_id: uuid.UUID) -> bool:
    """
    Désinscrit un élève et le notifie.
    Retourne True si supprimé, False si l'inscription est introuvable.
    """
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None:
        return False
    course = get_course_or_raise(db, enrollment.course_id)
    ensure_can_manage(ctx, course)

    db.delete(enrollment)
    notification_service.notify(db, [
        NotificationDraft(
            user_id=enrollment.student_id,
            title="Désinscription d'un cours",
            message=f"Vous avez été retiré du cours {course.code}.",
            type="enrollment_removed",
            related_id=course.id,
        )
    ])
    db.commit()

    logger.info("Inscription %s supprimée par %s", enrollment_id, ctx.user_id)
    return True


def update_enrollment_grade(
    db: Session, ctx: SessionContext, enrollment_id: uuid.UUID, grade: str
) -> Optional[EnrollmentResponse]:
    """Enregistre la note finale d'un élève pour le cours et le notifie."""
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None:
        return None
    course = get_course_or_raise(db, enrollment.course_id)
    ensure_can_manage(ctx, course)

    enrollment.grade = grade
    notification_service.notify(db, [
        NotificationDraft(
            user_id=enrollment.student_id,
            title="Note mise à jour",
            message=f"Votre note pour le cours {course.code} a été mise à jour.",
            type="grade_updated",
            link=f"/dashboard/courses/{course.id}",
            related_id=course.id,
        )
    ])
    db.commit()
    db.refresh(enrollment)
    return _enrollment_to_response(enrollment)


def list_course_enrollments(db: Session, ctx: SessionContext, course_id: uuid.UUID) -> list[EnrollmentResponse]:
    """Élèves inscrits à un cours (enseignant responsable ou admin), triés par nom."""
    course = get_course_or_raise(db, course_id)
    ensure_can_manage(ctx, course)

    rows = db.execute(
        select(Enrollment, Profile)
        .join(Profile, Profile.id == Enrollment.student_id)
        .where(Enrollment.course_id == course.id)
        .order_by(Profile.last_name, Profile.first_name)
    ).all()
    return [_enrollment_to_response(e, student=p) for e, p in rows]


def list_my_enrollments(db: Session, ctx: SessionContext) -> list[EnrollmentResponse]:
    """Inscriptions de l'élève connecté, de la plus récente à la plus ancienne."""
    enrollments = db.execute(
        select(Enrollment)
        .where(Enrollment.student_id == ctx.user_id)
        .order_by(Enrollment.created_at.desc())
    ).scalars().all()
    return [_enrollment_to_response(e) for e in enrollments]


def is_enrolled(db: Session, student_id: uuid.UUID, course_id: uuid.UUID) -> bool:
    return _find_enrollment(db, student_id, course_id) is not None


# --- Helpers ---

def _find_enrollment(db: Session, student_id: uuid.UUID, course_id: uuid.UUID) -> Optional[Enrollment]:
    return db.execute(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
        )
    ).scalar()


def _get_request_or_raise(db: Session, request_id: uuid.UUID) -> EnrollmentRequest:
    request = db.get(EnrollmentRequest, request_id)
    if request is None:
        raise ValueError("Demande d'inscription introuvable.")
    return request


def _ensure_pending(request: EnrollmentRequest) -> None:
    if request.status != "pending":
        raise ValueError(f"La demande est déjà traitée (statut {request.status}).")


def _commit(db: Session) -> None:
    """Commit avec traduction de la violation d'unicité (élève, cours) en erreur métier."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(ALREADY_ENROLLED)


def _request_to_response(
    request: EnrollmentRequest,
    course: Optional[Course] = None,
    student: Optional[Profile] = None,
) -> EnrollmentRequestResponse:
    return EnrollmentRequestResponse(
        id=request.id,
        student_id=request.student_id,
        course_id=request.course_id,
        status=request.status,
        created_at=request.created_at,
        student=ProfileSummary.model_validate(student) if student else None,
        course_code=course.code if course else None,
        course_title=course.title if course else None,
    )


def _enrollment_to_response(enrollment: Enrollment, student: Optional[Profile] = None) -> EnrollmentResponse:
    return EnrollmentResponse(
        id=enrollment.id,
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        status=enrollment.status,
        grade=enrollment.grade,
        created_at=enrollment.created_at,
        student=ProfileSummary.model_validate(student) if student else None,
    )
