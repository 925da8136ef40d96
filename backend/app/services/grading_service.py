"""
Service de notation des remises et de validation administrative des notes.

Cycle d'une note :
  non notée → notée par l'enseignant (needs_review = True)
            → validée par un admin (needs_review = False, note conservée)
            → ou refusée par un admin (note, commentaire et date effacés)

Chaque transition est commitée avec ses notifications.
"""

import math
import uuid
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.assignment import Assignment, Submission
from app.models.course import Course
from app.models.profile import Profile
from app.schemas.assignment import PendingGradeReview, SubmissionResponse
from app.schemas.notification import NotificationDraft
from app.schemas.profile import ProfileSummary
from app.services import notification_service
from app.services.course_service import ensure_can_manage, get_course_or_raise

logger = logging.getLogger(__name__)


def grade_submission(
    db: Session,
    ctx: SessionContext,
    submission_id: uuid.UUID,
    grade: float,
    feedback: Optional[str] = None,
) -> SubmissionResponse:
    """
    Note une remise et la place en attente de validation administrative.

    Notifie l'élève et tous les administrateurs en un seul ajout groupé.
    Lève ValueError si la note sort de l'intervalle [0, barème du devoir].
    """
    submission = _get_submission_or_raise(db, submission_id)
    assignment = _get_assignment_or_raise(db, submission.assignment_id)
    course = get_course_or_raise(db, assignment.course_id)
    ensure_can_manage(ctx, course)

    if not math.isfinite(grade) or grade < 0 or grade > assignment.points:
        raise ValueError(f"La note doit être comprise entre 0 et {assignment.points}.")

    submission.grade = grade
    submission.feedback = feedback
    submission.graded_at = datetime.now(timezone.utc)
    submission.needs_review = True

    drafts = [
        NotificationDraft(
            user_id=submission.student_id,
            title="Devoir noté",
            message=f"Votre devoir « {assignment.title} » a été noté : {grade:g}/{assignment.points}.",
            type="grade",
            link=f"/dashboard/assignments/{assignment.id}",
            related_id=submission.id,
        )
    ]
    drafts += [
        NotificationDraft(
            user_id=admin_id,
            title="Note à valider",
            message=f"Une note a été attribuée pour « {assignment.title} » ({course.code}) et attend votre validation.",
            type="grade_review",
            link="/dashboard/admin/grades",
            related_id=submission.id,
        )
        for admin_id in notification_service.admin_ids(db)
    ]
    notification_service.notify(db, drafts)

    db.commit()
    db.refresh(submission)

    logger.info("Remise %s notée %s/%s par %s", submission.id, grade, assignment.points, ctx.user_id)
    return _submission_to_response(submission)


def approve_grade(db: Session, ctx: SessionContext, submission_id: uuid.UUID) -> SubmissionResponse:
    """Valide une note en attente : seule needs_review change, la note est conservée."""
    _ensure_admin(ctx)
    submission = _get_submission_or_raise(db, submission_id)
    _ensure_needs_review(submission)
    assignment = _get_assignment_or_raise(db, submission.assignment_id)

    submission.needs_review = False

    notification_service.notify(db, [
        NotificationDraft(
            user_id=submission.student_id,
            title="Note validée",
            message=f"Votre note pour « {assignment.title} » a été validée.",
            type="grade_approved",
            link=f"/dashboard/assignments/{assignment.id}",
            related_id=submission.id,
        )
    ])

    db.commit()
    db.refresh(submission)

    logger.info("Note de la remise %s validée par %s", submission.id, ctx.user_id)
    return _submission_to_response(submission)


def reject_grade(db: Session, ctx: SessionContext, submission_id: uuid.UUID) -> SubmissionResponse:
    """
    Refuse une note en attente : note, commentaire et date de notation sont effacés,
    quelle que soit leur valeur. L'élève et l'enseignant du cours sont notifiés.
    """
    _ensure_admin(ctx)
    submission = _get_submission_or_raise(db, submission_id)
    _ensure_needs_review(submission)
    assignment = _get_assignment_or_raise(db, submission.assignment_id)
    course = get_course_or_raise(db, assignment.course_id)

    submission.grade = None
    submission.feedback = None
    submission.graded_at = None
    submission.needs_review = False

    title = "Note refusée"
    notification_service.notify(db, [
        NotificationDraft(
            user_id=submission.student_id,
            title=title,
            message=f"La note de votre devoir « {assignment.title} » a été annulée et sera revue.",
            type="grade_rejected",
            link=f"/dashboard/assignments/{assignment.id}",
            related_id=submission.id,
        ),
        NotificationDraft(
            user_id=course.instructor_id,
            title=title,
            message=f"Votre note pour « {assignment.title} » ({course.code}) a été refusée. Merci de noter à nouveau.",
            type="grade_rejected",
            link=f"/dashboard/assignments/{assignment.id}",
            related_id=submission.id,
        ),
    ])

    db.commit()
    db.refresh(submission)

    logger.info("Note de la remise %s refusée par %s", submission.id, ctx.user_id)
    return _submission_to_response(submission)


def list_pending_reviews(db: Session, ctx: SessionContext) -> list[PendingGradeReview]:
    """Remises notées en attente de validation, de la plus récemment notée à la plus ancienne."""
    _ensure_admin(ctx)
    rows = db.execute(
        select(Submission, Assignment, Course, Profile)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .join(Course, Course.id == Assignment.course_id)
        .join(Profile, Profile.id == Submission.student_id)
        .where(Submission.needs_review.is_(True))
        .order_by(Submission.graded_at.desc())
    ).all()

    return [
        PendingGradeReview(
            submission=_submission_to_response(s, student=p),
            assignment_id=a.id,
            assignment_title=a.title,
            points=a.points,
            course_id=c.id,
            course_code=c.code,
            teacher_id=c.instructor_id,
        )
        for s, a, c, p in rows
    ]


# --- Helpers ---

def _ensure_admin(ctx: SessionContext) -> None:
    if not ctx.is_admin:
        raise PermissionError("Seul un administrateur peut valider les notes.")


def _ensure_needs_review(submission: Submission) -> None:
    if not submission.needs_review:
        raise ValueError("Cette remise n'a pas de note en attente de validation.")


def _get_submission_or_raise(db: Session, submission_id: uuid.UUID) -> Submission:
    submission = db.get(Submission, submission_id)
    if submission is None:
        raise ValueError("Remise introuvable.")
    return submission


def _get_assignment_or_raise(db: Session, assignment_id: uuid.UUID) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise ValueError("Devoir introuvable.")
    return assignment


def _submission_to_response(submission: Submission, student: Optional[Profile] = None) -> SubmissionResponse:
    response = SubmissionResponse.model_validate(submission)
    if student is not None:
        response.student = ProfileSummary.model_validate(student)
    return response
