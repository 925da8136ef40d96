"""
Service métier pour les devoirs, les remises des élèves et les commentaires.

Un élève possède au plus une remise par devoir : une nouvelle remise remplace
le contenu de la précédente. La notation relève de grading_service.
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.assignment import Assignment, Submission, SubmissionComment
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.profile import Profile
from app.schemas.assignment import (
    AssignmentCreate,
    AssignmentResponse,
    CommentResponse,
    SubmissionCreate,
    SubmissionResponse,
)
from app.schemas.notification import NotificationDraft
from app.schemas.profile import ProfileSummary
from app.services import enrollment_service, notification_service
from app.services.course_service import ensure_can_manage, get_course_or_raise

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _can_manage(ctx: SessionContext, course: Course) -> bool:
    return ctx.is_admin or course.instructor_id == ctx.user_id


def _ensure_can_view(db: Session, ctx: SessionContext, course: Course) -> None:
    """Les devoirs d'un cours sont visibles par son enseignant, les admins et les inscrits."""
    if _can_manage(ctx, course):
        return
    if not enrollment_service.is_enrolled(db, ctx.user_id, course.id):
        raise PermissionError("Vous n'êtes pas inscrit à ce cours.")


# ============================================================
# Devoirs
# ============================================================

def create_assignment(
    db: Session, ctx: SessionContext, course_id: uuid.UUID, data: AssignmentCreate
) -> AssignmentResponse:
    """Publie un devoir et notifie tous les élèves inscrits en un seul ajout groupé."""
    course = get_course_or_raise(db, course_id)
    ensure_can_manage(ctx, course)

    assignment = Assignment(id=uuid.uuid4(), course_id=course.id, **data.model_dump())
    db.add(assignment)

    student_ids = db.execute(
        select(Enrollment.student_id).where(Enrollment.course_id == course.id)
    ).scalars().all()

    notification_service.notify(db, [
        NotificationDraft(
            user_id=student_id,
            title="Nouveau devoir",
            message=f"Un nouveau devoir « {assignment.title} » a été publié pour le cours {course.code}.",
            type="assignment",
            link=f"/dashboard/assignments/{assignment.id}",
            related_id=assignment.id,
        )
        for student_id in student_ids
    ])

    db.commit()
    db.refresh(assignment)

    logger.info("Devoir %s publié dans %s (%d élève(s) notifié(s))", assignment.id, course.code, len(student_ids))
    return AssignmentResponse.model_validate(assignment)


def list_course_assignments(db: Session, ctx: SessionContext, course_id: uuid.UUID) -> list[AssignmentResponse]:
    course = get_course_or_raise(db, course_id)
    _ensure_can_view(db, ctx, course)
    assignments = db.execute(
        select(Assignment)
        .where(Assignment.course_id == course.id)
        .order_by(Assignment.due_date.asc().nulls_last(), Assignment.created_at)
    ).scalars().all()
    return [AssignmentResponse.model_validate(a) for a in assignments]


def get_assignment(db: Session, ctx: SessionContext, assignment_id: uuid.UUID) -> Optional[AssignmentResponse]:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        return None
    course = get_course_or_raise(db, assignment.course_id)
    _ensure_can_view(db, ctx, course)
    return AssignmentResponse.model_validate(assignment)


def list_my_upcoming_assignments(db: Session, ctx: SessionContext) -> list[AssignmentResponse]:
    """Devoirs à venir des cours auxquels l'élève est inscrit, par échéance croissante."""
    assignments = db.execute(
        select(Assignment)
        .join(Enrollment, Enrollment.course_id == Assignment.course_id)
        .where(Enrollment.student_id == ctx.user_id, Assignment.due_date > _now())
        .order_by(Assignment.due_date)
    ).scalars().all()
    return [AssignmentResponse.model_validate(a) for a in assignments]


# ============================================================
# Remises
# ============================================================

def submit_assignment(
    db: Session, ctx: SessionContext, assignment_id: uuid.UUID, data: SubmissionCreate
) -> SubmissionResponse:
    """
    Crée ou met à jour la remise de l'élève connecté.

    late est recalculé à chaque remise par rapport à l'échéance.
    La première remise notifie l'enseignant du cours. Les champs de notation
    ne sont jamais modifiés ici, et une remise déjà notée ne peut plus être remplacée.
    """
    assignment = _get_assignment_or_raise(db, assignment_id)
    course = get_course_or_raise(db, assignment.course_id)
    if ctx.role != "student" or not enrollment_service.is_enrolled(db, ctx.user_id, course.id):
        raise PermissionError("Seuls les élèves inscrits au cours peuvent remettre ce devoir.")

    now = _now()
    late = _is_late(assignment.due_date, now)

    submission = db.execute(
        select(Submission).where(
            Submission.assignment_id == assignment.id,
            Submission.student_id == ctx.user_id,
        )
    ).scalar()

    if submission is None:
        submission = Submission(
            id=uuid.uuid4(),
            assignment_id=assignment.id,
            student_id=ctx.user_id,
            content=data.content,
            file_url=data.file_url,
            file_name=data.file_name,
            submitted_at=now,
            late=late,
            needs_review=False,
        )
        db.add(submission)
        notification_service.notify(db, [
            NotificationDraft(
                user_id=course.instructor_id,
                title="Nouvelle remise",
                message=(
                    f"{ctx.profile.first_name} {ctx.profile.last_name} a remis "
                    f"le devoir « {assignment.title} »{' en retard' if late else ''}."
                ),
                type="submission",
                link=f"/dashboard/assignments/{assignment.id}/submissions",
                related_id=submission.id,
            )
        ])
    else:
        if submission.grade is not None:
            raise ValueError("Cette remise a déjà été notée et ne peut plus être modifiée.")
        submission.content = data.content
        submission.file_url = data.file_url
        submission.file_name = data.file_name
        submission.submitted_at = now
        submission.late = late

    db.commit()
    db.refresh(submission)

    logger.info("Remise %s pour le devoir %s (retard=%s)", submission.id, assignment.id, late)
    return SubmissionResponse.model_validate(submission)


def get_submission(db: Session, ctx: SessionContext, submission_id: uuid.UUID) -> Optional[SubmissionResponse]:
    submission = db.get(Submission, submission_id)
    if submission is None:
        return None
    _ensure_can_see_submission(db, ctx, submission)
    return SubmissionResponse.model_validate(submission)


def get_my_submission(db: Session, ctx: SessionContext, assignment_id: uuid.UUID) -> Optional[SubmissionResponse]:
    submission = db.execute(
        select(Submission).where(
            Submission.assignment_id == assignment_id,
            Submission.student_id == ctx.user_id,
        )
    ).scalar()
    if submission is None:
        return None
    return SubmissionResponse.model_validate(submission)


def list_assignment_submissions(
    db: Session, ctx: SessionContext, assignment_id: uuid.UUID
) -> list[SubmissionResponse]:
    """Remises d'un devoir avec l'élève, triées par date de remise (enseignant/admin)."""
    assignment = _get_assignment_or_raise(db, assignment_id)
    course = get_course_or_raise(db, assignment.course_id)
    ensure_can_manage(ctx, course)

    rows = db.execute(
        select(Submission, Profile)
        .join(Profile, Profile.id == Submission.student_id)
        .where(Submission.assignment_id == assignment.id)
        .order_by(Submission.submitted_at)
    ).all()

    responses = []
    for submission, student in rows:
        response = SubmissionResponse.model_validate(submission)
        response.student = ProfileSummary.model_validate(student)
        responses.append(response)
    return responses


# ============================================================
# Commentaires
# ============================================================

def add_comment(db: Session, ctx: SessionContext, submission_id: uuid.UUID, content: str) -> CommentResponse:
    """Ajoute un commentaire. L'élève est notifié si l'auteur est quelqu'un d'autre."""
    submission = _get_submission_or_raise(db, submission_id)
    assignment = _ensure_can_see_submission(db, ctx, submission)

    comment = SubmissionComment(
        id=uuid.uuid4(),
        submission_id=submission.id,
        user_id=ctx.user_id,
        content=content,
    )
    db.add(comment)

    if submission.student_id != ctx.user_id:
        notification_service.notify(db, [
            NotificationDraft(
                user_id=submission.student_id,
                title="Nouveau commentaire",
                message=f"Un commentaire a été ajouté à votre remise pour « {assignment.title} ».",
                type="comment",
                link=f"/dashboard/assignments/{assignment.id}",
                related_id=submission.id,
            )
        ])

    db.commit()
    db.refresh(comment)
    return CommentResponse.model_validate(comment)


def list_comments(db: Session, ctx: SessionContext, submission_id: uuid.UUID) -> list[CommentResponse]:
    submission = _get_submission_or_raise(db, submission_id)
    _ensure_can_see_submission(db, ctx, submission)
    comments = db.execute(
        select(SubmissionComment)
        .where(SubmissionComment.submission_id == submission.id)
        .order_by(SubmissionComment.created_at)
    ).scalars().all()
    return [CommentResponse.model_validate(c) for c in comments]


# --- Helpers ---

def _is_late(due_date: Optional[datetime], now: datetime) -> bool:
    if due_date is None:
        return False
    if due_date.tzinfo is None:
        due_date = due_date.replace(tzinfo=timezone.utc)
    return now > due_date


def _get_assignment_or_raise(db: Session, assignment_id: uuid.UUID) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise ValueError("Devoir introuvable.")
    return assignment


def _get_submission_or_raise(db: Session, submission_id: uuid.UUID) -> Submission:
    submission = db.get(Submission, submission_id)
    if submission is None:
        raise ValueError("Remise introuvable.")
    return submission


def _ensure_can_see_submission(db: Session, ctx: SessionContext, submission: Submission) -> Assignment:
    """Une remise est visible par son auteur, l'enseignant du cours et les admins."""
    assignment = _get_assignment_or_raise(db, submission.assignment_id)
    if submission.student_id == ctx.user_id or ctx.is_admin:
        return assignment
    course = get_course_or_raise(db, assignment.course_id)
    if course.instructor_id != ctx.user_id:
        raise PermissionError("Vous n'avez pas accès à cette remise.")
    return assignment
