"""
Service métier pour les profils et le tableau de bord administrateur.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.assignment import Submission
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentRequest
from app.models.profile import Profile
from app.schemas.profile import DashboardStats, ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)


def get_profile(db: Session, profile_id: uuid.UUID) -> Optional[ProfileResponse]:
    """Retourne un profil par son ID, ou None s'il n'existe pas."""
    profile = db.get(Profile, profile_id)
    if profile is None:
        return None
    return ProfileResponse.model_validate(profile)


def list_profiles(db: Session, role: Optional[str] = None) -> list[ProfileResponse]:
    """Liste les profils (filtrés par rôle si fourni), triés par nom puis prénom."""
    query = select(Profile)
    if role is not None:
        query = query.where(Profile.role == role)
    profiles = db.execute(
        query.order_by(Profile.last_name, Profile.first_name)
    ).scalars().all()
    return [ProfileResponse.model_validate(p) for p in profiles]


def update_my_profile(db: Session, ctx: SessionContext, data: ProfileUpdate) -> ProfileResponse:
    """
    Met à jour les champs fournis du profil de l'utilisateur courant
    et retourne le profil relu en base.
    """
    profile = db.get(Profile, ctx.user_id)
    if profile is None:
        raise ValueError("Profil introuvable.")

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(profile, field, value)

    db.commit()
    db.refresh(profile)
    logger.info("Profil %s mis à jour (%s)", profile.id, ", ".join(sorted(update_data)))
    return ProfileResponse.model_validate(profile)


def set_avatar(db: Session, ctx: SessionContext, avatar_url: str) -> ProfileResponse:
    """Enregistre l'URL publique du nouvel avatar sur le profil courant."""
    return update_my_profile(db, ctx, ProfileUpdate(avatar_url=avatar_url))


def get_dashboard_stats(db: Session) -> DashboardStats:
    """Compteurs globaux affichés sur le tableau de bord administrateur."""

    def _count(model, *conditions) -> int:
        query = select(func.count()).select_from(model)
        if conditions:
            query = query.where(*conditions)
        return db.execute(query).scalar() or 0

    return DashboardStats(
        total_students=_count(Profile, Profile.role == "student"),
        total_teachers=_count(Profile, Profile.role == "teacher"),
        total_courses=_count(Course),
        total_enrollments=_count(Enrollment),
        pending_enrollment_requests=_count(EnrollmentRequest, EnrollmentRequest.status == "pending"),
        grades_awaiting_review=_count(Submission, Submission.needs_review.is_(True)),
    )
