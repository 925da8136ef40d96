"""
Schémas Pydantic pour les profils utilisateurs.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

VALID_ROLES = {"student", "teacher", "admin"}


class ProfileResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: str
    student_id: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    department: Optional[str] = None
    onboarding_completed: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProfileSummary(BaseModel):
    """Version réduite d'un profil, embarquée dans les listes (inscriptions, messages...)."""
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    avatar_url: Optional[str] = None
    student_id: Optional[str] = None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Champs modifiables par l'utilisateur lui-même (le rôle n'en fait pas partie)."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    department: Optional[str] = None
    avatar_url: Optional[str] = None
    onboarding_completed: Optional[bool] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v


class DashboardStats(BaseModel):
    """Compteurs du tableau de bord administrateur."""
    total_students: int
    total_teachers: int
    total_courses: int
    total_enrollments: int
    pending_enrollment_requests: int
    grades_awaiting_review: int
