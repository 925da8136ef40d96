"""
Schémas Pydantic pour les demandes d'inscription et les inscriptions.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from app.schemas.profile import ProfileSummary

# Statuts communs aux demandes d'inscription et aux demandes enseignant
RequestStatus = Literal["pending", "approved", "rejected"]
MAX_GRADE_LENGTH = 10


class EnrollmentRequestCreate(BaseModel):
    """Corps de requête d'un élève qui demande à rejoindre un cours."""
    course_id: uuid.UUID


class EnrollmentRequestResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    course_id: uuid.UUID
    status: str
    created_at: Optional[datetime] = None
    student: Optional[ProfileSummary] = None
    course_code: Optional[str] = None
    course_title: Optional[str] = None

    model_config = {"from_attributes": True}


class EnrollmentStatusResponse(BaseModel):
    """Situation de l'utilisateur courant vis-à-vis d'un cours."""
    course_id: uuid.UUID
    enrolled: bool
    request: Optional[EnrollmentRequestResponse] = None


class EnrollmentCreate(BaseModel):
    """Inscription directe d'un élève par un enseignant ou un admin."""
    student_id: uuid.UUID


class EnrollmentGradeUpdate(BaseModel):
    grade: str

    @field_validator("grade")
    @classmethod
    def grade_valid(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("La note ne peut pas être vide.")
        if len(v) > MAX_GRADE_LENGTH:
            raise ValueError(f"La note ne peut pas dépasser {MAX_GRADE_LENGTH} caractères.")
        return v


class EnrollmentResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    course_id: uuid.UUID
    status: str
    grade: Optional[str] = None
    created_at: Optional[datetime] = None
    student: Optional[ProfileSummary] = None

    model_config = {"from_attributes": True}
