"""
Schémas Pydantic pour les devoirs, les remises et leur notation.

Le schéma de remise côté élève (SubmissionCreate) ne contient volontairement
aucun champ de notation : seule la notation enseignant peut écrire grade/feedback.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.profile import ProfileSummary


class AssignmentCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    points: int = 100
    file_url: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le titre du devoir ne peut pas être vide.")
        return v.strip()

    @field_validator("points")
    @classmethod
    def points_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Le barème doit être strictement positif.")
        return v


class AssignmentResponse(BaseModel):
    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    description: Optional[str]
    due_date: Optional[datetime]
    points: int
    file_url: Optional[str]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SubmissionCreate(BaseModel):
    """Remise (ou mise à jour de la remise) d'un élève."""
    content: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None

    @model_validator(mode="after")
    def content_or_file(self):
        has_content = self.content is not None and self.content.strip() != ""
        if not has_content and not self.file_url:
            raise ValueError("Une remise doit contenir un texte ou un fichier.")
        return self


class SubmissionResponse(BaseModel):
    id: uuid.UUID
    assignment_id: uuid.UUID
    student_id: uuid.UUID
    content: Optional[str]
    file_url: Optional[str]
    file_name: Optional[str] = None
    submitted_at: datetime
    late: bool
    grade: Optional[float]
    feedback: Optional[str]
    graded_at: Optional[datetime]
    needs_review: bool
    student: Optional[ProfileSummary] = None

    model_config = {"from_attributes": True}


class GradeSubmit(BaseModel):
    """Notation d'une remise par l'enseignant (soumise ensuite à validation admin)."""
    grade: float = Field(..., allow_inf_nan=False)
    feedback: Optional[str] = None

    @field_validator("grade")
    @classmethod
    def grade_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("La note ne peut pas être négative.")
        return v

    @field_validator("feedback")
    @classmethod
    def feedback_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class PendingGradeReview(BaseModel):
    """Remise notée en attente de validation administrative."""
    submission: SubmissionResponse
    assignment_id: uuid.UUID
    assignment_title: str
    points: int
    course_id: uuid.UUID
    course_code: str
    teacher_id: uuid.UUID


class CommentCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le commentaire ne peut pas être vide.")
        return v.strip()


class CommentResponse(BaseModel):
    id: uuid.UUID
    submission_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
