"""
Schémas Pydantic pour les cours et leurs supports.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.schemas.profile import ProfileSummary

VALID_SEMESTERS = {"fall", "spring", "summer", "winter"}


class CourseMaterialCreate(BaseModel):
    name: str
    url: str
    type: Optional[str] = None

    @field_validator("name", "url")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class CourseMaterialResponse(BaseModel):
    id: uuid.UUID
    course_id: uuid.UUID
    name: str
    url: str
    type: Optional[str]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CourseCreate(BaseModel):
    title: str
    code: str
    department: Optional[str] = None
    credits: Optional[int] = None
    description: Optional[str] = None
    semester: Optional[str] = None
    year: Optional[int] = None
    capacity: Optional[int] = None
    schedule: Optional[str] = None
    location: Optional[str] = None
    prerequisites: Optional[str] = None
    objectives: Optional[str] = None
    syllabus_url: Optional[str] = None
    instructor_id: Optional[uuid.UUID] = None  # pris en compte uniquement pour un admin
    materials: List[CourseMaterialCreate] = []

    @field_validator("title", "code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le titre et le code du cours sont obligatoires.")
        return v.strip()

    @field_validator("code")
    @classmethod
    def code_uppercase(cls, v: str) -> str:
        return v.upper()

    @field_validator("credits", "capacity")
    @classmethod
    def positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("La valeur doit être strictement positive.")
        return v

    @field_validator("semester")
    @classmethod
    def valid_semester(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.lower() not in VALID_SEMESTERS:
            raise ValueError(f"Semestre invalide. Valeurs acceptées : {VALID_SEMESTERS}")
        return v.lower() if v else v


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    department: Optional[str] = None
    credits: Optional[int] = None
    description: Optional[str] = None
    semester: Optional[str] = None
    year: Optional[int] = None
    capacity: Optional[int] = None
    schedule: Optional[str] = None
    location: Optional[str] = None
    prerequisites: Optional[str] = None
    objectives: Optional[str] = None
    syllabus_url: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le titre du cours ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("credits", "capacity")
    @classmethod
    def positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("La valeur doit être strictement positive.")
        return v

    @field_validator("semester")
    @classmethod
    def valid_semester(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.lower() not in VALID_SEMESTERS:
            raise ValueError(f"Semestre invalide. Valeurs acceptées : {VALID_SEMESTERS}")
        return v.lower() if v else v


class CourseResponse(BaseModel):
    id: uuid.UUID
    title: str
    code: str
    department: Optional[str]
    credits: Optional[int]
    description: Optional[str]
    instructor_id: uuid.UUID
    instructor: Optional[ProfileSummary] = None
    semester: Optional[str]
    year: Optional[int]
    capacity: Optional[int]
    schedule: Optional[str] = None
    location: Optional[str] = None
    prerequisites: Optional[str] = None
    objectives: Optional[str] = None
    syllabus_url: Optional[str] = None
    nb_enrolled: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
