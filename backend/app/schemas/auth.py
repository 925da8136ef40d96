"""
Schémas Pydantic pour l'inscription et la connexion.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator, model_validator

from app.schemas.profile import ProfileResponse

MIN_PASSWORD_LENGTH = 8
SELF_SERVICE_ROLES = {"student", "teacher"}


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    role: str = "student"
    student_id: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères.")
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()

    @field_validator("role")
    @classmethod
    def valid_role(cls, v: str) -> str:
        if v not in SELF_SERVICE_ROLES:
            raise ValueError(f"Rôle invalide. Valeurs acceptées : {SELF_SERVICE_ROLES}")
        return v

    @model_validator(mode="after")
    def student_id_required_for_students(self):
        # Le matricule n'a de sens que pour un élève
        if self.role == "student":
            if not self.student_id or not self.student_id.strip():
                raise ValueError("Le matricule est obligatoire pour un élève.")
            self.student_id = self.student_id.strip()
        else:
            self.student_id = None
        return self


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Réponse d'une connexion réussie : jeton bearer + profil courant."""
    access_token: str
    token_type: str = "bearer"
    profile: ProfileResponse
