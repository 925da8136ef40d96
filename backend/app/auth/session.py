"""
Contexte de session injecté dans chaque appel de service.
Créé à l'authentification, détruit à la déconnexion, rafraîchi après modification du profil.
"""

import uuid

from pydantic import BaseModel

from app.schemas.profile import ProfileResponse


class SessionContext(BaseModel):
    session_id: uuid.UUID
    profile: ProfileResponse

    @property
    def user_id(self) -> uuid.UUID:
        return self.profile.id

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def is_admin(self) -> bool:
        return self.profile.role == "admin"

    def has_role(self, *roles: str) -> bool:
        return self.profile.role in roles
