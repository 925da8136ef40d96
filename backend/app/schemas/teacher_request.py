"""
Schémas Pydantic pour les demandes de passage au rôle enseignant.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.schemas.profile import ProfileSummary


class TeacherRequestResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    status: str
    created_at: Optional[datetime] = None
    user: Optional[ProfileSummary] = None

    model_config = {"from_attributes": True}
