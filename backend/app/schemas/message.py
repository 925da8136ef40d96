"""
Schémas Pydantic pour le chat (global ou par cours).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

MAX_MESSAGE_LENGTH = 2000


class MessageCreate(BaseModel):
    content: str
    course_id: Optional[uuid.UUID] = None  # None = chat global

    @field_validator("content")
    @classmethod
    def content_valid(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Le message ne peut pas être vide.")
        if len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Le message ne peut pas dépasser {MAX_MESSAGE_LENGTH} caractères.")
        return v


class MessageResponse(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID
    content: str
    course_id: Optional[uuid.UUID]
    created_at: Optional[datetime] = None
    sender_first_name: Optional[str] = None
    sender_last_name: Optional[str] = None
    sender_avatar_url: Optional[str] = None
    sender_role: Optional[str] = None
