"""
Schémas Pydantic pour les notifications.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


@dataclass
class NotificationDraft:
    """Notification à insérer pour un destinataire, avant persistance."""
    user_id: uuid.UUID
    title: str
    message: str
    type: str
    link: Optional[str] = None
    related_id: Optional[uuid.UUID] = None


class NotificationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    message: str
    type: str
    read: bool
    link: Optional[str]
    related_id: Optional[uuid.UUID]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    unread: int


class BulkResult(BaseModel):
    """Résultat d'une opération de masse (tout marquer lu, tout supprimer)."""
    count: int
