"""
Router du chat (global ou par cours).
Les nouveaux messages sont aussi poussés en direct via /api/v1/realtime/messages.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.message import MessageCreate, MessageResponse
from app.services import message_service

router = APIRouter(prefix="/api/v1/messages", tags=["Messages"])


@router.get("", response_model=List[MessageResponse], summary="Historique du chat")
def list_messages(
    course_id: Optional[uuid.UUID] = None,
    limit: int = Query(50, ge=1, le=200),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Derniers messages du canal, du plus ancien au plus récent. Sans course_id : chat global."""
    try:
        return message_service.list_messages(db, ctx, course_id, limit)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.post("", response_model=MessageResponse, status_code=201, summary="Envoyer un message")
def send_message(
    data: MessageCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return message_service.send_message(db, ctx, data)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
