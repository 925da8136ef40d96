"""
Service du chat : messages globaux ou rattachés à un cours.
Les messages sont en ajout seul ; chaque envoi est publié sur le canal temps réel
après le commit.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.message import Message
from app.models.profile import Profile
from app.schemas.message import MessageCreate, MessageResponse
from app.services import enrollment_service
from app.services.course_service import get_course_or_raise
from app.services.realtime_service import GLOBAL_CHAT_KEY, TOPIC_MESSAGES, broker

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


def channel_key(course_id: Optional[uuid.UUID]) -> str:
    return str(course_id) if course_id else GLOBAL_CHAT_KEY


def ensure_can_access_channel(db: Session, ctx: SessionContext, course_id: Optional[uuid.UUID]) -> None:
    """Le chat d'un cours est réservé à son enseignant, ses inscrits et aux admins."""
    if course_id is None or ctx.is_admin:
        return
    course = get_course_or_raise(db, course_id)
    if course.instructor_id == ctx.user_id:
        return
    if not enrollment_service.is_enrolled(db, ctx.user_id, course.id):
        raise PermissionError("Vous n'avez pas accès au chat de ce cours.")


def send_message(db: Session, ctx: SessionContext, data: MessageCreate) -> MessageResponse:
    ensure_can_access_channel(db, ctx, data.course_id)

    message = Message(
        id=uuid.uuid4(),
        sender_id=ctx.user_id,
        content=data.content,
        course_id=data.course_id,
    )
    db.add(message)
    db.commit()
    db.refresh(message)

    response = _to_response(message, ctx.profile)
    broker.publish(TOPIC_MESSAGES, channel_key(message.course_id), response.model_dump(mode="json"))
    return response


def list_messages(
    db: Session,
    ctx: SessionContext,
    course_id: Optional[uuid.UUID] = None,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[MessageResponse]:
    """Les `limit` derniers messages du canal, du plus ancien au plus récent."""
    ensure_can_access_channel(db, ctx, course_id)

    query = select(Message, Profile).join(Profile, Profile.id == Message.sender_id)
    if course_id is None:
        query = query.where(Message.course_id.is_(None))
    else:
        query = query.where(Message.course_id == course_id)

    rows = db.execute(query.order_by(Message.created_at.desc()).limit(limit)).all()
    return [_to_response(m, p) for m, p in reversed(rows)]


def _to_response(message: Message, sender) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        sender_id=message.sender_id,
        content=message.content,
        course_id=message.course_id,
        created_at=message.created_at,
        sender_first_name=sender.first_name if sender else None,
        sender_last_name=sender.last_name if sender else None,
        sender_avatar_url=sender.avatar_url if sender else None,
        sender_role=sender.role if sender else None,
    )
