"""
Router des notifications de l'utilisateur connecté.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.notification import BulkResult, NotificationResponse, UnreadCount
from app.services import notification_service

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse], summary="Mes notifications")
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Notifications de la plus récente à la plus ancienne."""
    return notification_service.list_notifications(db, ctx, limit, unread_only)


@router.get("/unread-count", response_model=UnreadCount, summary="Nombre de notifications non lues")
def unread_count(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return UnreadCount(unread=notification_service.unread_count(db, ctx))


@router.post("/read-all", response_model=BulkResult, summary="Tout marquer comme lu")
def mark_all_read(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return BulkResult(count=notification_service.mark_all_read(db, ctx))


@router.post("/{notification_id}/read", response_model=NotificationResponse, summary="Marquer comme lue")
def mark_read(
    notification_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return notification_service.mark_read(db, ctx, notification_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.delete("/{notification_id}", status_code=204, summary="Supprimer une notification")
def delete_notification(
    notification_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        notification_service.delete_notification(db, ctx, notification_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.delete("", response_model=BulkResult, summary="Supprimer toutes mes notifications")
def clear_notifications(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return BulkResult(count=notification_service.clear_notifications(db, ctx))
