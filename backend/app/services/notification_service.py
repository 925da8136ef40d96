"""
Service des notifications : fan-out lors des transitions, lecture par le destinataire,
et livraison temps réel via l'outbox (delivered_at NULL).

Les fonctions de fan-out n'effectuent jamais de commit : les notifications sont
écrites dans la même transaction que la transition qui les déclenche.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.notification import Notification
from app.models.profile import Profile
from app.schemas.notification import NotificationDraft, NotificationResponse
from app.services.realtime_service import TOPIC_NOTIFICATIONS

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


def notify(db: Session, drafts: Iterable[NotificationDraft]) -> List[Notification]:
    """Ajoute en une fois une notification par destinataire (sans commit)."""
    notifications = [
        Notification(
            id=uuid.uuid4(),
            user_id=d.user_id,
            title=d.title,
            message=d.message,
            type=d.type,
            read=False,
            link=d.link,
            related_id=d.related_id,
        )
        for d in drafts
    ]
    if notifications:
        db.add_all(notifications)
    return notifications


def admin_ids(db: Session) -> List[uuid.UUID]:
    """Identifiants de tous les administrateurs (une seule requête)."""
    return list(db.execute(
        select(Profile.id).where(Profile.role == "admin")
    ).scalars().all())


def notify_admins(
    db: Session,
    title: str,
    message: str,
    type: str,
    link: Optional[str] = None,
    related_id: Optional[uuid.UUID] = None,
    exclude: Optional[uuid.UUID] = None,
) -> List[Notification]:
    """
    Diffuse la même notification à tous les administrateurs, en un seul ajout groupé.
    exclude : auteur de l'action, qui n'a pas à être notifié de son propre geste.
    """
    return notify(db, [
        NotificationDraft(
            user_id=admin_id,
            title=title,
            message=message,
            type=type,
            link=link,
            related_id=related_id,
        )
        for admin_id in admin_ids(db)
        if admin_id != exclude
    ])


# --- Lecture et gestion par le destinataire ---

def list_notifications(
    db: Session,
    ctx: SessionContext,
    limit: int = DEFAULT_LIST_LIMIT,
    unread_only: bool = False,
) -> list[NotificationResponse]:
    """Notifications de l'utilisateur courant, de la plus récente à la plus ancienne."""
    query = select(Notification).where(Notification.user_id == ctx.user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    rows = db.execute(
        query.order_by(Notification.created_at.desc()).limit(limit)
    ).scalars().all()
    return [NotificationResponse.model_validate(n) for n in rows]


def unread_count(db: Session, ctx: SessionContext) -> int:
    return db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == ctx.user_id, Notification.read.is_(False))
    ).scalar() or 0


def mark_read(db: Session, ctx: SessionContext, notification_id: uuid.UUID) -> NotificationResponse:
    """Marque une notification comme lue. Seul son destinataire peut le faire."""
    notification = _get_own(db, ctx, notification_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return NotificationResponse.model_validate(notification)


def mark_all_read(db: Session, ctx: SessionContext) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == ctx.user_id, Notification.read.is_(False))
        .values(read=True)
    )
    db.commit()
    return result.rowcount or 0


def delete_notification(db: Session, ctx: SessionContext, notification_id: uuid.UUID) -> None:
    notification = _get_own(db, ctx, notification_id)
    db.delete(notification)
    db.commit()


def clear_notifications(db: Session, ctx: SessionContext) -> int:
    result = db.execute(
        delete(Notification).where(Notification.user_id == ctx.user_id)
    )
    db.commit()
    return result.rowcount or 0


def _get_own(db: Session, ctx: SessionContext, notification_id: uuid.UUID) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise ValueError("Notification introuvable.")
    if notification.user_id != ctx.user_id:
        raise PermissionError("Cette notification ne vous est pas adressée.")
    return notification


# --- Livraison temps réel (outbox) ---

def deliver_pending(
    db: Session,
    publish: Callable[[str, str, dict], int],
    batch_size: int = 200,
) -> int:
    """
    Publie les notifications pas encore livrées, dans l'ordre de création,
    puis les marque livrées.

    Le marquage a lieu après la publication : un arrêt entre les deux
    provoque une nouvelle livraison au passage suivant (au moins une fois).
    Les lignes lues sont verrouillées (SKIP LOCKED) jusqu'au commit : deux passages
    concurrents ne livrent jamais la même notification. Le broker étant propre au
    processus, l'API doit tourner avec un seul worker pour que chaque client
    connecté reçoive ses notifications.
    Retourne le nombre de notifications livrées.
    """
    pending = db.execute(
        select(Notification)
        .where(Notification.delivered_at.is_(None))
        .order_by(Notification.created_at)
        .limit(batch_size)
        .with_for_update(skip_locked=True)
    ).scalars().all()

    if not pending:
        return 0

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    for notification in pending:
        payload = NotificationResponse.model_validate(notification).model_dump(mode="json")
        publish(TOPIC_NOTIFICATIONS, str(notification.user_id), payload)
        notification.delivered_at = now

    db.commit()
    logger.info("Outbox : %d notification(s) livrée(s)", len(pending))
    return len(pending)
