"""
Canaux WebSocket temps réel.

- /api/v1/realtime/notifications?token=...          : notifications de l'utilisateur
- /api/v1/realtime/messages?token=...&course_id=... : chat du cours (ou global sans course_id)

Le jeton est celui renvoyé par /api/v1/auth/sign-in. Pas de rejeu à la connexion :
l'historique se lit via les endpoints REST correspondants.
"""

import asyncio
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from app.auth.session import SessionContext
from app.database import SessionLocal
from app.services import auth_service, message_service
from app.services.realtime_service import TOPIC_MESSAGES, TOPIC_NOTIFICATIONS, Subscription, broker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/realtime", tags=["Temps réel"])


def _authorize(token: str, course_id: Optional[uuid.UUID] = None) -> SessionContext:
    """Résout la session (et l'accès au canal du cours) avec une session DB dédiée."""
    db = SessionLocal()
    try:
        ctx = auth_service.resolve_session(db, token)
        if course_id is not None:
            message_service.ensure_can_access_channel(db, ctx, course_id)
        return ctx
    finally:
        db.close()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        payload = await subscription.queue.get()
        await websocket.send_json(payload)


def _log_forward_error(task: asyncio.Task) -> None:
    """Journalise l'échec d'envoi qui a terminé la tâche de relais (annulation exclue)."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Relais temps réel interrompu : %s", exc, exc_info=exc)


async def _stream(websocket: WebSocket, topic: str, key: str) -> None:
    """Relaie les publications du broker vers le client jusqu'à sa déconnexion."""
    await websocket.accept()
    subscription = broker.subscribe(topic, key)
    sender = asyncio.create_task(_forward(websocket, subscription))
    sender.add_done_callback(_log_forward_error)
    try:
        # Les messages du client sont ignorés ; la lecture sert à détecter la déconnexion
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Client temps réel déconnecté (%s/%s)", topic, key)
    finally:
        sender.cancel()
        broker.unsubscribe(subscription)


@router.websocket("/notifications")
async def notifications_channel(websocket: WebSocket, token: str):
    try:
        ctx = await run_in_threadpool(_authorize, token)
    except (ValueError, PermissionError) as e:
        logger.info("Connexion temps réel refusée : %s", e)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await _stream(websocket, TOPIC_NOTIFICATIONS, str(ctx.user_id))


@router.websocket("/messages")
async def messages_channel(websocket: WebSocket, token: str, course_id: Optional[uuid.UUID] = None):
    try:
        await run_in_threadpool(_authorize, token, course_id)
    except (ValueError, PermissionError) as e:
        logger.info("Connexion temps réel refusée : %s", e)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await _stream(websocket, TOPIC_MESSAGES, message_service.channel_key(course_id))
