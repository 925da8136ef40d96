"""
Planificateur APScheduler pour la livraison temps réel des notifications (outbox).

Le job s'exécute toutes les NOTIFICATION_DELIVERY_INTERVAL_SECONDS secondes :
il publie sur le broker les notifications dont delivered_at est NULL puis les
marque livrées.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import settings
from app.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _deliver_notifications() -> None:
    """
    Tâche planifiée : un passage de livraison de l'outbox.
    Import local pour éviter les imports circulaires.
    """
    from app.services.notification_service import deliver_pending
    from app.services.realtime_service import broker

    db = SessionLocal()
    try:
        deliver_pending(db, broker.publish, settings.NOTIFICATION_DELIVERY_BATCH_SIZE)
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors de la livraison des notifications : %s", exc, exc_info=True)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler désactivé (SCHEDULER_ENABLED=false).")
        return
    scheduler.add_job(
        _deliver_notifications,
        trigger="interval",
        seconds=settings.NOTIFICATION_DELIVERY_INTERVAL_SECONDS,
        id="notification_outbox_delivery",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré : livraison des notifications toutes les %d s.",
        settings.NOTIFICATION_DELIVERY_INTERVAL_SECONDS,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
