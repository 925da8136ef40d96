"""
Canal temps réel en mémoire (publish/subscribe) pour les notifications et le chat.

Chaque abonnement est une file asyncio rattachée à la boucle de la connexion WebSocket.
publish() est appelable depuis n'importe quel thread (job APScheduler, routes synchrones
exécutées dans le threadpool) : le dépôt dans la file passe par call_soon_threadsafe.
Pas de rejeu : un client non connecté retrouve les données via les endpoints de liste.
"""

import asyncio
import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)

TOPIC_NOTIFICATIONS = "notifications"
TOPIC_MESSAGES = "messages"
GLOBAL_CHAT_KEY = "global"

DEFAULT_QUEUE_SIZE = 100


class Subscription:
    """Abonnement d'un client à une clé de topic (ex. notifications de l'utilisateur X)."""

    def __init__(self, topic: str, key: str, loop: asyncio.AbstractEventLoop, maxsize: int):
        self.topic = topic
        self.key = key
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def push(self, payload: dict) -> None:
        """Exécuté dans la boucle de l'abonné. File pleine : le plus ancien est abandonné."""
        if self.queue.full():
            self.queue.get_nowait()
            logger.warning("File temps réel pleine (%s/%s) : message le plus ancien abandonné", self.topic, self.key)
        self.queue.put_nowait(payload)


class RealtimeBroker:

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscriptions: dict = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, key: str) -> Subscription:
        """Crée un abonnement. Doit être appelé depuis une coroutine (boucle en cours)."""
        subscription = Subscription(topic, key, asyncio.get_running_loop(), self._queue_size)
        with self._lock:
            self._subscriptions[(topic, key)].add(subscription)
        logger.debug("Abonnement temps réel %s/%s", topic, key)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscriptions.get((subscription.topic, subscription.key))
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscriptions[(subscription.topic, subscription.key)]

    def publish(self, topic: str, key: str, payload: dict) -> int:
        """Pousse payload à tous les abonnés de (topic, key). Retourne le nombre d'abonnés atteints."""
        with self._lock:
            subscribers = list(self._subscriptions.get((topic, key), ()))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.loop.call_soon_threadsafe(subscription.push, payload)
                delivered += 1
            except RuntimeError:
                # Boucle fermée : la connexion a disparu sans se désabonner
                self.unsubscribe(subscription)
        return delivered

    def subscriber_count(self, topic: str, key: str) -> int:
        with self._lock:
            return len(self._subscriptions.get((topic, key), ()))


broker = RealtimeBroker()
