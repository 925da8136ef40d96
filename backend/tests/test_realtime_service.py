"""
Tests unitaires du broker temps réel en mémoire.
"""

import asyncio
import threading

from app.services.realtime_service import RealtimeBroker


def test_publish_atteint_uniquement_la_bonne_cle():
    async def scenario():
        broker = RealtimeBroker()
        mine = broker.subscribe("notifications", "user-1")
        other = broker.subscribe("notifications", "user-2")

        assert broker.publish("notifications", "user-1", {"title": "Salut"}) == 1
        payload = await asyncio.wait_for(mine.queue.get(), timeout=1)
        return payload, other.queue.empty()

    payload, other_empty = asyncio.run(scenario())
    assert payload == {"title": "Salut"}
    assert other_empty


def test_publish_depuis_un_autre_thread():
    async def scenario():
        broker = RealtimeBroker()
        subscription = broker.subscribe("messages", "global")
        thread = threading.Thread(target=broker.publish, args=("messages", "global", {"content": "hey"}))
        thread.start()
        thread.join()
        return await asyncio.wait_for(subscription.queue.get(), timeout=1)

    assert asyncio.run(scenario()) == {"content": "hey"}


def test_unsubscribe():
    async def scenario():
        broker = RealtimeBroker()
        subscription = broker.subscribe("messages", "global")
        broker.unsubscribe(subscription)
        return broker.subscriber_count("messages", "global"), broker.publish("messages", "global", {})

    assert asyncio.run(scenario()) == (0, 0)


def test_file_pleine_abandonne_le_plus_ancien():
    async def scenario():
        broker = RealtimeBroker(queue_size=2)
        subscription = broker.subscribe("notifications", "u")
        for i in range(3):
            broker.publish("notifications", "u", {"n": i})
        await asyncio.sleep(0)  # exécute les callbacks call_soon_threadsafe
        return [subscription.queue.get_nowait() for _ in range(subscription.queue.qsize())]

    assert asyncio.run(scenario()) == [{"n": 1}, {"n": 2}]
