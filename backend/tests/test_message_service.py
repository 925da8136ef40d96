"""
Tests unitaires du chat : droits d'accès aux canaux, publication temps réel, ordre de l'historique.
"""

import uuid
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from app.models.course import Course
from app.models.message import Message
from app.schemas.message import MessageCreate
from app.services.message_service import list_messages, send_message
from app.services.realtime_service import GLOBAL_CHAT_KEY, TOPIC_MESSAGES


def test_send_message_global_publie_sur_le_canal(make_ctx):
    ctx = make_ctx("student")
    db = MagicMock()

    with patch("app.services.message_service.broker") as mock_broker:
        result = send_message(db, ctx, MessageCreate(content="  Bonjour  "))

    message = db.add.call_args.args[0]
    assert isinstance(message, Message)
    assert message.content == "Bonjour"
    db.commit.assert_called_once()
    topic, key, payload = mock_broker.publish.call_args.args
    assert (topic, key) == (TOPIC_MESSAGES, GLOBAL_CHAT_KEY)
    assert payload["sender_first_name"] == "Alice"
    assert result.sender_role == "student"


def test_send_message_cours_non_inscrit(make_ctx):
    course = Course(id=uuid.uuid4(), title="A", code="A1", instructor_id=uuid.uuid4())
    db = MagicMock()
    db.get.return_value = course
    db.execute.return_value.scalar.return_value = None

    with pytest.raises(PermissionError):
        send_message(db, make_ctx("student"), MessageCreate(content="Hello", course_id=course.id))
    db.add.assert_not_called()


def test_list_messages_du_plus_ancien_au_plus_recent(make_ctx):
    sender = MagicMock(first_name="Bob", last_name="D", avatar_url=None, role="teacher")
    recent = Message(id=uuid.uuid4(), sender_id=uuid.uuid4(), content="2", created_at=datetime(2026, 1, 2))
    older = Message(id=uuid.uuid4(), sender_id=uuid.uuid4(), content="1", created_at=datetime(2026, 1, 1))
    db = MagicMock()
    db.execute.return_value.all.return_value = [(recent, sender), (older, sender)]  # requête triée desc

    result = list_messages(db, make_ctx("admin"))

    assert [m.content for m in result] == ["1", "2"]


def test_message_trop_long_rejete():
    with pytest.raises(ValueError):
        MessageCreate(content="x" * 2001)
