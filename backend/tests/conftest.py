"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL,
et la dépendance de session pour simuler un utilisateur connecté.
"""

import os
import tempfile
import uuid

# Avant l'import de l'application : pas de scheduler ni de create_all en test
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("DB_AUTO_CREATE", "false")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="edutrack-test-storage-"))

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from app.auth.dependencies import get_session_context
from app.auth.session import SessionContext
from app.database import get_db
from app.main import app
from app.schemas.profile import ProfileResponse


def build_ctx(role="student", user_id=None, first_name="Alice", last_name="Martin") -> SessionContext:
    return SessionContext(
        session_id=uuid.uuid4(),
        profile=ProfileResponse(
            id=user_id or uuid.uuid4(),
            first_name=first_name,
            last_name=last_name,
            email=f"{first_name.lower()}@edutrack.test",
            role=role,
            student_id="S-001" if role == "student" else None,
        ),
    )


@pytest.fixture
def make_ctx():
    """Fabrique de contextes de session (rôle, identifiant)."""
    return build_ctx


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Simule un utilisateur connecté avec le rôle donné ; retourne son contexte."""

    def _login(role="student", user_id=None) -> SessionContext:
        ctx = build_ctx(role, user_id)
        app.dependency_overrides[get_session_context] = lambda: ctx
        return ctx

    return _login
