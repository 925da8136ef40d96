"""
Tests d'intégration API : santé, authentification, notifications, cours, stockage et temps réel.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.main import app
from app.routers.realtime import _log_forward_error
from app.schemas.auth import TokenResponse
from app.schemas.notification import NotificationResponse
from app.schemas.profile import DashboardStats, ProfileResponse


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_buckets_crees_au_demarrage_et_non_a_l_import():
    with patch("app.main.ensure_buckets") as mock:
        mock.assert_not_called()
        with TestClient(app):
            mock.assert_called_once_with()


# ============================================================
# Authentification
# ============================================================

def test_sign_up_succes(client):
    profile = ProfileResponse(
        id=uuid.uuid4(), first_name="Alice", last_name="Martin",
        email="alice@edutrack.test", role="student", student_id="S-001",
    )
    with patch("app.routers.auth.auth_service.sign_up") as mock:
        mock.return_value = TokenResponse(access_token="jeton", profile=profile)
        response = client.post("/api/v1/auth/sign-up", json={
            "email": "alice@edutrack.test", "password": "motdepasse",
            "first_name": "Alice", "last_name": "Martin", "student_id": "S-001",
        })

    assert response.status_code == 201
    assert response.json()["token_type"] == "bearer"
    assert response.json()["profile"]["role"] == "student"


def test_sign_up_email_invalide_422(client):
    response = client.post("/api/v1/auth/sign-up", json={
        "email": "pas-un-email", "password": "motdepasse", "first_name": "A", "last_name": "B", "role": "teacher",
    })
    assert response.status_code == 422


def test_sign_in_mauvais_identifiants_401(client):
    with patch("app.routers.auth.auth_service.sign_in") as mock:
        mock.side_effect = PermissionError("Email ou mot de passe incorrect.")
        response = client.post("/api/v1/auth/sign-in", json={"email": "a@b.be", "password": "x"})

    assert response.status_code == 401


def test_jeton_revoque_401(client):
    with patch("app.auth.dependencies.auth_service.resolve_session") as mock:
        mock.side_effect = PermissionError("Session expirée ou révoquée.")
        response = client.get("/api/v1/notifications", headers={"Authorization": "Bearer ancien"})

    assert response.status_code == 401
    assert "révoquée" in response.json()["detail"]


# ============================================================
# Notifications
# ============================================================

def test_list_notifications(client, login_as):
    ctx = login_as("student")
    with patch("app.routers.notifications.notification_service.list_notifications") as mock:
        mock.return_value = [NotificationResponse(
            id=uuid.uuid4(), user_id=ctx.user_id, title="Bienvenue", message="…", type="welcome",
            read=False, link=None, related_id=None, created_at=datetime.now(),
        )]
        response = client.get("/api/v1/notifications?unread_only=true")

    assert response.status_code == 200
    assert response.json()[0]["type"] == "welcome"
    assert mock.call_args.args[3] is True


def test_mark_read_notification_d_un_autre_403(client, login_as):
    login_as("student")
    with patch("app.routers.notifications.notification_service.mark_read") as mock:
        mock.side_effect = PermissionError("Cette notification ne vous est pas adressée.")
        response = client.post(f"/api/v1/notifications/{uuid.uuid4()}/read")

    assert response.status_code == 403


def test_unread_count(client, login_as):
    login_as("teacher")
    with patch("app.routers.notifications.notification_service.unread_count") as mock:
        mock.return_value = 3
        response = client.get("/api/v1/notifications/unread-count")

    assert response.json() == {"unread": 3}


# ============================================================
# Cours et administration
# ============================================================

def test_create_course_par_un_eleve_403(client, login_as):
    login_as("student")
    response = client.post("/api/v1/courses", json={"title": "A", "code": "A1"})
    assert response.status_code == 403


def test_get_course_introuvable_404(client, login_as):
    login_as("student")
    with patch("app.routers.courses.course_service.get_course") as mock:
        mock.return_value = None
        response = client.get(f"/api/v1/courses/{uuid.uuid4()}")

    assert response.status_code == 404


def test_admin_stats(client, login_as):
    login_as("admin")
    with patch("app.routers.admin.profile_service.get_dashboard_stats") as mock:
        mock.return_value = DashboardStats(
            total_students=10, total_teachers=2, total_courses=3, total_enrollments=15,
            pending_enrollment_requests=4, grades_awaiting_review=1,
        )
        response = client.get("/api/v1/admin/stats")

    assert response.status_code == 200
    assert response.json()["pending_enrollment_requests"] == 4


# ============================================================
# Stockage
# ============================================================

def test_upload_bucket_inconnu_400(client, login_as):
    login_as("teacher")
    response = client.post("/api/v1/storage/secrets", files={"file": ("a.pdf", b"x", "application/pdf")})
    assert response.status_code == 400


def test_upload_fichier(client, login_as):
    login_as("teacher")
    response = client.post(
        "/api/v1/storage/course-materials",
        files={"file": ("cours 1.pdf", b"%PDF", "application/pdf")},
    )

    assert response.status_code == 201
    url = response.json()["url"]
    assert "/storage/course-materials/" in url
    # Le fichier est servi par le montage statique
    path = url.split("/storage/", 1)[1]
    assert client.get(f"/storage/{path}").content == b"%PDF"


# ============================================================
# Temps réel
# ============================================================

def test_websocket_jeton_invalide_refuse(client):
    with patch("app.routers.realtime.auth_service.resolve_session") as mock:
        mock.side_effect = PermissionError("Jeton invalide.")
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/api/v1/realtime/notifications?token=faux"):
                pass


def test_echec_du_relais_temps_reel_journalise(caplog):
    async def envoi_echoue():
        raise RuntimeError("socket fermée")

    async def scenario():
        task = asyncio.create_task(envoi_echoue())
        task.add_done_callback(_log_forward_error)
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

    with caplog.at_level(logging.WARNING, logger="app.routers.realtime"):
        asyncio.run(scenario())

    assert "socket fermée" in caplog.text


def test_relais_temps_reel_annule_sans_journal(caplog):
    async def scenario():
        task = asyncio.create_task(asyncio.sleep(10))
        task.add_done_callback(_log_forward_error)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

    with caplog.at_level(logging.WARNING, logger="app.routers.realtime"):
        asyncio.run(scenario())

    assert "Relais temps réel" not in caplog.text
