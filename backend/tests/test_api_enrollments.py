"""
Tests d'intégration API du circuit d'inscription.
Testent les URLs, l'authentification, la traduction des erreurs et le format des réponses.
"""

import uuid
from datetime import datetime
from unittest.mock import patch

from app.schemas.enrollment import EnrollmentRequestResponse, EnrollmentResponse


def make_request_response(status="pending", **kwargs) -> EnrollmentRequestResponse:
    return EnrollmentRequestResponse(
        id=kwargs.get("id", uuid.uuid4()),
        student_id=kwargs.get("student_id", uuid.uuid4()),
        course_id=kwargs.get("course_id", uuid.uuid4()),
        status=status,
        created_at=datetime.now(),
        course_code="CS101",
        course_title="Algorithmique",
    )


# ============================================================
# Authentification
# ============================================================

def test_sans_jeton_401(client):
    response = client.get("/api/v1/enrollments/requests")
    assert response.status_code == 401


# ============================================================
# POST /api/v1/enrollments/requests
# ============================================================

def test_request_enrollment_succes(client, login_as):
    login_as("student")
    course_id = uuid.uuid4()
    with patch("app.routers.enrollments.enrollment_service.request_enrollment") as mock:
        mock.return_value = make_request_response(course_id=course_id)
        response = client.post("/api/v1/enrollments/requests", json={"course_id": str(course_id)})

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    assert response.json()["course_code"] == "CS101"


def test_request_enrollment_doublon_409(client, login_as):
    login_as("student")
    with patch("app.routers.enrollments.enrollment_service.request_enrollment") as mock:
        mock.side_effect = ValueError("Une demande d'inscription est déjà en attente pour ce cours.")
        response = client.post("/api/v1/enrollments/requests", json={"course_id": str(uuid.uuid4())})

    assert response.status_code == 409
    assert "en attente" in response.json()["detail"]


def test_request_enrollment_cours_introuvable_404(client, login_as):
    login_as("student")
    with patch("app.routers.enrollments.enrollment_service.request_enrollment") as mock:
        mock.side_effect = ValueError("Cours introuvable.")
        response = client.post("/api/v1/enrollments/requests", json={"course_id": str(uuid.uuid4())})

    assert response.status_code == 404


def test_request_enrollment_course_id_invalide_422(client, login_as):
    login_as("student")
    response = client.post("/api/v1/enrollments/requests", json={"course_id": "pas-un-uuid"})
    assert response.status_code == 422


# ============================================================
# POST /api/v1/enrollments/requests/{id}/approve | reject
# ============================================================

def test_approve_request_succes(client, login_as):
    login_as("teacher")
    with patch("app.routers.enrollments.enrollment_service.approve_request") as mock:
        mock.return_value = make_request_response(status="approved")
        response = client.post(f"/api/v1/enrollments/requests/{uuid.uuid4()}/approve")

    assert response.status_code == 200
    assert response.json()["status"] == "approved"


def test_approve_request_autre_enseignant_403(client, login_as):
    login_as("teacher")
    with patch("app.routers.enrollments.enrollment_service.approve_request") as mock:
        mock.side_effect = PermissionError("Seul l'enseignant du cours ou un administrateur peut effectuer cette action.")
        response = client.post(f"/api/v1/enrollments/requests/{uuid.uuid4()}/approve")

    assert response.status_code == 403


def test_reject_request_deja_traitee_409(client, login_as):
    login_as("admin")
    with patch("app.routers.enrollments.enrollment_service.reject_request") as mock:
        mock.side_effect = ValueError("La demande est déjà traitée (statut approved).")
        response = client.post(f"/api/v1/enrollments/requests/{uuid.uuid4()}/reject")

    assert response.status_code == 409


def test_cancel_request_204(client, login_as):
    login_as("student")
    with patch("app.routers.enrollments.enrollment_service.cancel_request") as mock:
        mock.return_value = None
        response = client.delete(f"/api/v1/enrollments/requests/{uuid.uuid4()}")

    assert response.status_code == 204


# ============================================================
# Inscriptions
# ============================================================

def test_list_my_enrollments(client, login_as):
    ctx = login_as("student")
    with patch("app.routers.enrollments.enrollment_service.list_my_enrollments") as mock:
        mock.return_value = [
            EnrollmentResponse(id=uuid.uuid4(), student_id=ctx.user_id, course_id=uuid.uuid4(), status="active")
        ]
        response = client.get("/api/v1/enrollments/me")

    assert response.status_code == 200
    assert response.json()[0]["status"] == "active"


def test_update_grade_vide_422(client, login_as):
    login_as("teacher")
    response = client.put(f"/api/v1/enrollments/{uuid.uuid4()}/grade", json={"grade": "  "})
    assert response.status_code == 422


def test_remove_enrollment_introuvable_404(client, login_as):
    login_as("admin")
    with patch("app.routers.enrollments.enrollment_service.remove_enrollment") as mock:
        mock.return_value = False
        response = client.delete(f"/api/v1/enrollments/{uuid.uuid4()}")

    assert response.status_code == 404


def test_enroll_student_direct_conflit_409(client, login_as):
    login_as("teacher")
    with patch("app.routers.courses.enrollment_service.enroll_student") as mock:
        mock.side_effect = ValueError("L'élève est déjà inscrit à ce cours.")
        response = client.post(
            f"/api/v1/courses/{uuid.uuid4()}/enrollments",
            json={"student_id": str(uuid.uuid4())},
        )

    assert response.status_code == 409


# ============================================================
# GET /api/v1/enrollments/requests?status=
# ============================================================

def test_list_requests_filtre_par_statut(client, login_as):
    login_as("teacher")
    with patch("app.routers.enrollments.enrollment_service.list_requests") as mock:
        mock.return_value = [make_request_response()]
        response = client.get("/api/v1/enrollments/requests?status=pending")

    assert response.status_code == 200
    assert mock.call_args.args[3] == "pending"


def test_list_requests_statut_inconnu_422(client, login_as):
    login_as("teacher")
    with patch("app.routers.enrollments.enrollment_service.list_requests") as mock:
        response = client.get("/api/v1/enrollments/requests?status=archived")

    assert response.status_code == 422
    mock.assert_not_called()


def test_list_teacher_requests_statut_inconnu_422(client, login_as):
    login_as("admin")
    with patch("app.routers.teacher_requests.teacher_request_service.list_teacher_requests") as mock:
        response = client.get("/api/v1/teacher-requests?status=whatever")

    assert response.status_code == 422
    mock.assert_not_called()
