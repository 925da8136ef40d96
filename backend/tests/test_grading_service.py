"""
Tests unitaires de la notation et de la validation administrative des notes.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from app.models.assignment import Assignment, Submission
from app.models.course import Course
from app.models.notification import Notification
from app.services.grading_service import (
    approve_grade,
    grade_submission,
    list_pending_reviews,
    reject_grade,
)


# --- Helpers ---

TEACHER_ID = uuid.uuid4()
ADMIN_IDS = [uuid.uuid4(), uuid.uuid4()]


def make_rows(needs_review=False, grade=None, feedback=None, graded_at=None):
    course = Course(id=uuid.uuid4(), title="Algorithmique", code="CS101", instructor_id=TEACHER_ID)
    assignment = Assignment(id=uuid.uuid4(), course_id=course.id, title="TP 1", points=100)
    submission = Submission(
        id=uuid.uuid4(),
        assignment_id=assignment.id,
        student_id=uuid.uuid4(),
        content="Ma réponse",
        submitted_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        late=False,
        grade=grade,
        feedback=feedback,
        graded_at=graded_at,
        needs_review=needs_review,
    )
    return course, assignment, submission


def make_db(*rows, admin_ids=ADMIN_IDS):
    db = MagicMock()
    store = {(type(r), r.id): r for r in rows}
    db.get.side_effect = lambda model, key: store.get((model, key))
    db.execute.return_value.scalars.return_value.all.return_value = list(admin_ids)
    return db


def notifications(db):
    return [n for c in db.add_all.call_args_list for n in c.args[0] if isinstance(n, Notification)]


# ============================================================
# grade_submission
# ============================================================

def test_grade_submission_met_en_attente_de_validation(make_ctx):
    course, assignment, submission = make_rows()
    db = make_db(course, assignment, submission)

    result = grade_submission(db, make_ctx("teacher", user_id=TEACHER_ID), submission.id, 85, "Bon travail")

    assert submission.grade == 85
    assert submission.feedback == "Bon travail"
    assert submission.graded_at is not None
    assert submission.needs_review is True
    assert result.needs_review is True
    db.commit.assert_called_once()


def test_grade_submission_notifie_eleve_et_admins_en_un_lot(make_ctx):
    course, assignment, submission = make_rows()
    db = make_db(course, assignment, submission)

    grade_submission(db, make_ctx("teacher", user_id=TEACHER_ID), submission.id, 70)

    db.add_all.assert_called_once()
    sent = notifications(db)
    assert (submission.student_id, "grade") in [(n.user_id, n.type) for n in sent]
    assert sorted((n.user_id for n in sent if n.type == "grade_review"), key=str) == sorted(ADMIN_IDS, key=str)
    assert len(sent) == 1 + len(ADMIN_IDS)


@pytest.mark.parametrize("grade", [-1, 100.5, float("nan"), float("inf")])
def test_grade_submission_hors_bareme(make_ctx, grade):
    course, assignment, submission = make_rows()
    db = make_db(course, assignment, submission)

    with pytest.raises(ValueError, match="comprise entre 0 et 100"):
        grade_submission(db, make_ctx("teacher", user_id=TEACHER_ID), submission.id, grade)
    assert submission.grade is None
    db.commit.assert_not_called()


def test_grade_submission_bornes_acceptees(make_ctx):
    course, assignment, submission = make_rows()
    db = make_db(course, assignment, submission)

    grade_submission(db, make_ctx("admin"), submission.id, 100)
    assert submission.grade == 100


def test_grade_submission_enseignant_d_un_autre_cours(make_ctx):
    course, assignment, submission = make_rows()
    db = make_db(course, assignment, submission)

    with pytest.raises(PermissionError):
        grade_submission(db, make_ctx("teacher"), submission.id, 50)


def test_grade_submission_introuvable(make_ctx):
    with pytest.raises(ValueError, match="introuvable"):
        grade_submission(make_db(), make_ctx("admin"), uuid.uuid4(), 50)


# ============================================================
# approve_grade
# ============================================================

def test_approve_grade_ne_change_que_needs_review(make_ctx):
    graded_at = datetime(2026, 3, 2, tzinfo=timezone.utc)
    course, assignment, submission = make_rows(needs_review=True, grade=85, feedback="Bien", graded_at=graded_at)
    db = make_db(course, assignment, submission)

    approve_grade(db, make_ctx("admin"), submission.id)

    assert submission.needs_review is False
    assert submission.grade == 85
    assert submission.feedback == "Bien"
    assert submission.graded_at == graded_at
    assert [(n.user_id, n.type) for n in notifications(db)] == [(submission.student_id, "grade_approved")]
    db.commit.assert_called_once()


def test_approve_grade_reserve_aux_admins(make_ctx):
    course, assignment, submission = make_rows(needs_review=True, grade=85)
    db = make_db(course, assignment, submission)

    with pytest.raises(PermissionError):
        approve_grade(db, make_ctx("teacher", user_id=TEACHER_ID), submission.id)
    assert submission.needs_review is True


def test_approve_grade_sans_note_en_attente(make_ctx):
    course, assignment, submission = make_rows(needs_review=False)
    db = make_db(course, assignment, submission)

    with pytest.raises(ValueError, match="en attente"):
        approve_grade(db, make_ctx("admin"), submission.id)


# ============================================================
# reject_grade
# ============================================================

@pytest.mark.parametrize("grade, feedback", [(85, "Bien"), (0, None), (12.5, "")])
def test_reject_grade_efface_la_note(make_ctx, grade, feedback):
    course, assignment, submission = make_rows(
        needs_review=True, grade=grade, feedback=feedback, graded_at=datetime.now(timezone.utc)
    )
    db = make_db(course, assignment, submission)

    result = reject_grade(db, make_ctx("admin"), submission.id)

    assert submission.grade is None
    assert submission.feedback is None
    assert submission.graded_at is None
    assert submission.needs_review is False
    assert result.grade is None


def test_reject_grade_notifie_eleve_et_enseignant(make_ctx):
    course, assignment, submission = make_rows(needs_review=True, grade=85)
    db = make_db(course, assignment, submission)

    reject_grade(db, make_ctx("admin"), submission.id)

    sent = notifications(db)
    assert {(n.user_id, n.type) for n in sent} == {
        (submission.student_id, "grade_rejected"),
        (TEACHER_ID, "grade_rejected"),
    }
    assert len(sent) == 2


def test_reject_grade_sans_note_en_attente(make_ctx):
    course, assignment, submission = make_rows(needs_review=False, grade=85)
    db = make_db(course, assignment, submission)

    with pytest.raises(ValueError, match="en attente"):
        reject_grade(db, make_ctx("admin"), submission.id)
    assert submission.grade == 85


# ============================================================
# list_pending_reviews
# ============================================================

def test_list_pending_reviews_reserve_aux_admins(make_ctx):
    with pytest.raises(PermissionError):
        list_pending_reviews(make_db(), make_ctx("teacher"))


def test_list_pending_reviews(make_ctx):
    course, assignment, submission = make_rows(needs_review=True, grade=85)
    student = MagicMock(id=submission.student_id, first_name="Bob", last_name="Durand",
                        email="bob@edutrack.test", avatar_url=None, student_id="S-042")
    db = MagicMock()
    db.execute.return_value.all.return_value = [(submission, assignment, course, student)]

    result = list_pending_reviews(db, make_ctx("admin"))

    assert len(result) == 1
    assert result[0].course_code == "CS101"
    assert result[0].teacher_id == TEACHER_ID
    assert result[0].submission.student.first_name == "Bob"


# ============================================================
# Scénario complet
# ============================================================

def test_scenario_notation_puis_refus_admin(make_ctx):
    """L'enseignant note 85/100, l'admin refuse : note effacée, élève et enseignant notifiés."""
    course, assignment, submission = make_rows()

    db = make_db(course, assignment, submission)
    grade_submission(db, make_ctx("teacher", user_id=TEACHER_ID), submission.id, 85)
    assert submission.needs_review is True

    db = make_db(course, assignment, submission)
    reject_grade(db, make_ctx("admin"), submission.id)

    assert submission.grade is None
    assert submission.needs_review is False
    assert len([n for n in notifications(db) if n.type == "grade_rejected"]) == 2
