"""
Tests unitaires des devoirs, remises et commentaires.
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from app.models.assignment import Assignment, Submission, SubmissionComment
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.notification import Notification
from app.schemas.assignment import AssignmentCreate, GradeSubmit, SubmissionCreate
from app.services.assignment_service import (
    add_comment,
    create_assignment,
    get_assignment,
    submit_assignment,
)


# --- Helpers ---

TEACHER_ID = uuid.uuid4()


def make_rows(due_in=timedelta(days=3)):
    course = Course(id=uuid.uuid4(), title="Algorithmique", code="CS101", instructor_id=TEACHER_ID)
    assignment = Assignment(
        id=uuid.uuid4(),
        course_id=course.id,
        title="TP 1",
        points=100,
        due_date=datetime.now(timezone.utc) + due_in if due_in is not None else None,
    )
    return course, assignment


def make_db(*rows, scalars=()):
    db = MagicMock()
    store = {(type(r), r.id): r for r in rows}
    db.get.side_effect = lambda model, key: store.get((model, key))
    db.execute.return_value.scalar.side_effect = list(scalars)
    return db


def added(db, model):
    objects = [c.args[0] for c in db.add.call_args_list]
    for c in db.add_all.call_args_list:
        objects.extend(c.args[0])
    return [o for o in objects if isinstance(o, model)]


# --- Validation des schémas ---

def test_submission_create_sans_contenu_ni_fichier():
    with pytest.raises(ValidationError):
        SubmissionCreate(content="   ")


def test_submission_create_ignore_les_champs_de_notation():
    data = SubmissionCreate(content="Réponse", grade=20, needs_review=False)
    assert not hasattr(data, "grade")


def test_grade_submit_note_negative():
    with pytest.raises(ValidationError):
        GradeSubmit(grade=-5)


def test_grade_submit_note_non_finie():
    with pytest.raises(ValidationError):
        GradeSubmit.model_validate_json('{"grade": NaN}')
    with pytest.raises(ValidationError):
        GradeSubmit(grade=float("inf"))


def test_assignment_create_bareme_nul():
    with pytest.raises(ValidationError):
        AssignmentCreate(title="TP", points=0)


# --- create_assignment ---

def test_create_assignment_notifie_les_inscrits_en_un_lot(make_ctx):
    course, _ = make_rows()
    students = [uuid.uuid4() for _ in range(3)]
    db = make_db(course)
    db.execute.return_value.scalars.return_value.all.return_value = students

    result = create_assignment(db, make_ctx("teacher", user_id=TEACHER_ID), course.id, AssignmentCreate(title="TP 2"))

    db.add_all.assert_called_once()
    notifications = added(db, Notification)
    assert sorted(n.user_id for n in notifications) == sorted(students)
    assert {n.type for n in notifications} == {"assignment"}
    assert result.title == "TP 2"
    db.commit.assert_called_once()


def test_create_assignment_par_un_eleve(make_ctx):
    course, _ = make_rows()
    with pytest.raises(PermissionError):
        create_assignment(make_db(course), make_ctx("student"), course.id, AssignmentCreate(title="TP"))


# --- get_assignment ---

def test_get_assignment_eleve_non_inscrit(make_ctx):
    course, assignment = make_rows()
    db = make_db(course, assignment, scalars=[None])

    with pytest.raises(PermissionError):
        get_assignment(db, make_ctx("student"), assignment.id)


def test_get_assignment_inexistant(make_ctx):
    assert get_assignment(make_db(), make_ctx("admin"), uuid.uuid4()) is None


# --- submit_assignment ---

def test_submit_assignment_premiere_remise_notifie_l_enseignant(make_ctx):
    ctx = make_ctx("student")
    course, assignment = make_rows()
    db = make_db(course, assignment, scalars=[MagicMock(spec=Enrollment), None])

    result = submit_assignment(db, ctx, assignment.id, SubmissionCreate(content="Ma réponse"))

    submission = added(db, Submission)[0]
    assert submission.student_id == ctx.user_id
    assert submission.late is False
    assert submission.grade is None
    notifications = added(db, Notification)
    assert [(n.user_id, n.type) for n in notifications] == [(TEACHER_ID, "submission")]
    assert result.content == "Ma réponse"


def test_submit_assignment_en_retard(make_ctx):
    course, assignment = make_rows(due_in=timedelta(hours=-1))
    db = make_db(course, assignment, scalars=[MagicMock(spec=Enrollment), None])

    result = submit_assignment(db, make_ctx("student"), assignment.id, SubmissionCreate(content="Tard"))

    assert result.late is True


def test_submit_assignment_sans_echeance_jamais_en_retard(make_ctx):
    course, assignment = make_rows(due_in=None)
    db = make_db(course, assignment, scalars=[MagicMock(spec=Enrollment), None])

    result = submit_assignment(db, make_ctx("student"), assignment.id, SubmissionCreate(content="OK"))

    assert result.late is False


def test_submit_assignment_remplace_une_remise_non_notee(make_ctx):
    ctx = make_ctx("student")
    course, assignment = make_rows()
    existing = Submission(
        id=uuid.uuid4(),
        assignment_id=assignment.id,
        student_id=ctx.user_id,
        content="v1",
        submitted_at=datetime.now(timezone.utc) - timedelta(days=1),
        late=False,
        needs_review=False,
    )
    db = make_db(course, assignment, scalars=[MagicMock(spec=Enrollment), existing])

    submit_assignment(db, ctx, assignment.id, SubmissionCreate(content="v2"))

    assert existing.content == "v2"
    assert existing.grade is None
    db.add.assert_not_called()
    assert added(db, Notification) == []


def test_submit_assignment_remise_deja_notee_refusee(make_ctx):
    ctx = make_ctx("student")
    course, assignment = make_rows()
    existing = Submission(
        id=uuid.uuid4(),
        assignment_id=assignment.id,
        student_id=ctx.user_id,
        content="v1",
        submitted_at=datetime.now(timezone.utc) - timedelta(days=1),
        late=False,
        grade=95,
        needs_review=True,
    )
    db = make_db(course, assignment, scalars=[MagicMock(spec=Enrollment), existing])

    with pytest.raises(ValueError, match="déjà été notée"):
        submit_assignment(db, ctx, assignment.id, SubmissionCreate(content="tout autre chose"))

    assert existing.content == "v1"
    assert existing.grade == 95
    db.commit.assert_not_called()


def test_submit_assignment_eleve_non_inscrit(make_ctx):
    course, assignment = make_rows()
    db = make_db(course, assignment, scalars=[None])

    with pytest.raises(PermissionError):
        submit_assignment(db, make_ctx("student"), assignment.id, SubmissionCreate(content="x"))


# --- add_comment ---

def _make_submission(assignment, student_id):
    return Submission(
        id=uuid.uuid4(),
        assignment_id=assignment.id,
        student_id=student_id,
        content="x",
        submitted_at=datetime.now(timezone.utc),
        late=False,
        needs_review=False,
    )


def test_add_comment_de_l_enseignant_notifie_l_eleve(make_ctx):
    course, assignment = make_rows()
    submission = _make_submission(assignment, uuid.uuid4())
    db = make_db(course, assignment, submission)

    add_comment(db, make_ctx("teacher", user_id=TEACHER_ID), submission.id, "Pense aux tests")

    assert len(added(db, SubmissionComment)) == 1
    assert [(n.user_id, n.type) for n in added(db, Notification)] == [(submission.student_id, "comment")]


def test_add_comment_de_l_eleve_sans_notification(make_ctx):
    ctx = make_ctx("student")
    course, assignment = make_rows()
    submission = _make_submission(assignment, ctx.user_id)
    db = make_db(course, assignment, submission)

    add_comment(db, ctx, submission.id, "Merci")

    assert added(db, Notification) == []


def test_add_comment_par_un_tiers(make_ctx):
    course, assignment = make_rows()
    submission = _make_submission(assignment, uuid.uuid4())
    db = make_db(course, assignment, submission)

    with pytest.raises(PermissionError):
        add_comment(db, make_ctx("student"), submission.id, "Coucou")
