"""
Router des cours : CRUD, supports, inscriptions du cours et devoirs du cours.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context, require_roles
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.assignment import AssignmentCreate, AssignmentResponse
from app.schemas.course import (
    CourseCreate,
    CourseMaterialCreate,
    CourseMaterialResponse,
    CourseResponse,
    CourseUpdate,
)
from app.schemas.enrollment import EnrollmentCreate, EnrollmentResponse, EnrollmentStatusResponse
from app.services import assignment_service, course_service, enrollment_service

router = APIRouter(prefix="/api/v1/courses", tags=["Cours"])


@router.post("", response_model=CourseResponse, status_code=201, summary="Créer un cours")
def create_course(
    data: CourseCreate,
    ctx: SessionContext = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db),
):
    """
    Crée un cours dont l'enseignant connecté devient responsable.
    Tous les administrateurs sont notifiés.
    """
    try:
        return course_service.create_course(db, ctx, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[CourseResponse], summary="Lister les cours")
def list_courses(
    department: Optional[str] = None,
    search: Optional[str] = None,
    instructor_id: Optional[uuid.UUID] = None,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return course_service.list_courses(db, department, search, instructor_id)


@router.get("/{course_id}", response_model=CourseResponse, summary="Détail d'un cours")
def get_course(
    course_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    course = course_service.get_course(db, course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Cours introuvable.")
    return course


@router.put("/{course_id}", response_model=CourseResponse, summary="Modifier un cours")
def update_course(
    course_id: uuid.UUID,
    data: CourseUpdate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        result = course_service.update_course(db, ctx, course_id, data)
    except PermissionError as e:
        raise to_http_exception(e)
    if result is None:
        raise HTTPException(status_code=404, detail="Cours introuvable.")
    return result


@router.delete("/{course_id}", status_code=204, summary="Supprimer un cours (admin)")
def delete_course(
    course_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        success = course_service.delete_course(db, ctx, course_id)
    except PermissionError as e:
        raise to_http_exception(e)
    if not success:
        raise HTTPException(status_code=404, detail="Cours introuvable.")


# --- Supports ---

@router.post(
    "/{course_id}/materials",
    response_model=CourseMaterialResponse,
    status_code=201,
    summary="Ajouter un support de cours",
)
def add_material(
    course_id: uuid.UUID,
    data: CourseMaterialCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return course_service.add_material(db, ctx, course_id, data)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/{course_id}/materials", response_model=List[CourseMaterialResponse], summary="Supports d'un cours")
def list_materials(
    course_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return course_service.list_materials(db, course_id)


# --- Inscriptions du cours ---

@router.get(
    "/{course_id}/enrollments",
    response_model=List[EnrollmentResponse],
    summary="Élèves inscrits au cours",
)
def list_course_enrollments(
    course_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return enrollment_service.list_course_enrollments(db, ctx, course_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.post(
    "/{course_id}/enrollments",
    response_model=EnrollmentResponse,
    status_code=201,
    summary="Inscrire directement un élève",
)
def enroll_student(
    course_id: uuid.UUID,
    data: EnrollmentCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Inscription sans demande préalable, réservée à l'enseignant du cours et aux admins."""
    try:
        return enrollment_service.enroll_student(db, ctx, course_id, data.student_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get(
    "/{course_id}/enrollment-status",
    response_model=EnrollmentStatusResponse,
    summary="Ma situation vis-à-vis du cours",
)
def get_enrollment_status(
    course_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Indique si je suis inscrit et l'état de ma dernière demande."""
    try:
        return enrollment_service.get_request_status(db, ctx, course_id)
    except ValueError as e:
        raise to_http_exception(e)


# --- Devoirs du cours ---

@router.post(
    "/{course_id}/assignments",
    response_model=AssignmentResponse,
    status_code=201,
    summary="Publier un devoir",
)
def create_assignment(
    course_id: uuid.UUID,
    data: AssignmentCreate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Publie un devoir et notifie tous les élèves inscrits."""
    try:
        return assignment_service.create_assignment(db, ctx, course_id, data)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)


@router.get("/{course_id}/assignments", response_model=List[AssignmentResponse], summary="Devoirs d'un cours")
def list_course_assignments(
    course_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    try:
        return assignment_service.list_course_assignments(db, ctx, course_id)
    except (ValueError, PermissionError) as e:
        raise to_http_exception(e)
