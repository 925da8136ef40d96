"""
Service métier pour les cours et leurs supports.
Gère la création (avec notification des administrateurs), la lecture,
la modification et la suppression des cours.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.models.course import Course, CourseMaterial
from app.models.enrollment import Enrollment
from app.models.profile import Profile
from app.schemas.course import (
    CourseCreate,
    CourseMaterialCreate,
    CourseMaterialResponse,
    CourseResponse,
    CourseUpdate,
)
from app.schemas.profile import ProfileSummary
from app.services import notification_service

logger = logging.getLogger(__name__)


def get_course_or_raise(db: Session, course_id: uuid.UUID) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise ValueError("Cours introuvable.")
    return course


def ensure_can_manage(ctx: SessionContext, course: Course) -> None:
    """Seuls l'enseignant responsable du cours et les administrateurs gèrent un cours."""
    if ctx.is_admin or course.instructor_id == ctx.user_id:
        return
    raise PermissionError("Seul l'enseignant du cours ou un administrateur peut effectuer cette action.")


def create_course(db: Session, ctx: SessionContext, data: CourseCreate) -> CourseResponse:
    """
    Crée un cours et ses supports initiaux, puis notifie tous les administrateurs.

    L'enseignant connecté devient responsable du cours. Un administrateur peut
    désigner un autre enseignant via instructor_id.
    """
    instructor_id = ctx.user_id
    if ctx.is_admin and data.instructor_id is not None:
        instructor = db.get(Profile, data.instructor_id)
        if instructor is None or instructor.role != "teacher":
            raise ValueError("Enseignant introuvable.")
        instructor_id = instructor.id

    course = Course(
        id=uuid.uuid4(),
        instructor_id=instructor_id,
        **data.model_dump(exclude={"materials", "instructor_id"}),
    )
    db.add(course)
    db.flush()

    if data.materials:
        db.add_all([
            CourseMaterial(course_id=course.id, name=m.name, url=m.url, type=m.type)
            for m in data.materials
        ])

    notification_service.notify_admins(
        db,
        title="Nouveau cours créé",
        message=f"Le cours « {course.title} » ({course.code}) a été créé et attend votre revue.",
        type="course_created",
        link=f"/dashboard/courses/{course.id}",
        related_id=course.id,
        exclude=ctx.user_id,
    )

    db.commit()
    db.refresh(course)

    logger.info("Cours créé : %s (%s) par %s", course.code, course.id, ctx.user_id)
    return _to_response(db, course)


def list_courses(
    db: Session,
    department: Optional[str] = None,
    search: Optional[str] = None,
    instructor_id: Optional[uuid.UUID] = None,
) -> list[CourseResponse]:
    """Liste les cours, filtrés par département, enseignant ou texte (titre/code)."""
    query = select(Course)
    if department:
        query = query.where(Course.department == department)
    if instructor_id:
        query = query.where(Course.instructor_id == instructor_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Course.title.ilike(pattern), Course.code.ilike(pattern)))

    courses = db.execute(query.order_by(Course.code)).scalars().all()
    return [_to_response(db, c) for c in courses]


def get_course(db: Session, course_id: uuid.UUID) -> Optional[CourseResponse]:
    """Retourne un cours par son ID, ou None s'il n'existe pas."""
    course = db.get(Course, course_id)
    if course is None:
        return None
    return _to_response(db, course)


def update_course(
    db: Session, ctx: SessionContext, course_id: uuid.UUID, data: CourseUpdate
) -> Optional[CourseResponse]:
    """Met à jour les champs fournis d'un cours (enseignant responsable ou admin)."""
    course = db.get(Course, course_id)
    if course is None:
        return None
    ensure_can_manage(ctx, course)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(course, field, value)

    db.commit()
    db.refresh(course)
    return _to_response(db, course)


def delete_course(db: Session, ctx: SessionContext, course_id: uuid.UUID) -> bool:
    """
    Supprime un cours (admin uniquement). Inscriptions, devoirs et demandes
    liés sont supprimés en cascade.
    Retourne True si supprimé, False si introuvable.
    """
    if not ctx.is_admin:
        raise PermissionError("Seul un administrateur peut supprimer un cours.")
    course = db.get(Course, course_id)
    if course is None:
        return False
    db.delete(course)
    db.commit()
    logger.info("Cours supprimé : %s", course_id)
    return True


# --- Supports de cours ---

def add_material(
    db: Session, ctx: SessionContext, course_id: uuid.UUID, data: CourseMaterialCreate
) -> CourseMaterialResponse:
    course = get_course_or_raise(db, course_id)
    ensure_can_manage(ctx, course)

    material = CourseMaterial(course_id=course.id, name=data.name, url=data.url, type=data.type)
    db.add(material)
    db.commit()
    db.refresh(material)
    return CourseMaterialResponse.model_validate(material)


def list_materials(db: Session, course_id: uuid.UUID) -> list[CourseMaterialResponse]:
    materials = db.execute(
        select(CourseMaterial)
        .where(CourseMaterial.course_id == course_id)
        .order_by(CourseMaterial.created_at)
    ).scalars().all()
    return [CourseMaterialResponse.model_validate(m) for m in materials]


def _to_response(db: Session, course: Course) -> CourseResponse:
    """Construit le schéma de réponse avec l'enseignant et le nombre d'inscrits."""
    nb_enrolled = db.execute(
        select(func.count())
        .select_from(Enrollment)
        .where(Enrollment.course_id == course.id)
    ).scalar() or 0

    instructor = db.get(Profile, course.instructor_id)

    return CourseResponse(
        id=course.id,
        title=course.title,
        code=course.code,
        department=course.department,
        credits=course.credits,
        description=course.description,
        instructor_id=course.instructor_id,
        instructor=ProfileSummary.model_validate(instructor) if instructor else None,
        semester=course.semester,
        year=course.year,
        capacity=course.capacity,
        schedule=course.schedule,
        location=course.location,
        prerequisites=course.prerequisites,
        objectives=course.objectives,
        syllabus_url=course.syllabus_url,
        nb_enrolled=nb_enrolled,
        created_at=course.created_at,
        updated_at=course.updated_at,
    )
