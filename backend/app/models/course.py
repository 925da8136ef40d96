"""
Modèles SQLAlchemy pour les cours et leurs supports.
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False)
    department = Column(String(100), nullable=True)
    credits = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    instructor_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    semester = Column(String(20), nullable=True)
    year = Column(Integer, nullable=True)
    capacity = Column(Integer, nullable=True)
    schedule = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    prerequisites = Column(Text, nullable=True)
    objectives = Column(Text, nullable=True)
    syllabus_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class CourseMaterial(Base):
    """Support de cours (fichier déposé dans le bucket course-materials)."""
    __tablename__ = "course_materials"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    url = Column(String(500), nullable=False)
    type = Column(String(50), nullable=True)  # document, video, link...
    created_at = Column(DateTime, server_default=func.now())
