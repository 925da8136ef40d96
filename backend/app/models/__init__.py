# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme courses.instructor_id → profiles.id échouent
# avec NoReferencedTableError si profile.py n'est pas chargé avant course.py.

from app.models.user import User, AuthSession  # noqa: F401  (doit précéder profile)
from app.models.profile import Profile  # noqa: F401  (doit précéder course)
from app.models.course import Course, CourseMaterial  # noqa: F401
from app.models.enrollment import Enrollment, EnrollmentRequest  # noqa: F401
from app.models.assignment import Assignment, Submission, SubmissionComment  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.models.message import Message  # noqa: F401
from app.models.teacher_request import TeacherRequest  # noqa: F401
