"""
Enrollment service: enroll / unenroll and enrollment lookups.
"""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from edu_api.config import SessionLocal
from edu_api.errors import AlreadyEnrolled, CourseNotFound, EnrollmentNotFound
from edu_api.models.models import Course, Enrollment
from edu_api.schemas.enrollment_schemas import EnrollmentRecord
from edu_api.services.progress_service import CompletedAtPolicy, ProgressRecalculator
from edu_api.services.unit_of_work import UnitOfWork
from edu_api.utils.common import new_id, utcnow
from edu_api.utils.logger import configure_logging, log_request

logger = configure_logging()


class EnrollmentService:
    def __init__(
        self,
        session_factory: Optional[Callable[[], DBSession]] = None,
        recalculator: Optional[ProgressRecalculator] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.recalculator = recalculator or ProgressRecalculator()

    def enroll(self, user_id: str, course_id: str) -> EnrollmentRecord:
        """
        Enroll the user in a course.

        Completions kept from an earlier enrollment count towards the new
        one, so progress is derived rather than reset to zero.
        """
        with log_request(logger, f"enroll user={user_id} course={course_id}"), UnitOfWork(
            self.session_factory
        ) as uow:
            db = uow.session
            if db.get(Course, course_id) is None:
                raise CourseNotFound(course_id=course_id)
            existing = (
                db.query(Enrollment.id)
                .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
                .first()
            )
            if existing is not None:
                raise AlreadyEnrolled(user_id=user_id, course_id=course_id)

            now = utcnow()
            enrollment = Enrollment(
                id=new_id(),
                user_id=user_id,
                course_id=course_id,
                enrolled_at=now,
                progress=0.0,
                completed_at=None,
                created_at=now,
                updated_at=now,
            )
            db.add(enrollment)
            try:
                db.flush()
            except IntegrityError as exc:
                raise AlreadyEnrolled(user_id=user_id, course_id=course_id) from exc

            self.recalculator.recompute(db, user_id, course_id, policy=CompletedAtPolicy.DERIVE)
            return EnrollmentRecord.model_validate(enrollment)

    def unenroll(self, enrollment_id: str) -> None:
        """Delete the enrollment. Module completions are kept."""
        with log_request(logger, f"unenroll id={enrollment_id}"), UnitOfWork(self.session_factory) as uow:
            db = uow.session
            enrollment = db.get(Enrollment, enrollment_id)
            if enrollment is None:
                raise EnrollmentNotFound(enrollment_id=enrollment_id)
            db.delete(enrollment)

    def get_enrollment(self, enrollment_id: str) -> EnrollmentRecord:
        with self.session_factory() as db:
            enrollment = db.get(Enrollment, enrollment_id)
            if enrollment is None:
                raise EnrollmentNotFound(enrollment_id=enrollment_id)
            return EnrollmentRecord.model_validate(enrollment)

    def find_enrollment(self, user_id: str, course_id: str) -> Optional[EnrollmentRecord]:
        with self.session_factory() as db:
            enrollment = (
                db.query(Enrollment)
                .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
                .first()
            )
            return EnrollmentRecord.model_validate(enrollment) if enrollment else None

    def list_enrollments(self, user_id: Optional[str] = None, course_id: Optional[str] = None) -> list[EnrollmentRecord]:
        """List enrollments, newest first."""
        with self.session_factory() as db:
            q = db.query(Enrollment)
            if user_id:
                q = q.filter(Enrollment.user_id == user_id)
            if course_id:
                q = q.filter(Enrollment.course_id == course_id)
            return [EnrollmentRecord.model_validate(e) for e in q.order_by(Enrollment.enrolled_at.desc()).all()]
