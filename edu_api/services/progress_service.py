"""
Course progress: the write-side recalculator and the read-side summaries.

ProgressRecalculator is only ever called inside a caller's unit of work; it
locks the enrollment row, derives progress from the completion rows and never
commits. ProgressService answers read-only progress queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session as DBSession

from edu_api.config import SessionLocal
from edu_api.errors import EnrollmentNotFound
from edu_api.models.models import Course, Enrollment, Module, ModuleCompletion, QuizAttempt
from edu_api.schemas.progress_schemas import CourseProgress, UserStats
from edu_api.utils.common import utcnow
from edu_api.utils.logger import configure_logging

logger = configure_logging()


class CompletedAtPolicy(str, Enum):
    """How Enrollment.completed_at is settled after a recount."""
    STAMP_WHEN_COMPLETE = "stamp_when_complete"  # stamp now when complete, else keep
    CLEAR = "clear"  # always null
    DERIVE = "derive"  # keep/stamp when complete, null otherwise


@dataclass
class ProgressResult:
    progress: float
    completed_at: Optional[datetime]
    completed_modules: int
    total_modules: int


def lock_enrollment(db: DBSession, user_id: str, course_id: str) -> Optional[Enrollment]:
    """Read the enrollment row under a row lock held until the transaction ends."""
    return (
        db.query(Enrollment)
        .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )


def count_course_modules(db: DBSession, course_id: str) -> int:
    return db.query(func.count(Module.id)).filter(Module.course_id == course_id).scalar() or 0


def count_completed_modules(db: DBSession, user_id: str, course_id: str) -> int:
    return (
        db.query(func.count(ModuleCompletion.id))
        .join(Module, ModuleCompletion.module_id == Module.id)
        .filter(ModuleCompletion.user_id == user_id, Module.course_id == course_id)
        .scalar()
        or 0
    )


class ProgressRecalculator:
    def recompute(
        self,
        db: DBSession,
        user_id: str,
        course_id: str,
        policy: CompletedAtPolicy = CompletedAtPolicy.STAMP_WHEN_COMPLETE,
    ) -> ProgressResult:
        # Lock first so the counts below are taken after any competing writer committed.
        enrollment = lock_enrollment(db, user_id, course_id)
        if enrollment is None:
            raise EnrollmentNotFound(user_id=user_id, course_id=course_id)

        total = count_course_modules(db, course_id)
        completed = count_completed_modules(db, user_id, course_id)
        progress = completed / total if total > 0 else 0.0
        fully_complete = total > 0 and completed >= total

        if policy is CompletedAtPolicy.CLEAR:
            enrollment.completed_at = None
        elif policy is CompletedAtPolicy.DERIVE:
            if not fully_complete:
                enrollment.completed_at = None
            elif enrollment.completed_at is None:
                enrollment.completed_at = utcnow()
        elif fully_complete:
            enrollment.completed_at = utcnow()

        enrollment.progress = progress
        enrollment.updated_at = utcnow()
        db.flush()

        logger.debug(
            "progress recomputed user=%s course=%s completed=%s total=%s policy=%s",
            user_id,
            course_id,
            completed,
            total,
            policy.value,
        )
        return ProgressResult(
            progress=progress,
            completed_at=enrollment.completed_at,
            completed_modules=completed,
            total_modules=total,
        )


class ProgressService:
    """Read-only progress queries."""

    def __init__(self, session_factory: Optional[Callable[[], DBSession]] = None):
        self.session_factory = session_factory or SessionLocal

    def course_progress(self, user_id: str, course_id: str) -> CourseProgress:
        with self.session_factory() as db:
            row = (
                db.query(Enrollment, Course.title)
                .join(Course, Enrollment.course_id == Course.id)
                .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
                .one_or_none()
            )
            if row is None:
                raise EnrollmentNotFound(user_id=user_id, course_id=course_id)
            enrollment, title = row
            return CourseProgress(
                course_id=enrollment.course_id,
                course_title=title,
                progress=enrollment.progress,
                completed_modules=count_completed_modules(db, user_id, course_id),
                total_modules=count_course_modules(db, course_id),
                completed_at=enrollment.completed_at,
            )

    def user_progress(self, user_id: str) -> list[CourseProgress]:
        """Progress across every enrolled course, counts grouped in one query each."""
        with self.session_factory() as db:
            rows = (
                db.query(Enrollment, Course.title)
                .join(Course, Enrollment.course_id == Course.id)
                .filter(Enrollment.user_id == user_id)
                .order_by(Enrollment.enrolled_at.desc())
                .all()
            )
            course_ids = [e.course_id for e, _ in rows]
            if not course_ids:
                return []
            totals = dict(
                db.query(Module.course_id, func.count(Module.id))
                .filter(Module.course_id.in_(course_ids))
                .group_by(Module.course_id)
                .all()
            )
            completed = dict(
                db.query(Module.course_id, func.count(ModuleCompletion.id))
                .join(ModuleCompletion, ModuleCompletion.module_id == Module.id)
                .filter(ModuleCompletion.user_id == user_id, Module.course_id.in_(course_ids))
                .group_by(Module.course_id)
                .all()
            )
            return [
                CourseProgress(
                    course_id=e.course_id,
                    course_title=title,
                    progress=e.progress,
                    completed_modules=completed.get(e.course_id, 0),
                    total_modules=totals.get(e.course_id, 0),
                    completed_at=e.completed_at,
                )
                for e, title in rows
            ]

    def user_stats(self, user_id: str) -> UserStats:
        with self.session_factory() as db:
            enrollments = db.query(func.count(Enrollment.id)).filter(Enrollment.user_id == user_id).scalar() or 0
            completions = (
                db.query(func.count(ModuleCompletion.id)).filter(ModuleCompletion.user_id == user_id).scalar() or 0
            )
            attempts, avg_score = (
                db.query(func.count(QuizAttempt.id), func.avg(QuizAttempt.score))
                .filter(QuizAttempt.user_id == user_id)
                .one()
            )
            return UserStats(
                total_enrollments=enrollments,
                total_completions=completions,
                total_quiz_attempts=attempts or 0,
                average_quiz_score=round(float(avg_score), 2) if attempts else 0.0,
            )
