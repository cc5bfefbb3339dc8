"""
Integration tests for the progress recalculator and the read-side summaries.
"""
from datetime import datetime, timezone

import pytest

from edu_api.errors import EnrollmentNotFound
from edu_api.models.models import Course, Enrollment, Module, ModuleCompletion
from edu_api.services.progress_service import CompletedAtPolicy, ProgressRecalculator
from edu_api.services.unit_of_work import UnitOfWork

from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.mark.integration
class TestProgressRecalculator:
    def test_counts_rows_written_elsewhere(self, session_factory, db_session, enrolled, store):
        # A completion committed by another writer is picked up by the next recount.
        db_session.add(ModuleCompletion(id="direct-1", user_id=USER_ID, module_id="module-2"))
        db_session.commit()

        with UnitOfWork(session_factory) as uow:
            result = ProgressRecalculator().recompute(uow.session, USER_ID, "course-water")
        assert result.completed_modules == 1
        assert result.total_modules == 2
        assert result.progress == 0.5
        assert store.enrollment(USER_ID, "course-water").progress == 0.5

    def test_missing_enrollment(self, session_factory, course):
        with pytest.raises(EnrollmentNotFound):
            with UnitOfWork(session_factory) as uow:
                ProgressRecalculator().recompute(uow.session, OTHER_USER_ID, "course-water")

    def test_zero_modules(self, session_factory, db_session):
        db_session.add(Course(id="course-empty", title="Empty", category="health"))
        db_session.add(Enrollment(id="enrollment-empty", user_id=USER_ID, course_id="course-empty"))
        db_session.commit()

        with UnitOfWork(session_factory) as uow:
            result = ProgressRecalculator().recompute(uow.session, USER_ID, "course-empty")
        assert result.progress == 0.0
        assert result.completed_at is None

    def test_derive_keeps_existing_timestamp(self, session_factory, db_session, enrolled, store):
        stamped = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
        db_session.add_all(
            [
                ModuleCompletion(id="c-1", user_id=USER_ID, module_id="module-1"),
                ModuleCompletion(id="c-2", user_id=USER_ID, module_id="module-2"),
            ]
        )
        enrolled.completed_at = stamped
        enrolled.progress = 1.0
        db_session.commit()

        with UnitOfWork(session_factory) as uow:
            result = ProgressRecalculator().recompute(
                uow.session, USER_ID, "course-water", policy=CompletedAtPolicy.DERIVE
            )
        assert result.progress == 1.0
        assert result.completed_at.replace(tzinfo=None) == stamped.replace(tzinfo=None)

    def test_clear_policy_ignores_fraction(self, session_factory, db_session, enrolled):
        db_session.add_all(
            [
                ModuleCompletion(id="c-1", user_id=USER_ID, module_id="module-1"),
                ModuleCompletion(id="c-2", user_id=USER_ID, module_id="module-2"),
            ]
        )
        db_session.commit()

        with UnitOfWork(session_factory) as uow:
            result = ProgressRecalculator().recompute(
                uow.session, USER_ID, "course-water", policy=CompletedAtPolicy.CLEAR
            )
        assert result.progress == 1.0
        assert result.completed_at is None

    def test_module_added_after_completion(self, session_factory, completion_service, db_session, enrolled, store):
        completion_service.complete_module(USER_ID, "module-1")
        completion_service.complete_module(USER_ID, "module-2")
        db_session.add(Module(id="module-3", course_id="course-water", title="Storage", order=3))
        db_session.commit()

        completion_service.complete_module(USER_ID, "module-3")
        enrollment = store.enrollment(USER_ID, "course-water")
        assert enrollment.progress == 1.0
        assert enrollment.completed_at is not None


@pytest.mark.integration
class TestProgressSummaries:
    def test_course_progress(self, progress_service, completion_service, enrolled):
        completion_service.complete_module(USER_ID, "module-1")
        summary = progress_service.course_progress(USER_ID, "course-water")
        assert summary.course_title == "Safe Water at Home"
        assert summary.progress == 0.5
        assert summary.completed_modules == 1
        assert summary.total_modules == 2
        assert summary.completed_at is None

    def test_course_progress_not_enrolled(self, progress_service, course):
        with pytest.raises(EnrollmentNotFound):
            progress_service.course_progress(OTHER_USER_ID, "course-water")

    def test_user_progress_across_courses(
        self, progress_service, completion_service, enrollment_service, enrolled, db_session
    ):
        other = Course(id="course-other", title="Storage", category="health")
        other.modules = [Module(id="storage-1", title="Containers", order=1)]
        db_session.add(other)
        db_session.commit()
        enrollment_service.enroll(USER_ID, "course-other")
        completion_service.complete_module(USER_ID, "storage-1")

        by_course = {p.course_id: p for p in progress_service.user_progress(USER_ID)}
        assert set(by_course) == {"course-water", "course-other"}
        assert by_course["course-other"].progress == 1.0
        assert by_course["course-other"].completed_modules == 1
        assert by_course["course-other"].completed_at is not None
        assert by_course["course-water"].completed_modules == 0
        assert by_course["course-water"].total_modules == 2

    def test_user_progress_empty(self, progress_service, course):
        assert progress_service.user_progress(OTHER_USER_ID) == []

    def test_user_stats(self, progress_service, completion_service, quiz_service, enrolled):
        completion_service.complete_module(USER_ID, "module-1")
        quiz_service.grade_and_record(USER_ID, "quiz-1", ["option-a"])
        quiz_service.grade_and_record(USER_ID, "quiz-1", ["option-b"])
        quiz_service.grade_and_record(USER_ID, "quiz-2", ["option-x"])

        stats = progress_service.user_stats(USER_ID)
        assert stats.total_enrollments == 1
        assert stats.total_completions == 1
        assert stats.total_quiz_attempts == 3
        assert stats.average_quiz_score == 0.67

    def test_user_stats_without_activity(self, progress_service, course):
        stats = progress_service.user_stats(OTHER_USER_ID)
        assert stats.total_enrollments == 0
        assert stats.total_quiz_attempts == 0
        assert stats.average_quiz_score == 0.0
