"""
Integration test fixtures. Services bound to the in-memory DB, plus helpers
that read committed state through a fresh session.
"""
import pytest
from sqlalchemy.orm import sessionmaker

from edu_api.config import Base, build_engine
from edu_api.models.models import Course, Enrollment, Module, ModuleCompletion, QuizAttempt, QuizResponse
from edu_api.services.completion_service import CompletionService
from edu_api.services.enrollment_service import EnrollmentService
from edu_api.services.progress_service import CompletedAtPolicy, ProgressService
from edu_api.services.quiz_service import QuizService

from tests.conftest import USER_ID


@pytest.fixture
def completion_service(session_factory):
    return CompletionService(session_factory, removal_policy=CompletedAtPolicy.CLEAR)


@pytest.fixture
def enrollment_service(session_factory):
    return EnrollmentService(session_factory)


@pytest.fixture
def quiz_service(session_factory):
    return QuizService(session_factory)


@pytest.fixture
def progress_service(session_factory):
    return ProgressService(session_factory)


class Store:
    """Reads committed rows back through a new session each call."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def enrollment(self, user_id, course_id):
        with self.session_factory() as db:
            return (
                db.query(Enrollment)
                .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
                .one_or_none()
            )

    def count(self, model, **filters):
        with self.session_factory() as db:
            return db.query(model).filter_by(**filters).count()

    def completions(self, **filters):
        return self.count(ModuleCompletion, **filters)

    def attempts(self, **filters):
        return self.count(QuizAttempt, **filters)

    def responses(self):
        return self.count(QuizResponse)


@pytest.fixture
def store(session_factory):
    return Store(session_factory)


# ----- File-backed DB: every thread gets its own connection and real locking -----
@pytest.fixture
def file_session_factory(tmp_path):
    """Four-module course on a SQLite file with USER_ID enrolled."""
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with factory() as db:
        course = Course(id="course-race", title="Four at once", category="health")
        course.modules = [Module(id=f"race-{i}", title=f"Step {i}", order=i) for i in range(4)]
        db.add(course)
        db.add(Enrollment(id="enrollment-race", user_id=USER_ID, course_id="course-race"))
        db.commit()
    yield factory
    engine.dispose()


@pytest.fixture
def file_store(file_session_factory):
    return Store(file_session_factory)
