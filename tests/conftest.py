"""
Pytest configuration and shared fixtures for the test suite.
Provides an in-memory database shared by every session a test opens, and a
seeded two-module course with quizzes.
"""
import os
import sys
import tempfile
from pathlib import Path

# Settings are read at import time: point them away from the real DB and ./logs first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="edu_api_logs_"))

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from edu_api.config import Base, build_engine  # noqa: E402
from edu_api.models.models import (  # noqa: E402
    Course,
    CourseLevel,
    CourseStatus,
    Enrollment,
    Module,
    Quiz,
    QuizOption,
)

USER_ID = "5b0c1c52-0d5e-4f7a-9d55-3f4d0d2f8a11"
OTHER_USER_ID = "a3f1e6b0-7c1d-4b8e-8f5a-2e9d7c6b5a40"


# ----- In-memory DB (one connection, visible to every session of the test) -----
@pytest.fixture
def in_memory_engine():
    """Create an in-memory SQLite engine with foreign keys on."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(in_memory_engine):
    return sessionmaker(bind=in_memory_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    """Session for seeding and for reading back committed state."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def course(db_session):
    """
    Course with modules [M1, M2].
    M1 carries a quiz with options A (correct), B, C; M2 carries a quiz with option X.
    """
    course = Course(
        id="course-water",
        title="Safe Water at Home",
        category="health",
        level=CourseLevel.BEGINNER,
        status=CourseStatus.ACTIVE,
    )
    m1 = Module(id="module-1", course_id=course.id, title="Sedimentation", order=1)
    m2 = Module(id="module-2", course_id=course.id, title="Filtration", order=2)
    quiz1 = Quiz(id="quiz-1", module_id=m1.id, question="Which step lets particles settle?", explanation="Let it sit.")
    quiz1.options = [
        QuizOption(id="option-a", option_text="Wait for particles to settle", is_correct=True, order=1),
        QuizOption(id="option-b", option_text="Shake the container", is_correct=False, order=2),
        QuizOption(id="option-c", option_text="Add sugar", is_correct=False, order=3),
    ]
    quiz2 = Quiz(id="quiz-2", module_id=m2.id, question="What does a cloth filter remove?")
    quiz2.options = [
        QuizOption(id="option-x", option_text="Visible dirt", is_correct=True, order=1),
    ]
    db_session.add_all([course, m1, m2, quiz1, quiz2])
    db_session.commit()
    return course


@pytest.fixture
def enrolled(db_session, course):
    """USER_ID enrolled in the seeded course with zero progress."""
    enrollment = Enrollment(id="enrollment-1", user_id=USER_ID, course_id=course.id, progress=0.0)
    db_session.add(enrollment)
    db_session.commit()
    return enrollment
