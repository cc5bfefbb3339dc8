from edu_api.config import Base
from edu_api.utils.common import utcnow
from enum import Enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Text,
    Boolean,
    Float,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import backref, relationship


class CourseStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"


class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class QuizType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"


class Course(Base):
    __tablename__ = "courses"
    id = Column(String, primary_key=True, index=True)  # uuid
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    category = Column(String, nullable=False)
    level = Column(SQLEnum(CourseLevel), nullable=False, default=CourseLevel.BEGINNER)
    status = Column(SQLEnum(CourseStatus), nullable=False, default=CourseStatus.DRAFT)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    modules = relationship(
        "Module",
        backref="course",
        cascade="all, delete-orphan",
        order_by="Module.order",
    )


class Module(Base):
    __tablename__ = "modules"
    id = Column(String, primary_key=True, index=True)  # uuid
    course_id = Column(String, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=True)
    video_url = Column(String, nullable=True)
    order = Column(Integer, nullable=False, default=0)  # not unique within a course
    duration = Column(Integer, nullable=True)  # minutes
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    quizzes = relationship("Quiz", backref="module", cascade="all, delete-orphan", order_by="Quiz.created_at")
    completions = relationship("ModuleCompletion", back_populates="module", cascade="all, delete-orphan")


class Quiz(Base):
    __tablename__ = "quizzes"
    id = Column(String, primary_key=True, index=True)  # uuid
    module_id = Column(String, ForeignKey("modules.id", ondelete="CASCADE"), index=True, nullable=False)
    question = Column(Text, nullable=False)
    type = Column(SQLEnum(QuizType), nullable=False, default=QuizType.MULTIPLE_CHOICE)
    explanation = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    options = relationship(
        "QuizOption",
        backref="quiz",
        cascade="all, delete-orphan",
        order_by="QuizOption.order",
    )
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")


class QuizOption(Base):
    __tablename__ = "quiz_options"
    id = Column(String, primary_key=True, index=True)  # uuid
    quiz_id = Column(String, ForeignKey("quizzes.id", ondelete="CASCADE"), index=True, nullable=False)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    order = Column(Integer, default=0, nullable=False)


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(String, index=True, nullable=False)
    course_id = Column(String, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    enrolled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    progress = Column(Float, default=0.0, nullable=False)  # fraction in [0, 1]
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    course = relationship(
        "Course",
        backref=backref("enrollments", cascade="all, delete-orphan"),
        foreign_keys=[course_id],
    )


class ModuleCompletion(Base):
    __tablename__ = "module_completions"
    __table_args__ = (UniqueConstraint("user_id", "module_id", name="uq_completion_user_module"),)

    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(String, index=True, nullable=False)
    module_id = Column(String, ForeignKey("modules.id", ondelete="CASCADE"), index=True, nullable=False)
    completed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    module = relationship("Module", back_populates="completions")


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(String, index=True, nullable=False)
    quiz_id = Column(String, ForeignKey("quizzes.id", ondelete="CASCADE"), index=True, nullable=False)
    score = Column(Float, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    attempted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    quiz = relationship("Quiz", back_populates="attempts")
    responses = relationship("QuizResponse", backref="attempt", cascade="all, delete-orphan")


class QuizResponse(Base):
    __tablename__ = "quiz_responses"
    id = Column(String, primary_key=True, index=True)  # uuid
    attempt_id = Column(String, ForeignKey("quiz_attempts.id", ondelete="CASCADE"), index=True, nullable=False)
    quiz_option_id = Column(String, ForeignKey("quiz_options.id", ondelete="CASCADE"), index=True, nullable=False)

    quiz_option = relationship("QuizOption", foreign_keys=[quiz_option_id])
