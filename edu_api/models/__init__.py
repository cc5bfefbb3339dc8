"""
Data models. Single import surface for DB entities.

DB entities (edu_api.models.models):
- Course, Module, Quiz, QuizOption, Enrollment, ModuleCompletion, QuizAttempt, QuizResponse
- CourseStatus, CourseLevel, QuizType
"""

from edu_api.models.models import (
    Course,
    CourseLevel,
    CourseStatus,
    Enrollment,
    Module,
    ModuleCompletion,
    Quiz,
    QuizAttempt,
    QuizOption,
    QuizResponse,
    QuizType,
)

__all__ = [
    "Course",
    "CourseLevel",
    "CourseStatus",
    "Enrollment",
    "Module",
    "ModuleCompletion",
    "Quiz",
    "QuizAttempt",
    "QuizOption",
    "QuizResponse",
    "QuizType",
]
