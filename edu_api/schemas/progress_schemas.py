"""
Course progress schemas (per-course progress card and user-wide stats).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CourseProgress(BaseModel):
    """Per-course learning state for one enrolled user."""
    course_id: str
    course_title: str
    progress: float
    completed_modules: int
    total_modules: int
    completed_at: Optional[datetime] = None


class UserStats(BaseModel):
    total_enrollments: int
    total_completions: int
    total_quiz_attempts: int
    average_quiz_score: float
