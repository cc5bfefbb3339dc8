"""
Quiz and quiz attempt records.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from edu_api.models.models import QuizType


class QuizOptionRecord(BaseModel):
    """Option as shown to a learner: the answer key is never included."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    option_text: str
    order: int


class QuizRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    module_id: str
    question: str
    type: QuizType
    explanation: Optional[str] = None
    options: list[QuizOptionRecord] = []
    created_at: datetime
    updated_at: datetime


class QuizAttemptRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    quiz_id: str
    score: float
    is_correct: bool
    selected_option_ids: list[str] = []
    attempted_at: datetime
    created_at: datetime


class SelectedOption(BaseModel):
    id: str
    option_text: str
    is_correct: bool


class QuizAttemptDetail(QuizAttemptRecord):
    """Attempt with the quiz text and the options picked, correctness revealed."""
    question: str
    explanation: Optional[str] = None
    selected_options: list[SelectedOption] = []
