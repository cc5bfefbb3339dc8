"""
Quiz service: grades submitted attempts and answers quiz/attempt lookups.

Attempts are append-only. A submission is validated against the quiz's own
options before anything is written, so a rejected submission leaves no
attempt or response rows behind.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from sqlalchemy.orm import Session as DBSession, joinedload, selectinload

from edu_api.config import SessionLocal
from edu_api.errors import AttemptNotFound, InvalidOption, QuizNotFound
from edu_api.models.models import Quiz, QuizAttempt, QuizResponse
from edu_api.schemas.quiz_schemas import QuizAttemptDetail, QuizAttemptRecord, QuizRecord, SelectedOption
from edu_api.services.grading import DEFAULT_POLICY, GradingPolicy
from edu_api.services.unit_of_work import UnitOfWork
from edu_api.utils.common import new_id, unique_in_order, utcnow
from edu_api.utils.logger import configure_logging, log_request

logger = configure_logging()


def _attempt_record(attempt: QuizAttempt, selected_option_ids: list[str]) -> QuizAttemptRecord:
    return QuizAttemptRecord(
        id=attempt.id,
        user_id=attempt.user_id,
        quiz_id=attempt.quiz_id,
        score=attempt.score,
        is_correct=attempt.is_correct,
        selected_option_ids=selected_option_ids,
        attempted_at=attempt.attempted_at,
        created_at=attempt.created_at,
    )


class QuizService:
    def __init__(
        self,
        session_factory: Optional[Callable[[], DBSession]] = None,
        policy: GradingPolicy = DEFAULT_POLICY,
    ):
        self.session_factory = session_factory or SessionLocal
        self.policy = policy

    def grade_and_record(self, user_id: str, quiz_id: str, selected_option_ids: Iterable[str]) -> QuizAttemptRecord:
        """
        Grade a submission against the quiz's answer key and persist the attempt.

        Raises QuizNotFound for an unknown quiz and InvalidOption when the
        submission is empty or names an option of another quiz.
        """
        selected = unique_in_order(selected_option_ids)
        with log_request(logger, f"grade_attempt user={user_id} quiz={quiz_id}"), UnitOfWork(
            self.session_factory
        ) as uow:
            db = uow.session
            quiz = db.query(Quiz).options(selectinload(Quiz.options)).filter(Quiz.id == quiz_id).one_or_none()
            if quiz is None:
                raise QuizNotFound(quiz_id=quiz_id)
            if not selected:
                raise InvalidOption("No option selected", quiz_id=quiz_id)

            valid_ids = {o.id for o in quiz.options}
            foreign = [oid for oid in selected if oid not in valid_ids]
            if foreign:
                raise InvalidOption(quiz_id=quiz_id, option_ids=foreign)

            answer_key = {o.id for o in quiz.options if o.is_correct}
            grade = self.policy(frozenset(answer_key), frozenset(selected))

            now = utcnow()
            attempt = QuizAttempt(
                id=new_id(),
                user_id=user_id,
                quiz_id=quiz_id,
                score=grade.score,
                is_correct=grade.is_correct,
                attempted_at=now,
                created_at=now,
            )
            attempt.responses = [QuizResponse(id=new_id(), quiz_option_id=oid) for oid in selected]
            db.add(attempt)
            db.flush()

            logger.info(
                "quiz graded user=%s quiz=%s correct=%s score=%s selected=%s",
                user_id,
                quiz_id,
                grade.is_correct,
                grade.score,
                len(selected),
            )
            return _attempt_record(attempt, selected)

    def get_quiz(self, quiz_id: str) -> QuizRecord:
        with self.session_factory() as db:
            quiz = db.query(Quiz).options(selectinload(Quiz.options)).filter(Quiz.id == quiz_id).one_or_none()
            if quiz is None:
                raise QuizNotFound(quiz_id=quiz_id)
            return QuizRecord.model_validate(quiz)

    def list_module_quizzes(self, module_id: str) -> list[QuizRecord]:
        """All quizzes of a module, oldest first. A module may carry any number of quizzes."""
        with self.session_factory() as db:
            quizzes = (
                db.query(Quiz)
                .options(selectinload(Quiz.options))
                .filter(Quiz.module_id == module_id)
                .order_by(Quiz.created_at.asc())
                .all()
            )
            return [QuizRecord.model_validate(q) for q in quizzes]

    def list_attempts(self, user_id: str, quiz_id: str) -> list[QuizAttemptRecord]:
        with self.session_factory() as db:
            attempts = (
                db.query(QuizAttempt)
                .options(selectinload(QuizAttempt.responses))
                .filter(QuizAttempt.user_id == user_id, QuizAttempt.quiz_id == quiz_id)
                .order_by(QuizAttempt.attempted_at.desc())
                .all()
            )
            return [_attempt_record(a, [r.quiz_option_id for r in a.responses]) for a in attempts]

    def get_attempt(self, attempt_id: str) -> QuizAttemptDetail:
        with self.session_factory() as db:
            attempt = (
                db.query(QuizAttempt)
                .options(
                    joinedload(QuizAttempt.quiz),
                    selectinload(QuizAttempt.responses).joinedload(QuizResponse.quiz_option),
                )
                .filter(QuizAttempt.id == attempt_id)
                .one_or_none()
            )
            if attempt is None:
                raise AttemptNotFound(attempt_id=attempt_id)
            base = _attempt_record(attempt, [r.quiz_option_id for r in attempt.responses])
            return QuizAttemptDetail(
                **base.model_dump(),
                question=attempt.quiz.question,
                explanation=attempt.quiz.explanation,
                selected_options=[
                    SelectedOption(
                        id=r.quiz_option.id,
                        option_text=r.quiz_option.option_text,
                        is_correct=r.quiz_option.is_correct,
                    )
                    for r in attempt.responses
                ],
            )
