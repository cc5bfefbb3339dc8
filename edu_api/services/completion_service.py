"""
Module completion service.

complete_module / remove_completion each run as a single unit of work: the
completion row change and the enrollment progress recount commit together or
not at all. The (user_id, module_id) unique constraint decides concurrent
duplicates; the losing insert is reported as AlreadyCompleted.
"""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession, joinedload

from edu_api.config import SessionLocal, settings
from edu_api.errors import AlreadyCompleted, CompletionNotFound, ModuleNotFound, NotEnrolled
from edu_api.models.models import Module, ModuleCompletion
from edu_api.schemas.completion_schemas import ModuleCompletionDetail, ModuleCompletionRecord
from edu_api.services.progress_service import CompletedAtPolicy, ProgressRecalculator, lock_enrollment
from edu_api.services.unit_of_work import UnitOfWork
from edu_api.utils.common import new_id, utcnow
from edu_api.utils.logger import configure_logging, log_request

logger = configure_logging()


def _removal_policy() -> CompletedAtPolicy:
    if settings.completed_at_on_removal == "derive":
        return CompletedAtPolicy.DERIVE
    return CompletedAtPolicy.CLEAR


class CompletionService:
    """Marks modules complete / not complete and keeps enrollment progress in step."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], DBSession]] = None,
        recalculator: Optional[ProgressRecalculator] = None,
        removal_policy: Optional[CompletedAtPolicy] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.recalculator = recalculator or ProgressRecalculator()
        self.removal_policy = removal_policy or _removal_policy()

    def _find(self, db: DBSession, user_id: str, module_id: str) -> Optional[ModuleCompletion]:
        return (
            db.query(ModuleCompletion)
            .filter(ModuleCompletion.user_id == user_id, ModuleCompletion.module_id == module_id)
            .first()
        )

    def complete_module(self, user_id: str, module_id: str) -> ModuleCompletionRecord:
        """
        Record that the user finished the module and recount course progress.

        Raises AlreadyCompleted, ModuleNotFound or NotEnrolled; nothing is
        written in any of those cases.
        """
        with log_request(logger, f"complete_module user={user_id} module={module_id}"), UnitOfWork(
            self.session_factory
        ) as uow:
            db = uow.session
            if self._find(db, user_id, module_id) is not None:
                raise AlreadyCompleted(user_id=user_id, module_id=module_id)

            module = db.get(Module, module_id)
            if module is None:
                raise ModuleNotFound(module_id=module_id)

            if lock_enrollment(db, user_id, module.course_id) is None:
                raise NotEnrolled(user_id=user_id, course_id=module.course_id)

            now = utcnow()
            completion = ModuleCompletion(
                id=new_id(),
                user_id=user_id,
                module_id=module_id,
                completed_at=now,
                created_at=now,
                updated_at=now,
            )
            db.add(completion)
            try:
                db.flush()
            except IntegrityError as exc:
                # A concurrent request for the same pair committed first.
                raise AlreadyCompleted(user_id=user_id, module_id=module_id) from exc

            result = self.recalculator.recompute(db, user_id, module.course_id)
            logger.info(
                "module completed user=%s module=%s course=%s progress=%.4f",
                user_id,
                module_id,
                module.course_id,
                result.progress,
            )
            return ModuleCompletionRecord.model_validate(completion)

    def remove_completion(self, completion_id: str) -> None:
        """Undo a completion and recount progress for the owning enrollment."""
        with log_request(logger, f"remove_completion id={completion_id}"), UnitOfWork(self.session_factory) as uow:
            db = uow.session
            completion = (
                db.query(ModuleCompletion)
                .options(joinedload(ModuleCompletion.module))
                .filter(ModuleCompletion.id == completion_id)
                .one_or_none()
            )
            if completion is None:
                raise CompletionNotFound(completion_id=completion_id)

            user_id = completion.user_id
            course_id = completion.module.course_id
            db.delete(completion)
            db.flush()

            result = self.recalculator.recompute(db, user_id, course_id, policy=self.removal_policy)
            logger.info(
                "completion removed id=%s user=%s course=%s progress=%.4f",
                completion_id,
                user_id,
                course_id,
                result.progress,
            )

    def get_completion(self, completion_id: str) -> ModuleCompletionDetail:
        with self.session_factory() as db:
            completion = (
                db.query(ModuleCompletion)
                .options(joinedload(ModuleCompletion.module))
                .filter(ModuleCompletion.id == completion_id)
                .one_or_none()
            )
            if completion is None:
                raise CompletionNotFound(completion_id=completion_id)
            return ModuleCompletionDetail.model_validate(completion)

    def find_completion(self, user_id: str, module_id: str) -> Optional[ModuleCompletionRecord]:
        with self.session_factory() as db:
            completion = self._find(db, user_id, module_id)
            return ModuleCompletionRecord.model_validate(completion) if completion else None

    def list_completions(
        self,
        user_id: Optional[str] = None,
        module_id: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> list[ModuleCompletionRecord]:
        """List completions, newest first, optionally filtered by user, module or course."""
        with self.session_factory() as db:
            q = db.query(ModuleCompletion)
            if user_id:
                q = q.filter(ModuleCompletion.user_id == user_id)
            if module_id:
                q = q.filter(ModuleCompletion.module_id == module_id)
            if course_id:
                q = q.join(Module, ModuleCompletion.module_id == Module.id).filter(Module.course_id == course_id)
            rows = q.order_by(ModuleCompletion.completed_at.desc()).all()
            return [ModuleCompletionRecord.model_validate(c) for c in rows]
