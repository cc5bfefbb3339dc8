"""
Error kinds raised by the core services.

Every failure is a subclass of CoreError tagged with one ErrorKind. The
status_code attribute is the suggestion handed to whatever HTTP layer sits on
top; the core itself never deals with transport.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    QUIZ_NOT_FOUND = "QUIZ_NOT_FOUND"
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    COMPLETION_NOT_FOUND = "COMPLETION_NOT_FOUND"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"
    ATTEMPT_NOT_FOUND = "ATTEMPT_NOT_FOUND"
    INVALID_OPTION = "INVALID_OPTION"
    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    NOT_ENROLLED = "NOT_ENROLLED"
    TRANSACTION_TIMEOUT = "TRANSACTION_TIMEOUT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class CoreError(Exception):
    kind: ErrorKind
    status_code: int = 500
    default_message: str = "Internal error"
    retryable: bool = False

    def __init__(self, message: str | None = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.kind.value, "message": self.message, "context": dict(self.context)}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(CoreError):
    status_code = 404


class ConflictError(CoreError):
    status_code = 409


class QuizNotFound(NotFoundError):
    kind = ErrorKind.QUIZ_NOT_FOUND
    default_message = "Quiz not found"


class ModuleNotFound(NotFoundError):
    kind = ErrorKind.MODULE_NOT_FOUND
    default_message = "Module not found"


class CourseNotFound(NotFoundError):
    kind = ErrorKind.COURSE_NOT_FOUND
    default_message = "Course not found"


class CompletionNotFound(NotFoundError):
    kind = ErrorKind.COMPLETION_NOT_FOUND
    default_message = "Module completion not found"


class EnrollmentNotFound(NotFoundError):
    kind = ErrorKind.ENROLLMENT_NOT_FOUND
    default_message = "Enrollment not found"


class AttemptNotFound(NotFoundError):
    kind = ErrorKind.ATTEMPT_NOT_FOUND
    default_message = "Quiz attempt not found"


class InvalidOption(CoreError):
    kind = ErrorKind.INVALID_OPTION
    status_code = 400
    default_message = "Selected option does not belong to the quiz"


class AlreadyCompleted(ConflictError):
    kind = ErrorKind.ALREADY_COMPLETED
    default_message = "Module already completed"


class AlreadyEnrolled(ConflictError):
    kind = ErrorKind.ALREADY_ENROLLED
    default_message = "Already enrolled in course"


class NotEnrolled(CoreError):
    kind = ErrorKind.NOT_ENROLLED
    status_code = 403
    default_message = "Not enrolled in the module's course"


class TransactionTimeout(CoreError):
    kind = ErrorKind.TRANSACTION_TIMEOUT
    default_message = "Transaction exceeded its time budget"
    retryable = True


class StoreUnavailable(CoreError):
    kind = ErrorKind.STORE_UNAVAILABLE
    default_message = "Database unavailable"
    retryable = True
