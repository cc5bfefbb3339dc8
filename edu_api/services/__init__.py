from edu_api.services.completion_service import CompletionService
from edu_api.services.enrollment_service import EnrollmentService
from edu_api.services.grading import Grade, binary_grade, partial_credit_grade
from edu_api.services.progress_service import CompletedAtPolicy, ProgressRecalculator, ProgressResult, ProgressService
from edu_api.services.quiz_service import QuizService
from edu_api.services.unit_of_work import UnitOfWork

__all__ = [
    "CompletedAtPolicy",
    "CompletionService",
    "EnrollmentService",
    "Grade",
    "ProgressRecalculator",
    "ProgressResult",
    "ProgressService",
    "QuizService",
    "UnitOfWork",
    "binary_grade",
    "partial_credit_grade",
]
