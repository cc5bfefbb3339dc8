from edu_api.schemas.completion_schemas import (
    CompletedModuleInfo,
    ModuleCompletionDetail,
    ModuleCompletionRecord,
)
from edu_api.schemas.enrollment_schemas import EnrollmentRecord
from edu_api.schemas.progress_schemas import CourseProgress, UserStats
from edu_api.schemas.quiz_schemas import (
    QuizAttemptDetail,
    QuizAttemptRecord,
    QuizOptionRecord,
    QuizRecord,
    SelectedOption,
)

__all__ = [
    "CompletedModuleInfo",
    "CourseProgress",
    "EnrollmentRecord",
    "ModuleCompletionDetail",
    "ModuleCompletionRecord",
    "QuizAttemptDetail",
    "QuizAttemptRecord",
    "QuizOptionRecord",
    "QuizRecord",
    "SelectedOption",
    "UserStats",
]
