"""
Enrollment records.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EnrollmentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    enrolled_at: datetime
    progress: float
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
