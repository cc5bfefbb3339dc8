"""
Module completion records.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ModuleCompletionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    module_id: str
    completed_at: datetime
    created_at: datetime
    updated_at: datetime


class CompletedModuleInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    course_id: str


class ModuleCompletionDetail(ModuleCompletionRecord):
    """Completion plus the module it refers to."""
    module: CompletedModuleInfo
