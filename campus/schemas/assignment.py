from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus.models.assignment import AssignmentType
from campus.schemas.user import UserSummary

class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    instructions: Optional[str] = None
    max_points: int
    due_date: datetime
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    type: AssignmentType = AssignmentType.ASSIGNMENT
    is_active: bool = True
    allow_late_submission: bool = False
    late_penalty_percentage: int = 0
    attachment_url: Optional[str] = None
    rubric: Optional[str] = None
    course_id: int

class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    instructions: Optional[str] = None
    max_points: Optional[int] = None
    due_date: Optional[datetime] = None
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    type: Optional[AssignmentType] = None
    is_active: Optional[bool] = None
    allow_late_submission: Optional[bool] = None
    late_penalty_percentage: Optional[int] = None
    attachment_url: Optional[str] = None
    rubric: Optional[str] = None

class AssignmentRead(BaseModel):
    id: int
    title: str
    description: str
    instructions: Optional[str] = None
    max_points: int
    due_date: datetime
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    type: AssignmentType
    is_active: bool
    allow_late_submission: bool
    late_penalty_percentage: int
    attachment_url: Optional[str] = None
    rubric: Optional[str] = None
    course_id: int
    created_by_id: int
    created_at: Optional[datetime] = None
    is_overdue: bool = Field(validation_alias="overdue")
    is_available: bool = Field(validation_alias="available")

    model_config = ConfigDict(from_attributes=True)

class SubmitRequest(BaseModel):
    submission_path: str = Field(min_length=1, max_length=500)
    notes: Optional[str] = None

class GradeRequest(BaseModel):
    points: float = Field(allow_inf_nan=False)
    feedback: Optional[str] = None

class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    submission_path: str
    notes: Optional[str] = None
    is_late: bool
    points: Optional[float] = None
    final_points: Optional[float] = None
    feedback: Optional[str] = None
    graded_by_id: Optional[int] = None
    graded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    student: UserSummary

    model_config = ConfigDict(from_attributes=True)
