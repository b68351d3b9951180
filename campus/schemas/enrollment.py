from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from campus.models.enrollment import EnrollmentStatus
from campus.schemas.course import CourseSummary
from campus.schemas.user import UserSummary

class EnrollmentCreate(BaseModel):
    course_id: int
    student_id: Optional[int] = None
    status: Optional[EnrollmentStatus] = None

class EnrollmentStatusUpdate(BaseModel):
    status: EnrollmentStatus

class EnrollmentGradeUpdate(BaseModel):
    final_grade: float = Field(allow_inf_nan=False)

class EnrollmentRead(BaseModel):
    id: int
    student_id: int
    course_id: int
    status: EnrollmentStatus
    final_grade: Optional[float] = None
    letter_grade: Optional[str] = None
    enrolled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    dropped_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    student: UserSummary
    course: CourseSummary

    model_config = ConfigDict(from_attributes=True)

class EnrollmentStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    average_grade: Optional[float] = None
    course_id: Optional[int] = None
    max_students: Optional[int] = None
    enrolled_count: Optional[int] = None
    is_full: Optional[bool] = None
