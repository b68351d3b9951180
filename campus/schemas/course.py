from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus.schemas.user import UserSummary

class CourseBase(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=20)
    description: str = ""
    credits: int = Field(ge=1, le=6)
    department: Optional[str] = Field(default=None, max_length=100)
    semester: Optional[str] = Field(default=None, max_length=50)
    year: Optional[int] = Field(default=None, ge=2020, le=2030)
    max_students: int = Field(default=30, ge=1, le=500)
    syllabus_url: Optional[str] = None
    is_active: bool = True

class CourseCreate(CourseBase):
    lecturer_id: int

class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    description: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=1, le=6)
    department: Optional[str] = Field(default=None, max_length=100)
    semester: Optional[str] = Field(default=None, max_length=50)
    year: Optional[int] = Field(default=None, ge=2020, le=2030)
    max_students: Optional[int] = Field(default=None, ge=1, le=500)
    syllabus_url: Optional[str] = None
    is_active: Optional[bool] = None

class LecturerAssignRequest(BaseModel):
    lecturer_id: int

class CourseSummary(BaseModel):
    id: int
    code: str
    title: str
    credits: int
    is_active: bool
    lecturer: UserSummary

    model_config = ConfigDict(from_attributes=True)

class CourseRead(CourseBase):
    id: int
    lecturer_id: int
    lecturer: UserSummary
    enrolled_count: int
    is_full: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
