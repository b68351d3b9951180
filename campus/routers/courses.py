from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from campus.core.security.auth import get_current_user
from campus.crud import courses as courses_crud
from campus.db.session import get_db
from campus.schemas.course import CourseCreate, CourseRead, CourseUpdate, LecturerAssignRequest

router = APIRouter(prefix="/courses", tags=["courses"])

@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    request: CourseCreate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return courses_crud.create_course(db, request.model_dump(), current_user["user"])

@router.get("", response_model=List[CourseRead])
def list_courses(
    department: Optional[str] = None,
    semester: Optional[str] = None,
    year: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return courses_crud.list_courses(db, current_user["user"], department, semester, year)

@router.get("/lecturer/{lecturer_id}", response_model=List[CourseRead])
def get_lecturer_courses(
    lecturer_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return courses_crud.list_lecturer_courses(db, lecturer_id, current_user["user"])

@router.get("/{course_id}", response_model=CourseRead)
def get_course(
    course_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return courses_crud.view_course(db, course_id, current_user["user"])

@router.put("/{course_id}", response_model=CourseRead)
def update_course(
    course_id: int,
    request: CourseUpdate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return courses_crud.update_course(db, course_id, request.model_dump(exclude_unset=True), current_user["user"])

@router.put("/{course_id}/lecturer", response_model=CourseRead)
def assign_lecturer(
    course_id: int,
    request: LecturerAssignRequest,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return courses_crud.assign_lecturer(db, course_id, request.lecturer_id, current_user["user"])

@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    courses_crud.remove_course(db, course_id, current_user["user"])
