from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from campus.core.security.auth import get_current_user
from campus.db.session import get_db
from campus.models.enrollment import EnrollmentStatus
from campus.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentGradeUpdate,
    EnrollmentRead,
    EnrollmentStats,
    EnrollmentStatusUpdate,
)
from campus.services import enrollments as enrollment_service

router = APIRouter(prefix="/enrollments", tags=["enrollments"])

@router.post("", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
def create_enrollment(
    request: EnrollmentCreate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.create_enrollment(
        db,
        request.course_id,
        current_user["user"],
        student_id=request.student_id,
        status=request.status,
    )

@router.get("", response_model=List[EnrollmentRead])
def list_enrollments(
    course_id: Optional[int] = None,
    status: Optional[EnrollmentStatus] = None,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.list_enrollments(db, current_user["user"], course_id, status)

@router.get("/stats", response_model=EnrollmentStats)
def get_enrollment_stats(
    course_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.enrollment_stats(db, current_user["user"], course_id)

@router.get("/student/{student_id}", response_model=List[EnrollmentRead])
def get_student_enrollments(
    student_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.list_student_enrollments(db, student_id, current_user["user"])

@router.get("/course/{course_id}", response_model=List[EnrollmentRead])
def get_course_enrollments(
    course_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.list_course_enrollments(db, course_id, current_user["user"])

@router.get("/{enrollment_id}", response_model=EnrollmentRead)
def get_enrollment(
    enrollment_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.view_enrollment(db, enrollment_id, current_user["user"])

@router.put("/{enrollment_id}/status", response_model=EnrollmentRead)
def update_enrollment_status(
    enrollment_id: int,
    request: EnrollmentStatusUpdate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.update_enrollment_status(db, enrollment_id, request.status, current_user["user"])

@router.put("/{enrollment_id}/grade", response_model=EnrollmentRead)
def update_enrollment_grade(
    enrollment_id: int,
    request: EnrollmentGradeUpdate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return enrollment_service.update_enrollment_grade(db, enrollment_id, request.final_grade, current_user["user"])

@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_enrollment(
    enrollment_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    enrollment_service.remove_enrollment(db, enrollment_id, current_user["user"])
