from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from campus.core.security.auth import get_current_user
from campus.db.session import get_db
from campus.schemas.assignment import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentUpdate,
    GradeRequest,
    SubmissionRead,
    SubmitRequest,
)
from campus.services import assignments as assignment_service

router = APIRouter(prefix="/assignments", tags=["assignments"])

@router.post("", response_model=AssignmentRead, status_code=status.HTTP_201_CREATED)
def create_assignment(
    request: AssignmentCreate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.create_assignment(db, request.model_dump(), current_user["user"])

@router.get("", response_model=List[AssignmentRead])
def list_assignments(
    course_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.list_assignments(db, current_user["user"], course_id)

@router.get("/{assignment_id}", response_model=AssignmentRead)
def get_assignment(
    assignment_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.get_assignment(db, assignment_id, current_user["user"])

@router.put("/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: int,
    request: AssignmentUpdate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.update_assignment(
        db, assignment_id, request.model_dump(exclude_unset=True), current_user["user"]
    )

@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    assignment_service.remove_assignment(db, assignment_id, current_user["user"])

@router.post("/{assignment_id}/submit", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
def submit_assignment(
    assignment_id: int,
    request: SubmitRequest,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.submit_assignment(
        db, assignment_id, current_user["user"], request.submission_path, request.notes
    )

@router.get("/{assignment_id}/submissions", response_model=List[SubmissionRead])
def get_submissions(
    assignment_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.get_submissions(db, assignment_id, current_user["user"])

@router.get("/{assignment_id}/my-submission", response_model=SubmissionRead)
def get_my_submission(
    assignment_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.get_student_submission(db, assignment_id, current_user["user"])

@router.get("/{assignment_id}/submissions/student/{student_id}", response_model=SubmissionRead)
def get_student_submission(
    assignment_id: int,
    student_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.get_student_submission(db, assignment_id, current_user["user"], student_id)

@router.put("/{assignment_id}/submissions/{submission_id}/grade", response_model=SubmissionRead)
def grade_submission(
    assignment_id: int,
    submission_id: int,
    request: GradeRequest,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return assignment_service.grade_submission(
        db, assignment_id, submission_id, request.points, current_user["user"], request.feedback
    )
