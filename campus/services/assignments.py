"""
Assignment and submission workflow.

A student submits at most once per assignment, and only while holding an
ENROLLED enrollment in the assignment's course. Late submissions are
accepted when the assignment allows them; the late penalty is applied when
the submission is graded, not when it is stored.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from campus.core.permissions import authorize, is_lecturer, is_student
from campus.crud.courses import get_course
from campus.models.assignment import Assignment
from campus.models.course import Course
from campus.models.enrollment import Enrollment, EnrollmentStatus
from campus.models.submission import Submission
from campus.models.user import User
from campus.services.grading import apply_late_penalty, validate_points
from campus.utils.helpers import ensure_utc, get_utc_now

logger = logging.getLogger(__name__)

MIN_POINTS = 1
MAX_POINTS = 1000

DATE_FIELDS = ("due_date", "available_from", "available_until")


def _validate_assignment_fields(values: dict) -> None:
    max_points = values.get("max_points")
    if max_points is not None and not MIN_POINTS <= max_points <= MAX_POINTS:
        raise ValidationError(f"max_points must be between {MIN_POINTS} and {MAX_POINTS}")

    penalty = values.get("late_penalty_percentage")
    if penalty is not None and not 0 <= penalty <= 100:
        raise ValidationError("late_penalty_percentage must be between 0 and 100")

    opens, closes = values.get("available_from"), values.get("available_until")
    if opens and closes and opens > closes:
        raise ValidationError("available_from must not be after available_until")

def _normalise_dates(data: dict) -> dict:
    for key in DATE_FIELDS:
        if data.get(key) is not None:
            data[key] = ensure_utc(data[key])
    return data

def is_enrolled(db: Session, student_id: int, course_id: int) -> bool:
    return db.query(Enrollment).filter(
        Enrollment.student_id == student_id,
        Enrollment.course_id == course_id,
        Enrollment.status == EnrollmentStatus.ENROLLED,
    ).first() is not None

def _get_assignment(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment

def create_assignment(db: Session, data: dict, actor: User) -> Assignment:
    course = get_course(db, data["course_id"])
    authorize("assignment:create", actor, course,
              "You can only create assignments for your own courses")

    data = _normalise_dates(dict(data))
    _validate_assignment_fields(data)

    assignment = Assignment(**data, created_by_id=actor.id)
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    logger.info("Assignment %s created for course %s by %s", assignment.id, course.id, actor.id)
    return assignment

def update_assignment(db: Session, assignment_id: int, data: dict, actor: User) -> Assignment:
    assignment = _get_assignment(db, assignment_id)
    authorize("assignment:update", actor, assignment, "You can only update assignments you created")

    data = _normalise_dates({k: v for k, v in data.items() if v is not None})
    merged = {
        "max_points": assignment.max_points,
        "late_penalty_percentage": assignment.late_penalty_percentage,
        "available_from": ensure_utc(assignment.available_from),
        "available_until": ensure_utc(assignment.available_until),
        **data,
    }
    _validate_assignment_fields(merged)

    for key, value in data.items():
        setattr(assignment, key, value)
    db.commit()
    db.refresh(assignment)
    return assignment

def remove_assignment(db: Session, assignment_id: int, actor: User) -> None:
    assignment = _get_assignment(db, assignment_id)
    authorize("assignment:remove", actor, assignment, "You can only delete assignments you created")
    db.delete(assignment)
    db.commit()
    logger.info("Assignment %s removed by %s", assignment_id, actor.id)

def list_assignments(db: Session, actor: User, course_id: Optional[int] = None):
    query = db.query(Assignment)
    if is_student(actor):
        enrolled_courses = db.query(Enrollment.course_id).filter(
            Enrollment.student_id == actor.id,
            Enrollment.status == EnrollmentStatus.ENROLLED,
        )
        query = query.filter(Assignment.course_id.in_(enrolled_courses))
    elif is_lecturer(actor):
        own_courses = db.query(Course.id).filter(Course.lecturer_id == actor.id)
        query = query.filter(Assignment.course_id.in_(own_courses))

    if course_id is not None:
        query = query.filter(Assignment.course_id == course_id)
    return query.order_by(Assignment.due_date, Assignment.id).all()

def get_assignment(db: Session, assignment_id: int, actor: User) -> Assignment:
    assignment = _get_assignment(db, assignment_id)
    if is_student(actor) and not is_enrolled(db, actor.id, assignment.course_id):
        raise ForbiddenError("You are not enrolled in this course")
    if is_lecturer(actor) and assignment.course.lecturer_id != actor.id:
        raise ForbiddenError("You can only view assignments for your own courses")
    return assignment

def submit_assignment(db: Session, assignment_id: int, actor: User, submission_path: str,
                      notes: Optional[str] = None) -> Submission:
    assignment = _get_assignment(db, assignment_id)
    if not is_student(actor):
        raise ForbiddenError("Only students can submit assignments")
    if not is_enrolled(db, actor.id, assignment.course_id):
        raise ForbiddenError("You are not enrolled in this course")

    now = get_utc_now()
    available_from = ensure_utc(assignment.available_from)
    if not assignment.is_active:
        raise InvalidStateError("Assignment is not active")
    if available_from and now < available_from:
        raise InvalidStateError("Assignment is not yet available")

    is_late = assignment.is_overdue(now)
    if is_late:
        available_until = ensure_utc(assignment.available_until)
        if not assignment.can_submit_late or (available_until and now > available_until):
            raise InvalidStateError("Assignment is past due")

    existing = db.query(Submission).filter(
        Submission.assignment_id == assignment.id,
        Submission.student_id == actor.id,
    ).first()
    if existing:
        raise ConflictError("You have already submitted this assignment")

    submission = Submission(
        assignment_id=assignment.id,
        student_id=actor.id,
        submission_path=submission_path,
        notes=notes,
        is_late=is_late,
    )
    db.add(submission)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already submitted this assignment")
    db.refresh(submission)
    logger.info("Submission %s for assignment %s by student %s%s",
                submission.id, assignment.id, actor.id, " (late)" if is_late else "")
    return submission

def grade_submission(db: Session, assignment_id: int, submission_id: int, points: float,
                     actor: User, feedback: Optional[str] = None) -> Submission:
    assignment = _get_assignment(db, assignment_id)
    authorize("assignment:grade", actor, assignment, "You can only grade assignments you created")

    submission = db.query(Submission).filter(
        Submission.id == submission_id,
        Submission.assignment_id == assignment.id,
    ).first()
    if not submission:
        raise NotFoundError("Submission not found")

    validate_points(points, assignment.max_points)

    submission.points = points
    submission.final_points = apply_late_penalty(
        points, assignment.late_penalty_percentage, submission.is_late
    )
    submission.feedback = feedback
    submission.graded_by_id = actor.id
    submission.graded_at = get_utc_now()
    db.commit()
    db.refresh(submission)
    logger.info("Submission %s graded %s/%s by %s",
                submission.id, submission.final_points, assignment.max_points, actor.id)
    return submission

def get_submissions(db: Session, assignment_id: int, actor: User):
    assignment = _get_assignment(db, assignment_id)
    authorize("assignment:view_submissions", actor, assignment,
              "You can only view submissions for assignments you created")
    return (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment.id)
        .order_by(Submission.created_at.desc(), Submission.id.desc())
        .all()
    )

def get_student_submission(db: Session, assignment_id: int, actor: User,
                           student_id: Optional[int] = None) -> Submission:
    assignment = _get_assignment(db, assignment_id)
    if is_student(actor):
        if student_id is not None and student_id != actor.id:
            raise ForbiddenError("You can only view your own submissions")
        student_id = actor.id
    else:
        authorize("assignment:view_submissions", actor, assignment,
                  "You can only view submissions for assignments you created")
        if student_id is None:
            raise ValidationError("student_id is required")

    submission = db.query(Submission).filter(
        Submission.assignment_id == assignment.id,
        Submission.student_id == student_id,
    ).first()
    if not submission:
        raise NotFoundError("Submission not found")
    return submission
