"""
Enrollment workflow.

An enrollment links one student to one course. The pair is unique for the
lifetime of the row (database constraint). Seats are counted from ENROLLED
rows only, and every check that depends on the seat count runs while the
course row is locked so two requests cannot both take the last seat.

Status changes follow a forward-only state machine::

    PENDING  -> ENROLLED | DROPPED
    ENROLLED -> COMPLETED | DROPPED
    DROPPED  -> PENDING            (re-enrollment)
    COMPLETED is terminal
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus.core.exceptions import (
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from campus.core.permissions import authorize, is_admin, is_lecturer, is_student
from campus.crud.courses import count_enrolled, get_course
from campus.models.course import Course
from campus.models.enrollment import Enrollment, EnrollmentStatus
from campus.models.user import User, RoleType
from campus.services.grading import letter_grade, validate_final_grade
from campus.utils.helpers import get_utc_now

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    EnrollmentStatus.PENDING: {EnrollmentStatus.ENROLLED, EnrollmentStatus.DROPPED},
    EnrollmentStatus.ENROLLED: {EnrollmentStatus.COMPLETED, EnrollmentStatus.DROPPED},
    EnrollmentStatus.DROPPED: {EnrollmentStatus.PENDING},
    EnrollmentStatus.COMPLETED: set(),
}

INITIAL_STATUSES = {EnrollmentStatus.PENDING, EnrollmentStatus.ENROLLED}
GRADEABLE_STATUSES = {EnrollmentStatus.ENROLLED, EnrollmentStatus.COMPLETED}


def get_enrollment(db: Session, enrollment_id: int) -> Enrollment:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise NotFoundError("Enrollment not found")
    return enrollment

def _resolve_student_id(actor: User, student_id: Optional[int]) -> int:
    if is_student(actor):
        if student_id is not None and student_id != actor.id:
            raise ForbiddenError("Students may only enroll themselves")
        return actor.id
    if student_id is None:
        raise ValidationError("student_id is required when enrolling another user")
    return student_id

def _ensure_seat(db: Session, course: Course) -> None:
    if count_enrolled(db, course.id) >= course.max_students:
        raise CapacityExceededError(
            "Course is full",
            details={"course_id": course.id, "max_students": course.max_students},
        )

def create_enrollment(db: Session, course_id: int, actor: User,
                      student_id: Optional[int] = None,
                      status: Optional[EnrollmentStatus] = None) -> Enrollment:
    target_id = _resolve_student_id(actor, student_id)
    status = status or EnrollmentStatus.PENDING
    if status not in INITIAL_STATUSES:
        raise ValidationError("New enrollments must be pending or enrolled")

    try:
        course = get_course(db, course_id, for_update=True)
        authorize("enrollment:create", actor, course, "You can only enroll students in your own courses")
        if not course.is_active:
            raise InvalidStateError("Course is not active")
        _ensure_seat(db, course)

        student = db.query(User).filter(User.id == target_id).first()
        if not student:
            raise NotFoundError("Student not found")
        if student.role_type != RoleType.STUDENT:
            raise InvalidStateError("Only students can be enrolled in courses")

        existing = db.query(Enrollment).filter(
            Enrollment.student_id == target_id,
            Enrollment.course_id == course.id,
        ).first()
        if existing:
            raise ConflictError("Student is already enrolled or has a pending enrollment for this course")

        enrollment = Enrollment(student_id=target_id, course_id=course.id, status=status)
        if status == EnrollmentStatus.ENROLLED:
            enrollment.enrolled_at = get_utc_now()
        db.add(enrollment)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Student is already enrolled or has a pending enrollment for this course")
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    logger.info("Enrollment %s created: student %s, course %s, status %s",
                enrollment.id, target_id, course_id, status.value)
    return enrollment

def update_enrollment_status(db: Session, enrollment_id: int, new_status: EnrollmentStatus,
                             actor: User) -> Enrollment:
    try:
        enrollment = get_enrollment(db, enrollment_id)
        authorize("enrollment:update_status", actor, enrollment,
                  "You are not authorized to update this enrollment")

        if new_status == EnrollmentStatus.ENROLLED:
            course = get_course(db, enrollment.course_id, for_update=True)
            db.refresh(enrollment)

        current = enrollment.status
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot change enrollment status from {current.value} to {new_status.value}",
                details={"from": current.value, "to": new_status.value},
            )

        now = get_utc_now()
        if new_status == EnrollmentStatus.ENROLLED:
            _ensure_seat(db, course)
            enrollment.enrolled_at = now
        elif new_status == EnrollmentStatus.COMPLETED:
            enrollment.completed_at = now
        elif new_status == EnrollmentStatus.DROPPED:
            enrollment.dropped_at = now
        elif new_status == EnrollmentStatus.PENDING:
            # Re-enrollment starts from a clean slate
            enrollment.dropped_at = None
            enrollment.enrolled_at = None
            enrollment.final_grade = None
            enrollment.letter_grade = None

        enrollment.status = new_status
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    logger.info("Enrollment %s moved from %s to %s by %s",
                enrollment.id, current.value, new_status.value, actor.id)
    return enrollment

def update_enrollment_grade(db: Session, enrollment_id: int, final_grade: float,
                            actor: User) -> Enrollment:
    enrollment = get_enrollment(db, enrollment_id)
    authorize("enrollment:update_grade", actor, enrollment,
              "You are not authorized to grade this enrollment")
    validate_final_grade(final_grade)
    if enrollment.status not in GRADEABLE_STATUSES:
        raise InvalidStateError(f"Cannot grade an enrollment that is {enrollment.status.value}")

    enrollment.final_grade = final_grade
    enrollment.letter_grade = letter_grade(final_grade)
    db.commit()
    db.refresh(enrollment)
    logger.info("Enrollment %s graded %s (%s)", enrollment.id, final_grade, enrollment.letter_grade)
    return enrollment

def remove_enrollment(db: Session, enrollment_id: int, actor: User) -> None:
    enrollment = get_enrollment(db, enrollment_id)
    authorize("enrollment:remove", actor, enrollment, "You are not authorized to delete this enrollment")
    if is_student(actor) and enrollment.status == EnrollmentStatus.COMPLETED:
        raise InvalidStateError("Cannot drop completed enrollment")

    db.delete(enrollment)
    db.commit()
    logger.info("Enrollment %s removed by %s", enrollment_id, actor.id)

def view_enrollment(db: Session, enrollment_id: int, actor: User) -> Enrollment:
    enrollment = get_enrollment(db, enrollment_id)
    authorize("enrollment:view", actor, enrollment, "You can only view your own enrollments")
    return enrollment

def _scoped_query(db: Session, actor: User):
    query = db.query(Enrollment)
    if is_lecturer(actor):
        query = query.join(Course, Enrollment.course_id == Course.id).filter(Course.lecturer_id == actor.id)
    elif not is_admin(actor):
        query = query.filter(Enrollment.student_id == actor.id)
    return query

def list_enrollments(db: Session, actor: User, course_id: Optional[int] = None,
                     status: Optional[EnrollmentStatus] = None):
    query = _scoped_query(db, actor)
    if course_id is not None:
        query = query.filter(Enrollment.course_id == course_id)
    if status is not None:
        query = query.filter(Enrollment.status == status)
    return query.order_by(Enrollment.id).all()

def list_student_enrollments(db: Session, student_id: int, actor: User):
    if is_lecturer(actor):
        # Lecturers see the student only within their own courses
        return _scoped_query(db, actor).filter(Enrollment.student_id == student_id).order_by(Enrollment.id).all()
    if not is_admin(actor) and actor.id != student_id:
        raise ForbiddenError("You can only view your own enrollments")
    return db.query(Enrollment).filter(Enrollment.student_id == student_id).order_by(Enrollment.id).all()

def list_course_enrollments(db: Session, course_id: int, actor: User):
    course = get_course(db, course_id)
    authorize("enrollment:list_course", actor, course,
              "You can only view enrollments for your own courses")
    return db.query(Enrollment).filter(Enrollment.course_id == course.id).order_by(Enrollment.id).all()

def enrollment_stats(db: Session, actor: User, course_id: Optional[int] = None) -> dict:
    course = None
    query = _scoped_query(db, actor)
    if course_id is not None:
        course = get_course(db, course_id)
        authorize("enrollment:list_course", actor, course,
                  "You can only view statistics for your own courses")
        query = query.filter(Enrollment.course_id == course_id)

    counts = dict(
        query.with_entities(Enrollment.status, func.count(Enrollment.id))
        .group_by(Enrollment.status)
        .all()
    )
    average = query.with_entities(func.avg(Enrollment.final_grade)).scalar()

    stats = {
        "total": sum(counts.values()),
        "by_status": {status.value: counts.get(status, 0) for status in EnrollmentStatus},
        "average_grade": round(average, 2) if average is not None else None,
    }
    if course is not None:
        enrolled = counts.get(EnrollmentStatus.ENROLLED, 0)
        stats.update({
            "course_id": course.id,
            "max_students": course.max_students,
            "enrolled_count": enrolled,
            "is_full": enrolled >= course.max_students,
        })
    return stats
