import logging
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from campus.core.permissions import authorize, is_admin, is_lecturer
from campus.models.course import Course
from campus.models.enrollment import Enrollment, EnrollmentStatus
from campus.models.user import User, RoleType

logger = logging.getLogger(__name__)


def get_course(db: Session, course_id: int, for_update: bool = False) -> Course:
    if for_update:
        # No-op write: holds the course row lock (the database write lock on
        # SQLite) until the caller commits or rolls back
        db.execute(
            update(Course)
            .where(Course.id == course_id)
            .values(id=Course.id, updated_at=Course.updated_at)
            .execution_options(synchronize_session=False)
        )
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course not found")
    return course

def get_course_by_code(db: Session, code: str) -> Optional[Course]:
    return db.query(Course).filter(Course.code == code).first()

def count_enrolled(db: Session, course_id: int) -> int:
    return db.query(Enrollment).filter(
        Enrollment.course_id == course_id,
        Enrollment.status == EnrollmentStatus.ENROLLED,
    ).count()

def _get_lecturer(db: Session, lecturer_id: int) -> User:
    lecturer = db.query(User).filter(User.id == lecturer_id).first()
    if not lecturer:
        raise NotFoundError("Lecturer not found")
    if lecturer.role_type != RoleType.LECTURER:
        raise ValidationError("Assigned user must be a lecturer")
    return lecturer

def create_course(db: Session, data: dict, actor: User) -> Course:
    authorize("course:create", actor, message="Only admin can create courses")

    if get_course_by_code(db, data["code"]):
        raise ConflictError("Course with this code already exists")

    lecturer_id = data.pop("lecturer_id", None)
    if lecturer_id is None:
        raise ValidationError("lecturer_id is required")
    lecturer = _get_lecturer(db, lecturer_id)

    course = Course(**data, lecturer_id=lecturer.id)
    db.add(course)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Course with this code already exists")
    db.refresh(course)
    logger.info("Course %s (%s) created by %s", course.id, course.code, actor.id)
    return course

def list_courses(db: Session, actor: User, department: Optional[str] = None,
                 semester: Optional[str] = None, year: Optional[int] = None):
    query = db.query(Course)
    if is_lecturer(actor):
        query = query.filter(or_(Course.lecturer_id == actor.id, Course.is_active.is_(True)))
    elif not is_admin(actor):
        query = query.filter(Course.is_active.is_(True))

    if department:
        query = query.filter(Course.department == department)
    if semester:
        query = query.filter(Course.semester == semester)
    if year:
        query = query.filter(Course.year == year)
    return query.order_by(Course.code).all()

def view_course(db: Session, course_id: int, actor: User) -> Course:
    course = get_course(db, course_id)
    authorize("course:view", actor, course, "Course is not active")
    return course

def update_course(db: Session, course_id: int, data: dict, actor: User) -> Course:
    try:
        course = get_course(db, course_id, for_update=True)
        authorize("course:update", actor, course, "You can only update your own courses or be an admin")

        code = data.get("code")
        if code and code != course.code and get_course_by_code(db, code):
            raise ConflictError("Course with this code already exists")

        max_students = data.get("max_students")
        if max_students is not None:
            enrolled = count_enrolled(db, course.id)
            if max_students < enrolled:
                raise ValidationError(
                    f"Capacity cannot be lower than the {enrolled} students already enrolled"
                )

        for key, value in data.items():
            if value is not None:
                setattr(course, key, value)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Course with this code already exists")
    except Exception:
        db.rollback()
        raise
    db.refresh(course)
    return course

def assign_lecturer(db: Session, course_id: int, lecturer_id: int, actor: User) -> Course:
    authorize("course:assign_lecturer", actor, message="Only admin can assign lecturers")
    course = get_course(db, course_id)
    course.lecturer_id = _get_lecturer(db, lecturer_id).id
    db.commit()
    db.refresh(course)
    logger.info("Course %s assigned to lecturer %s", course.id, lecturer_id)
    return course

def remove_course(db: Session, course_id: int, actor: User) -> None:
    authorize("course:remove", actor, message="Only admin can delete courses")
    course = get_course(db, course_id)
    if db.query(Enrollment).filter(Enrollment.course_id == course.id).count():
        raise InvalidStateError("Course has enrollments; deactivate it instead")
    db.delete(course)
    db.commit()
    logger.info("Course %s removed by %s", course_id, actor.id)

def list_lecturer_courses(db: Session, lecturer_id: int, actor: User):
    if not is_admin(actor) and actor.id != lecturer_id:
        return db.query(Course).filter(
            Course.lecturer_id == lecturer_id, Course.is_active.is_(True)
        ).order_by(Course.code).all()
    return db.query(Course).filter(Course.lecturer_id == lecturer_id).order_by(Course.code).all()
