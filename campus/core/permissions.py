"""
Authorization predicates.

Every guarded operation has exactly one entry in ``POLICIES`` mapping the
action name to a predicate ``(actor, resource) -> bool``. Workflows call
``authorize`` instead of comparing roles inline.
"""

from typing import Any, Callable, Dict, Optional

from campus.core.exceptions import ForbiddenError
from campus.models.user import RoleType


def is_admin(actor) -> bool:
    return actor.role_type == RoleType.ADMIN

def is_lecturer(actor) -> bool:
    return actor.role_type == RoleType.LECTURER

def is_student(actor) -> bool:
    return actor.role_type == RoleType.STUDENT

def owns_course(actor, course) -> bool:
    return is_lecturer(actor) and course is not None and course.lecturer_id == actor.id

def created_assignment(actor, assignment) -> bool:
    return is_lecturer(actor) and assignment.created_by_id == actor.id

def _admin_or_course_owner(actor, course) -> bool:
    return is_admin(actor) or owns_course(actor, course)

def _admin_or_assignment_creator(actor, assignment) -> bool:
    return is_admin(actor) or created_assignment(actor, assignment)

def _admin_or_self(actor, user) -> bool:
    return is_admin(actor) or actor.id == user.id

def _can_view_course(actor, course) -> bool:
    if is_admin(actor):
        return True
    if is_lecturer(actor):
        return course.is_active or course.lecturer_id == actor.id
    return course.is_active

def _can_view_enrollment(actor, enrollment) -> bool:
    if is_admin(actor):
        return True
    if is_lecturer(actor):
        return owns_course(actor, enrollment.course)
    return enrollment.student_id == actor.id

def _can_drop_enrollment(actor, enrollment) -> bool:
    if is_admin(actor):
        return True
    if is_lecturer(actor):
        return owns_course(actor, enrollment.course)
    return is_student(actor) and enrollment.student_id == actor.id

def _can_create_enrollment(actor, course) -> bool:
    if is_admin(actor) or is_student(actor):
        return True
    return owns_course(actor, course)

def _can_view_file(actor, record) -> bool:
    # record is a (FileRecord, Course) pair; course may be None when orphaned
    file_record, course = record
    return is_admin(actor) or file_record.uploaded_by_id == actor.id or owns_course(actor, course)


POLICIES: Dict[str, Callable[[Any, Any], bool]] = {
    # users
    "user:create": lambda actor, _: is_admin(actor),
    "user:list": lambda actor, _: is_admin(actor),
    "user:view": _admin_or_self,
    "user:update": _admin_or_self,
    "user:activate": lambda actor, _: is_admin(actor),
    "user:remove": lambda actor, _: is_admin(actor),
    "user:stats": lambda actor, _: is_admin(actor),
    # courses
    "course:create": lambda actor, _: is_admin(actor),
    "course:view": _can_view_course,
    "course:update": _admin_or_course_owner,
    "course:assign_lecturer": lambda actor, _: is_admin(actor),
    "course:remove": lambda actor, _: is_admin(actor),
    "course:upload_syllabus": _admin_or_course_owner,
    # enrollments
    "enrollment:create": _can_create_enrollment,
    "enrollment:view": _can_view_enrollment,
    "enrollment:update_status": lambda actor, enrollment: _admin_or_course_owner(actor, enrollment.course),
    "enrollment:update_grade": lambda actor, enrollment: _admin_or_course_owner(actor, enrollment.course),
    "enrollment:remove": _can_drop_enrollment,
    "enrollment:list_course": _admin_or_course_owner,
    # assignments
    "assignment:create": _admin_or_course_owner,
    "assignment:update": _admin_or_assignment_creator,
    "assignment:remove": _admin_or_assignment_creator,
    "assignment:grade": _admin_or_assignment_creator,
    "assignment:view_submissions": _admin_or_assignment_creator,
    "assignment:feedback": _admin_or_assignment_creator,
    "assignment:list_files": lambda actor, assignment: _admin_or_course_owner(actor, assignment.course),
    # files
    "file:download": _can_view_file,
}


def can(action: str, actor, resource: Optional[Any] = None) -> bool:
    return POLICIES[action](actor, resource)


def authorize(action: str, actor, resource: Optional[Any] = None, message: Optional[str] = None) -> None:
    """Raise ForbiddenError unless ``actor`` may perform ``action`` on ``resource``."""
    if not can(action, actor, resource):
        raise ForbiddenError(message or f"You are not authorized to perform {action}")
