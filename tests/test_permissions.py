from types import SimpleNamespace

import pytest

from campus.core.exceptions import ForbiddenError
from campus.core.permissions import POLICIES, authorize, can
from campus.models.user import RoleType


def actor(role, id=1):
    return SimpleNamespace(id=id, role_type=role)


ADMIN = actor(RoleType.ADMIN, id=1)
LECTURER = actor(RoleType.LECTURER, id=2)
OTHER_LECTURER = actor(RoleType.LECTURER, id=3)
STUDENT = actor(RoleType.STUDENT, id=4)

COURSE = SimpleNamespace(id=10, lecturer_id=LECTURER.id, is_active=True)
INACTIVE_COURSE = SimpleNamespace(id=11, lecturer_id=LECTURER.id, is_active=False)
ENROLLMENT = SimpleNamespace(student_id=STUDENT.id, course=COURSE)
ASSIGNMENT = SimpleNamespace(created_by_id=LECTURER.id, course=COURSE)


@pytest.mark.parametrize("action", ["user:create", "user:list", "course:create",
                                    "course:remove", "course:assign_lecturer"])
def test_admin_only_actions(action):
    assert can(action, ADMIN)
    assert not can(action, LECTURER)
    assert not can(action, STUDENT)


@pytest.mark.parametrize("action", ["enrollment:update_status", "enrollment:update_grade"])
def test_enrollment_management(action):
    assert can(action, ADMIN, ENROLLMENT)
    assert can(action, LECTURER, ENROLLMENT)
    assert not can(action, OTHER_LECTURER, ENROLLMENT)
    assert not can(action, STUDENT, ENROLLMENT)


@pytest.mark.parametrize("action", ["assignment:grade", "assignment:update", "assignment:view_submissions"])
def test_assignment_creator_actions(action):
    assert can(action, ADMIN, ASSIGNMENT)
    assert can(action, LECTURER, ASSIGNMENT)
    assert not can(action, OTHER_LECTURER, ASSIGNMENT)
    assert not can(action, STUDENT, ASSIGNMENT)


def test_course_visibility():
    assert can("course:view", STUDENT, COURSE)
    assert not can("course:view", STUDENT, INACTIVE_COURSE)
    assert can("course:view", LECTURER, INACTIVE_COURSE)
    assert not can("course:view", OTHER_LECTURER, INACTIVE_COURSE)
    assert can("course:view", ADMIN, INACTIVE_COURSE)


def test_enrollment_visibility():
    assert can("enrollment:view", STUDENT, ENROLLMENT)
    assert not can("enrollment:view", actor(RoleType.STUDENT, id=99), ENROLLMENT)
    assert not can("enrollment:view", OTHER_LECTURER, ENROLLMENT)


def test_file_download():
    record = SimpleNamespace(uploaded_by_id=STUDENT.id)
    assert can("file:download", STUDENT, (record, COURSE))
    assert can("file:download", LECTURER, (record, COURSE))
    assert not can("file:download", OTHER_LECTURER, (record, COURSE))
    assert not can("file:download", actor(RoleType.STUDENT, id=99), (record, None))


def test_authorize_raises_with_message():
    with pytest.raises(ForbiddenError, match="nope"):
        authorize("course:create", STUDENT, message="nope")


def test_every_policy_rejects_a_stranger_student():
    stranger = actor(RoleType.STUDENT, id=99)
    resources = {
        "user": SimpleNamespace(id=1),
        "course": COURSE,
        "enrollment": ENROLLMENT,
        "assignment": ASSIGNMENT,
        "file": (SimpleNamespace(uploaded_by_id=1), COURSE),
    }
    # Self-service and read actions open to any student
    open_to_students = {"course:view", "enrollment:create"}
    for action in POLICIES:
        if action in open_to_students:
            continue
        resource = resources[action.split(":")[0]]
        assert not can(action, stranger, resource), action


def test_assignment_files_follow_course_ownership():
    handed_over = SimpleNamespace(created_by_id=LECTURER.id,
                                  course=SimpleNamespace(lecturer_id=OTHER_LECTURER.id))
    assert can("assignment:list_files", OTHER_LECTURER, handed_over)
    assert not can("assignment:list_files", LECTURER, handed_over)
    assert can("assignment:list_files", ADMIN, handed_over)
