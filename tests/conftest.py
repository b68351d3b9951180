from datetime import timedelta
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campus.core.security.auth import generate_access_token
from campus.db.base import Base
from campus.db.init_db import init_db
from campus.db.session import get_db
from campus.models.assignment import Assignment
from campus.models.course import Course
from campus.models.enrollment import Enrollment, EnrollmentStatus
from campus.models.user import Role, RoleType, User
from campus.utils.helpers import get_utc_now

# bcrypt is slow; factory users get a fixed hash and API tests that log in
# register through the endpoint instead.
UNUSABLE_HASH = "!"

_sequence = count(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    init_db(session)
    yield session
    session.close()


def make_user(db, role=RoleType.STUDENT, **overrides):
    n = next(_sequence)
    role_row = db.query(Role).filter(Role.role == role).first()
    values = {
        "email": f"{role.value}{n}@university.edu",
        "first_name": role.value.title(),
        "last_name": f"Number{n}",
        "hashed_password": UNUSABLE_HASH,
        "role_id": role_row.id,
    }
    values.update(overrides)
    user = User(**values)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_course(db, lecturer, **overrides):
    n = next(_sequence)
    values = {
        "code": f"CS{n:03d}",
        "title": f"Course {n}",
        "description": "An introductory course",
        "credits": 3,
        "max_students": 30,
        "lecturer_id": lecturer.id,
    }
    values.update(overrides)
    course = Course(**values)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def make_enrollment(db, student, course, status=EnrollmentStatus.ENROLLED, **overrides):
    enrollment = Enrollment(student_id=student.id, course_id=course.id, status=status, **overrides)
    if status == EnrollmentStatus.ENROLLED:
        enrollment.enrolled_at = get_utc_now()
    db.add(enrollment)
    db.commit()
    db.refresh(enrollment)
    return enrollment


def make_assignment(db, course, creator, **overrides):
    now = get_utc_now()
    values = {
        "title": "Homework",
        "description": "Solve the exercises",
        "max_points": 100,
        "due_date": now + timedelta(days=7),
        "available_from": now - timedelta(days=1),
        "course_id": course.id,
        "created_by_id": creator.id,
    }
    values.update(overrides)
    assignment = Assignment(**values)
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


@pytest.fixture
def admin(db):
    return make_user(db, RoleType.ADMIN)


@pytest.fixture
def lecturer(db):
    return make_user(db, RoleType.LECTURER)


@pytest.fixture
def other_lecturer(db):
    return make_user(db, RoleType.LECTURER)


@pytest.fixture
def student(db):
    return make_user(db, RoleType.STUDENT)


@pytest.fixture
def other_student(db):
    return make_user(db, RoleType.STUDENT)


@pytest.fixture
def course(db, lecturer):
    return make_course(db, lecturer)


@pytest.fixture
def assignment(db, course, lecturer):
    return make_assignment(db, course, lecturer)


@pytest.fixture
def client(db, tmp_path, monkeypatch):
    from campus.main import app
    from campus.services import file_storage as storage_module

    monkeypatch.setattr(storage_module.file_storage, "upload_dir", str(tmp_path / "uploads"))

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager so the lifespan hook (real database, Redis) never runs
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user):
    return {"Authorization": f"Bearer {generate_access_token(user)}"}
