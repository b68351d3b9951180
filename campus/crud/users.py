import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from campus.core.permissions import authorize
from campus.core.security.auth import create_hashed_password, verify_password
from campus.models.course import Course
from campus.models.enrollment import Enrollment
from campus.models.submission import Submission
from campus.models.user import User, Role, RoleType
from campus.utils.helpers import validate_password_strength

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()

def get_role(db: Session, role_type: RoleType) -> Role:
    role = db.query(Role).filter(Role.role == role_type).first()
    if not role:
        raise InvalidStateError(f"Role {role_type.value} does not exist")
    return role

def _insert_user(db: Session, data: dict, role_type: RoleType) -> User:
    is_valid, error = validate_password_strength(data["password"])
    if not is_valid:
        raise ValidationError(error)

    email = data["email"].lower()
    if get_user_by_email(db, email):
        raise ConflictError("User with this email already exists")

    user = User(
        email=email,
        first_name=data["first_name"],
        last_name=data["last_name"],
        phone=data.get("phone"),
        hashed_password=create_hashed_password(data["password"]),
        role_id=get_role(db, role_type).id,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email already exists")
    db.refresh(user)
    logger.info("Created %s account %s", role_type.value, user.id)
    return user

def register_user(db: Session, data: dict) -> User:
    """Public self-registration always creates a student."""
    return _insert_user(db, data, RoleType.STUDENT)

def create_user(db: Session, data: dict, actor: User) -> User:
    authorize("user:create", actor, message="Only admins can create accounts")
    return _insert_user(db, data, data.get("role") or RoleType.STUDENT)

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if user and verify_password(password, user.hashed_password):
        return user
    return None

def list_users(db: Session, actor: User, role: Optional[RoleType] = None):
    authorize("user:list", actor, message="Only admins can list users")
    query = db.query(User)
    if role:
        query = query.join(Role).filter(Role.role == role)
    return query.order_by(User.id).all()

def view_user(db: Session, user_id: int, actor: User) -> User:
    user = get_user(db, user_id)
    authorize("user:view", actor, user, "You can only view your own profile")
    return user

def update_user(db: Session, user_id: int, data: dict, actor: User) -> User:
    user = get_user(db, user_id)
    authorize("user:update", actor, user, "You can only update your own profile")

    email = data.get("email")
    if email and email.lower() != user.email:
        if get_user_by_email(db, email):
            raise ConflictError("User with this email already exists")
        data["email"] = email.lower()

    for key, value in data.items():
        if value is not None:
            setattr(user, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email already exists")
    db.refresh(user)
    return user

def set_user_active(db: Session, user_id: int, is_active: bool, actor: User) -> User:
    authorize("user:activate", actor, message="Only admins can activate or deactivate accounts")
    user = get_user(db, user_id)
    if user.id == actor.id and not is_active:
        raise InvalidStateError("You cannot deactivate your own account")
    user.is_active = is_active
    db.commit()
    db.refresh(user)
    logger.info("User %s %s by %s", user.id, "activated" if is_active else "deactivated", actor.id)
    return user

def remove_user(db: Session, user_id: int, actor: User) -> None:
    authorize("user:remove", actor, message="Only admins can remove accounts")
    user = get_user(db, user_id)
    referenced = (
        db.query(Course).filter(Course.lecturer_id == user.id).count()
        + db.query(Enrollment).filter(Enrollment.student_id == user.id).count()
        + db.query(Submission).filter(Submission.student_id == user.id).count()
    )
    if referenced:
        raise InvalidStateError("User is still referenced by courses, enrollments or submissions; deactivate instead")
    db.delete(user)
    db.commit()
    logger.info("User %s removed by %s", user_id, actor.id)

def user_stats(db: Session, actor: User) -> dict:
    authorize("user:stats", actor, message="Only admins can view user statistics")

    def count_role(role_type):
        return db.query(User).join(Role).filter(Role.role == role_type).count()

    return {
        "total": db.query(User).count(),
        "students": count_role(RoleType.STUDENT),
        "lecturers": count_role(RoleType.LECTURER),
        "admins": count_role(RoleType.ADMIN),
        "active": db.query(User).filter(User.is_active.is_(True)).count(),
    }
