import logging

from sqlalchemy.orm import Session

from campus.core.config.settings import get_settings
from campus.core.security.auth import create_hashed_password
from campus.models.user import User, Role, RoleType
# Imported so every mapper is registered before the first query
from campus.models.course import Course  # noqa: F401
from campus.models.enrollment import Enrollment  # noqa: F401
from campus.models.assignment import Assignment  # noqa: F401
from campus.models.submission import Submission  # noqa: F401
from campus.models.file_record import FileRecord  # noqa: F401

logger = logging.getLogger(__name__)

def create_default_roles(db: Session) -> None:
    for role_type in RoleType:
        existing_role = db.query(Role).filter(Role.role == role_type).first()
        if not existing_role:
            db.add(Role(role=role_type))

def create_default_admin(db: Session) -> None:
    settings = get_settings()
    if not settings.DEFAULT_ADMIN_PASSWORD:
        return

    existing_admin = db.query(User).filter(User.email == settings.DEFAULT_ADMIN_EMAIL).first()
    if existing_admin:
        return

    admin_role = db.query(Role).filter(Role.role == RoleType.ADMIN).first()
    db.add(User(
        email=settings.DEFAULT_ADMIN_EMAIL,
        first_name="Campus",
        last_name="Admin",
        hashed_password=create_hashed_password(settings.DEFAULT_ADMIN_PASSWORD),
        role_id=admin_role.id,
    ))
    logger.info("Default admin %s created", settings.DEFAULT_ADMIN_EMAIL)

def init_db(db: Session) -> None:
    """Initialize database with required data"""
    create_default_roles(db)
    try:
        db.commit()
        create_default_admin(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
