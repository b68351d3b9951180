from sqlalchemy import Column, Integer, String, ForeignKey, Enum, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
import enum

from campus.db.base import Base
from campus.utils.helpers import get_utc_now

class RoleType(enum.Enum):
    STUDENT = "student"
    LECTURER = "lecturer"
    ADMIN = "admin"

class Role(Base):
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True)
    role = Column(Enum(RoleType), nullable=False, unique=True)
    users = relationship("User", back_populates="role")

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    hashed_password = Column(String, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    phone = Column(String(30), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    role = relationship("Role", back_populates="users", lazy="joined")
    courses = relationship("Course", back_populates="lecturer")
    enrollments = relationship("Enrollment", back_populates="student")
    submissions = relationship("Submission", foreign_keys="Submission.student_id", back_populates="student")

    @property
    def role_type(self):
        return self.role.role if self.role else None

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role_type})>"
