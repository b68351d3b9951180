from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from campus.db.base import Base
from campus.utils.helpers import get_utc_now

class EnrollmentStatus(enum.Enum):
    PENDING = "pending"
    ENROLLED = "enrolled"
    DROPPED = "dropped"
    COMPLETED = "completed"

class Enrollment(Base):
    __tablename__ = "enrollments"
    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    status = Column(Enum(EnrollmentStatus), nullable=False, default=EnrollmentStatus.PENDING)
    final_grade = Column(Float, nullable=True)
    letter_grade = Column(String(2), nullable=True)
    enrolled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    dropped_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
    )

    student = relationship("User", back_populates="enrollments", lazy="joined")
    course = relationship("Course", back_populates="enrollments", lazy="joined")

    def __repr__(self):
        return f"<Enrollment(id={self.id}, student={self.student_id}, course={self.course_id}, status={self.status})>"
