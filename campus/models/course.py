from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from campus.db.base import Base
from campus.models.enrollment import EnrollmentStatus
from campus.utils.helpers import get_utc_now

class Course(Base):
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True)
    code = Column(String(20), nullable=False, unique=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    credits = Column(Integer, nullable=False)
    department = Column(String(100), nullable=True)
    semester = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)
    max_students = Column(Integer, nullable=False, default=30)
    syllabus_url = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    lecturer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    lecturer = relationship("User", back_populates="courses", lazy="joined")
    enrollments = relationship("Enrollment", back_populates="course")
    assignments = relationship("Assignment", back_populates="course", cascade="all, delete-orphan")

    @property
    def enrolled_count(self):
        # Only ENROLLED rows take a seat
        return sum(1 for e in self.enrollments if e.status == EnrollmentStatus.ENROLLED)

    @property
    def is_full(self):
        return self.enrolled_count >= self.max_students
