from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Text, Enum
from sqlalchemy.orm import relationship
import enum

from campus.db.base import Base
from campus.utils.helpers import get_utc_now, ensure_utc

class AssignmentType(enum.Enum):
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    EXAM = "exam"
    PROJECT = "project"

class Assignment(Base):
    __tablename__ = "assignments"
    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    instructions = Column(Text, nullable=True)
    max_points = Column(Integer, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    available_from = Column(DateTime(timezone=True), nullable=True)
    available_until = Column(DateTime(timezone=True), nullable=True)
    type = Column(Enum(AssignmentType), nullable=False, default=AssignmentType.ASSIGNMENT)
    is_active = Column(Boolean, nullable=False, default=True)
    allow_late_submission = Column(Boolean, nullable=False, default=False)
    late_penalty_percentage = Column(Integer, nullable=False, default=0)
    attachment_url = Column(String(255), nullable=True)
    rubric = Column(Text, nullable=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    course = relationship("Course", back_populates="assignments", lazy="joined")
    created_by = relationship("User", foreign_keys=[created_by_id])
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")

    def is_overdue(self, now=None):
        now = now or get_utc_now()
        return now > ensure_utc(self.due_date)

    def is_available(self, now=None):
        now = now or get_utc_now()
        opens = ensure_utc(self.available_from or self.created_at)
        closes = ensure_utc(self.available_until or self.due_date)
        return self.is_active and (opens is None or now >= opens) and now <= closes

    @property
    def overdue(self):
        return self.is_overdue()

    @property
    def available(self):
        return self.is_available()

    @property
    def can_submit_late(self):
        return self.allow_late_submission and self.is_active
