from sqlalchemy import Column, Integer, String, ForeignKey, Float, DateTime, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship

from campus.db.base import Base
from campus.utils.helpers import get_utc_now

class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    submission_path = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)
    is_late = Column(Boolean, nullable=False, default=False)
    points = Column(Float, nullable=True)  # Raw points awarded by the grader
    final_points = Column(Float, nullable=True)  # Points after late penalty
    feedback = Column(Text, nullable=True)
    graded_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submissions_assignment_student"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", foreign_keys=[student_id], back_populates="submissions", lazy="joined")
    grader = relationship("User", foreign_keys=[graded_by_id])
