from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
import enum

from campus.db.base import Base
from campus.utils.helpers import get_utc_now

class FileCategory(enum.Enum):
    SYLLABUS = "syllabus"
    SUBMISSION = "submission"

class FileRecord(Base):
    __tablename__ = "file_records"
    id = Column(Integer, primary_key=True)
    stored_name = Column(String(255), nullable=False, unique=True)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=True)
    size = Column(Integer, nullable=False)
    category = Column(Enum(FileCategory), nullable=False)
    related_id = Column(Integer, nullable=False, index=True)  # Course id for syllabi, assignment id for submissions
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    uploaded_at = Column(DateTime(timezone=True), default=get_utc_now)

    uploaded_by = relationship("User")

    @property
    def subfolder(self):
        return f"{self.category.value}/{self.related_id}"
