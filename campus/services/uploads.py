"""
Course syllabus and submission file uploads.

File bytes live under the storage directory; everything needed to find and
authorize a download (owner, category, related course or assignment) is
kept in ``FileRecord`` rows.
"""
import logging
import os
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.orm import Session

from campus.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from campus.core.permissions import authorize, is_student
from campus.crud.courses import get_course
from campus.models.assignment import Assignment
from campus.models.course import Course
from campus.models.file_record import FileCategory, FileRecord
from campus.models.user import User
from campus.services.assignments import is_enrolled
from campus.services.file_storage import FileStorage, file_storage

logger = logging.getLogger(__name__)


async def _store(db: Session, upload: UploadFile, category: FileCategory, related_id: int,
                 actor: User, storage: FileStorage) -> FileRecord:
    subfolder = f"{category.value}/{related_id}"
    success, result, size = await storage.save_file(upload, subfolder=subfolder)
    if not success:
        raise ValidationError(result)

    record = FileRecord(
        stored_name=result,
        original_name=os.path.basename(upload.filename),
        mime_type=upload.content_type,
        size=size,
        category=category,
        related_id=related_id,
        uploaded_by_id=actor.id,
    )
    db.add(record)
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.delete_file(result, subfolder)
        raise
    db.refresh(record)
    logger.info("Stored %s file %s (%d bytes) for %s by %s",
                category.value, record.id, size, related_id, actor.id)
    return record

def file_url(record: FileRecord) -> str:
    return f"/files/{record.id}"

async def upload_syllabus(db: Session, course_id: int, upload: UploadFile, actor: User,
                          storage: Optional[FileStorage] = None) -> FileRecord:
    course = get_course(db, course_id)
    authorize("course:upload_syllabus", actor, course,
              "You can only upload syllabi for your own courses")

    record = await _store(db, upload, FileCategory.SYLLABUS, course.id, actor, storage or file_storage)
    course.syllabus_url = file_url(record)
    db.commit()
    return record

async def upload_submission_file(db: Session, assignment_id: int, upload: UploadFile, actor: User,
                                 storage: Optional[FileStorage] = None) -> FileRecord:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFoundError("Assignment not found")
    if not is_student(actor) or not is_enrolled(db, actor.id, assignment.course_id):
        raise ForbiddenError("You are not enrolled in this course")

    return await _store(db, upload, FileCategory.SUBMISSION, assignment.id, actor, storage or file_storage)

def get_syllabus(db: Session, course_id: int, actor: User) -> FileRecord:
    course = get_course(db, course_id)
    authorize("course:view", actor, course, "Course is not active")
    record = (
        db.query(FileRecord)
        .filter(FileRecord.category == FileCategory.SYLLABUS, FileRecord.related_id == course.id)
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
        .first()
    )
    if not record:
        raise NotFoundError("No syllabus uploaded for this course")
    return record

def list_user_files(db: Session, actor: User) -> List[FileRecord]:
    return (
        db.query(FileRecord)
        .filter(FileRecord.uploaded_by_id == actor.id)
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
        .all()
    )

def list_assignment_files(db: Session, assignment_id: int, actor: User) -> List[FileRecord]:
    """Submission files uploaded for an assignment, for its course staff."""
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFoundError("Assignment not found")
    authorize("assignment:list_files", actor, assignment,
              "You can only view submission files for your own courses")
    return (
        db.query(FileRecord)
        .filter(FileRecord.category == FileCategory.SUBMISSION, FileRecord.related_id == assignment.id)
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
        .all()
    )

def _related_course(db: Session, record: FileRecord) -> Optional[Course]:
    if record.category == FileCategory.SYLLABUS:
        return db.query(Course).filter(Course.id == record.related_id).first()
    assignment = db.query(Assignment).filter(Assignment.id == record.related_id).first()
    return assignment.course if assignment else None

def download_file(db: Session, file_id: int, actor: User,
                  storage: Optional[FileStorage] = None) -> Tuple[FileRecord, str]:
    """Return the record and on-disk path of a file ``actor`` may read."""
    storage = storage or file_storage
    record = db.query(FileRecord).filter(FileRecord.id == file_id).first()
    if not record:
        raise NotFoundError("File not found")

    course = _related_course(db, record)
    # Syllabi of active courses are readable by anyone signed in
    public = record.category == FileCategory.SYLLABUS and course is not None and course.is_active
    if not public:
        authorize("file:download", actor, (record, course), "You are not allowed to access this file")

    path = storage.get_path(record.stored_name, record.subfolder)
    if not os.path.exists(path):
        logger.error("File %s missing from storage at %s", record.id, path)
        raise NotFoundError("File not found")
    return record, path
