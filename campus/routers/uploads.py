from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from campus.core.security.auth import get_current_user
from campus.db.session import get_db
from campus.models.file_record import FileRecord
from campus.services import uploads as upload_service

router = APIRouter(tags=["uploads"])


def _describe(record: FileRecord) -> dict:
    return {
        "id": record.id,
        "filename": record.original_name,
        "size": record.size,
        "category": record.category.value,
        "url": upload_service.file_url(record),
        "uploaded_at": record.uploaded_at,
    }

@router.post("/courses/{course_id}/syllabus", status_code=status.HTTP_201_CREATED)
async def upload_syllabus(
    course_id: int,
    file: UploadFile = File(...),
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    record = await upload_service.upload_syllabus(db, course_id, file, current_user["user"])
    return {"message": "Syllabus uploaded successfully", "file": _describe(record)}

@router.get("/courses/{course_id}/syllabus")
def get_syllabus(
    course_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _describe(upload_service.get_syllabus(db, course_id, current_user["user"]))

@router.post("/assignments/{assignment_id}/upload", status_code=status.HTTP_201_CREATED)
async def upload_submission_file(
    assignment_id: int,
    file: UploadFile = File(...),
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    record = await upload_service.upload_submission_file(db, assignment_id, file, current_user["user"])
    # The returned url is what the client passes as submission_path
    return {"message": "File uploaded successfully", "file": _describe(record)}

@router.get("/assignments/{assignment_id}/files")
def list_assignment_files(
    assignment_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    records = upload_service.list_assignment_files(db, assignment_id, current_user["user"])
    return [dict(_describe(record), uploaded_by_id=record.uploaded_by_id) for record in records]

@router.get("/my-files")
def list_my_files(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return [_describe(record) for record in upload_service.list_user_files(db, current_user["user"])]

@router.get("/files/{file_id}")
def download_file(
    file_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    record, path = upload_service.download_file(db, file_id, current_user["user"])
    return FileResponse(path, filename=record.original_name, media_type=record.mime_type)
