import asyncio
import io
import os

import pytest
from fastapi import UploadFile

from campus.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from campus.models.file_record import FileCategory, FileRecord
from campus.services import uploads
from campus.services.file_storage import FileStorage

from conftest import make_course, make_enrollment


def upload(name="syllabus.pdf", content=b"%PDF-1.4 course outline"):
    return UploadFile(file=io.BytesIO(content), filename=name)


@pytest.fixture
def storage(tmp_path):
    return FileStorage(upload_dir=str(tmp_path), max_size=1024)


class TestFileStorage:
    def test_saves_with_unique_name(self, storage):
        ok, name, size = asyncio.run(storage.save_file(upload(), subfolder="syllabus/1"))

        assert ok is True
        assert name.endswith(".pdf")
        assert size == len(b"%PDF-1.4 course outline")
        assert os.path.exists(storage.get_path(name, "syllabus/1"))

    @pytest.mark.parametrize("name", ["notes.txt", "script.exe", "noextension"])
    def test_rejects_extension(self, storage, name):
        ok, message, _ = asyncio.run(storage.save_file(upload(name)))
        assert ok is False
        assert "not allowed" in message

    def test_rejects_oversized(self, storage):
        ok, message, _ = asyncio.run(storage.save_file(upload(content=b"x" * 2048)))
        assert ok is False
        assert "too large" in message

    def test_extension_check_is_case_insensitive(self, storage):
        ok, _, _ = asyncio.run(storage.save_file(upload("REPORT.DOCX")))
        assert ok is True

    def test_delete(self, storage):
        _, name, _ = asyncio.run(storage.save_file(upload()))
        assert storage.delete_file(name) is True
        assert storage.delete_file(name) is False


class TestSyllabus:
    def test_owner_uploads_and_course_points_to_it(self, db, lecturer, course, storage):
        record = asyncio.run(uploads.upload_syllabus(db, course.id, upload(), lecturer, storage))

        db.refresh(course)
        assert record.category == FileCategory.SYLLABUS
        assert record.original_name == "syllabus.pdf"
        assert course.syllabus_url == uploads.file_url(record)
        assert uploads.get_syllabus(db, course.id, lecturer).id == record.id

    def test_latest_syllabus_wins(self, db, lecturer, course, storage):
        asyncio.run(uploads.upload_syllabus(db, course.id, upload("v1.pdf"), lecturer, storage))
        latest = asyncio.run(uploads.upload_syllabus(db, course.id, upload("v2.pdf"), lecturer, storage))

        assert uploads.get_syllabus(db, course.id, lecturer).id == latest.id

    def test_other_lecturer_forbidden(self, db, other_lecturer, course, storage):
        with pytest.raises(ForbiddenError):
            asyncio.run(uploads.upload_syllabus(db, course.id, upload(), other_lecturer, storage))
        assert db.query(FileRecord).count() == 0

    def test_invalid_file_rejected(self, db, lecturer, course, storage):
        with pytest.raises(ValidationError):
            asyncio.run(uploads.upload_syllabus(db, course.id, upload("outline.txt"), lecturer, storage))

    def test_missing_syllabus(self, db, student, course):
        with pytest.raises(NotFoundError):
            uploads.get_syllabus(db, course.id, student)

    def test_inactive_course_syllabus_hidden_from_students(self, db, lecturer, student, storage):
        course = make_course(db, lecturer, is_active=False)
        record = asyncio.run(uploads.upload_syllabus(db, course.id, upload(), lecturer, storage))

        with pytest.raises(ForbiddenError):
            uploads.get_syllabus(db, course.id, student)
        assert uploads.get_syllabus(db, course.id, lecturer).id == record.id


class TestSubmissionFiles:
    def test_enrolled_student_uploads(self, db, student, course, assignment, storage):
        make_enrollment(db, student, course)

        record = asyncio.run(uploads.upload_submission_file(db, assignment.id, upload("answer.docx"),
                                                            student, storage))

        assert record.category == FileCategory.SUBMISSION
        assert record.related_id == assignment.id
        assert record.uploaded_by_id == student.id

    def test_unenrolled_student_forbidden(self, db, student, assignment, storage):
        with pytest.raises(ForbiddenError):
            asyncio.run(uploads.upload_submission_file(db, assignment.id, upload(), student, storage))


class TestDownload:
    @pytest.fixture
    def submission_file(self, db, student, course, assignment, storage):
        make_enrollment(db, student, course)
        return asyncio.run(uploads.upload_submission_file(db, assignment.id, upload("answer.pdf"),
                                                          student, storage))

    def test_uploader_and_owner_can_download(self, db, student, lecturer, admin, submission_file, storage):
        for actor in (student, lecturer, admin):
            record, path = uploads.download_file(db, submission_file.id, actor, storage)
            assert record.id == submission_file.id
            assert os.path.exists(path)

    def test_others_cannot_download(self, db, other_student, other_lecturer, submission_file, storage):
        for actor in (other_student, other_lecturer):
            with pytest.raises(ForbiddenError):
                uploads.download_file(db, submission_file.id, actor, storage)

    def test_active_course_syllabus_is_readable(self, db, lecturer, other_student, course, storage):
        record = asyncio.run(uploads.upload_syllabus(db, course.id, upload(), lecturer, storage))
        found, _ = uploads.download_file(db, record.id, other_student, storage)
        assert found.id == record.id

    def test_inactive_course_syllabus_is_restricted(self, db, lecturer, other_student, storage):
        course = make_course(db, lecturer, is_active=False)
        record = asyncio.run(uploads.upload_syllabus(db, course.id, upload(), lecturer, storage))
        with pytest.raises(ForbiddenError):
            uploads.download_file(db, record.id, other_student, storage)

    def test_missing_bytes(self, db, student, submission_file, storage):
        storage.delete_file(submission_file.stored_name, submission_file.subfolder)
        with pytest.raises(NotFoundError):
            uploads.download_file(db, submission_file.id, student, storage)

    def test_unknown_file(self, db, admin, storage):
        with pytest.raises(NotFoundError):
            uploads.download_file(db, 9999, admin, storage)


class TestFileListings:
    def test_user_sees_own_uploads_newest_first(self, db, lecturer, student, course, assignment, storage):
        make_enrollment(db, student, course)
        first = asyncio.run(uploads.upload_submission_file(db, assignment.id, upload("draft.pdf"),
                                                           student, storage))
        second = asyncio.run(uploads.upload_submission_file(db, assignment.id, upload("final.pdf"),
                                                            student, storage))
        asyncio.run(uploads.upload_syllabus(db, course.id, upload(), lecturer, storage))

        assert [r.id for r in uploads.list_user_files(db, student)] == [second.id, first.id]
        assert len(uploads.list_user_files(db, lecturer)) == 1

    def test_course_staff_list_submission_files(self, db, lecturer, admin, student, other_student,
                                                course, assignment, storage):
        for uploader in (student, other_student):
            make_enrollment(db, uploader, course)
            asyncio.run(uploads.upload_submission_file(db, assignment.id, upload("answer.pdf"),
                                                       uploader, storage))
        asyncio.run(uploads.upload_syllabus(db, course.id, upload(), lecturer, storage))

        for actor in (lecturer, admin):
            files = uploads.list_assignment_files(db, assignment.id, actor)
            assert {r.uploaded_by_id for r in files} == {student.id, other_student.id}
            assert all(r.category == FileCategory.SUBMISSION for r in files)

    def test_students_and_other_lecturers_cannot_list(self, db, student, other_lecturer, course,
                                                      assignment):
        make_enrollment(db, student, course)
        for actor in (student, other_lecturer):
            with pytest.raises(ForbiddenError):
                uploads.list_assignment_files(db, assignment.id, actor)

    def test_unknown_assignment(self, db, admin):
        with pytest.raises(NotFoundError):
            uploads.list_assignment_files(db, 9999, admin)
