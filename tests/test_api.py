from datetime import timedelta

import pytest

from campus.core.security import auth as security
from campus.core.security.auth import generate_token
from campus.crud import users as users_crud
from campus.models.enrollment import EnrollmentStatus
from campus.services import text_generation
from campus.utils.helpers import get_utc_now

from conftest import auth_headers, make_course, make_enrollment

API = "/api/v1"


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(users_crud, "create_hashed_password", lambda password: f"hashed:{password}")
    monkeypatch.setattr(users_crud, "verify_password", lambda plain, hashed: hashed == f"hashed:{plain}")


@pytest.fixture(autouse=True)
def no_text_generation(monkeypatch):
    monkeypatch.setattr(text_generation, "get_groq_client", lambda: None)


class TestAuth:
    def test_register_and_login(self, client):
        response = client.post(f"{API}/auth/register", json={
            "email": "new@university.edu",
            "password": "secret123",
            "first_name": "New",
            "last_name": "Student",
        })
        assert response.status_code == 201
        assert response.json()["role"] == "student"

        response = client.post(f"{API}/auth/login", json={"email": "new@university.edu", "password": "secret123"})
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "new@university.edu"

    def test_oauth2_form_login(self, client):
        client.post(f"{API}/auth/register", json={
            "email": "form@university.edu", "password": "secret123",
            "first_name": "Form", "last_name": "User",
        })
        response = client.post(f"{API}/auth/token",
                               data={"username": "form@university.edu", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    def test_refresh_issues_a_working_token(self, client, student):
        response = client.post(f"{API}/auth/refresh", headers=auth_headers(student))
        assert response.status_code == 200
        assert response.json()["user"]["id"] == student.id

        token = response.json()["access_token"]
        me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["id"] == student.id

    def test_refresh_requires_a_token(self, client):
        assert client.post(f"{API}/auth/refresh").status_code == 401

    def test_wrong_password(self, client):
        response = client.post(f"{API}/auth/login", json={"email": "ghost@university.edu", "password": "nope12345"})
        assert response.status_code == 401

    def test_duplicate_registration_conflicts(self, client):
        payload = {"email": "dup@university.edu", "password": "secret123",
                   "first_name": "Dup", "last_name": "User"}
        client.post(f"{API}/auth/register", json=payload)
        response = client.post(f"{API}/auth/register", json=payload)
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_missing_token(self, client):
        assert client.get(f"{API}/users/me").status_code == 401

    def test_expired_token(self, client, student):
        token = generate_token({"sub": str(student.id)}, timedelta(minutes=-1))
        response = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_deactivated_user_rejected(self, client, db, student):
        student.is_active = False
        db.commit()
        response = client.get(f"{API}/users/me", headers=auth_headers(student))
        assert response.status_code == 401


class TestErrorMapping:
    def test_not_found(self, client, student):
        response = client.get(f"{API}/courses/9999", headers=auth_headers(student))
        assert response.status_code == 404
        assert response.json() == {"detail": "Course not found", "error": "not_found"}

    def test_forbidden(self, client, student, other_student, course):
        response = client.post(f"{API}/enrollments", headers=auth_headers(student),
                               json={"course_id": course.id, "student_id": other_student.id})
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_conflict(self, client, student, course):
        headers = auth_headers(student)
        assert client.post(f"{API}/enrollments", headers=headers, json={"course_id": course.id}).status_code == 201
        response = client.post(f"{API}/enrollments", headers=headers, json={"course_id": course.id})
        assert response.status_code == 409

    def test_capacity_exceeded(self, client, db, lecturer, student, other_student):
        course = make_course(db, lecturer, max_students=1)
        make_enrollment(db, other_student, course)
        response = client.post(f"{API}/enrollments", headers=auth_headers(student), json={"course_id": course.id})
        assert response.status_code == 400
        assert response.json()["error"] == "capacity_exceeded"

    def test_validation_error(self, client, lecturer, student, course, db):
        enrollment = make_enrollment(db, student, course)
        response = client.put(f"{API}/enrollments/{enrollment.id}/grade",
                              headers=auth_headers(lecturer), json={"final_grade": 101})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_invalid_transition(self, client, db, admin, student, course):
        enrollment = make_enrollment(db, student, course, status=EnrollmentStatus.COMPLETED)
        response = client.put(f"{API}/enrollments/{enrollment.id}/status",
                              headers=auth_headers(admin), json={"status": "enrolled"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_transition"

    def test_course_needs_a_lecturer(self, client, admin):
        response = client.post(f"{API}/courses", headers=auth_headers(admin),
                               json={"code": "X1", "title": "T", "credits": 3})
        assert response.status_code == 422

    def test_non_finite_points_are_422(self, client, lecturer, assignment):
        response = client.put(f"{API}/assignments/{assignment.id}/submissions/1/grade",
                              headers={**auth_headers(lecturer), "Content-Type": "application/json"},
                              content='{"points": NaN}')
        assert response.status_code == 422

    def test_request_schema_errors_are_422(self, client, admin):
        response = client.post(f"{API}/courses", headers=auth_headers(admin),
                               json={"code": "X1", "title": "T", "credits": 9})
        assert response.status_code == 422


class TestWorkflowOverHttp:
    def test_enroll_submit_grade(self, client, db, admin, lecturer, student):
        created = client.post(f"{API}/courses", headers=auth_headers(admin), json={
            "code": "BIO110", "title": "Cell Biology", "credits": 3, "lecturer_id": lecturer.id,
        })
        assert created.status_code == 201
        course_id = created.json()["id"]
        assert created.json()["enrolled_count"] == 0

        enrollment = client.post(f"{API}/enrollments", headers=auth_headers(student),
                                 json={"course_id": course_id})
        assert enrollment.json()["status"] == "pending"
        approved = client.put(f"{API}/enrollments/{enrollment.json()['id']}/status",
                              headers=auth_headers(lecturer), json={"status": "enrolled"})
        assert approved.status_code == 200

        assignment = client.post(f"{API}/assignments", headers=auth_headers(lecturer), json={
            "title": "Microscopy", "max_points": 20, "course_id": course_id,
            "due_date": (get_utc_now() + timedelta(days=2)).isoformat(),
        })
        assert assignment.status_code == 201
        assignment_id = assignment.json()["id"]

        submitted = client.post(f"{API}/assignments/{assignment_id}/submit", headers=auth_headers(student),
                                json={"submission_path": "/files/1"})
        assert submitted.status_code == 201
        again = client.post(f"{API}/assignments/{assignment_id}/submit", headers=auth_headers(student),
                            json={"submission_path": "/files/2"})
        assert again.status_code == 409

        graded = client.put(f"{API}/assignments/{assignment_id}/submissions/{submitted.json()['id']}/grade",
                            headers=auth_headers(lecturer), json={"points": 18, "feedback": "Nice"})
        assert graded.status_code == 200
        assert graded.json()["final_points"] == 18

        mine = client.get(f"{API}/assignments/{assignment_id}/my-submission", headers=auth_headers(student))
        assert mine.json()["feedback"] == "Nice"

    def test_upload_and_download_syllabus(self, client, lecturer, student, course):
        uploaded = client.post(f"{API}/courses/{course.id}/syllabus", headers=auth_headers(lecturer),
                               files={"file": ("outline.pdf", b"%PDF-1.4 outline", "application/pdf")})
        assert uploaded.status_code == 201
        url = uploaded.json()["file"]["url"]

        downloaded = client.get(f"{API}{url}", headers=auth_headers(student))
        assert downloaded.status_code == 200
        assert downloaded.content == b"%PDF-1.4 outline"

    def test_file_listings(self, client, db, lecturer, student, course, assignment):
        make_enrollment(db, student, course)
        uploaded = client.post(f"{API}/assignments/{assignment.id}/upload", headers=auth_headers(student),
                               files={"file": ("answer.pdf", b"%PDF-1.4 answer", "application/pdf")})
        assert uploaded.status_code == 201
        file_id = uploaded.json()["file"]["id"]

        mine = client.get(f"{API}/my-files", headers=auth_headers(student))
        assert [f["id"] for f in mine.json()] == [file_id]

        listed = client.get(f"{API}/assignments/{assignment.id}/files", headers=auth_headers(lecturer))
        assert listed.status_code == 200
        assert listed.json()[0]["uploaded_by_id"] == student.id

        denied = client.get(f"{API}/assignments/{assignment.id}/files", headers=auth_headers(student))
        assert denied.status_code == 403

    def test_inactive_course_syllabus_hidden(self, client, db, lecturer, student):
        course = make_course(db, lecturer, is_active=False)
        client.post(f"{API}/courses/{course.id}/syllabus", headers=auth_headers(lecturer),
                    files={"file": ("outline.pdf", b"%PDF-1.4 outline", "application/pdf")})

        assert client.get(f"{API}/courses/{course.id}/syllabus", headers=auth_headers(student)).status_code == 403
        assert client.get(f"{API}/courses/{course.id}/syllabus", headers=auth_headers(lecturer)).status_code == 200

    def test_recommendations_for_students_only(self, client, db, lecturer, student):
        make_course(db, lecturer, title="Machine Learning")
        response = client.post(f"{API}/ai/course-recommendations", headers=auth_headers(student),
                               json={"interests": ["machine learning"], "max_results": 5})
        assert response.status_code == 200
        body = response.json()
        assert body["total_recommendations"] == 1
        assert body["recommendations"][0]["match_score"] >= 20
        assert body["is_fallback"] is True

        denied = client.post(f"{API}/ai/course-recommendations", headers=auth_headers(lecturer), json={})
        assert denied.status_code == 403

    def test_assignment_feedback_falls_back(self, client, lecturer, assignment):
        response = client.post(f"{API}/ai/assignment-feedback", headers=auth_headers(lecturer), json={
            "assignment_id": assignment.id, "submission_content": "An essay",
        })
        assert response.status_code == 200
        assert response.json()["is_fallback"] is True


def test_token_carries_role(student):
    payload = security.decode_token(security.generate_access_token(student))
    assert payload["sub"] == str(student.id)
    assert payload["role"] == "student"
