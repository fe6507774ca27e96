from datetime import timedelta

import jwt
import pytest
from fastapi.testclient import TestClient

from student_service.config import settings
from student_service.exceptions import FetchFailure
from student_service.main import app
from student_service.routers.dashboard import get_dashboard_service
from student_service.utils.dependencies import get_document_store
from student_service.utils.timestamps import utcnow

from tests.helpers import Seeder, make_store


def bearer(user_id, role="student", name=None):
    token = jwt.encode(
        {"sub": user_id, "name": name, "role": role},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def store():
    store = make_store()
    app.dependency_overrides[get_document_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    # no context manager: lifespan (MongoDB connection) is not started
    return TestClient(app)


@pytest.fixture
def seeded(store):
    now = utcnow()
    seed = Seeder(store)
    seed.course("course-a", "Algebra", teacher_id="teacher-1")
    seed.enrollment("student-1", "course-a")
    seed.quiz("soon", "course-a", title="Soon", due_date=(now + timedelta(hours=3)).isoformat())
    seed.quiz("later", "course-a", title="Later", due_date=(now + timedelta(days=4)).isoformat())
    seed.result("student-1", "done", 85, now - timedelta(days=1), quiz_title="Done", course_id="course-a")
    seed.quiz("done", "course-a", title="Done")
    return store


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_dashboard_requires_token(client):
    assert client.get("/api/v1/students/me/dashboard").status_code == 401


def test_dashboard_rejects_bad_token(client):
    response = client.get("/api/v1/students/me/dashboard", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_dashboard_is_for_students(client):
    response = client.get("/api/v1/students/me/dashboard", headers=bearer("teacher-1", role="teacher"))
    assert response.status_code == 403


def test_dashboard(client, seeded):
    response = client.get("/api/v1/students/me/dashboard", headers=bearer("student-1", name="Alice"))

    assert response.status_code == 200
    stats = response.json()
    assert stats["user_name"] == "Alice"
    assert stats["enrolled_courses"] == 1
    assert stats["completed_quizzes"] == 1
    assert stats["pending_quizzes"] == 2
    assert [q["id"] for q in stats["upcoming_quizzes"]] == ["soon", "later"]
    assert stats["score_distribution"]["data"] == [0, 0, 0, 0, 1]


def test_dashboard_fetch_failure(client):
    class FailingService:
        async def compute_dashboard(self, identity):
            raise FetchFailure("Failed to load dashboard data. timeout")

    app.dependency_overrides[get_dashboard_service] = lambda: FailingService()

    response = client.get("/api/v1/students/me/dashboard", headers=bearer("student-1"))

    assert response.status_code == 503
    assert response.json()["detail"] == "Failed to load dashboard data. timeout"


def test_pending_quizzes(client, seeded):
    response = client.get("/api/v1/quizzes/pending", headers=bearer("student-1"))

    assert response.status_code == 200
    quizzes = response.json()
    assert [q["id"] for q in quizzes] == ["soon", "later"]
    assert quizzes[0]["due_soon"] is True
    assert quizzes[0]["time_remaining"].endswith("remaining")
    assert quizzes[1]["due_soon"] is False
    assert quizzes[0]["question_count"] == 1
    assert "correct_answer" not in quizzes[0]["questions"][0]


def test_submit_and_history(client, seeded):
    headers = bearer("student-1")

    response = client.post("/api/v1/quizzes/soon/submit", json={"answers": ["4"]}, headers=headers)
    assert response.status_code == 201
    assert response.json()["score"] == 100

    again = client.post("/api/v1/quizzes/soon/submit", json={"answers": ["4"]}, headers=headers)
    assert again.status_code == 409

    history = client.get("/api/v1/quizzes/results", headers=headers).json()
    assert [r["quiz_id"] for r in history["results"]] == ["soon", "done"]
    assert history["summary"]["total"] == 2


def test_enrollment_flow(client, store):
    Seeder(store).course("course-b", "Biology", teacher_id="teacher-1")

    created = client.post("/api/v1/enrollments/", json={"course_id": "course-b"}, headers=bearer("student-1"))
    assert created.status_code == 201
    enrollment_id = created.json()["id"]

    forbidden = client.patch(f"/api/v1/enrollments/{enrollment_id}", json={"status": "approved"},
                             headers=bearer("teacher-2", role="teacher"))
    assert forbidden.status_code == 403

    approved = client.patch(f"/api/v1/enrollments/{enrollment_id}", json={"status": "approved"},
                            headers=bearer("teacher-1", role="teacher"))
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    listed = client.get("/api/v1/enrollments/", headers=bearer("student-1")).json()
    assert [e["course_id"] for e in listed] == ["course-b"]

    deleted = client.delete(f"/api/v1/enrollments/{enrollment_id}", headers=bearer("student-1"))
    assert deleted.json()["message"] == "Enrollment canceled successfully"
    assert store.get("courses", "course-b")["enrolled_students"] == []


def test_review_back_to_pending_is_invalid(client, store):
    Seeder(store).course("course-b", "Biology")
    enrollment_id = Seeder(store).enrollment("student-1", "course-b", status="pending")

    response = client.patch(f"/api/v1/enrollments/{enrollment_id}", json={"status": "pending"},
                            headers=bearer("teacher-1", role="teacher"))
    assert response.status_code == 422
