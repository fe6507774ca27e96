from datetime import datetime, timedelta, timezone

from student_service.database import MemoryDocumentStore, create_indexes

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_store(indexed: bool = True) -> MemoryDocumentStore:
    store = MemoryDocumentStore()
    if indexed:
        create_indexes(store)
    return store


class Seeder:
    """Small helpers to put documents in a store."""

    def __init__(self, store):
        self.store = store

    def course(self, course_id, name, teacher_id="teacher-1", **extra):
        return self.store.insert("courses", {
            "id": course_id, "name": name, "teacher_id": teacher_id,
            "enrolled_students": [], **extra,
        })

    def enrollment(self, student_id, course_id, status="approved", **extra):
        return self.store.insert("enrollments", {
            "student_id": student_id, "course_id": course_id, "status": status,
            "created_at": NOW - timedelta(days=30), **extra,
        })

    def quiz(self, quiz_id, course_id, title=None, is_published=True, due_date=None, **extra):
        return self.store.insert("quizzes", {
            "id": quiz_id, "course_id": course_id, "title": title or f"Quiz {quiz_id}",
            "is_published": is_published, "due_date": due_date,
            "questions": extra.pop("questions", [
                {"text": "2 + 2 = ?", "options": ["3", "4"], "correct_answer": "4"},
            ]),
            **extra,
        })

    def result(self, student_id, quiz_id, score, submitted_at, **extra):
        return self.store.insert("quiz_results", {
            "student_id": student_id, "quiz_id": quiz_id, "score": score,
            "submitted_at": submitted_at, **extra,
        })
