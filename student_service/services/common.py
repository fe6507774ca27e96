import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from pymongo import DESCENDING

from student_service.exceptions import IndexUnavailable
from student_service.models.quiz import QuizResult

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


async def run_blocking(func: Callable, *args, **kwargs):
    """Run a blocking store call in a worker thread."""
    return await asyncio.to_thread(func, *args, **kwargs)


def parse_documents(model: Type[ModelT], docs: Iterable[Dict]) -> List[ModelT]:
    """Validate raw documents, skipping (and logging) malformed ones."""
    parsed = []
    for doc in docs:
        try:
            parsed.append(model(**doc))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {model.__name__} {doc.get('id')}: {e}")
    return parsed


def sort_by_submission(results: List[QuizResult]) -> List[QuizResult]:
    """Newest first; results without a submission time go last."""
    return sorted(
        results,
        key=lambda r: (r.submitted_at is not None, r.submitted_at or EPOCH),
        reverse=True,
    )


async def fetch_student_results(store, student_id: str, limit: Optional[int] = None) -> List[QuizResult]:
    """Quiz results of a student, newest first, optionally capped.

    The ordered query needs the (student_id, submitted_at) index. When the
    store reports it missing, every result is fetched unordered and sorted
    here, so both paths return the same list.
    """
    filters = {"student_id": student_id}
    try:
        docs = await run_blocking(store.find, "quiz_results", filters, ("submitted_at", DESCENDING), limit)
    except IndexUnavailable as e:
        logger.warning(f"Ordered query failed, falling back to simple query: {e}")
        docs = await run_blocking(store.find, "quiz_results", filters)

    results = sort_by_submission(parse_documents(QuizResult, docs))
    return results[:limit] if limit else results


async def fetch_completed_quiz_ids(store, student_id: str) -> set:
    docs = await run_blocking(store.find, "quiz_results", {"student_id": student_id})
    return {doc.get("quiz_id") for doc in docs if doc.get("quiz_id")}


async def fetch_approved_course_ids(store, student_id: str) -> List[str]:
    docs = await run_blocking(
        store.find, "enrollments", {"student_id": student_id, "status": "approved"}
    )
    course_ids = []
    for doc in docs:
        course_id = doc.get("course_id")
        if course_id and course_id not in course_ids:
            course_ids.append(course_id)
    return course_ids
