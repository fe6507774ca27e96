import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from student_service.config import settings
from student_service.exceptions import FetchFailure
from student_service.models.course import Course
from student_service.models.dashboard import PendingQuizView
from student_service.models.quiz import Quiz
from student_service.models.schemas import Identity
from student_service.services.common import (
    fetch_approved_course_ids,
    fetch_completed_quiz_ids,
    parse_documents,
    run_blocking,
)
from student_service.utils.deadlines import is_due_soon, time_remaining
from student_service.utils.timestamps import utcnow

logger = logging.getLogger(__name__)


def pending_sort_key(quiz: Quiz):
    """Dated quizzes first by due date; undated ones newest first."""
    if quiz.due_date is not None:
        return (0, quiz.due_date.timestamp())
    if quiz.created_at is not None:
        return (1, -quiz.created_at.timestamp())
    return (2, 0)


def describe_pending(quizzes: List[Quiz], now: datetime) -> List[PendingQuizView]:
    return [
        PendingQuizView(
            **quiz.model_dump(),
            due_soon=is_due_soon(quiz.due_date, now),
            time_remaining=time_remaining(quiz.due_date, now),
            question_count=len(quiz.questions),
        )
        for quiz in quizzes
    ]


class PendingQuizService:
    def __init__(self, store, clock: Callable[[], datetime] = utcnow,
                 timeout: Optional[float] = None):
        self.store = store
        self.clock = clock
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS

    async def resolve_pending(self, identity: Identity) -> List[Quiz]:
        """Outstanding quizzes of a student, most urgent first."""
        try:
            return await asyncio.wait_for(self._resolve(identity), timeout=self.timeout)
        except FetchFailure:
            raise
        except asyncio.TimeoutError as e:
            raise self._failure(TimeoutError(f"no response after {self.timeout}s")) from e
        except Exception as e:
            raise self._failure(e) from e

    @staticmethod
    def _failure(cause: BaseException) -> FetchFailure:
        logger.error(f"Error fetching pending quizzes: {cause}")
        return FetchFailure(f"Failed to load pending quizzes. {cause}", cause)

    async def _resolve(self, identity: Identity) -> List[Quiz]:
        student_id = identity.id

        course_ids = await fetch_approved_course_ids(self.store, student_id)
        if not course_ids:
            logger.debug(f"No approved enrollments for {student_id}")
            return []

        # every published quiz: quiz-level rosters can reach beyond enrolled courses
        quiz_docs, completed_ids = await asyncio.gather(
            run_blocking(self.store.find, "quizzes", {"is_published": True}),
            fetch_completed_quiz_ids(self.store, student_id),
        )

        relevant = [
            quiz for quiz in parse_documents(Quiz, quiz_docs)
            if quiz.course_id in course_ids or student_id in quiz.enrolled_students
        ]

        now = self.clock()
        pending = [
            quiz for quiz in relevant
            if quiz.id not in completed_ids and (quiz.due_date is None or quiz.due_date > now)
        ]
        pending.sort(key=pending_sort_key)

        return await self._attach_course_names(pending)

    async def _attach_course_names(self, quizzes: List[Quiz]) -> List[Quiz]:
        missing = sorted({q.course_id for q in quizzes if q.course_id and not q.course_name})
        if not missing:
            return quizzes

        course_docs = await run_blocking(self.store.find, "courses", {"_id": {"$in": missing}})
        names = {course.id: course.name for course in parse_documents(Course, course_docs)}
        return [
            quiz if quiz.course_name else quiz.model_copy(update={"course_name": names.get(quiz.course_id)})
            for quiz in quizzes
        ]
