"""
Student dashboard aggregation.

Joins enrollments, courses, quizzes and quiz results of one student into a
``DerivedStats`` bundle. Nothing is cached: every call reads the store again.
"""
import asyncio
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from student_service.config import settings
from student_service.exceptions import FetchFailure, StaleReference
from student_service.models.course import Course
from student_service.models.dashboard import ActivityItem, ChartSeries, DerivedStats
from student_service.models.quiz import Quiz, QuizResult
from student_service.models.schemas import Identity
from student_service.services.common import (
    fetch_approved_course_ids,
    fetch_completed_quiz_ids,
    fetch_student_results,
    parse_documents,
    run_blocking,
    sort_by_submission,
)
from student_service.utils.scoring import (
    average_score,
    performance_trend,
    round_half_up,
    score_distribution,
)
from student_service.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

UNKNOWN_COURSE = "Unknown Course"
FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def sort_upcoming(quizzes: List[Quiz]) -> List[Quiz]:
    """Due date ascending, quizzes without a due date last."""
    return sorted(quizzes, key=lambda q: (q.due_date is None, q.due_date or FAR_FUTURE))


class DashboardService:
    def __init__(self, store, clock: Callable[[], datetime] = utcnow,
                 timeout: Optional[float] = None):
        self.store = store
        self.clock = clock
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS

    async def compute_dashboard(self, identity: Identity) -> DerivedStats:
        """Compute the dashboard bundle for ``identity``.

        Raises ``FetchFailure`` when a required read fails or times out.
        """
        try:
            return await asyncio.wait_for(self._compute(identity), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise self._failure(TimeoutError(f"no response after {self.timeout}s")) from e

    @staticmethod
    def _failure(cause: BaseException) -> FetchFailure:
        logger.error(f"Error fetching dashboard data: {cause}")
        return FetchFailure(f"Failed to load dashboard data. {cause}", cause)

    async def _compute(self, identity: Identity) -> DerivedStats:
        student_id = identity.id

        try:
            user_doc, course_ids = await asyncio.gather(
                run_blocking(self.store.get, "users", student_id),
                fetch_approved_course_ids(self.store, student_id),
            )
        except Exception as e:
            raise self._failure(e) from e

        user_name = (user_doc or {}).get("name") or identity.display_name or "Student"

        if not course_ids:
            return DerivedStats(user_name=user_name)

        try:
            course_docs, quiz_docs, results, completed_ids = await asyncio.gather(
                run_blocking(self.store.find, "courses", {"_id": {"$in": course_ids}}),
                run_blocking(
                    self.store.find, "quizzes",
                    {"course_id": {"$in": course_ids}, "is_published": True},
                ),
                fetch_student_results(self.store, student_id, settings.RECENT_RESULTS_LIMIT),
                fetch_completed_quiz_ids(self.store, student_id),
            )
        except Exception as e:
            raise self._failure(e) from e

        course_names: Dict[str, str] = OrderedDict(
            (course.id, course.name) for course in parse_documents(Course, course_docs)
        )

        quizzes = [
            quiz.model_copy(update={"course_name": course_names.get(quiz.course_id, UNKNOWN_COURSE)})
            for quiz in parse_documents(Quiz, quiz_docs)
        ]

        completed = await self._resolve_results(results)

        stats = self._aggregate(completed, quizzes, course_names, completed_ids)
        stats.user_name = user_name
        stats.enrolled_courses = len(course_ids)
        return stats

    async def _resolve_result(self, result: QuizResult) -> Optional[Tuple[QuizResult, Quiz]]:
        try:
            doc = await run_blocking(self.store.get, "quizzes", result.quiz_id)
            if doc is None:
                raise StaleReference(result.quiz_id, result.id)
            return result, Quiz(**doc)
        except StaleReference as e:
            logger.warning(f"Dropping result {result.id}: {e}")
            return None
        except Exception as e:
            logger.error(f"Error processing quiz result {result.id}: {e}")
            return None

    async def _resolve_results(self, results: List[QuizResult]) -> List[Tuple[QuizResult, Quiz]]:
        resolved = await asyncio.gather(*(self._resolve_result(r) for r in results))
        by_result = {pair[0].id: pair for pair in resolved if pair is not None}
        # lookups finish in any order; the output follows submission time
        return [by_result[r.id] for r in sort_by_submission(results) if r.id in by_result]

    def _aggregate(self, completed: List[Tuple[QuizResult, Quiz]], quizzes: List[Quiz],
                   course_names: Dict[str, str], completed_ids: set) -> DerivedStats:
        now = self.clock()
        completed_ids = set(completed_ids) | {quiz.id for _, quiz in completed}

        open_quizzes = [q for q in quizzes if q.id not in completed_ids]
        overdue = [q for q in open_quizzes if q.due_date is not None and q.due_date < now]
        pending = [q for q in open_quizzes if q.due_date is None or q.due_date >= now]

        scores = [result.score for result, _ in completed]

        course_quiz_count = OrderedDict((course_id, 0) for course_id in course_names)
        for quiz in quizzes:
            course_quiz_count[quiz.course_id] = course_quiz_count.get(quiz.course_id, 0) + 1

        course_totals = OrderedDict((course_id, [0, 0]) for course_id in course_names)
        for result, quiz in completed:
            if quiz.course_id:
                totals = course_totals.setdefault(quiz.course_id, [0, 0])
                totals[0] += result.score
                totals[1] += 1

        recent_activity = [
            ActivityItem(
                id=result.id,
                title=f"Completed: {quiz.title}",
                score=result.score,
                course=course_names.get(quiz.course_id, UNKNOWN_COURSE),
                date=result.submitted_at,
            )
            for result, quiz in completed
        ]

        recent = scores[:settings.RECENT_RESULTS_LIMIT]
        stats = DerivedStats(
            completed_quizzes=len(completed),
            pending_quizzes=len(pending),
            overdue_quizzes=len(overdue),
            average_score=average_score(scores),
            highest_score=max(scores) if scores else 0,
            lowest_score=min(scores) if scores else 0,
            performance_trend=performance_trend(scores),
            recent_activity=recent_activity,
            upcoming_quizzes=sort_upcoming(pending)[:settings.UPCOMING_QUIZZES_LIMIT],
            performance_data=ChartSeries(
                label="Quiz Score (%)",
                labels=[f"Quiz {i + 1}" for i in range(len(recent))],
                data=recent,
            ),
            course_distribution=ChartSeries(
                label="Quizzes per Course",
                labels=[course_names[c] for c, n in course_quiz_count.items() if n > 0 and c in course_names],
                data=[n for c, n in course_quiz_count.items() if n > 0 and c in course_names],
            ),
            course_performance=ChartSeries(
                label="Average Score by Course",
                labels=[course_names[c] for c, (_, n) in course_totals.items() if n > 0 and c in course_names],
                data=[round_half_up(total / n) for c, (total, n) in course_totals.items()
                      if n > 0 and c in course_names],
            ),
        )
        stats.score_distribution.data = score_distribution(scores)
        return stats
