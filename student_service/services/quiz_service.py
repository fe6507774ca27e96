import logging
from datetime import datetime
from typing import Callable, List, Optional

from fastapi import HTTPException, status

from student_service.config import settings
from student_service.exceptions import DuplicateDocument, FetchFailure
from student_service.models.dashboard import ResultsHistory, ResultsSummary
from student_service.models.quiz import Quiz, QuizResult, QuizScore, QuizSubmission
from student_service.models.schemas import Identity
from student_service.services.common import fetch_student_results
from student_service.services.event_publisher import EventPublisher
from student_service.utils.scoring import average_score, grade_answers, round_half_up
from student_service.utils.timestamps import utcnow

logger = logging.getLogger(__name__)


def summarize_results(results: List[QuizResult], passing_score: int) -> ResultsSummary:
    """Summary of a results history ordered newest first."""
    total = len(results)
    if total == 0:
        return ResultsSummary()

    scores = [r.score for r in results]
    improvement = 0.0
    if total > 1:
        newest, oldest = scores[0], scores[-1]
        improvement = round_half_up((newest - oldest) / (oldest or 1) * 100, 1)

    return ResultsSummary(
        total=total,
        passed=sum(1 for s in scores if s >= passing_score),
        failed=sum(1 for s in scores if s < passing_score),
        average=average_score(scores),
        highest_score=max(scores),
        lowest_score=min(scores),
        improvement=improvement,
    )


class QuizService:
    def __init__(self, store, publisher: Optional[EventPublisher] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.publisher = publisher or EventPublisher()
        self.clock = clock

    def _is_enrolled(self, student_id: str, quiz: Quiz) -> bool:
        if student_id in quiz.enrolled_students:
            return True
        if not quiz.course_id:
            return False
        enrollments = self.store.find("enrollments", {
            "student_id": student_id,
            "course_id": quiz.course_id,
            "status": "approved",
        }, limit=1)
        return bool(enrollments)

    def submit_quiz(self, identity: Identity, quiz_id: str, submission: QuizSubmission) -> QuizScore:
        """Grade and store a student's answers for a quiz"""
        doc = self.store.get("quizzes", quiz_id)
        if not doc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quiz not found"
            )
        quiz = Quiz(**doc)

        if not quiz.is_published:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This quiz is not available"
            )

        now = self.clock()
        if quiz.due_date is not None and quiz.due_date < now:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The due date for this quiz has passed"
            )

        if not self._is_enrolled(identity.id, quiz):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not enrolled in this course or quiz"
            )

        if self.store.find("quiz_results", {"student_id": identity.id, "quiz_id": quiz.id}, limit=1):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already completed this quiz"
            )

        grading = grade_answers(quiz.questions, submission.answers, settings.PASSING_SCORE)

        course_name = quiz.course_name
        if not course_name and quiz.course_id:
            course = self.store.get("courses", quiz.course_id)
            course_name = (course or {}).get("name")

        result_doc = {
            "quiz_id": quiz.id,
            "quiz_title": quiz.title,
            "student_id": identity.id,
            "student_name": identity.display_name,
            "teacher_id": quiz.teacher_id,
            "course_id": quiz.course_id,
            "course_name": course_name,
            "score": grading["score"],
            "answers": submission.answers,
            "correct_answers": grading["correct_answers"],
            "incorrect_answers": grading["incorrect_answers"],
            "unanswered_questions": grading["unanswered_questions"],
            "total_questions": grading["total_questions"],
            "submitted_at": now,
        }
        try:
            result_id = self.store.insert("quiz_results", result_doc)
        except DuplicateDocument:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already completed this quiz"
            )

        if identity.id not in quiz.enrolled_students:
            self.store.add_to_set("quizzes", quiz.id, "enrolled_students", identity.id)

        logger.info(f"Quiz {quiz.id} submitted by {identity.id}: {grading['score']}%")

        self.publisher.quiz_completed({
            "quiz_id": quiz.id,
            "user_id": identity.id,
            "course_id": quiz.course_id,
            "score": grading["score"],
            "passed": grading["passed"],
            "timestamp": now.isoformat(),
        })

        return QuizScore(
            result_id=result_id,
            quiz_id=quiz.id,
            student_id=identity.id,
            score=grading["score"],
            passed=grading["passed"],
            total_questions=grading["total_questions"],
            correct_answers=grading["correct_answers"],
            incorrect_answers=grading["incorrect_answers"],
            unanswered_questions=grading["unanswered_questions"],
            submitted_at=now,
            answers_feedback=grading["answers_feedback"],
        )

    async def get_results_history(self, identity: Identity) -> ResultsHistory:
        """All results of the student, newest first, with summary figures."""
        try:
            results = await fetch_student_results(self.store, identity.id)
        except Exception as e:
            logger.error(f"Error fetching results: {e}")
            raise FetchFailure(f"Failed to load quiz results. {e}", e) from e

        return ResultsHistory(
            results=results,
            summary=summarize_results(results, settings.PASSING_SCORE),
        )
