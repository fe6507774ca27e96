from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from student_service.exceptions import FetchFailure
from student_service.models.dashboard import PendingQuizView, ResultsHistory
from student_service.models.quiz import QuizScore, QuizSubmission
from student_service.models.schemas import Identity
from student_service.services.pending_service import PendingQuizService, describe_pending
from student_service.services.quiz_service import QuizService
from student_service.utils.dependencies import get_current_student, get_document_store

router = APIRouter(
    prefix="/quizzes",
    tags=["quizzes"],
    responses={404: {"description": "Not found"}}
)


def get_pending_service(store=Depends(get_document_store)) -> PendingQuizService:
    return PendingQuizService(store)


def get_quiz_service(store=Depends(get_document_store)) -> QuizService:
    return QuizService(store)


@router.get(
    "/pending",
    response_model=List[PendingQuizView],
    summary="Pending quizzes",
    description="Quizzes the current student still has to take, most urgent first"
)
async def get_pending_quizzes(
    current_user: Identity = Depends(get_current_student),
    service: PendingQuizService = Depends(get_pending_service)
):
    try:
        quizzes = await service.resolve_pending(current_user)
    except FetchFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message
        )
    return describe_pending(quizzes, service.clock())


@router.get(
    "/results",
    response_model=ResultsHistory,
    summary="Quiz results history",
    description="All quiz results of the current student with summary figures"
)
async def get_results(
    current_user: Identity = Depends(get_current_student),
    service: QuizService = Depends(get_quiz_service)
):
    try:
        return await service.get_results_history(current_user)
    except FetchFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message
        )


@router.post(
    "/{quiz_id}/submit",
    response_model=QuizScore,
    status_code=status.HTTP_201_CREATED,
    summary="Submit quiz answers",
    description="Submit answers for a quiz and get results"
)
def submit_quiz(
    quiz_id: str,
    submission: QuizSubmission,
    current_user: Identity = Depends(get_current_student),
    service: QuizService = Depends(get_quiz_service)
):
    """Submit quiz answers"""
    return service.submit_quiz(current_user, quiz_id, submission)
