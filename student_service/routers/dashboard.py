from fastapi import APIRouter, Depends, HTTPException, status

from student_service.exceptions import FetchFailure
from student_service.models.dashboard import DerivedStats
from student_service.models.schemas import Identity
from student_service.services.dashboard_service import DashboardService
from student_service.utils.dependencies import get_current_student, get_document_store

router = APIRouter(
    prefix="/students",
    tags=["dashboard"],
)


def get_dashboard_service(store=Depends(get_document_store)) -> DashboardService:
    return DashboardService(store)


@router.get(
    "/me/dashboard",
    response_model=DerivedStats,
    summary="Student dashboard",
    description="Counts, trends and chart series for the current student"
)
async def get_dashboard(
    current_user: Identity = Depends(get_current_student),
    service: DashboardService = Depends(get_dashboard_service)
):
    try:
        return await service.compute_dashboard(current_user)
    except FetchFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message
        )
