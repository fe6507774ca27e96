from fastapi import APIRouter, Depends, status
from typing import List

from student_service.models.enrollment import Enrollment, EnrollmentCreate, EnrollmentReview
from student_service.models.schemas import Identity
from student_service.services.enrollment_service import EnrollmentService
from student_service.utils.dependencies import get_current_student, get_current_user, get_document_store

router = APIRouter(
    prefix="/enrollments",
    tags=["enrollments"],
    responses={404: {"description": "Not found"}}
)


def get_enrollment_service(store=Depends(get_document_store)) -> EnrollmentService:
    return EnrollmentService(store)


@router.get("/", response_model=List[Enrollment])
def list_enrollments(
    current_user: Identity = Depends(get_current_student),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    """Enrollments of the current student, all statuses"""
    return service.list_enrollments(current_user)


@router.post("/", response_model=Enrollment, status_code=status.HTTP_201_CREATED)
def request_enrollment(
    request: EnrollmentCreate,
    current_user: Identity = Depends(get_current_student),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    """Ask to join a course"""
    return service.request_enrollment(current_user, request.course_id)


@router.delete("/{enrollment_id}", response_model=dict)
def cancel_enrollment(
    enrollment_id: str,
    current_user: Identity = Depends(get_current_student),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    service.cancel_enrollment(current_user, enrollment_id)
    return {"id": enrollment_id, "message": "Enrollment canceled successfully"}


@router.patch("/{enrollment_id}", response_model=Enrollment)
def review_enrollment(
    enrollment_id: str,
    review: EnrollmentReview,
    current_user: Identity = Depends(get_current_user),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    """Approve or reject an enrollment request (teachers and admins)"""
    return service.review_enrollment(current_user, enrollment_id, review.status)
