import logging
from datetime import datetime
from typing import Callable, List

from fastapi import HTTPException, status

from student_service.models.course import Course
from student_service.models.enrollment import Enrollment, EnrollmentStatus
from student_service.models.schemas import Identity, UserRole
from student_service.services.common import parse_documents
from student_service.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

EXISTING_ENROLLMENT_MESSAGES = {
    EnrollmentStatus.PENDING: "Your enrollment request is already pending approval",
    EnrollmentStatus.APPROVED: "You are already enrolled in this course",
    EnrollmentStatus.REJECTED: "Your previous enrollment was rejected",
}


class EnrollmentService:
    def __init__(self, store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def _get_course(self, course_id: str) -> Course:
        doc = self.store.get("courses", course_id)
        if not doc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Course not found"
            )
        return Course(**doc)

    def _get_enrollment(self, enrollment_id: str) -> Enrollment:
        doc = self.store.get("enrollments", enrollment_id)
        if not doc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Enrollment not found"
            )
        return Enrollment(**doc)

    def list_enrollments(self, identity: Identity) -> List[Enrollment]:
        docs = self.store.find("enrollments", {"student_id": identity.id})
        return parse_documents(Enrollment, docs)

    def request_enrollment(self, identity: Identity, course_id: str) -> Enrollment:
        """Ask to join a course; a teacher approves or rejects the request."""
        course = self._get_course(course_id)

        existing = parse_documents(Enrollment, self.store.find(
            "enrollments", {"student_id": identity.id, "course_id": course.id}, limit=1
        ))
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=EXISTING_ENROLLMENT_MESSAGES[existing[0].status]
            )

        now = self.clock()
        enrollment_doc = {
            "course_id": course.id,
            "course_name": course.name,
            "student_id": identity.id,
            "student_name": identity.display_name,
            "teacher_id": course.teacher_id,
            "status": EnrollmentStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }
        enrollment_id = self.store.insert("enrollments", enrollment_doc)
        logger.info(f"Enrollment request {enrollment_id}: {identity.id} -> {course.id}")

        return Enrollment(id=enrollment_id, **enrollment_doc)

    def cancel_enrollment(self, identity: Identity, enrollment_id: str) -> bool:
        enrollment = self._get_enrollment(enrollment_id)
        if enrollment.student_id != identity.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )

        self.store.delete("enrollments", enrollment.id)
        self.store.pull("courses", enrollment.course_id, "enrolled_students", identity.id)
        logger.info(f"Enrollment {enrollment.id} cancelled")
        return True

    def review_enrollment(self, identity: Identity, enrollment_id: str,
                          new_status: EnrollmentStatus) -> Enrollment:
        """Approve or reject a request (course teacher or admin only)"""
        if new_status == EnrollmentStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Status must be approved or rejected"
            )

        enrollment = self._get_enrollment(enrollment_id)
        course = self._get_course(enrollment.course_id)

        if identity.role != UserRole.ADMIN and not (
            identity.role == UserRole.TEACHER and course.teacher_id == identity.id
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the course teacher can review enrollments"
            )

        now = self.clock()
        self.store.update("enrollments", enrollment.id, {
            "status": new_status.value,
            "updated_at": now,
        })

        # course roster follows the enrollment decision
        if new_status == EnrollmentStatus.APPROVED:
            self.store.add_to_set("courses", course.id, "enrolled_students", enrollment.student_id)
        else:
            self.store.pull("courses", course.id, "enrolled_students", enrollment.student_id)

        logger.info(f"Enrollment {enrollment.id} {new_status.value} by {identity.id}")
        return enrollment.model_copy(update={"status": new_status, "updated_at": now})
