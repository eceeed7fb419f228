from typing import List

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user, require_role
from app.crud import assignments as crud_assignment
from app.crud import students as crud_student
from app.crud.certificates import certificate_crud
from app.crud.enrollments import enrollment_crud
from app.crud.notifications import list_notifications, mark_all_read
from app.crud.student_progress import progress_crud
from app.schemas.assignment_submissions import (
    AssignmentSubmissionCreate,
    AssignmentSubmissionResponse,
)
from app.schemas.certificates import CertificateResponse
from app.schemas.courses import EnrolledCourse
from app.schemas.student_progress import (
    CourseProgressResponse,
    ProgressOverviewItem,
    SaveProgressRequest,
)
from app.schemas.users import StudentResponse

router = APIRouter(
    prefix="/students",
    tags=["Student – Self"],
    dependencies=[Depends(require_role("student"))],
)

# -----------------------------------------------------
# PROFILE (ME)
# -----------------------------------------------------


@router.get("/me", response_model=StudentResponse)
async def me(current_user=Depends(get_current_user)):
    return await crud_student.get_student_me(current_user)


# -----------------------------------------------------
# COURSES & PROGRESS
# -----------------------------------------------------
@router.get("/courses", response_model=List[EnrolledCourse])
async def my_courses(current_user=Depends(get_current_user)):
    return await enrollment_crud.get_enrolled_courses(current_user["user_id"])


@router.post("/progress", response_model=CourseProgressResponse)
async def save_progress(payload: SaveProgressRequest, current_user=Depends(get_current_user)):
    """
    Playback position updates arrive often; clients should debounce them.
    Completing the last lesson of a certificate course issues the certificate.
    """
    return await progress_crud.save_progress(
        current_user["user_id"],
        payload.courseId,
        payload.lessonId,
        payload.isCompleted,
        payload.timestamp,
    )


@router.get("/progress", response_model=List[ProgressOverviewItem])
async def progress_overview(current_user=Depends(get_current_user)):
    return await progress_crud.get_progress_overview(current_user["user_id"])


@router.get("/progress/{course_id}", response_model=CourseProgressResponse)
async def course_progress(course_id: str, current_user=Depends(get_current_user)):
    return await progress_crud.get_progress(current_user["user_id"], course_id)


# -----------------------------------------------------
# CERTIFICATES
# -----------------------------------------------------
@router.get("/certificates", response_model=List[CertificateResponse])
async def my_certificates(current_user=Depends(get_current_user)):
    return await certificate_crud.list_student_certificates(current_user["user_id"])


@router.get("/certificates/{id}", response_model=CertificateResponse)
async def my_certificate(id: str, current_user=Depends(get_current_user)):
    return await certificate_crud.get_student_certificate(id, current_user["user_id"])


# -----------------------------------------------------
# ASSIGNMENTS
# -----------------------------------------------------
@router.get("/assignments")
async def my_assignments(current_user=Depends(get_current_user)):
    return await crud_assignment.list_student_assignments(current_user["user_id"])


@router.post("/assignments/{assignment_id}/submit", response_model=AssignmentSubmissionResponse)
async def submit_assignment(
    assignment_id: str,
    payload: AssignmentSubmissionCreate,
    current_user=Depends(get_current_user),
):
    return await crud_assignment.submit_assignment(assignment_id, current_user["user_id"], payload)


# -----------------------------------------------------
# NOTIFICATIONS
# -----------------------------------------------------
@router.get("/notifications")
async def my_notifications(current_user=Depends(get_current_user)):
    return await list_notifications(current_user["user_id"])


@router.post("/notifications/read")
async def read_notifications(current_user=Depends(get_current_user)):
    return {"updated": await mark_all_read(current_user["user_id"])}
