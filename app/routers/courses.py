from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.auth.dependencies import require_role
from app.crud.cascade import delete_course_cascade
from app.crud.courses import course_crud
from app.crud.enrollments import enrollment_crud
from app.crud.feedback import list_course_feedback, submit_feedback
from app.schemas.courses import CourseCreate, CourseResponse, CourseUpdate
from app.schemas.feedback import FeedbackCreate, FeedbackResponse
from app.schemas.payments import EnrollResponse

router = APIRouter(prefix="/courses", tags=["Courses"])


# -------------------- PUBLIC CATALOGUE --------------------
@router.get("/")
async def list_courses(
    search: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    return await course_crud.list_published_courses(search, skip, limit)


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course_id: str):
    return await course_crud.get_course(course_id, published_only=True)


@router.get("/{course_id}/feedback", response_model=List[FeedbackResponse])
async def get_course_feedback(course_id: str):
    return await list_course_feedback(course_id)


# -------------------- COMPANY --------------------
@router.post("/", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(payload: CourseCreate, current_user=Depends(require_role("company"))):
    return await course_crud.create_course(current_user["user_id"], payload)


@router.patch("/{course_id}", response_model=CourseResponse)
async def update_course(course_id: str, payload: CourseUpdate, current_user=Depends(require_role("company"))):
    return await course_crud.update_course(course_id, current_user["user_id"], payload)


@router.post("/{course_id}/publish", response_model=CourseResponse)
async def publish_course(course_id: str, current_user=Depends(require_role("company"))):
    return await course_crud.publish_course(course_id, current_user["user_id"])


@router.get("/{course_id}/students", response_model=List[str])
async def list_course_students(course_id: str, current_user=Depends(require_role("company"))):
    await course_crud.get_owned_course_doc(course_id, current_user["user_id"])
    return await enrollment_crud.list_course_students(course_id)


@router.delete("/{course_id}")
async def delete_course(course_id: str, current_user=Depends(require_role("company"))):
    await course_crud.get_owned_course_doc(course_id, current_user["user_id"])
    return await delete_course_cascade(course_id)


# -------------------- STUDENT --------------------
@router.post("/{course_id}/enroll", response_model=EnrollResponse, response_model_exclude_none=True)
async def enroll_in_course(course_id: str, current_user=Depends(require_role("student"))):
    return await enrollment_crud.enroll(course_id, current_user["user_id"])


@router.post("/{course_id}/feedback", response_model=FeedbackResponse)
async def post_course_feedback(course_id: str, payload: FeedbackCreate, current_user=Depends(require_role("student"))):
    return await submit_feedback(course_id, current_user["user_id"], payload)
