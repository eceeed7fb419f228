from typing import List, Optional

from fastapi import APIRouter, Depends, status

from app.auth.dependencies import get_current_user, require_role
from app.crud import assignments as crud_assignment
from app.crud.companies import get_company_by_id
from app.crud.courses import course_crud
from app.crud.notifications import list_notifications
from app.schemas.assignment_submissions import (
    AssignmentSubmissionGrade,
    AssignmentSubmissionResponse,
)
from app.schemas.assignments import AssignmentCreate, AssignmentResponse
from app.schemas.courses import CourseResponse
from app.schemas.users import CompanyResponse
from app.utils.exceptions import not_found

router = APIRouter(
    prefix="/companies",
    tags=["Company – Self"],
    dependencies=[Depends(require_role("company"))],
)


@router.get("/me", response_model=CompanyResponse)
async def me(current_user=Depends(get_current_user)):
    company = await get_company_by_id(current_user["user_id"])
    if not company:
        not_found("Company profile")
    return company


@router.get("/courses", response_model=List[CourseResponse])
async def my_courses(current_user=Depends(get_current_user)):
    return await course_crud.list_company_courses(current_user["user_id"])


@router.get("/notifications")
async def my_notifications(current_user=Depends(get_current_user)):
    return await list_notifications(current_user["user_id"])


# ---------------------------
# ASSIGNMENTS
# ---------------------------
@router.post("/assignments", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(payload: AssignmentCreate, current_user=Depends(get_current_user)):
    return await crud_assignment.create_assignment(payload, current_user["user_id"])


@router.get("/assignments", response_model=List[AssignmentResponse])
async def list_assignments(courseId: Optional[str] = None, current_user=Depends(get_current_user)):
    return await crud_assignment.list_company_assignments(current_user["user_id"], courseId)


@router.delete("/assignments/{assignment_id}")
async def delete_assignment(assignment_id: str, current_user=Depends(get_current_user)):
    await crud_assignment.delete_assignment(assignment_id, current_user["user_id"])
    return {"message": "Assignment deleted successfully"}


@router.get("/assignments/{assignment_id}/submissions", response_model=List[AssignmentSubmissionResponse])
async def list_submissions(assignment_id: str, current_user=Depends(get_current_user)):
    return await crud_assignment.list_submissions(assignment_id, current_user["user_id"])


@router.put("/submissions/{submission_id}/grade", response_model=AssignmentSubmissionResponse)
async def grade_submission(
    submission_id: str,
    payload: AssignmentSubmissionGrade,
    current_user=Depends(get_current_user),
):
    return await crud_assignment.grade_submission(submission_id, current_user["user_id"], payload)
