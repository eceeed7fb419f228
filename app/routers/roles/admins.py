from fastapi import APIRouter, Depends

from app.auth.dependencies import require_role
from app.crud.cascade import delete_company_cascade, delete_course_cascade, delete_student_cascade
from app.crud.companies import serialize_company, update_company_status
from app.crud.settings import settings_store
from app.crud.students import serialize_student
from app.db.database import get_db
from app.schemas.settings import PlatformSettingsResponse, PlatformSettingsUpdate
from app.schemas.users import CompanyStatusUpdate

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_role("admin"))])

# ------------------ Platform Settings ------------------


@router.get("/settings", response_model=PlatformSettingsResponse)
async def get_settings():
    return await settings_store.get()


@router.put("/settings", response_model=PlatformSettingsResponse)
async def update_settings(payload: PlatformSettingsUpdate):
    return await settings_store.update(payload)


# ------------------ Students ------------------

@router.get("/students")
async def list_students():
    students = [serialize_student(s) async for s in get_db().students.find({}).sort("createdAt", -1)]
    return {"total": len(students), "students": students}


@router.delete("/students/{student_id}")
async def delete_student(student_id: str):
    return await delete_student_cascade(student_id)


# ------------------ Companies ------------------

@router.get("/companies")
async def list_companies():
    companies = [serialize_company(c) async for c in get_db().companies.find({}).sort("createdAt", -1)]
    return {"total": len(companies), "companies": companies}


@router.put("/companies/{company_id}/status")
async def set_company_status(company_id: str, payload: CompanyStatusUpdate):
    return await update_company_status(company_id, payload.status)


@router.delete("/companies/{company_id}")
async def delete_company(company_id: str):
    return await delete_company_cascade(company_id)


# ------------------ Courses ------------------

@router.delete("/courses/{course_id}")
async def delete_course(course_id: str):
    return await delete_course_cascade(course_id)
