from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from app.auth.auth_service import login_user
from app.crud.companies import create_company
from app.crud.students import create_student
from app.schemas.users import (
    CompanyCreate,
    CompanyResponse,
    StudentCreate,
    StudentResponse,
    TokenResponse,
    UserLogin,
)

router = APIRouter(tags=["Generate Token / Login"])


@router.post("/auth/token", response_model=TokenResponse)
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    """OAuth2 compatible token login, for use with swagger. The role goes in client_id."""
    return await login_user(form_data.username, form_data.password, form_data.client_id or "student")


@router.post("/auth/login", response_model=TokenResponse)
async def json_login(payload: UserLogin):
    """JSON based login, primarily for use by our custom frontend."""
    return await login_user(payload.email, payload.password, payload.role)


@router.post("/auth/students/register", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def register_student(payload: StudentCreate):
    return await create_student(payload)


@router.post("/auth/companies/register", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def register_company(payload: CompanyCreate):
    return await create_company(payload)
