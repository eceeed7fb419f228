from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime


class UserLogin(BaseModel):
    email: EmailStr
    password: str
    role: Literal["student", "company", "admin"] = "student"


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)


class CompanyCreate(StudentCreate):
    website: Optional[str] = None


class StudentResponse(BaseModel):
    id: str
    name: str
    email: EmailStr
    avatarUrl: Optional[str] = ""
    createdAt: datetime


class CompanyResponse(BaseModel):
    id: str
    name: str
    email: EmailStr
    website: Optional[str] = None
    status: str = "active"
    createdAt: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    user: dict


class CompanyStatusUpdate(BaseModel):
    status: Literal["pending", "active", "suspended"]
