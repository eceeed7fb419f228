from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class AssignmentCreate(BaseModel):
    courseId: str

    title: str = Field(..., min_length=3)
    description: Optional[str] = None

    dueDate: datetime
    totalMarks: int = Field(100, ge=1)
    fileUrl: Optional[str] = None
    allowedFormats: List[str] = Field(default_factory=lambda: ["pdf", "docx"])


class AssignmentResponse(BaseModel):
    id: str
    courseId: str
    courseName: str
    companyId: str

    title: str
    description: Optional[str]

    dueDate: datetime
    totalMarks: int

    fileUrl: Optional[str]
    allowedFormats: List[str]

    createdAt: datetime

    model_config = {"from_attributes": True}
