from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class FeedbackResponse(BaseModel):
    id: str
    courseId: str
    studentId: str
    studentName: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime
