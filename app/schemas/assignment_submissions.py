from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime


class SubmissionStatus(str, Enum):
    SUBMITTED = "Submitted"
    GRADED = "Graded"


class AssignmentSubmissionCreate(BaseModel):
    fileUrl: str = Field(..., min_length=3)


class AssignmentSubmissionGrade(BaseModel):
    grade: int = Field(..., ge=0)
    feedback: Optional[str] = None

    @model_validator(mode="before")
    def convert_empty_strings_to_none(cls, data):
        if isinstance(data, dict):
            for k, v in data.items():
                if v == "":
                    data[k] = None
        return data


class AssignmentSubmissionResponse(BaseModel):
    id: str

    studentId: str
    assignmentId: str
    courseId: str

    fileUrl: str
    status: SubmissionStatus
    submittedAt: datetime

    grade: Optional[int] = None
    feedback: Optional[str] = None
    gradedAt: Optional[datetime] = None

    model_config = {"from_attributes": True}
