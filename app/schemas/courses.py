from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime


class CourseStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"


# A single lesson inside a section; lessonId is stable across edits
class LessonSchema(BaseModel):
    lessonId: Optional[str] = None
    title: str = Field(..., min_length=1)
    videoUrl: Optional[str] = ""
    videoPublicId: Optional[str] = ""


# Ordered group of lessons
class SectionSchema(BaseModel):
    title: str = Field(..., min_length=1)
    lessons: List[LessonSchema] = []


# Base schema containing shared fields for all course-related operations
class CourseBase(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1)
    level: str = "Beginner"  # Possible values: Beginner, Intermediate, Advanced
    tags: List[str] = []
    price: int = Field(0, ge=0)
    offerCertificate: bool = False
    thumbnailUrl: Optional[str] = ""
    curriculum: List[SectionSchema] = []


class CourseCreate(CourseBase):
    pass


# All fields optional; only what is sent gets modified
class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    level: Optional[str] = None
    tags: Optional[List[str]] = None
    price: Optional[int] = Field(None, ge=0)
    offerCertificate: Optional[bool] = None
    status: Optional[CourseStatus] = None
    thumbnailUrl: Optional[str] = None
    curriculum: Optional[List[SectionSchema]] = None

    @model_validator(mode="before")
    def convert_empty_strings_to_none(cls, data):
        if isinstance(data, dict):
            for key, value in data.items():
                if value == "" and key != "thumbnailUrl":
                    data[key] = None
        return data


class CourseResponse(CourseBase):
    id: str
    status: CourseStatus
    companyId: str
    instructorName: Optional[str] = None
    enrolledStudents: int = 0
    createdAt: datetime
    updatedAt: datetime


class EnrolledCourse(BaseModel):
    id: str
    title: str
    thumbnailUrl: Optional[str] = ""
    level: Optional[str] = None
    instructorName: Optional[str] = None
    totalLessons: int = 0
    completedLessons: int = 0
    progress: int = 0  # Percentage (0-100)
    enrolledAt: Optional[datetime] = None
