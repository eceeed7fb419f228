from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class LessonProgress(BaseModel):
    lessonId: str
    isCompleted: bool = False
    lastTimestamp: float = 0  # seconds into the video


class SaveProgressRequest(BaseModel):
    courseId: str
    lessonId: str
    isCompleted: bool = False
    timestamp: Optional[float] = Field(None, ge=0)


class CertificateSummary(BaseModel):
    certificateId: str
    certificateUrl: str


class CourseProgressResponse(BaseModel):
    courseId: str
    lessonProgress: List[LessonProgress] = []
    completedLessons: int = 0
    totalLessons: int = 0
    progressPercentage: int = 0
    isCompleted: bool = False
    certificate: Optional[CertificateSummary] = None
    updatedAt: Optional[datetime] = None


class ProgressOverviewItem(BaseModel):
    courseId: str
    courseTitle: str
    progressPercentage: int
    completedLessons: int
    totalLessons: int
