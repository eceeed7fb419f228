from pydantic import BaseModel
from datetime import datetime


class CertificateResponse(BaseModel):
    id: str
    certificateId: str
    certificateUrl: str
    studentId: str
    courseId: str
    studentName: str
    courseTitle: str
    instructorName: str
    completionDate: datetime
    createdAt: datetime


class CertificateVerification(BaseModel):
    studentName: str
    courseTitle: str
    instructorName: str
    completionDate: str
    certificateUrl: str
    certificateId: str


class CertificateVerifyResponse(BaseModel):
    message: str
    certificate: CertificateVerification
