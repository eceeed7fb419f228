import logging
import secrets
import time
from datetime import datetime
from typing import List

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.config import settings
from app.crud.companies import get_instructor_name
from app.crud.notifications import create_notification
from app.crud.settings import settings_store
from app.db.database import (
    get_certificates_collection,
    get_courses_collection,
    get_students_collection,
)
from app.utils.certificate_pdf import certificate_renderer, format_completion_date
from app.utils.exceptions import CertificateGenerationFailed, forbidden, not_found
from app.utils.mongo import to_oid
from app.utils.storage import certificate_storage

logger = logging.getLogger(__name__)


def make_certificate_id(student_id, course_id) -> str:
    return (
        f"{settings.CERTIFICATE_ID_PREFIX}-{int(time.time() * 1000)}"
        f"-{str(student_id)[-6:]}-{str(course_id)[-6:]}-{secrets.token_hex(3)}"
    ).upper()


def serialize_certificate(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "certificateId": doc["certificateId"],
        "certificateUrl": doc["certificateUrl"],
        "studentId": str(doc["studentId"]),
        "courseId": str(doc["courseId"]),
        "studentName": doc["studentName"],
        "courseTitle": doc["courseTitle"],
        "instructorName": doc["instructorName"],
        "completionDate": doc["completionDate"],
        "createdAt": doc["createdAt"],
    }


class CertificateCRUD:
    """
    Issues one certificate per (student, course).

    The artifact is rendered and stored first; inserting the record is the
    commit point. The unique index on the pair decides concurrent issuers,
    the loser removes its artifact and returns the winner's record.
    """

    def __init__(self, renderer=None, storage=None):
        self.renderer = renderer or certificate_renderer
        self.storage = storage or certificate_storage

    @property
    def collection(self):
        return get_certificates_collection()

    async def find_for_pair(self, student_id, course_id):
        return await self.collection.find_one(
            {
                "studentId": to_oid(student_id, "studentId"),
                "courseId": to_oid(course_id, "courseId"),
            }
        )

    async def issue_certificate(self, student_id, course_id) -> dict:
        student_oid = to_oid(student_id, "studentId")
        course_oid = to_oid(course_id, "courseId")

        existing = await self.find_for_pair(student_oid, course_oid)
        if existing:
            return serialize_certificate(existing)

        student = await get_students_collection().find_one({"_id": student_oid})
        if not student:
            not_found("Student")
        course = await get_courses_collection().find_one({"_id": course_oid})
        if not course:
            not_found("Course")

        platform = await settings_store.get()
        certificate_id = make_certificate_id(student_oid, course_oid)
        data = {
            "certificateId": certificate_id,
            "studentName": student.get("name", ""),
            "courseTitle": course.get("title", ""),
            "instructorName": await get_instructor_name(course.get("companyId")),
            "completionDate": datetime.utcnow(),
            "platformName": platform["platformName"],
            "logoUrl": platform.get("logoUrl", ""),
        }

        try:
            pdf = await self.renderer.render(data)
            stored = await self.storage.save(certificate_id, pdf)
        except Exception as e:
            logger.exception(
                "Certificate generation failed for student %s on course %s", student_oid, course_oid
            )
            raise CertificateGenerationFailed() from e

        doc = {
            "studentId": student_oid,
            "courseId": course_oid,
            "certificateId": certificate_id,
            "certificateUrl": stored["url"],
            "public_id": stored["public_id"],
            "studentName": data["studentName"],
            "courseTitle": data["courseTitle"],
            "instructorName": data["instructorName"],
            "completionDate": data["completionDate"],
            "createdAt": datetime.utcnow(),
        }

        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError:
            await self.storage.delete(stored["public_id"])
            winner = await self.find_for_pair(student_oid, course_oid)
            if not winner:
                raise CertificateGenerationFailed()
            logger.info("Certificate for student %s on course %s was issued concurrently", student_oid, course_oid)
            return serialize_certificate(winner)
        except PyMongoError as e:
            logger.error("Certificate record for student %s on course %s not saved: %s", student_oid, course_oid, e)
            await self.storage.delete(stored["public_id"])
            raise CertificateGenerationFailed() from e

        logger.info("Issued certificate %s to student %s for course %s", certificate_id, student_oid, course_oid)

        # the certificate is issued at this point; a lost notification does not undo it
        try:
            await create_notification(
                student_oid,
                "Student",
                f'Congratulations! Your certificate for "{data["courseTitle"]}" is now available!',
                "/student/certificates",
                "certificate",
            )
        except PyMongoError as e:
            logger.warning("Certificate notification for student %s not sent: %s", student_oid, e)
        return serialize_certificate(doc)

    async def list_student_certificates(self, student_id: str) -> List[dict]:
        cursor = self.collection.find({"studentId": to_oid(student_id, "studentId")}).sort("completionDate", -1)
        return [serialize_certificate(c) async for c in cursor]

    async def get_student_certificate(self, id: str, student_id: str) -> dict:
        # accepts the record id or the public certificate id
        certificate = None
        if ObjectId.is_valid(id):
            certificate = await self.collection.find_one({"_id": ObjectId(id)})
        if not certificate:
            certificate = await self.collection.find_one({"certificateId": id})

        if not certificate:
            not_found("Certificate")
        if str(certificate["studentId"]) != str(student_id):
            forbidden("Not authorized to view this certificate")
        return serialize_certificate(certificate)

    async def verify_certificate(self, certificate_id: str) -> dict:
        certificate = await self.collection.find_one({"certificateId": certificate_id})
        if not certificate:
            not_found("Certificate")

        return {
            "message": "Certificate successfully verified!",
            "certificate": {
                "studentName": certificate["studentName"],
                "courseTitle": certificate["courseTitle"],
                "instructorName": certificate["instructorName"],
                "completionDate": format_completion_date(certificate["completionDate"]),
                "certificateUrl": certificate["certificateUrl"],
                "certificateId": certificate["certificateId"],
            },
        }


certificate_crud = CertificateCRUD()
