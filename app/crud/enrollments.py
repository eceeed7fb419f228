import logging
import time
from datetime import datetime
from typing import List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.config import settings
from app.crud.companies import get_instructor_name
from app.crud.courses import completion_percentage, course_crud, lesson_ids
from app.crud.notifications import build_notification
from app.db.database import (
    get_admins_collection,
    get_client,
    get_courses_collection,
    get_enrollments_collection,
    get_notifications_collection,
    get_payments_collection,
    get_progress_collection,
    get_students_collection,
)
from app.schemas.courses import CourseStatus
from app.schemas.payments import PaymentConfirmation
from app.services.payment_gateway import payment_gateway
from app.utils.exceptions import (
    ConflictError,
    DuplicateEnrollment,
    EnrollmentFailed,
    InvalidPrice,
    PaymentVerificationFailed,
    ValidationError,
    not_found,
)
from app.utils.mongo import to_oid
from app.utils.payments import verify_signature

logger = logging.getLogger(__name__)


class EnrollmentCRUD:
    """
    Enrollment is a single record per (student, course) pair. The course's
    student list and the student's course list are both read from it, so
    there is no pair of arrays to keep in step.
    """

    def __init__(self, gateway=None):
        self.gateway = gateway or payment_gateway

    @property
    def collection(self):
        return get_enrollments_collection()

    async def _get_enrollable_course(self, course_id: str) -> dict:
        course = await get_courses_collection().find_one(
            {"_id": to_oid(course_id, "courseId"), "status": CourseStatus.PUBLISHED.value}
        )
        if not course:
            not_found("Course")
        return course

    async def is_enrolled(self, student_id, course_id) -> bool:
        enrollment = await self.collection.find_one(
            {
                "studentId": to_oid(student_id, "studentId"),
                "courseId": to_oid(course_id, "courseId"),
            }
        )
        return enrollment is not None

    # -----------------------------------------------------------
    # DECIDER
    # -----------------------------------------------------------
    async def enroll(self, course_id: str, student_id: str) -> dict:
        """
        Free courses are committed immediately. Paid courses only get a
        gateway order back; nothing is stored until the payment is verified.
        """
        course = await self._get_enrollable_course(course_id)

        if await self.is_enrolled(student_id, course["_id"]):
            raise DuplicateEnrollment()

        price = int(course.get("price") or 0)
        if price == 0:
            await self.commit_enrollment(course, student_id)
            return {"success": True, "message": "Successfully enrolled in course"}

        amount = price * settings.CURRENCY_MINOR_UNIT
        if amount < settings.PAYMENT_MIN_AMOUNT:
            raise InvalidPrice()

        # Razorpay caps receipts at 40 characters
        receipt = f"rcpt_{str(course['_id'])[-8:]}_{str(student_id)[-8:]}_{int(time.time())}"
        order = await self.gateway.create_order(amount, settings.PAYMENT_CURRENCY, receipt)
        logger.info("Created order %s for student %s on course %s", order.id, student_id, course["_id"])
        return {"success": True, "order": order.model_dump()}

    # -----------------------------------------------------------
    # PAYMENT VERIFICATION
    # -----------------------------------------------------------
    async def verify_payment(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        course_id: str,
        student_id: str,
    ) -> dict:
        if not verify_signature(order_id, payment_id, signature, settings.RAZORPAY_KEY_SECRET):
            logger.warning("Signature mismatch for order %s from student %s", order_id, student_id)
            raise PaymentVerificationFailed()

        course = await self._get_enrollable_course(course_id)
        if int(course.get("price") or 0) <= 0:
            raise ValidationError("This course does not require payment")

        payment = PaymentConfirmation(
            razorpay_order_id=order_id,
            razorpay_payment_id=payment_id,
            razorpay_signature=signature,
        )
        await self.commit_enrollment(course, student_id, payment)
        return {"success": True, "message": "Enrollment successful!"}

    # -----------------------------------------------------------
    # COMMITTER
    # -----------------------------------------------------------
    async def commit_enrollment(self, course: dict, student_id: str, payment: Optional[PaymentConfirmation] = None) -> dict:
        """
        Writes the enrollment, the payment (paid path) and the notifications
        for the company and every admin in one transaction. Either all of
        them persist or none. Transient transaction errors are retried by
        the driver.
        """
        student_oid = to_oid(student_id, "studentId")
        now = datetime.utcnow()

        async def write(session):
            enrollment_doc = {
                "studentId": student_oid,
                "courseId": course["_id"],
                "paid": payment is not None,
                "enrolledAt": now,
            }
            student = await get_students_collection().find_one({"_id": student_oid}, session=session)
            if not student:
                not_found("Student")

            try:
                await self.collection.insert_one(enrollment_doc, session=session)
            except DuplicateKeyError:
                raise DuplicateEnrollment()

            if payment is not None:
                try:
                    await get_payments_collection().insert_one(
                        {
                            **payment.model_dump(),
                            "studentId": student_oid,
                            "courseId": course["_id"],
                            "amount": int(course.get("price") or 0),
                            "createdAt": now,
                        },
                        session=session,
                    )
                except DuplicateKeyError:
                    raise ConflictError("Payment has already been processed")

            name = student.get("name", "Student")
            notifications = [
                build_notification(
                    course["companyId"],
                    "Company",
                    f"New student '{name}' has enrolled in your course: \"{course.get('title')}\"",
                    f"/company/students/{student_oid}",
                    "new_student",
                )
            ]
            async for admin in get_admins_collection().find({}, projection={"_id": 1}, session=session):
                notifications.append(
                    build_notification(
                        admin["_id"],
                        "Admin",
                        f"New student '{name}' has enrolled in course \"{course.get('title')}\"",
                        "/admin/students",
                        "new_student",
                    )
                )
            await get_notifications_collection().insert_many(notifications, session=session)
            return enrollment_doc

        try:
            async with await get_client().start_session() as session:
                enrollment_doc = await session.with_transaction(write)
        except PyMongoError as e:
            logger.error(
                "Enrollment transaction aborted for student %s on course %s: %s",
                student_id, course["_id"], e,
            )
            raise EnrollmentFailed() from e

        logger.info(
            "Enrolled student %s in course %s (%s)",
            student_id, course["_id"], "paid" if payment else "free",
        )
        return enrollment_doc

    # -----------------------------------------------------------
    # DERIVED VIEWS
    # -----------------------------------------------------------
    async def list_course_students(self, course_id) -> List[str]:
        cursor = self.collection.find({"courseId": to_oid(course_id, "courseId")})
        return [str(e["studentId"]) async for e in cursor]

    async def list_student_course_ids(self, student_id) -> List[str]:
        cursor = self.collection.find({"studentId": to_oid(student_id, "studentId")})
        return [str(e["courseId"]) async for e in cursor]

    async def get_enrolled_courses(self, student_id: str) -> List[dict]:
        """Courses the student is enrolled in, each with its completion percentage."""
        student_oid = to_oid(student_id, "studentId")
        enrollments = await self.collection.find({"studentId": student_oid}).sort("enrolledAt", -1).to_list(length=None)

        results = []
        for enrollment in enrollments:
            course = await course_crud.get_course_doc(enrollment["courseId"])
            if not course:
                continue

            ids = set(lesson_ids(course))
            progress = await get_progress_collection().find_one(
                {"studentId": student_oid, "courseId": course["_id"]}
            )
            completed = len(
                {
                    lp["lessonId"]
                    for lp in (progress or {}).get("lessonProgress", [])
                    if lp.get("isCompleted") and lp["lessonId"] in ids
                }
            )
            results.append(
                {
                    "id": str(course["_id"]),
                    "title": course["title"],
                    "thumbnailUrl": course.get("thumbnailUrl", ""),
                    "level": course.get("level"),
                    "instructorName": await get_instructor_name(course.get("companyId")),
                    "totalLessons": len(ids),
                    "completedLessons": completed,
                    "progress": completion_percentage(completed, len(ids)),
                    "enrolledAt": enrollment.get("enrolledAt"),
                }
            )
        return results


enrollment_crud = EnrollmentCRUD()
