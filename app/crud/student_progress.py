import logging
from datetime import datetime
from typing import List, Optional

from pymongo.errors import PyMongoError

from app.crud.certificates import certificate_crud, serialize_certificate
from app.crud.courses import completion_percentage, lesson_ids
from app.crud.enrollments import enrollment_crud
from app.db.database import get_client, get_courses_collection, get_progress_collection
from app.utils.exceptions import (
    CertificateGenerationFailed,
    IntegrityError,
    ValidationError,
    forbidden,
    not_found,
)
from app.utils.mongo import to_oid

logger = logging.getLogger(__name__)


def summarize(course_id, entries: List[dict], ids: List[str]) -> dict:
    """Completion is counted against the course's own lesson list, never the client's."""
    valid = set(ids)
    completed = len({e["lessonId"] for e in entries if e.get("isCompleted") and e["lessonId"] in valid})
    percentage = completion_percentage(completed, len(valid))
    return {
        "courseId": str(course_id),
        "lessonProgress": entries,
        "completedLessons": completed,
        "totalLessons": len(valid),
        "progressPercentage": percentage,
        "isCompleted": len(valid) > 0 and completed == len(valid),
    }


class ProgressCRUD:
    def __init__(self, certificates=None):
        self.certificates = certificates or certificate_crud

    @property
    def collection(self):
        return get_progress_collection()

    async def _load_course_for_student(self, student_id, course_id) -> dict:
        course = await get_courses_collection().find_one({"_id": to_oid(course_id, "courseId")})
        if not course:
            not_found("Course")
        if not await enrollment_crud.is_enrolled(student_id, course["_id"]):
            forbidden("You are not enrolled in this course")
        return course

    async def _apply(self, student_id, course_id, lesson_id: str, timestamp: Optional[float], complete: bool) -> dict:
        course = await self._load_course_for_student(student_id, course_id)
        ids = lesson_ids(course)
        if lesson_id not in ids:
            not_found("Lesson")

        query = {"studentId": to_oid(student_id, "studentId"), "courseId": course["_id"]}
        now = datetime.utcnow()

        async def write(session):
            # read inside the transaction; a write conflict reruns from here
            progress = await self.collection.find_one(query, session=session)
            entries = [dict(e) for e in (progress or {}).get("lessonProgress", [])]

            entry = next((e for e in entries if e["lessonId"] == lesson_id), None)
            if entry is None:
                entry = {"lessonId": lesson_id, "isCompleted": False, "lastTimestamp": 0}
                entries.append(entry)

            if timestamp is not None:
                entry["lastTimestamp"] = float(timestamp)
            if complete:
                entry["isCompleted"] = True

            await self.collection.update_one(
                query,
                {
                    "$set": {"lessonProgress": entries, "updatedAt": now},
                    "$setOnInsert": {"createdAt": now},
                },
                upsert=True,
                session=session,
            )
            return entries

        try:
            async with await get_client().start_session() as session:
                entries = await session.with_transaction(write)
        except PyMongoError as e:
            logger.error("Progress write aborted for student %s on course %s: %s", student_id, course_id, e)
            raise IntegrityError("Could not save progress. Please try again.") from e

        result = summarize(course["_id"], entries, ids)
        result["updatedAt"] = now
        result["certificate"] = None

        if complete and result["isCompleted"] and course.get("offerCertificate"):
            try:
                certificate = await self.certificates.issue_certificate(student_id, course["_id"])
                result["certificate"] = {
                    "certificateId": certificate["certificateId"],
                    "certificateUrl": certificate["certificateUrl"],
                }
            except CertificateGenerationFailed:
                # progress is already committed; the next completion event retries
                logger.warning(
                    "Certificate pending for student %s on course %s", student_id, course["_id"]
                )

        return result

    async def record_timestamp(self, student_id, course_id, lesson_id: str, seconds: float) -> dict:
        return await self._apply(student_id, course_id, lesson_id, seconds, complete=False)

    async def mark_lesson_complete(self, student_id, course_id, lesson_id: str, final_timestamp: Optional[float] = None) -> dict:
        return await self._apply(student_id, course_id, lesson_id, final_timestamp, complete=True)

    async def save_progress(self, student_id, course_id, lesson_id: str, is_completed: bool, timestamp: Optional[float]) -> dict:
        if is_completed:
            return await self.mark_lesson_complete(student_id, course_id, lesson_id, timestamp)
        if timestamp is None:
            raise ValidationError("timestamp is required unless the lesson is being completed")
        return await self.record_timestamp(student_id, course_id, lesson_id, timestamp)

    async def get_progress(self, student_id, course_id) -> dict:
        course = await self._load_course_for_student(student_id, course_id)
        query = {"studentId": to_oid(student_id, "studentId"), "courseId": course["_id"]}

        progress = await self.collection.find_one(query)
        result = summarize(course["_id"], (progress or {}).get("lessonProgress", []), lesson_ids(course))
        result["updatedAt"] = (progress or {}).get("updatedAt")

        certificate = await self.certificates.find_for_pair(query["studentId"], course["_id"])
        result["certificate"] = None
        if certificate:
            serialized = serialize_certificate(certificate)
            result["certificate"] = {
                "certificateId": serialized["certificateId"],
                "certificateUrl": serialized["certificateUrl"],
            }
        return result

    async def get_progress_overview(self, student_id) -> List[dict]:
        courses = await enrollment_crud.get_enrolled_courses(student_id)
        return [
            {
                "courseId": c["id"],
                "courseTitle": c["title"],
                "progressPercentage": c["progress"],
                "completedLessons": c["completedLessons"],
                "totalLessons": c["totalLessons"],
            }
            for c in courses
        ]


progress_crud = ProgressCRUD()
