from datetime import datetime

from pymongo import ReturnDocument

from app.crud.enrollments import enrollment_crud
from app.db.database import get_db
from app.schemas.feedback import FeedbackCreate
from app.utils.exceptions import forbidden, not_found
from app.utils.mongo import to_oid


def serialize_feedback(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "courseId": str(doc["courseId"]),
        "studentId": str(doc["studentId"]),
        "studentName": doc.get("studentName"),
        "rating": doc["rating"],
        "comment": doc.get("comment"),
        "createdAt": doc["createdAt"],
        "updatedAt": doc["updatedAt"],
    }


async def submit_feedback(course_id: str, student_id: str, data: FeedbackCreate) -> dict:
    """One review per student and course; posting again replaces it."""
    course_oid = to_oid(course_id, "courseId")
    student_oid = to_oid(student_id, "studentId")

    if not await get_db().courses.find_one({"_id": course_oid}):
        not_found("Course")
    if not await enrollment_crud.is_enrolled(student_oid, course_oid):
        forbidden("Only enrolled students can review this course")

    student = await get_db().students.find_one({"_id": student_oid})
    now = datetime.utcnow()
    doc = await get_db().feedback.find_one_and_update(
        {"courseId": course_oid, "studentId": student_oid},
        {
            "$set": {
                "rating": data.rating,
                "comment": data.comment,
                "studentName": (student or {}).get("name"),
                "updatedAt": now,
            },
            "$setOnInsert": {"createdAt": now},
        },
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return serialize_feedback(doc)


async def list_course_feedback(course_id: str) -> list:
    cursor = get_db().feedback.find({"courseId": to_oid(course_id, "courseId")}).sort("updatedAt", -1)
    return [serialize_feedback(f) async for f in cursor]
