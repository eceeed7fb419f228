"""
Multi-collection deletes.

Each cascade runs in one transaction listing every dependent collection;
a failure anywhere aborts all of it. Payments and certificates are kept:
both are immutable records of something that happened.
"""
import logging

from pymongo.errors import PyMongoError

from app.db.database import get_client, get_db
from app.utils.exceptions import IntegrityError, not_found
from app.utils.mongo import to_oid

logger = logging.getLogger(__name__)


async def _delete_course_content(database, course_ids, session) -> dict:
    """Removes everything hanging off the given courses, then the courses."""
    assignment_ids = [
        a["_id"]
        async for a in database.assignments.find({"courseId": {"$in": course_ids}}, session=session)
    ]
    submissions = await database.submissions.delete_many(
        {"assignmentId": {"$in": assignment_ids}}, session=session
    )
    assignments = await database.assignments.delete_many({"courseId": {"$in": course_ids}}, session=session)
    feedback = await database.feedback.delete_many({"courseId": {"$in": course_ids}}, session=session)
    progress = await database.progress.delete_many({"courseId": {"$in": course_ids}}, session=session)
    enrollments = await database.enrollments.delete_many({"courseId": {"$in": course_ids}}, session=session)
    courses = await database.courses.delete_many({"_id": {"$in": course_ids}}, session=session)
    return {
        "courses": courses.deleted_count,
        "assignments": assignments.deleted_count,
        "submissions": submissions.deleted_count,
        "feedback": feedback.deleted_count,
        "progress": progress.deleted_count,
        "enrollments": enrollments.deleted_count,
    }


async def delete_course_cascade(course_id: str) -> dict:
    course_oid = to_oid(course_id, "courseId")
    database = get_db()

    async def run(session):
        course = await database.courses.find_one({"_id": course_oid}, session=session)
        if not course:
            not_found("Course")
        return await _delete_course_content(database, [course_oid], session)

    try:
        async with await get_client().start_session() as session:
            counts = await session.with_transaction(run)
    except PyMongoError as e:
        logger.error("Cascade delete of course %s aborted: %s", course_id, e)
        raise IntegrityError("Failed to delete course.") from e

    logger.info(
        "Deleted course %s with %d assignments, %d submissions, %d reviews, %d progress records, %d enrollments",
        course_id,
        counts["assignments"],
        counts["submissions"],
        counts["feedback"],
        counts["progress"],
        counts["enrollments"],
    )
    return {"message": "Course and all associated content deleted successfully."}


async def delete_company_cascade(company_id: str) -> dict:
    company_oid = to_oid(company_id, "companyId")
    database = get_db()

    async def run(session):
        company = await database.companies.find_one({"_id": company_oid}, session=session)
        if not company:
            not_found("Company")

        course_ids = [c["_id"] async for c in database.courses.find({"companyId": company_oid}, session=session)]
        counts = await _delete_course_content(database, course_ids, session)
        await database.notifications.delete_many({"recipientId": company_oid}, session=session)
        await database.companies.delete_one({"_id": company_oid}, session=session)
        return counts

    try:
        async with await get_client().start_session() as session:
            counts = await session.with_transaction(run)
    except PyMongoError as e:
        logger.error("Cascade delete of company %s aborted: %s", company_id, e)
        raise IntegrityError("Failed to delete company and its content.") from e

    logger.info(
        "Deleted company %s with %d courses and %d enrollments",
        company_id, counts["courses"], counts["enrollments"],
    )
    return {"message": "Company and all associated content deleted successfully."}


async def delete_student_cascade(student_id: str) -> dict:
    student_oid = to_oid(student_id, "studentId")
    database = get_db()

    async def run(session):
        student = await database.students.find_one({"_id": student_oid}, session=session)
        if not student:
            not_found("Student")

        await database.enrollments.delete_many({"studentId": student_oid}, session=session)
        await database.progress.delete_many({"studentId": student_oid}, session=session)
        await database.submissions.delete_many({"studentId": student_oid}, session=session)
        await database.feedback.delete_many({"studentId": student_oid}, session=session)
        await database.notifications.delete_many({"recipientId": student_oid}, session=session)
        await database.students.delete_one({"_id": student_oid}, session=session)

    try:
        async with await get_client().start_session() as session:
            await session.with_transaction(run)
    except PyMongoError as e:
        logger.error("Cascade delete of student %s aborted: %s", student_id, e)
        raise IntegrityError("Failed to delete student.") from e

    logger.info("Deleted student %s and all associated data", student_id)
    return {"message": "Student and all associated data deleted successfully."}
