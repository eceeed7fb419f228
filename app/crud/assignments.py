from datetime import datetime

from pymongo.errors import DuplicateKeyError, PyMongoError

from app.crud.courses import course_crud
from app.crud.enrollments import enrollment_crud
from app.db.database import get_client, get_db
from app.schemas.assignment_submissions import (
    AssignmentSubmissionCreate,
    AssignmentSubmissionGrade,
    SubmissionStatus,
)
from app.schemas.assignments import AssignmentCreate
from app.utils.exceptions import ConflictError, IntegrityError, ValidationError, forbidden, not_found
from app.utils.mongo import to_oid


# ---------------------------
# UTILITY FUNCTIONS
# ---------------------------
async def serialize_assignment(a: dict) -> dict:
    """Serialize assignment document with courseName."""
    course = await get_db().courses.find_one({"_id": a["courseId"]})
    course_name = course.get("title") if course else "Unknown Course"

    return {
        "id": str(a["_id"]),
        "courseId": str(a["courseId"]),
        "courseName": course_name,
        "companyId": str(a["companyId"]),
        "title": a["title"],
        "description": a.get("description"),
        "dueDate": a.get("dueDate"),
        "totalMarks": a.get("totalMarks"),
        "fileUrl": a.get("fileUrl"),
        "allowedFormats": a.get("allowedFormats", []),
        "createdAt": a.get("createdAt"),
    }


def serialize_submission(s: dict) -> dict:
    return {
        "id": str(s["_id"]),
        "studentId": str(s["studentId"]),
        "assignmentId": str(s["assignmentId"]),
        "courseId": str(s["courseId"]),
        "fileUrl": s["fileUrl"],
        "status": s.get("status", SubmissionStatus.SUBMITTED.value),
        "submittedAt": s["submittedAt"],
        "grade": s.get("grade"),
        "feedback": s.get("feedback"),
        "gradedAt": s.get("gradedAt"),
    }


async def _get_assignment_doc(assignment_id: str) -> dict:
    assignment = await get_db().assignments.find_one({"_id": to_oid(assignment_id, "assignmentId")})
    if not assignment:
        not_found("Assignment")
    return assignment


async def _get_owned_assignment_doc(assignment_id: str, company_id: str) -> dict:
    assignment = await _get_assignment_doc(assignment_id)
    if str(assignment["companyId"]) != str(company_id):
        forbidden("You can only manage assignments of your own courses")
    return assignment


# ---------------------------
# CREATE ASSIGNMENT
# ---------------------------
async def create_assignment(data: AssignmentCreate, company_id: str) -> dict:
    course = await course_crud.get_owned_course_doc(data.courseId, company_id)

    assignment = {
        "courseId": course["_id"],
        "companyId": course["companyId"],
        "title": data.title,
        "description": data.description,
        "dueDate": data.dueDate,
        "totalMarks": data.totalMarks,
        "fileUrl": data.fileUrl,
        "allowedFormats": data.allowedFormats or [],
        "createdAt": datetime.utcnow(),
        "updatedAt": datetime.utcnow(),
    }

    await get_db().assignments.insert_one(assignment)
    return await serialize_assignment(assignment)


# ---------------------------
# LIST ASSIGNMENTS
# ---------------------------
async def list_company_assignments(company_id: str, course_id: str = None) -> list:
    query = {"companyId": to_oid(company_id, "companyId")}
    if course_id:
        query["courseId"] = to_oid(course_id, "courseId")

    cursor = get_db().assignments.find(query).sort("dueDate", 1)
    return [await serialize_assignment(a) async for a in cursor]


async def list_student_assignments(student_id: str) -> list:
    """Assignments of every enrolled course, each with the student's own submission if any."""
    course_ids = [to_oid(c) for c in await enrollment_crud.list_student_course_ids(student_id)]
    if not course_ids:
        return []

    student_oid = to_oid(student_id, "studentId")
    results = []
    cursor = get_db().assignments.find({"courseId": {"$in": course_ids}}).sort("dueDate", 1)
    async for a in cursor:
        item = await serialize_assignment(a)
        submission = await get_db().submissions.find_one(
            {"assignmentId": a["_id"], "studentId": student_oid}
        )
        item["submission"] = serialize_submission(submission) if submission else None
        results.append(item)
    return results


# ---------------------------
# DELETE ASSIGNMENT
# ---------------------------
async def delete_assignment(assignment_id: str, company_id: str) -> bool:
    assignment = await _get_owned_assignment_doc(assignment_id, company_id)

    async def run(session):
        await get_db().submissions.delete_many({"assignmentId": assignment["_id"]}, session=session)
        await get_db().assignments.delete_one({"_id": assignment["_id"]}, session=session)

    try:
        async with await get_client().start_session() as session:
            await session.with_transaction(run)
    except PyMongoError as e:
        raise IntegrityError("Failed to delete assignment.") from e
    return True


# ---------------------------
# SUBMISSIONS
# ---------------------------
async def submit_assignment(assignment_id: str, student_id: str, data: AssignmentSubmissionCreate) -> dict:
    assignment = await _get_assignment_doc(assignment_id)
    if not await enrollment_crud.is_enrolled(student_id, assignment["courseId"]):
        forbidden("You are not enrolled in this course")

    submission = {
        "assignmentId": assignment["_id"],
        "studentId": to_oid(student_id, "studentId"),
        "courseId": assignment["courseId"],
        "fileUrl": data.fileUrl,
        "status": SubmissionStatus.SUBMITTED.value,
        "submittedAt": datetime.utcnow(),
        "grade": None,
        "feedback": None,
        "gradedAt": None,
    }

    try:
        await get_db().submissions.insert_one(submission)
    except DuplicateKeyError:
        raise ConflictError("You have already submitted this assignment")
    return serialize_submission(submission)


async def list_submissions(assignment_id: str, company_id: str) -> list:
    assignment = await _get_owned_assignment_doc(assignment_id, company_id)
    cursor = get_db().submissions.find({"assignmentId": assignment["_id"]}).sort("submittedAt", -1)
    return [serialize_submission(s) async for s in cursor]


async def grade_submission(submission_id: str, company_id: str, data: AssignmentSubmissionGrade) -> dict:
    submission = await get_db().submissions.find_one({"_id": to_oid(submission_id, "submissionId")})
    if not submission:
        not_found("Submission")

    assignment = await _get_owned_assignment_doc(submission["assignmentId"], company_id)
    if data.grade > assignment.get("totalMarks", 100):
        raise ValidationError("Grade cannot exceed the assignment's total marks")

    updates = {
        "grade": data.grade,
        "feedback": data.feedback,
        "status": SubmissionStatus.GRADED.value,
        "gradedAt": datetime.utcnow(),
    }
    await get_db().submissions.update_one({"_id": submission["_id"]}, {"$set": updates})
    return serialize_submission({**submission, **updates})
