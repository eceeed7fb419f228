from datetime import datetime, timedelta

import pytest

from app.crud import assignments as crud_assignment
from app.crud.enrollments import enrollment_crud
from app.crud.feedback import list_course_feedback, submit_feedback
from app.schemas.assignment_submissions import AssignmentSubmissionCreate, AssignmentSubmissionGrade
from app.schemas.assignments import AssignmentCreate
from app.schemas.feedback import FeedbackCreate
from app.utils.exceptions import AuthorizationError, ConflictError, ValidationError


@pytest.fixture
async def setup(db, make_student, make_company, make_course):
    company = await make_company()
    student = await make_student()
    course = await make_course(company)
    await enrollment_crud.enroll(str(course["_id"]), str(student["_id"]))
    assignment = await crud_assignment.create_assignment(
        AssignmentCreate(
            courseId=str(course["_id"]),
            title="Final project",
            dueDate=datetime.utcnow() + timedelta(days=7),
            totalMarks=20,
        ),
        str(company["_id"]),
    )
    return company, student, course, assignment


async def test_student_sees_assignments_of_enrolled_courses(db, setup):
    _, student, _, assignment = setup

    items = await crud_assignment.list_student_assignments(str(student["_id"]))

    assert [a["id"] for a in items] == [assignment["id"]]
    assert items[0]["courseName"] == "Python Basics"
    assert items[0]["submission"] is None


async def test_submit_once_then_grade(db, setup):
    company, student, _, assignment = setup
    payload = AssignmentSubmissionCreate(fileUrl="https://cdn.example.com/work.pdf")

    submission = await crud_assignment.submit_assignment(assignment["id"], str(student["_id"]), payload)
    assert submission["status"] == "Submitted"

    with pytest.raises(ConflictError):
        await crud_assignment.submit_assignment(assignment["id"], str(student["_id"]), payload)

    with pytest.raises(ValidationError):
        await crud_assignment.grade_submission(
            submission["id"], str(company["_id"]), AssignmentSubmissionGrade(grade=25)
        )

    graded = await crud_assignment.grade_submission(
        submission["id"], str(company["_id"]), AssignmentSubmissionGrade(grade=18, feedback="Solid work")
    )
    assert graded["status"] == "Graded"
    assert graded["grade"] == 18

    listed = await crud_assignment.list_submissions(assignment["id"], str(company["_id"]))
    assert listed[0]["feedback"] == "Solid work"


async def test_outsiders_cannot_submit_or_manage(db, setup, make_student, make_company):
    _, _, _, assignment = setup
    outsider = await make_student(name="Outsider")
    other_company = await make_company(name="Other Co")

    with pytest.raises(AuthorizationError):
        await crud_assignment.submit_assignment(
            assignment["id"], str(outsider["_id"]), AssignmentSubmissionCreate(fileUrl="x.pdf")
        )
    with pytest.raises(AuthorizationError):
        await crud_assignment.delete_assignment(assignment["id"], str(other_company["_id"]))


async def test_delete_assignment_removes_submissions(db, setup):
    company, student, _, assignment = setup
    await crud_assignment.submit_assignment(
        assignment["id"], str(student["_id"]), AssignmentSubmissionCreate(fileUrl="work.pdf")
    )

    await crud_assignment.delete_assignment(assignment["id"], str(company["_id"]))

    assert await db.assignments.count_documents({}) == 0
    assert await db.submissions.count_documents({}) == 0


async def test_feedback_is_one_per_student_and_replaced(db, setup, make_student):
    _, student, course, _ = setup

    await submit_feedback(str(course["_id"]), str(student["_id"]), FeedbackCreate(rating=3, comment="ok"))
    await submit_feedback(str(course["_id"]), str(student["_id"]), FeedbackCreate(rating=5, comment="great"))

    reviews = await list_course_feedback(str(course["_id"]))
    assert len(reviews) == 1
    assert reviews[0]["rating"] == 5
    assert reviews[0]["studentName"] == "Asha Rao"

    outsider = await make_student(name="Outsider")
    with pytest.raises(AuthorizationError):
        await submit_feedback(str(course["_id"]), str(outsider["_id"]), FeedbackCreate(rating=1))
