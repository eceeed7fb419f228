import asyncio

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure, PyMongoError

from app.crud.certificates import CertificateCRUD
from app.crud.courses import completion_percentage
from app.crud.enrollments import enrollment_crud
from app.crud.student_progress import ProgressCRUD, progress_crud
from app.utils.exceptions import AuthorizationError, IntegrityError, NotFoundError, ValidationError
from helpers import FakeRenderer, lesson_ids_of


@pytest.fixture
async def enrolled(db, gateway, renderer, storage, make_student, make_company, make_course):
    company = await make_company()
    student = await make_student()
    course = await make_course(company, lessons=4)
    await enrollment_crud.enroll(str(course["_id"]), str(student["_id"]))
    return student, course


@pytest.mark.parametrize(
    "completed,total,expected",
    [(0, 4, 0), (3, 4, 75), (1, 8, 13), (1, 3, 33), (2, 3, 67), (4, 4, 100), (0, 0, 0)],
)
def test_completion_percentage(completed, total, expected):
    assert completion_percentage(completed, total) == expected


async def test_three_of_four_then_certificate(db, enrolled, storage):
    student, course = enrolled
    sid, cid = str(student["_id"]), str(course["_id"])
    lessons = lesson_ids_of(course)

    for lesson in lessons[:3]:
        result = await progress_crud.mark_lesson_complete(sid, cid, lesson, 120)

    assert result["progressPercentage"] == 75
    assert result["isCompleted"] is False
    assert result["certificate"] is None
    assert await db.certificates.count_documents({}) == 0

    result = await progress_crud.mark_lesson_complete(sid, cid, lessons[3], 300)

    assert result["progressPercentage"] == 100
    assert result["isCompleted"] is True
    assert result["certificate"]["certificateId"].startswith("EDUFLEX-")
    assert await db.certificates.count_documents({}) == 1

    certificate = await db.certificates.find_one({})
    assert certificate["studentName"] == "Asha Rao"
    assert certificate["courseTitle"] == "Python Basics"
    assert certificate["instructorName"] == "Northwind Academy"
    assert certificate["certificateUrl"] in [f"/media/certificates/{p}.pdf" for p in storage.saved]

    notification = await db.notifications.find_one({"recipientId": student["_id"], "type": "certificate"})
    assert notification is not None


async def test_recompleting_does_not_issue_twice(db, enrolled):
    student, course = enrolled
    sid, cid = str(student["_id"]), str(course["_id"])
    for lesson in lesson_ids_of(course):
        first = await progress_crud.mark_lesson_complete(sid, cid, lesson)

    again = await progress_crud.mark_lesson_complete(sid, cid, lesson_ids_of(course)[0])

    assert again["certificate"]["certificateId"] == first["certificate"]["certificateId"]
    assert await db.certificates.count_documents({}) == 1


async def test_timestamp_updates_do_not_complete(db, enrolled):
    student, course = enrolled
    lesson = lesson_ids_of(course)[0]

    result = await progress_crud.record_timestamp(str(student["_id"]), str(course["_id"]), lesson, 42.5)

    assert result["completedLessons"] == 0
    entry = result["lessonProgress"][0]
    assert entry == {"lessonId": lesson, "isCompleted": False, "lastTimestamp": 42.5}

    stored = await db.progress.find_one({"studentId": student["_id"]})
    assert stored["lessonProgress"][0]["lastTimestamp"] == 42.5
    assert "createdAt" in stored


async def test_save_progress_requires_timestamp_unless_completing(db, enrolled):
    student, course = enrolled
    lesson = lesson_ids_of(course)[0]

    with pytest.raises(ValidationError):
        await progress_crud.save_progress(str(student["_id"]), str(course["_id"]), lesson, False, None)

    result = await progress_crud.save_progress(str(student["_id"]), str(course["_id"]), lesson, True, None)
    assert result["completedLessons"] == 1


async def test_only_curriculum_lessons_count(db, enrolled):
    student, course = enrolled
    sid, cid = str(student["_id"]), str(course["_id"])

    with pytest.raises(NotFoundError):
        await progress_crud.mark_lesson_complete(sid, cid, str(ObjectId()))

    # a stale entry left behind by an old curriculum
    await db.progress.insert_one(
        {
            "studentId": student["_id"],
            "courseId": course["_id"],
            "lessonProgress": [{"lessonId": "removed-lesson", "isCompleted": True, "lastTimestamp": 0}],
        }
    )
    result = await progress_crud.get_progress(sid, cid)

    assert result["completedLessons"] == 0
    assert result["progressPercentage"] == 0


async def test_students_cannot_write_progress_for_courses_they_do_not_own(db, enrolled, make_student):
    _, course = enrolled
    outsider = await make_student(name="Outsider")

    with pytest.raises(AuthorizationError):
        await progress_crud.mark_lesson_complete(
            str(outsider["_id"]), str(course["_id"]), lesson_ids_of(course)[0]
        )
    assert await db.progress.count_documents({"studentId": outsider["_id"]}) == 0


async def test_course_without_lessons_never_completes(db, gateway, renderer, storage, make_student, make_company, make_course):
    company = await make_company()
    student = await make_student()
    course = await make_course(company, lessons=0)
    await enrollment_crud.enroll(str(course["_id"]), str(student["_id"]))

    result = await progress_crud.get_progress(str(student["_id"]), str(course["_id"]))

    assert result["progressPercentage"] == 0
    assert result["isCompleted"] is False


async def test_course_without_certificate_offer_issues_none(db, gateway, renderer, storage, make_student, make_company, make_course):
    company = await make_company()
    student = await make_student()
    course = await make_course(company, lessons=1, offer_certificate=False)
    await enrollment_crud.enroll(str(course["_id"]), str(student["_id"]))

    result = await progress_crud.mark_lesson_complete(str(student["_id"]), str(course["_id"]), lesson_ids_of(course)[0])

    assert result["isCompleted"] is True
    assert result["certificate"] is None
    assert await db.certificates.count_documents({}) == 0


async def test_concurrent_final_completions_issue_one_certificate(db, gateway, renderer, storage, make_student, make_company, make_course):
    company = await make_company()
    student = await make_student()
    course = await make_course(company, lessons=1)
    await enrollment_crud.enroll(str(course["_id"]), str(student["_id"]))
    lesson = lesson_ids_of(course)[0]

    first, second = await asyncio.gather(
        progress_crud.mark_lesson_complete(str(student["_id"]), str(course["_id"]), lesson),
        progress_crud.mark_lesson_complete(str(student["_id"]), str(course["_id"]), lesson),
    )

    assert await db.certificates.count_documents({}) == 1
    assert first["certificate"]["certificateId"] == second["certificate"]["certificateId"]
    # the losing issuer removed its own artifact
    assert len(storage.saved) == 1
    assert len(storage.deleted) == 1


async def test_issuance_failure_keeps_progress_and_retries(db, gateway, storage, make_student, make_company, make_course):
    failing = FakeRenderer(fail=True)
    crud = ProgressCRUD(certificates=CertificateCRUD(renderer=failing, storage=storage))
    company = await make_company()
    student = await make_student()
    course = await make_course(company, lessons=1)
    await enrollment_crud.enroll(str(course["_id"]), str(student["_id"]))
    sid, cid, lesson = str(student["_id"]), str(course["_id"]), lesson_ids_of(course)[0]

    result = await crud.mark_lesson_complete(sid, cid, lesson)

    assert result["isCompleted"] is True
    assert result["certificate"] is None
    assert await db.certificates.count_documents({}) == 0
    stored = await db.progress.find_one({"studentId": student["_id"]})
    assert stored["lessonProgress"][0]["isCompleted"] is True

    failing.fail = False
    result = await crud.mark_lesson_complete(sid, cid, lesson)
    assert result["certificate"] is not None
    assert await db.certificates.count_documents({}) == 1


async def test_aborted_progress_write_raises_integrity_error(db, enrolled, monkeypatch):
    student, course = enrolled

    async def broken_update(*args, **kwargs):
        raise PyMongoError("primary stepped down")

    monkeypatch.setattr(db.progress, "update_one", broken_update)

    with pytest.raises(IntegrityError):
        await progress_crud.mark_lesson_complete(str(student["_id"]), str(course["_id"]), lesson_ids_of(course)[0])
    assert await db.progress.count_documents({}) == 0


async def test_certificate_record_failure_keeps_completion(db, enrolled, storage, monkeypatch):
    student, course = enrolled
    sid, cid = str(student["_id"]), str(course["_id"])
    lessons = lesson_ids_of(course)
    for lesson in lessons[:3]:
        await progress_crud.mark_lesson_complete(sid, cid, lesson)

    async def broken_insert(*args, **kwargs):
        raise PyMongoError("not primary")

    monkeypatch.setattr(db.certificates, "insert_one", broken_insert)

    result = await progress_crud.mark_lesson_complete(sid, cid, lessons[3])

    assert result["isCompleted"] is True
    assert result["certificate"] is None
    assert storage.saved == {}
    assert len(storage.deleted) == 1
    stored = await db.progress.find_one({"studentId": student["_id"]})
    assert len([e for e in stored["lessonProgress"] if e["isCompleted"]]) == 4


async def test_write_conflict_is_retried(db, enrolled, monkeypatch):
    student, course = enrolled
    original = db.progress.update_one
    attempts = []

    async def conflicting_update(*args, **kwargs):
        attempts.append(1)
        if len(attempts) == 1:
            raise OperationFailure(
                "WriteConflict", code=112, details={"errorLabels": ["TransientTransactionError"]}
            )
        return await original(*args, **kwargs)

    monkeypatch.setattr(db.progress, "update_one", conflicting_update)

    result = await progress_crud.mark_lesson_complete(str(student["_id"]), str(course["_id"]), lesson_ids_of(course)[0])

    assert len(attempts) == 2
    assert result["completedLessons"] == 1
    stored = await db.progress.find_one({"studentId": student["_id"]})
    assert stored["lessonProgress"][0]["isCompleted"] is True


async def test_progress_overview(db, enrolled):
    student, course = enrolled
    await progress_crud.mark_lesson_complete(str(student["_id"]), str(course["_id"]), lesson_ids_of(course)[0])

    overview = await progress_crud.get_progress_overview(str(student["_id"]))

    assert overview == [
        {
            "courseId": str(course["_id"]),
            "courseTitle": "Python Basics",
            "progressPercentage": 25,
            "completedLessons": 1,
            "totalLessons": 4,
        }
    ]
