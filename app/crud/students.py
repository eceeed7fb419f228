from datetime import datetime

from pymongo.errors import DuplicateKeyError

from app.db.database import get_students_collection
from app.schemas.users import StudentCreate
from app.utils.exceptions import bad_request, not_found
from app.utils.mongo import fix_object_ids, to_oid
from app.utils.security import hash_password, verify_password


def serialize_student(doc: dict) -> dict:
    student = fix_object_ids(doc)
    student.pop("password", None)
    return student


# ---------------------------------------------------------------------------
# Create Student
# ---------------------------------------------------------------------------
async def create_student(student: StudentCreate) -> dict:
    data = student.model_dump()
    email = data["email"].lower()

    if await get_students_collection().find_one({"email": email}):
        bad_request("User with this email already exists")

    doc = {
        "name": data["name"].strip(),
        "email": email,
        "password": hash_password(data["password"]),
        "avatarUrl": "",
        "createdAt": datetime.utcnow(),
        "updatedAt": datetime.utcnow(),
    }

    try:
        await get_students_collection().insert_one(doc)
    except DuplicateKeyError:
        bad_request("User with this email already exists")

    return serialize_student(doc)


async def get_student_by_id(student_id: str) -> dict | None:
    student = await get_students_collection().find_one({"_id": to_oid(student_id, "studentId")})
    return serialize_student(student) if student else None


async def get_student_me(current_user: dict) -> dict:
    student = await get_student_by_id(current_user["user_id"])
    if not student:
        not_found("Student profile")
    return student


async def authenticate_student(email: str, password: str) -> dict | None:
    student = await get_students_collection().find_one({"email": email.lower()})
    if not student or not verify_password(password, student.get("password")):
        return None
    return serialize_student(student)
