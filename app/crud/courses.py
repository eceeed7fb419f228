import logging
import re
from bson import ObjectId
from datetime import datetime
from typing import List, Optional, Dict, Any
from pymongo import ReturnDocument

from app.crud.companies import get_instructor_name
from app.db.database import get_courses_collection, get_enrollments_collection
from app.schemas.courses import CourseCreate, CourseStatus, CourseUpdate
from app.utils.exceptions import ValidationError, forbidden, not_found
from app.utils.mongo import to_oid

logger = logging.getLogger(__name__)


def iter_lessons(course: Dict[str, Any]):
    for section in course.get("curriculum", []):
        for lesson in section.get("lessons", []):
            yield lesson


def lesson_ids(course: Dict[str, Any]) -> List[str]:
    """Authoritative, ordered list of lesson ids in a course's curriculum."""
    return [str(lesson["lessonId"]) for lesson in iter_lessons(course) if lesson.get("lessonId")]


def completion_percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # half up, so 1 of 8 reports 13
    return int(completed * 100 / total + 0.5)


def publish_problems(course: Dict[str, Any]) -> List[str]:
    """Everything that keeps a course from being published; empty when publishable."""
    problems = []
    if not (course.get("thumbnailUrl") or "").strip():
        problems.append("a thumbnail is required")

    lessons = list(iter_lessons(course))
    if not lessons:
        problems.append("the curriculum has no lessons")

    missing = [lesson.get("title", "Untitled") for lesson in lessons if not (lesson.get("videoUrl") or "").strip()]
    if missing:
        problems.append("lessons without a video: " + ", ".join(missing))
    return problems


class CourseCRUD:

    @property
    def collection(self):
        return get_courses_collection()

    def _prepare_curriculum(self, curriculum: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Give every lesson a stable id, keeping the ones the client sent back."""
        prepared = []
        for section in curriculum:
            lessons = []
            for lesson in section.get("lessons", []):
                lesson_id = lesson.get("lessonId")
                if not lesson_id or not ObjectId.is_valid(lesson_id):
                    lesson_id = str(ObjectId())
                lessons.append(
                    {
                        "lessonId": lesson_id,
                        "title": lesson["title"].strip(),
                        "videoUrl": lesson.get("videoUrl") or "",
                        "videoPublicId": lesson.get("videoPublicId") or "",
                    }
                )
            prepared.append({"title": section["title"].strip(), "lessons": lessons})
        return prepared

    async def _serialize_course(self, course: Dict[str, Any]) -> Dict[str, Any]:
        """Ensures common serialization logic for course documents."""
        serialized = {k: v for k, v in course.items() if k not in ("_id", "companyId")}
        serialized["id"] = str(course["_id"])
        serialized["companyId"] = str(course["companyId"])
        serialized["instructorName"] = await get_instructor_name(course.get("companyId"))
        serialized["enrolledStudents"] = await get_enrollments_collection().count_documents(
            {"courseId": course["_id"]}
        )
        return serialized

    async def get_course_doc(self, course_id: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"_id": to_oid(course_id, "courseId")})

    async def get_owned_course_doc(self, course_id: str, company_id: str) -> Dict[str, Any]:
        course = await self.get_course_doc(course_id)
        if not course:
            not_found("Course")
        if str(course["companyId"]) != str(company_id):
            forbidden("You can only manage your own courses")
        return course

    async def create_course(self, company_id: str, course_data: CourseCreate) -> dict:
        """
        Create a new course in Draft.

        Drafts are never checked against the publish rules, so a company can
        save a course before its thumbnail and videos are uploaded.
        """
        course_dict = course_data.model_dump()
        course_dict["curriculum"] = self._prepare_curriculum(course_dict.get("curriculum", []))
        course_dict["companyId"] = to_oid(company_id, "companyId")
        course_dict["status"] = CourseStatus.DRAFT.value
        course_dict["createdAt"] = datetime.utcnow()
        course_dict["updatedAt"] = datetime.utcnow()

        await self.collection.insert_one(course_dict)
        logger.info("Company %s created course %s", company_id, course_dict["_id"])
        return await self._serialize_course(course_dict)

    async def get_course(self, course_id: str, published_only: bool = False) -> dict:
        course = await self.get_course_doc(course_id)
        if not course or (published_only and course.get("status") != CourseStatus.PUBLISHED.value):
            not_found("Course")
        return await self._serialize_course(course)

    async def list_published_courses(self, search: Optional[str] = None, skip: int = 0, limit: int = 20) -> dict:
        query: Dict[str, Any] = {"status": CourseStatus.PUBLISHED.value}
        if search:
            search = re.escape(search.strip())
            query["$or"] = [
                {"title": {"$regex": search, "$options": "i"}},
                {"description": {"$regex": search, "$options": "i"}},
                {"tags": {"$regex": search, "$options": "i"}},
            ]

        total = await self.collection.count_documents(query)
        cursor = self.collection.find(query).sort("createdAt", -1).skip(skip).limit(limit)
        courses = [await self._serialize_course(c) async for c in cursor]
        return {"total": total, "skip": skip, "limit": limit, "courses": courses}

    async def list_company_courses(self, company_id: str) -> List[dict]:
        cursor = self.collection.find({"companyId": to_oid(company_id, "companyId")}).sort("createdAt", -1)
        return [await self._serialize_course(c) async for c in cursor]

    async def update_course(self, course_id: str, company_id: str, course_update: CourseUpdate) -> dict:
        """
        Updates an existing course owned by the company.
        Only fields explicitly provided in the update request are modified.
        Any update that leaves the course Published runs the publish rules
        against the merged result.
        """
        existing = await self.get_owned_course_doc(course_id, company_id)

        update_data = {
            k: v for k, v in course_update.model_dump(exclude_unset=True).items() if v is not None
        }
        if "curriculum" in update_data:
            update_data["curriculum"] = self._prepare_curriculum(update_data["curriculum"])
        if "status" in update_data:
            update_data["status"] = CourseStatus(update_data["status"]).value

        target_status = update_data.get("status", existing.get("status"))
        if update_data and target_status == CourseStatus.PUBLISHED.value:
            problems = publish_problems({**existing, **update_data})
            if problems:
                raise ValidationError("Course cannot be published: " + "; ".join(problems))

        if not update_data:
            return await self._serialize_course(existing)

        update_data["updatedAt"] = datetime.utcnow()
        result = await self.collection.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": update_data},
            return_document=ReturnDocument.AFTER,
        )
        return await self._serialize_course(result)

    async def publish_course(self, course_id: str, company_id: str) -> dict:
        return await self.update_course(
            course_id, company_id, CourseUpdate(status=CourseStatus.PUBLISHED)
        )


# Create a single instance
course_crud = CourseCRUD()
