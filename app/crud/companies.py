import logging
from datetime import datetime

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.db.database import get_companies_collection, get_db
from app.schemas.users import CompanyCreate
from app.utils.exceptions import bad_request, not_found
from app.utils.mongo import fix_object_ids, to_oid
from app.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

UNKNOWN_INSTRUCTOR = "Unknown Instructor"


def serialize_company(doc: dict) -> dict:
    company = fix_object_ids(doc)
    company.pop("password", None)
    return company


async def create_company(company: CompanyCreate) -> dict:
    data = company.model_dump()
    email = data["email"].lower()

    if await get_companies_collection().find_one({"email": email}):
        bad_request("Company with this email already exists")

    doc = {
        "name": data["name"].strip(),
        "email": email,
        "password": hash_password(data["password"]),
        "website": data.get("website"),
        "status": "active",
        "createdAt": datetime.utcnow(),
        "updatedAt": datetime.utcnow(),
    }

    try:
        await get_companies_collection().insert_one(doc)
    except DuplicateKeyError:
        bad_request("Company with this email already exists")

    return serialize_company(doc)


async def get_company_by_id(company_id) -> dict | None:
    company = await get_companies_collection().find_one({"_id": to_oid(company_id, "companyId")})
    return serialize_company(company) if company else None


async def get_instructor_name(company_id) -> str:
    if not company_id:
        return UNKNOWN_INSTRUCTOR
    company = await get_companies_collection().find_one({"_id": to_oid(company_id, "companyId")})
    return company.get("name", UNKNOWN_INSTRUCTOR) if company else UNKNOWN_INSTRUCTOR


async def update_company_status(company_id: str, status: str) -> dict:
    company = await get_companies_collection().find_one_and_update(
        {"_id": to_oid(company_id, "companyId")},
        {"$set": {"status": status, "updatedAt": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not company:
        not_found("Company")
    logger.info("Company %s status set to %s", company_id, status)
    return {"message": f"Company status updated to {status}", "company": serialize_company(company)}


async def authenticate_company(email: str, password: str) -> dict | None:
    company = await get_companies_collection().find_one({"email": email.lower()})
    if not company or not verify_password(password, company.get("password")):
        return None
    if company.get("status", "active") != "active":
        return None
    return serialize_company(company)


async def authenticate_admin(email: str, password: str) -> dict | None:
    admin = await get_db().admins.find_one({"email": email.lower()})
    if not admin or not verify_password(password, admin.get("password")):
        return None
    return serialize_company(admin)
