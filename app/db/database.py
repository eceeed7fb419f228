import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from app.core.config import settings

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(settings.MONGO_URI)
db = client[settings.DB_NAME]


def get_client():
    return client


def get_db():
    return db


def get_courses_collection():
    return get_db().courses


def get_students_collection():
    return get_db().students


def get_companies_collection():
    return get_db().companies


def get_admins_collection():
    return get_db().admins


def get_enrollments_collection():
    return get_db().enrollments


def get_payments_collection():
    return get_db().payments


def get_progress_collection():
    return get_db().progress


def get_certificates_collection():
    return get_db().certificates


def get_notifications_collection():
    return get_db().notifications


async def ensure_indexes():
    """Create the indexes the workflow relies on for uniqueness."""
    database = get_db()

    await database.enrollments.create_index(
        [("studentId", ASCENDING), ("courseId", ASCENDING)], unique=True
    )
    await database.enrollments.create_index([("courseId", ASCENDING)])

    await database.payments.create_index(
        [("razorpay_payment_id", ASCENDING)], unique=True
    )
    await database.payments.create_index(
        [("razorpay_order_id", ASCENDING)], unique=True
    )

    await database.progress.create_index(
        [("studentId", ASCENDING), ("courseId", ASCENDING)], unique=True
    )

    await database.certificates.create_index(
        [("studentId", ASCENDING), ("courseId", ASCENDING)], unique=True
    )
    await database.certificates.create_index(
        [("certificateId", ASCENDING)], unique=True
    )

    await database.submissions.create_index(
        [("assignmentId", ASCENDING), ("studentId", ASCENDING)], unique=True
    )
    await database.feedback.create_index(
        [("courseId", ASCENDING), ("studentId", ASCENDING)], unique=True
    )
    await database.notifications.create_index(
        [("recipientId", ASCENDING), ("createdAt", DESCENDING)]
    )

    for name in ("students", "companies", "admins"):
        await database[name].create_index([("email", ASCENDING)], unique=True)

    await database.settings.create_index([("key", ASCENDING)], unique=True)

    logger.info("MongoDB indexes ensured on %s", settings.DB_NAME)
