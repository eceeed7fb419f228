from datetime import datetime

from app.db.database import get_notifications_collection
from app.utils.mongo import fix_object_ids, to_oid


def build_notification(recipient_id, recipient_model: str, message: str, link: str, type_: str) -> dict:
    return {
        "recipientId": to_oid(recipient_id, "recipientId"),
        "recipientModel": recipient_model,
        "message": message,
        "link": link,
        "type": type_,
        "read": False,
        "createdAt": datetime.utcnow(),
    }


async def create_notification(recipient_id, recipient_model: str, message: str, link: str, type_: str = "system", session=None):
    doc = build_notification(recipient_id, recipient_model, message, link, type_)
    await get_notifications_collection().insert_one(doc, session=session)
    return fix_object_ids(doc)


async def list_notifications(recipient_id: str, limit: int = 50) -> list:
    cursor = (
        get_notifications_collection()
        .find({"recipientId": to_oid(recipient_id, "recipientId")})
        .sort("createdAt", -1)
        .limit(limit)
    )
    return [fix_object_ids(n) async for n in cursor]


async def mark_all_read(recipient_id: str) -> int:
    result = await get_notifications_collection().update_many(
        {"recipientId": to_oid(recipient_id, "recipientId"), "read": False},
        {"$set": {"read": True}},
    )
    return result.modified_count
