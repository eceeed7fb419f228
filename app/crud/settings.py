from datetime import datetime

from pymongo import ReturnDocument

from app.core.config import settings
from app.db.database import get_db
from app.schemas.settings import PlatformSettingsUpdate

PLATFORM_SETTINGS_KEY = "platformSettings"


class SettingsStore:
    """Single platform configuration record addressed by a well-known key."""

    @property
    def collection(self):
        return get_db().settings

    def _serialize(self, doc: dict) -> dict:
        return {
            "key": doc["key"],
            "platformName": doc.get("platformName") or settings.DEFAULT_PLATFORM_NAME,
            "logoUrl": doc.get("logoUrl", ""),
        }

    async def get(self) -> dict:
        doc = await self.collection.find_one_and_update(
            {"key": PLATFORM_SETTINGS_KEY},
            {
                "$setOnInsert": {
                    "key": PLATFORM_SETTINGS_KEY,
                    "platformName": settings.DEFAULT_PLATFORM_NAME,
                    "logoUrl": "",
                    "createdAt": datetime.utcnow(),
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._serialize(doc)

    async def update(self, data: PlatformSettingsUpdate) -> dict:
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        updates["updatedAt"] = datetime.utcnow()

        doc = await self.collection.find_one_and_update(
            {"key": PLATFORM_SETTINGS_KEY},
            {
                "$set": updates,
                "$setOnInsert": {"key": PLATFORM_SETTINGS_KEY, "createdAt": datetime.utcnow()},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._serialize(doc)


settings_store = SettingsStore()
