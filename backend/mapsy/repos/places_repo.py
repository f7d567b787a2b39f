from motor.motor_asyncio import AsyncIOMotorCollection
from datetime import datetime, timedelta, timezone

# Only the response envelope is handed back, never the bookkeeping fields
ENVELOPE_PROJECTION = {"_id": 0, "forCoordinates": 1, "requestedBy": 1, "POIbyCategory": 1}

class PlacesRepository:
    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def find_entry(self, lat: float, lon: float) -> dict | None:
        """
        Looks up a saved response by its quantized coordinates.
        Expired documents are skipped even if the TTL monitor has not removed them yet.
        """
        return await self.collection.find_one(
            {
                "generalCoordinates": [lat, lon],
                "expiresAt": {"$gt": datetime.now(timezone.utc)}
            },
            ENVELOPE_PROJECTION
        )

    async def save_entry(self, lat: float, lon: float, entry: dict, ttl: int):
        """
        Inserts the response annotated with its lookup key and lifetime.
        """
        now = datetime.now(timezone.utc)
        await self.collection.insert_one({
            **entry,
            "generalCoordinates": [lat, lon],
            "createdAt": now,
            "expiresAt": now + timedelta(seconds=ttl)
        })
