import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from .config import settings

logger = logging.getLogger(__name__)


class MongoDB:
    client: AsyncIOMotorClient = None
    db = None

mongodb = MongoDB()

async def connect_to_mongo():
    mongodb.client = AsyncIOMotorClient(settings.MONGO_URI)
    mongodb.db = mongodb.client[settings.MONGO_DB]

    await mongodb.db["users"].create_index([("email", ASCENDING)], unique=True)
    await mongodb.db["videos"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    logger.info("✔️ Connected to MongoDB: %s", mongodb.db.name)

async def close_mongo_connection():
    if mongodb.client is not None:
        mongodb.client.close()
        mongodb.client = None
        mongodb.db = None
    logger.info("MongoDB connection closed")
