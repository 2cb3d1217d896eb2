# backend/studyfeedback/db/mongo.py
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from studyfeedback.core.config import settings

logger = logging.getLogger(__name__)

client: AsyncIOMotorClient | None = None
db = None


def get_db():
    if db is None:
        raise RuntimeError("MongoDB not initialized. Did you call connect_to_mongo()?")
    return db


async def connect_to_mongo():
    global client, db
    client = AsyncIOMotorClient(settings.MONGO_URI)
    db = client[settings.MONGO_DB_NAME]
    logger.info("MongoDB connected (db=%s)", settings.MONGO_DB_NAME)


async def close_mongo_connection():
    global client, db
    if client:
        client.close()
        logger.info("MongoDB connection closed")
    client = None
    db = None


async def ensure_indexes():
    """
    feedback 컬렉션 인덱스 생성 (카테고리별 최신순 조회, 작성자 조회, 활성 필터).
    """
    col = get_db()["feedback"]
    await col.create_index([("category", ASCENDING), ("created_at", DESCENDING)])
    await col.create_index([("author_id", ASCENDING)])
    await col.create_index([("is_active", ASCENDING)])
