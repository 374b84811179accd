from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

class MongoDB:
    """
    Platform registry connection manager.

    Holds the institute registry and the user profile collections. Institute
    scoped academic data is owned by the storage platform and never read here.
    """
    client: Optional[AsyncIOMotorClient] = None
    database: Optional[AsyncIOMotorDatabase] = None

db = MongoDB()

async def get_database() -> AsyncIOMotorDatabase:
    """
    Get the platform registry database.

    Raises:
        RuntimeError: If called before connect_to_mongo()
    """
    if db.database is None:
        raise RuntimeError("MongoDB is not connected. Call connect_to_mongo() during startup.")
    return db.database

async def connect_to_mongo():
    logger.info("Connecting to MongoDB...")
    db.client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        serverSelectionTimeoutMS=int(settings.TENANT_LOOKUP_TIMEOUT_SECONDS * 1000),
    )
    db.database = db.client[settings.DATABASE_NAME]
    logger.info("Connected to MongoDB")

async def close_mongo_connection():
    logger.info("Closing MongoDB connection...")
    if db.client is not None:
        db.client.close()
    db.client = None
    db.database = None
    logger.info("MongoDB connection closed")
