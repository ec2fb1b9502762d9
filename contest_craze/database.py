import asyncio
import logging
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from contest_craze.core.config import settings

logger = logging.getLogger(__name__)


class Database:
    """
    Process-lifetime MongoDB client.

    connect_db() is the initialization barrier: the first caller creates the
    client and the indexes under a lock, every later caller returns at once.
    Request handlers reach the store only through get_database(), which awaits
    the barrier.
    """
    client: Optional[AsyncIOMotorClient] = None
    _lock: Optional[asyncio.Lock] = None

    @classmethod
    async def connect_db(cls, client: Optional[AsyncIOMotorClient] = None):
        """Connect to MongoDB (idempotent)"""
        if cls.client is not None:
            return

        if cls._lock is None:
            cls._lock = asyncio.Lock()

        async with cls._lock:
            if cls.client is not None:
                return

            new_client = client or AsyncIOMotorClient(
                settings.db_uri,
                serverSelectionTimeoutMS=settings.db_server_selection_timeout_ms,
                maxPoolSize=settings.db_max_pool_size
            )
            cls.client = new_client
            try:
                await cls.create_indexes()
            except Exception:
                cls.client = None
                logger.exception("[ERROR] MongoDB connection failed")
                raise

            logger.info("[OK] Connected to MongoDB (%s)", settings.database_name)

    @classmethod
    async def create_indexes(cls):
        """Create database indexes"""
        db = cls.get_db()

        # One user per email
        await db[settings.users_collection].create_index([("email", ASCENDING)], unique=True)
        await db[settings.users_collection].create_index(
            [("wins", DESCENDING), ("participatedCount", ASCENDING)]
        )

        await db[settings.contests_collection].create_index(
            [("status", ASCENDING), ("participantsCount", DESCENDING)]
        )
        await db[settings.contests_collection].create_index([("creatorEmail", ASCENDING)])
        await db[settings.contests_collection].create_index([("winner.email", ASCENDING)])

        # At most one participation per (contest, participant)
        await db[settings.participations_collection].create_index(
            [("contestId", ASCENDING), ("participantEmail", ASCENDING)],
            unique=True
        )
        await db[settings.participations_collection].create_index([("participantEmail", ASCENDING)])

        await db[settings.submissions_collection].create_index(
            [("contestId", ASCENDING), ("participantEmail", ASCENDING)]
        )
        logger.info("[OK] Created indexes")

    @classmethod
    async def close_db(cls):
        """Close MongoDB connection"""
        if cls.client:
            cls.client.close()
            logger.info("[OK] Disconnected from MongoDB")
        cls.client = None
        cls._lock = None

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Get database instance"""
        return cls.client[settings.database_name]


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database, waits for the connection barrier"""
    await Database.connect_db()
    return Database.get_db()
