from typing import Optional
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase


class BaseRepository:
    """
    Shared plumbing for the platform registry repositories.

    The registry holds the institutes, profiles and user_roles collections.
    The database handle is taken from app.db.mongodb on first use when none
    is injected, so repositories can be built before startup finishes.
    """

    def __init__(
        self,
        *,
        db: Optional[AsyncIOMotorDatabase] = None,
        collection_name: str,
    ) -> None:
        self._db = db
        self._collection_name = collection_name
        self._collection: Optional[AsyncIOMotorCollection] = None

    async def ensure_indexes(self) -> None:
        """Create registry indexes. Override in subclasses."""

    async def _ensure_db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            from app.db.mongodb import get_database

            self._db = await get_database()
        return self._db

    async def _ensure_collection(self) -> AsyncIOMotorCollection:
        """Primary collection of this repository."""
        if self._collection is None:
            database = await self._ensure_db()
            self._collection = database[self._collection_name]
        return self._collection
