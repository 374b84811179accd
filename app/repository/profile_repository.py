import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProfileLookupError(Exception):
    """Raised when user profiles or role memberships cannot be read."""


class ProfileRepository(BaseRepository):
    """Repository for user profiles and their current role memberships."""

    COLLECTION = "profiles"
    ROLES_COLLECTION = "user_roles"

    def __init__(
        self,
        *,
        db: Optional[AsyncIOMotorDatabase] = None,
        collection_name: str = COLLECTION,
        roles_collection_name: str = ROLES_COLLECTION,
    ) -> None:
        super().__init__(db=db, collection_name=collection_name)
        self._roles_collection_name = roles_collection_name

    @classmethod
    async def from_default(cls) -> "ProfileRepository":
        from app.db.mongodb import get_database

        db = await get_database()
        repository = cls(db=db)
        await repository.ensure_indexes()
        return repository

    async def ensure_indexes(self) -> None:
        """Create MongoDB indexes for optimal query performance."""
        database = await self._ensure_db()
        await database[self._roles_collection_name].create_index(
            [("user_id", ASCENDING), ("deleted_at", ASCENDING)],
            name="ix_user_live_roles",
        )

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a non-deleted profile.

        Returns:
            Dict with email, institute_id and must_change_password, or None
        """
        collection = await self._ensure_collection()
        try:
            doc = await collection.find_one(
                {"_id": user_id, "deleted_at": None},
                projection={"email": 1, "institute_id": 1, "must_change_password": 1},
            )
        except PyMongoError as exc:
            raise ProfileLookupError(f"Profile lookup failed for user={user_id}: {exc}") from exc

        if doc is None:
            logger.debug(f"No live profile for user={user_id}")
        return doc

    async def get_role_names(self, user_id: str) -> List[str]:
        """Fetch the user's live role memberships."""
        database = await self._ensure_db()
        try:
            cursor = database[self._roles_collection_name].find(
                {"user_id": user_id, "deleted_at": None},
                projection={"role": 1},
            )
            docs = await cursor.to_list(length=None)
        except PyMongoError as exc:
            raise ProfileLookupError(f"Role lookup failed for user={user_id}: {exc}") from exc

        return sorted({doc["role"] for doc in docs if doc.get("role")})
