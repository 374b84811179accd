import logging
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from app.schemas.tenant import Tenant
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TenantLookupError(Exception):
    """Raised when the institute registry cannot answer a lookup."""


class TenantRepository(BaseRepository):
    """Read-only access to the institute registry."""

    COLLECTION = "institutes"

    def __init__(
        self,
        *,
        db: Optional[AsyncIOMotorDatabase] = None,
        collection_name: str = COLLECTION,
    ) -> None:
        super().__init__(db=db, collection_name=collection_name)

    @classmethod
    async def from_default(cls, collection_name: str = COLLECTION) -> "TenantRepository":
        from app.db.mongodb import get_database

        db = await get_database()
        repository = cls(db=db, collection_name=collection_name)
        await repository.ensure_indexes()
        return repository

    async def ensure_indexes(self) -> None:
        """Create MongoDB indexes for optimal query performance."""
        collection = await self._ensure_collection()

        # Subdomain keys are unique among live institutes only
        await collection.create_index(
            [("subdomain", ASCENDING)],
            unique=True,
            partialFilterExpression={"deleted_at": None},
            name="ux_live_subdomain",
        )
        logger.info(f"Ensured indexes on {self._collection_name}")

    async def get_by_key(self, key: str) -> Optional[Tenant]:
        """
        Fetch a non-deleted institute by its subdomain key.

        Args:
            key: Subdomain label, matched case-insensitively

        Returns:
            The tenant, or None if no live institute uses this key

        Raises:
            TenantLookupError: If the registry is unreachable or the record is malformed
        """
        collection = await self._ensure_collection()
        try:
            doc = await collection.find_one(
                {"subdomain": key.lower(), "deleted_at": None},
                projection={"_id": 1, "subdomain": 1, "status": 1},
            )
        except PyMongoError as exc:
            raise TenantLookupError(f"Institute lookup failed for key={key}: {exc}") from exc

        if not doc:
            logger.debug(f"No live institute for key={key}")
            return None
        return self._to_tenant(doc)

    async def get_key_by_id(self, tenant_id: str) -> Optional[str]:
        """
        Fetch the subdomain key of a non-deleted institute.

        Raises:
            TenantLookupError: If the registry is unreachable
        """
        collection = await self._ensure_collection()
        try:
            doc = await collection.find_one(
                {"_id": tenant_id, "deleted_at": None},
                projection={"subdomain": 1},
            )
        except PyMongoError as exc:
            raise TenantLookupError(f"Institute key lookup failed for id={tenant_id}: {exc}") from exc

        if not doc or not doc.get("subdomain"):
            return None
        return doc["subdomain"]

    @staticmethod
    def _to_tenant(doc: Dict[str, Any]) -> Tenant:
        try:
            return Tenant(id=str(doc["_id"]), key=doc["subdomain"], status=doc.get("status"))
        except (KeyError, ValidationError) as exc:
            raise TenantLookupError(f"Malformed institute record {doc.get('_id')}: {exc}") from exc
