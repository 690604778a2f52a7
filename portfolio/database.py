from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from .errors import NotFound, TransportError
from .models import MESSAGES, PROJECTS, USERS
from .store import utcnow

logger = logging.getLogger(__name__)


def _doc_id(record_id: str) -> Union[ObjectId, str]:
    # Generated ids are ObjectIds; fixed ids such as "profile" stay strings.
    if ObjectId.is_valid(record_id):
        return ObjectId(record_id)
    return record_id


def serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Swap ``_id`` for a string ``id`` and convert datetime objects to ISO format strings"""
    record = {"id": str(doc["_id"])}
    for key, value in doc.items():
        if key == "_id":
            continue
        record[key] = value.isoformat() if isinstance(value, datetime) else value
    return record


class MongoStore:
    """Record store over MongoDB, one collection per resource."""

    def __init__(self, database: AsyncIOMotorDatabase, client: Optional[AsyncIOMotorClient] = None):
        self.client = client
        self.db = database

    @classmethod
    def from_url(cls, mongo_url: str, db_name: str) -> "MongoStore":
        client = AsyncIOMotorClient(mongo_url, tz_aware=True, serverSelectionTimeoutMS=5000)
        return cls(client[db_name], client)

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except PyMongoError as e:
            logger.error("MongoDB %s failed: %s", action, e)
            raise TransportError(f"Database unavailable during {action}") from e

    async def ensure_indexes(self) -> None:
        """Create indexes for the sort keys used by listings"""
        with self._translate_errors("ensure_indexes"):
            await self.db[PROJECTS].create_index([("createdAt", -1)])
            await self.db[MESSAGES].create_index([("timestamp", -1)])
            await self.db[USERS].create_index("email", unique=True)

    async def list(
        self, collection: str, sort_key: Optional[str] = None, descending: bool = True
    ) -> List[Dict[str, Any]]:
        with self._translate_errors(f"list {collection}"):
            cursor = self.db[collection].find()
            if sort_key:
                cursor = cursor.sort(sort_key, -1 if descending else 1)
            records = []
            async for doc in cursor:
                records.append(serialize(doc))
            return records

    async def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        with self._translate_errors(f"get {collection}"):
            doc = await self.db[collection].find_one({"_id": _doc_id(record_id)})
        if not doc:
            raise NotFound(f"{collection} record {record_id} not found")
        return serialize(doc)

    async def add(
        self, collection: str, data: Dict[str, Any], stamp: Sequence[str] = ("createdAt",)
    ) -> Dict[str, Any]:
        now = utcnow()
        doc = dict(data)
        for field in stamp:
            doc[field] = now
        with self._translate_errors(f"insert {collection}"):
            result = await self.db[collection].insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize(doc)

    async def update(
        self,
        collection: str,
        record_id: str,
        changes: Dict[str, Any],
        touch: Optional[str] = "updatedAt",
        unless: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"_id": _doc_id(record_id)}
        for key, value in (unless or {}).items():
            query[key] = {"$ne": value}
        fields = dict(changes)
        if touch:
            fields[touch] = utcnow()
        if fields:
            with self._translate_errors(f"update {collection}"):
                result = await self.db[collection].update_one(query, {"$set": fields})
            if result.matched_count == 0 and not unless:
                raise NotFound(f"{collection} record {record_id} not found")
        # With `unless`, a miss may just mean the record already holds those values.
        return await self.get(collection, record_id)

    async def upsert(
        self,
        collection: str,
        record_id: str,
        changes: Dict[str, Any],
        touch: Optional[str] = "updatedAt",
    ) -> Dict[str, Any]:
        fields = {**changes, (touch or "updatedAt"): utcnow()}
        with self._translate_errors(f"upsert {collection}"):
            await self.db[collection].update_one({"_id": _doc_id(record_id)}, {"$set": fields}, upsert=True)
        return await self.get(collection, record_id)

    async def delete(self, collection: str, record_id: str) -> bool:
        with self._translate_errors(f"delete {collection}"):
            result = await self.db[collection].delete_one({"_id": _doc_id(record_id)})
        return result.deleted_count > 0

    async def count(self, collection: str, match: Optional[Dict[str, Any]] = None) -> int:
        with self._translate_errors(f"count {collection}"):
            return await self.db[collection].count_documents(match or {})

    # Identity provider accounts

    async def get_user(self, email: str) -> Dict[str, Any]:
        with self._translate_errors("get user"):
            user = await self.db[USERS].find_one({"email": email})
        if not user:
            raise NotFound(f"User not found: {email}")
        return serialize(user)

    async def get_user_claims(self, email: str) -> Dict[str, Any]:
        user = await self.get_user(email)
        return dict(user.get("claims") or {})

    async def set_user_password(self, email: str, password_hash: str) -> None:
        with self._translate_errors("set user password"):
            await self.db[USERS].update_one(
                {"email": email},
                {"$set": {"passwordHash": password_hash, "updatedAt": utcnow()}},
                upsert=True,
            )

    async def set_user_claims(self, email: str, claims: Dict[str, Any]) -> None:
        with self._translate_errors("set user claims"):
            await self.db[USERS].update_one(
                {"email": email},
                {"$set": {"claims": claims, "updatedAt": utcnow()}},
                upsert=True,
            )

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
