from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .config import Settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utcnow().isoformat()


class RecordStore(Protocol):
    """
    Document collections keyed by opaque string ids.

    Records come back as plain dicts with an ``id`` key and ISO-8601
    timestamps, whichever implementation is behind the protocol.
    """

    async def list(
        self, collection: str, sort_key: Optional[str] = None, descending: bool = True
    ) -> List[Dict[str, Any]]: ...

    async def get(self, collection: str, record_id: str) -> Dict[str, Any]: ...

    async def add(
        self, collection: str, data: Dict[str, Any], stamp: Sequence[str] = ("createdAt",)
    ) -> Dict[str, Any]: ...

    async def update(
        self,
        collection: str,
        record_id: str,
        changes: Dict[str, Any],
        touch: Optional[str] = "updatedAt",
        unless: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]: ...

    async def upsert(
        self,
        collection: str,
        record_id: str,
        changes: Dict[str, Any],
        touch: Optional[str] = "updatedAt",
    ) -> Dict[str, Any]: ...

    async def delete(self, collection: str, record_id: str) -> bool: ...

    async def count(self, collection: str, match: Optional[Dict[str, Any]] = None) -> int: ...

    async def close(self) -> None: ...


def build_store(settings: Settings) -> RecordStore:
    """Pick the store for the configured mode. Called once at startup."""
    if settings.is_demo:
        from .local_store import LocalStore

        logger.info("Demo mode: using local store at %s", settings.demo_data_dir)
        return LocalStore(settings.demo_data_dir)

    from .database import MongoStore

    logger.info("Remote mode: using MongoDB database %s", settings.db_name)
    return MongoStore.from_url(settings.mongo_url, settings.db_name)
