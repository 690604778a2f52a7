"""
Local fallback store used in demo mode.

Each collection is one JSON array on disk, in a slot file named after the
browser storage keys the admin UI uses (demoProjects, demoSkills, ...).
Every operation loads the whole array and, for writes, replaces it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import NotFound, TransportError
from .models import ABOUT, MESSAGES, PROJECTS, SKILLS
from .store import now_iso

logger = logging.getLogger(__name__)

SLOTS = {
    PROJECTS: "demoProjects",
    SKILLS: "demoSkills",
    ABOUT: "demoAbout",
    MESSAGES: "demoMessages",
}

# New projects and messages go to the top of the list; skills keep entry order.
PREPEND_COLLECTIONS = {PROJECTS, MESSAGES}


def slot_name(collection: str) -> str:
    return SLOTS.get(collection) or "demo" + collection[:1].upper() + collection[1:]


def ensure_json_array(path: Path) -> list:
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("[]\n", encoding="utf-8")
        return []
    data = json.loads(path.read_text(encoding="utf-8") or "[]")
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain JSON array")
    return data


def _matches(record: Dict[str, Any], match: Optional[Dict[str, Any]]) -> bool:
    return all(record.get(k) == v for k, v in (match or {}).items())


class LocalStore:
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        # Serializes each load+replace pair so concurrent writers cannot interleave.
        self._lock = asyncio.Lock()
        self._last_id = 0

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{slot_name(collection)}.json"

    async def _load(self, collection: str) -> List[Dict[str, Any]]:
        path = self._path(collection)
        try:
            return await asyncio.to_thread(ensure_json_array, path)
        except (OSError, ValueError) as e:
            logger.error("Local store slot %s unreadable: %s", path.name, e)
            raise TransportError(f"Local store slot {slot_name(collection)} is unreadable") from e

    async def _replace(self, collection: str, records: List[Dict[str, Any]]) -> None:
        path = self._path(collection)
        text = json.dumps(records, indent=2, ensure_ascii=False) + "\n"
        await asyncio.to_thread(path.write_text, text, "utf-8")

    def _next_id(self) -> str:
        # Millisecond timestamp, bumped so two creates in the same ms stay distinct.
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    async def list(
        self, collection: str, sort_key: Optional[str] = None, descending: bool = True
    ) -> List[Dict[str, Any]]:
        async with self._lock:
            records = await self._load(collection)
        if sort_key:
            records = sorted(records, key=lambda r: r.get(sort_key) or "", reverse=descending)
        return records

    async def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        async with self._lock:
            records = await self._load(collection)
        for record in records:
            if record.get("id") == record_id:
                return record
        raise NotFound(f"{collection} record {record_id} not found")

    async def add(
        self, collection: str, data: Dict[str, Any], stamp: Sequence[str] = ("createdAt",)
    ) -> Dict[str, Any]:
        now = now_iso()
        async with self._lock:
            records = await self._load(collection)
            record = {"id": self._next_id(), **data}
            for field in stamp:
                record[field] = now
            if collection in PREPEND_COLLECTIONS:
                records.insert(0, record)
            else:
                records.append(record)
            await self._replace(collection, records)
        return record

    async def update(
        self,
        collection: str,
        record_id: str,
        changes: Dict[str, Any],
        touch: Optional[str] = "updatedAt",
        unless: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        async with self._lock:
            records = await self._load(collection)
            for i, record in enumerate(records):
                if record.get("id") != record_id:
                    continue
                if unless and _matches(record, unless):
                    return record
                updated = {**record, **changes}
                if touch:
                    updated[touch] = now_iso()
                records[i] = updated
                await self._replace(collection, records)
                return updated
        raise NotFound(f"{collection} record {record_id} not found")

    async def upsert(
        self,
        collection: str,
        record_id: str,
        changes: Dict[str, Any],
        touch: Optional[str] = "updatedAt",
    ) -> Dict[str, Any]:
        async with self._lock:
            records = await self._load(collection)
            index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
            base = records[index] if index is not None else {"id": record_id}
            merged = {**base, **changes}
            if touch:
                merged[touch] = now_iso()
            if index is None:
                records.append(merged)
            else:
                records[index] = merged
            await self._replace(collection, records)
        return merged

    async def delete(self, collection: str, record_id: str) -> bool:
        async with self._lock:
            records = await self._load(collection)
            remaining = [r for r in records if r.get("id") != record_id]
            if len(remaining) == len(records):
                return False
            await self._replace(collection, remaining)
        return True

    async def count(self, collection: str, match: Optional[Dict[str, Any]] = None) -> int:
        async with self._lock:
            records = await self._load(collection)
        return sum(1 for r in records if _matches(r, match))

    async def close(self) -> None:
        logger.debug("Local store at %s closed", self.data_dir)
