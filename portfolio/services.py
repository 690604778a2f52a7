"""
Content services for the portfolio resources.

Each service validates payloads, stamps timestamps and talks to whichever
RecordStore it was built with; none of them knows which mode is active.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .errors import NotFound
from .events import EventBus, MessageCreated
from .models import (
    ABOUT,
    ABOUT_PROFILE_ID,
    MESSAGES,
    PROJECTS,
    SKILLS,
    AboutFields,
    MessageFields,
    ProjectFields,
    SkillCategoryFields,
    coerce_payload,
)
from .store import RecordStore
from .validation import (
    MESSAGE_REQUIRED,
    PROJECT_REQUIRED,
    SKILL_REQUIRED,
    drop_blank_fields,
    require_fields,
    require_list_items,
)

logger = logging.getLogger(__name__)

Payload = Union[Dict[str, Any], Any]

# Shape of a freshly created about profile
ABOUT_DEFAULTS: Dict[str, Any] = {"bio": "", "experience": [], "profileImageURL": ""}


class ProjectService:
    """Service for portfolio projects, newest first"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.store.list(PROJECTS, sort_key="createdAt")

    async def get_by_id(self, project_id: str) -> Dict[str, Any]:
        return await self.store.get(PROJECTS, project_id)

    async def create(self, data: Payload) -> Dict[str, Any]:
        payload = coerce_payload(ProjectFields, data)
        require_fields(PROJECT_REQUIRED, payload)
        require_list_items("techStack", payload)
        payload.setdefault("featured", False)

        project = await self.store.add(PROJECTS, payload, stamp=("createdAt", "updatedAt"))
        logger.info("Project %s created: %s", project["id"], project["title"])
        return project

    async def update(self, project_id: str, data: Payload) -> Dict[str, Any]:
        changes = coerce_payload(ProjectFields, data)
        changes = drop_blank_fields(PROJECT_REQUIRED, changes)
        require_list_items("techStack", changes)

        project = await self.store.update(PROJECTS, project_id, changes)
        logger.info("Project %s updated: %s", project_id, sorted(changes))
        return project

    async def delete(self, project_id: str) -> bool:
        removed = await self.store.delete(PROJECTS, project_id)
        logger.info("Project %s delete requested (removed=%s)", project_id, removed)
        return removed


class SkillService:
    """Service for skill categories. Listing keeps store order."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.store.list(SKILLS)

    async def get_by_id(self, skill_id: str) -> Dict[str, Any]:
        return await self.store.get(SKILLS, skill_id)

    async def create(self, data: Payload) -> Dict[str, Any]:
        payload = coerce_payload(SkillCategoryFields, data)
        require_fields(SKILL_REQUIRED, payload)
        require_list_items("skills", payload)

        category = await self.store.add(SKILLS, payload, stamp=("createdAt",))
        logger.info("Skill category %s created: %s", category["id"], category["category"])
        return category

    async def update(self, skill_id: str, data: Payload) -> Dict[str, Any]:
        changes = coerce_payload(SkillCategoryFields, data)
        changes = drop_blank_fields(SKILL_REQUIRED, changes)
        require_list_items("skills", changes)

        category = await self.store.update(SKILLS, skill_id, changes)
        logger.info("Skill category %s updated: %s", skill_id, sorted(changes))
        return category

    async def delete(self, skill_id: str) -> bool:
        removed = await self.store.delete(SKILLS, skill_id)
        logger.info("Skill category %s delete requested (removed=%s)", skill_id, removed)
        return removed


class AboutService:
    """The about profile is a single record under a fixed id."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def get(self) -> Dict[str, Any]:
        return await self.store.get(ABOUT, ABOUT_PROFILE_ID)

    async def update(self, data: Payload) -> Dict[str, Any]:
        # Merge: fields the caller did not send stay as they are.
        changes = coerce_payload(AboutFields, data)
        try:
            await self.store.get(ABOUT, ABOUT_PROFILE_ID)
        except NotFound:
            changes = {**ABOUT_DEFAULTS, **changes}
        profile = await self.store.upsert(ABOUT, ABOUT_PROFILE_ID, changes)
        logger.info("About profile updated: %s", sorted(changes))
        return profile


class MessageService:
    def __init__(self, store: RecordStore, events: Optional[EventBus] = None):
        self.store = store
        self.events = events

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.store.list(MESSAGES, sort_key="timestamp")

    async def get_by_id(self, message_id: str) -> Dict[str, Any]:
        return await self.store.get(MESSAGES, message_id)

    async def create(self, data: Payload) -> Dict[str, Any]:
        """Store a visitor's contact message, then announce it. Never needs auth."""
        payload = coerce_payload(MessageFields, data)
        require_fields(MESSAGE_REQUIRED, payload)
        payload["read"] = False

        message = await self.store.add(MESSAGES, payload, stamp=("timestamp",))
        logger.info("Message %s received from %s", message["id"], message["email"])
        if self.events is not None:
            self.events.publish(MessageCreated(message))
        return message

    async def mark_as_read(self, message_id: str) -> Dict[str, Any]:
        # readAt is stamped only on the unread -> read transition.
        return await self.store.update(
            MESSAGES, message_id, {"read": True}, touch="readAt", unless={"read": True}
        )

    async def delete(self, message_id: str) -> bool:
        removed = await self.store.delete(MESSAGES, message_id)
        logger.info("Message %s delete requested (removed=%s)", message_id, removed)
        return removed

    async def unread_count(self) -> int:
        total = await self.store.count(MESSAGES)
        read = await self.store.count(MESSAGES, {"read": True})
        return total - read


@dataclass
class Services:
    projects: ProjectService
    skills: SkillService
    about: AboutService
    messages: MessageService

    @classmethod
    def build(cls, store: RecordStore, events: Optional[EventBus] = None) -> "Services":
        return cls(
            projects=ProjectService(store),
            skills=SkillService(store),
            about=AboutService(store),
            messages=MessageService(store, events),
        )

    async def dashboard_stats(self) -> Dict[str, int]:
        store = self.projects.store
        return {
            "projects": await store.count(PROJECTS),
            "skills": await store.count(SKILLS),
            "messages": await store.count(MESSAGES),
            "unreadMessages": await self.messages.unread_count(),
        }
