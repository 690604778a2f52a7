"""
Guard layer: required-field detection for record payloads.

This runs BEFORE any store write. If a required field is missing or empty,
the write is blocked and the caller gets a ValidationError naming the fields.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .errors import ValidationError

PROJECT_REQUIRED = ["title", "description", "techStack", "imageURL", "githubURL", "liveDemoURL"]
SKILL_REQUIRED = ["category", "skills"]
MESSAGE_REQUIRED = ["name", "email", "subject", "message"]


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def detect_missing_fields(required: Iterable[str], payload: Dict[str, Any]) -> List[str]:
    return [field for field in required if is_empty(payload.get(field))]


def detect_blank_items(field: str, payload: Dict[str, Any]) -> List[str]:
    """Names list positions holding blank strings, e.g. ``techStack[2]``."""
    items = payload.get(field)
    if not isinstance(items, list):
        return []
    return [f"{field}[{i}]" for i, item in enumerate(items) if is_empty(item)]


def require_fields(required: Iterable[str], payload: Dict[str, Any]) -> None:
    missing = detect_missing_fields(required, payload)
    if missing:
        raise ValidationError(missing_fields=missing)


def drop_blank_fields(required: Iterable[str], changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    A blank required field in an update counts as not provided: it is left
    out so the stored value stays, and the other fields still apply.
    """
    blank = {field for field in required if field in changes and is_empty(changes[field])}
    return {k: v for k, v in changes.items() if k not in blank}


def require_list_items(field: str, payload: Dict[str, Any]) -> None:
    blanks = detect_blank_items(field, payload)
    if blanks:
        raise ValidationError(
            f"Blank entries are not allowed: {', '.join(blanks)}",
            invalid_fields=blanks,
        )
