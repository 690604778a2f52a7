from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, DefaultDict, Dict, List, Set, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageCreated:
    message: Dict[str, Any]


Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    """
    In-process publish/subscribe. Publishing never waits for subscribers:
    each delivery runs as its own task and its failures are only logged.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[Type, List[Handler]] = defaultdict(list)
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: Any) -> int:
        handlers = list(self._handlers.get(type(event), []))
        for handler in handlers:
            task = asyncio.create_task(self._deliver(handler, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return len(handlers)

    async def _deliver(self, handler: Handler, event: Any) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception("Handler %r failed for %s", handler, type(event).__name__)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
