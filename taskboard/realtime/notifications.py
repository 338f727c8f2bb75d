from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from taskboard.realtime.events import (
    TASK_CREATED,
    TASK_DELETED,
    TASK_UPDATED,
    USER_JOINED,
    USER_LEFT,
    EventSource,
    RealtimeEvent,
)

logger = logging.getLogger(__name__)

@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    type: str
    title: str
    message: str
    timestamp: datetime
    read: bool = False
    user_name: str | None = None
    user_email: str | None = None

def _task_title(event: RealtimeEvent) -> str:
    task = event.data.get("task") or {}
    return str(task.get("title") or "a task")

def describe(event: RealtimeEvent) -> tuple[str, str] | None:
    """(title, message) shown for an event, or None for events we don't surface."""
    who = event.actor.name if event.actor else "Someone"

    if event.type == TASK_CREATED:
        return "New Task Created", f'{who} created "{_task_title(event)}"'
    if event.type == TASK_UPDATED:
        task = event.data.get("task") or {}
        status = task.get("status")
        suffix = f" (status: {status})" if status else ""
        return "Task Updated", f'{who} updated "{_task_title(event)}"{suffix}'
    if event.type == TASK_DELETED:
        return "Task Deleted", f"{who} deleted a task"
    if event.type == USER_JOINED:
        return "User Online", f"{who} joined the workspace"
    if event.type == USER_LEFT:
        return "User Offline", f"{who} left the workspace"
    return None

class NotificationCenter:
    """
    Newest-first feed of the last `limit` events, with read tracking.

    Fed by an EventSource; with the Redis bus, events arrive on the listener
    thread, hence the lock.
    """

    def __init__(self, events: EventSource, *, limit: int = 10) -> None:
        self._limit = limit
        self._items: list[Notification] = []
        self._lock = threading.Lock()
        self._unsubscribe: Callable[[], None] | None = events.subscribe(self.handle)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle(self, event: RealtimeEvent) -> None:
        described = describe(event)
        if described is None:
            logger.debug("No notification for event type=%s", event.type)
            return

        title, message = described
        note = Notification(
            id=uuid.uuid4().hex,
            type=event.type,
            title=title,
            message=message,
            timestamp=event.timestamp,
            user_name=event.actor.name if event.actor else None,
            user_email=event.actor.email if event.actor else None,
        )
        with self._lock:
            self._items = [note, *self._items][: self._limit]

    def recent(self) -> list[Notification]:
        with self._lock:
            return list(self._items)

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._items if not n.read)

    def mark_as_read(self, notification_id: str) -> bool:
        with self._lock:
            found = False
            items = []
            for n in self._items:
                if n.id == notification_id:
                    found = True
                    n = replace(n, read=True)
                items.append(n)
            self._items = items
            return found

    def mark_all_as_read(self) -> None:
        with self._lock:
            self._items = [replace(n, read=True) for n in self._items]

    def remove(self, notification_id: str) -> bool:
        with self._lock:
            before = len(self._items)
            self._items = [n for n in self._items if n.id != notification_id]
            return len(self._items) != before

    def clear(self) -> None:
        with self._lock:
            self._items = []
