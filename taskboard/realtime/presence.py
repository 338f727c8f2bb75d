from __future__ import annotations

import threading
from dataclasses import asdict, dataclass, replace

from taskboard.realtime.events import USER_JOINED, USER_LEFT, Actor, EventSource, RealtimeEvent

STATUSES = ("online", "away", "offline")

@dataclass(frozen=True, slots=True)
class PresenceUser:
    id: str
    name: str
    email: str
    status: str = "online"

class PresenceTracker:
    """Who is in the workspace right now. Joins and leaves are broadcast with the full list."""

    def __init__(self, events: EventSource) -> None:
        self._events = events
        self._users: dict[str, PresenceUser] = {}
        self._lock = threading.Lock()

    def users(self) -> list[PresenceUser]:
        with self._lock:
            return list(self._users.values())

    def _snapshot(self) -> list[dict[str, str]]:
        return [asdict(u) for u in self.users()]

    def join(self, user: PresenceUser) -> None:
        with self._lock:
            self._users[user.id] = user
        self._events.publish(
            RealtimeEvent(
                type=USER_JOINED,
                data={"users": self._snapshot()},
                actor=Actor(id=user.id, name=user.name, email=user.email),
            )
        )

    def leave(self, user_id: str) -> None:
        with self._lock:
            user = self._users.pop(user_id, None)
        if user is None:
            return
        self._events.publish(
            RealtimeEvent(
                type=USER_LEFT,
                data={"users": self._snapshot()},
                actor=Actor(id=user.id, name=user.name, email=user.email),
            )
        )

    def set_status(self, user_id: str, status: str) -> PresenceUser | None:
        if status not in STATUSES:
            raise ValueError(f"unknown presence status: {status}")
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user = replace(user, status=status)
            self._users[user_id] = user
            return user
