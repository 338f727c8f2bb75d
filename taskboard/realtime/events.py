from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

import redis

from taskboard.auth.tokens import now_utc

logger = logging.getLogger(__name__)

TASK_CREATED = "task-created"
TASK_UPDATED = "task-updated"
TASK_DELETED = "task-deleted"
USER_JOINED = "user-joined"
USER_LEFT = "user-left"

EVENT_TYPES = frozenset({TASK_CREATED, TASK_UPDATED, TASK_DELETED, USER_JOINED, USER_LEFT})

@dataclass(frozen=True, slots=True)
class Actor:
    id: str
    name: str
    email: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "email": self.email}

@dataclass(frozen=True, slots=True)
class RealtimeEvent:
    type: str
    data: dict[str, Any]
    actor: Actor | None = None
    timestamp: datetime = field(default_factory=now_utc)

    def to_json(self) -> str:
        return json.dumps(
            {
                "type": self.type,
                "data": self.data,
                "user": self.actor.to_dict() if self.actor else None,
                "timestamp": self.timestamp.isoformat(),
            }
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> RealtimeEvent:
        body = json.loads(raw)
        user = body.get("user")
        return cls(
            type=str(body["type"]),
            data=dict(body.get("data") or {}),
            actor=Actor(**user) if user else None,
            timestamp=datetime.fromisoformat(body["timestamp"]),
        )

Handler = Callable[[RealtimeEvent], None]

class EventSource(Protocol):
    """publish() fans out to handlers; subscribe() returns its own unsubscribe."""

    def subscribe(self, handler: Handler) -> Callable[[], None]: ...
    def publish(self, event: RealtimeEvent) -> None: ...

class LocalEventBus:
    def __init__(self) -> None:
        self._handlers: list[Handler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        with self._lock:
            self._handlers.append(handler)

        def _unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: RealtimeEvent) -> None:
        self.dispatch(event)

    def dispatch(self, event: RealtimeEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            # one bad subscriber must not starve the rest
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed type=%s handler=%r", event.type, handler)

class RedisEventBus(LocalEventBus):
    """
    Publishes JSON on a Redis channel; a background listener thread decodes
    messages from that channel and dispatches them to local subscribers.

    Local subscribers only see an event once it has come back from Redis,
    so every process on the channel observes the same order.
    """

    def __init__(self, client: redis.Redis, channel: str) -> None:
        super().__init__()
        self._client = client
        self._channel = channel
        self._pubsub: Any = None
        self._thread: Any = None

    def publish(self, event: RealtimeEvent) -> None:
        self._client.publish(self._channel, event.to_json())

    def _on_message(self, message: dict[str, Any]) -> None:
        if message.get("type") != "message":
            return
        try:
            event = RealtimeEvent.from_json(message["data"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping undecodable realtime message on %s", self._channel)
            return
        self.dispatch(event)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(**{self._channel: self._on_message})
        self._thread = self._pubsub.run_in_thread(sleep_time=0.05, daemon=True)
        logger.info("Realtime listener started channel=%s", self._channel)

    def stop(self) -> None:
        if self._thread is None:
            return
        self._thread.stop()
        self._pubsub.close()
        self._thread = None
        self._pubsub = None
        logger.info("Realtime listener stopped channel=%s", self._channel)

def build_event_bus(backend: str, channel: str) -> LocalEventBus:
    if backend == "local":
        return LocalEventBus()

    if backend == "redis":
        from taskboard.redis_client import redis_client

        return RedisEventBus(redis_client, channel)

    raise ValueError(f"unknown realtime backend: {backend}")
