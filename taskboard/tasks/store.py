from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from taskboard.auth.tokens import now_utc
from taskboard.models.enums import TaskStatus
from taskboard.realtime.events import (
    TASK_CREATED,
    TASK_DELETED,
    TASK_UPDATED,
    Actor,
    EventSource,
    RealtimeEvent,
)
from taskboard.storage.blobs import BlobStore
from taskboard.tasks.domain import (
    Task,
    TaskDraft,
    TaskUpdate,
    dump_tasks,
    load_tasks,
    new_task_id,
    next_status,
)
from taskboard.tasks.samples import sample_tasks

logger = logging.getLogger(__name__)

DEFAULT_KEY = "task-manager-tasks"

class PersistenceError(RuntimeError):
    """The blob store refused a write; the in-memory list was left as it was."""

class TaskStore:
    """
    Authoritative in-memory task list, mirrored to a blob store.

    - on initialize(), whatever is persisted wins; nothing (or garbage) means
      the sample board is written
    - after that, memory is the source of truth and every mutation rewrites
      the whole list under one key before returning
    - roles are not checked here; callers decide what a principal may do

    Sync routes run on a threadpool, so every read and every
    read-modify-commit holds one reentrant lock.
    """

    def __init__(
        self,
        blobs: BlobStore,
        *,
        key: str = DEFAULT_KEY,
        events: EventSource | None = None,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_task_id,
        samples: Callable[[datetime], list[Task]] = sample_tasks,
    ) -> None:
        self._blobs = blobs
        self._key = key
        self._events = events
        self._clock = clock
        self._new_id = id_factory
        self._samples = samples
        self._tasks: list[Task] = []
        self._lock = threading.RLock()
        self.loading = True

    @property
    def tasks(self) -> list[Task]:
        with self._lock:
            return list(self._tasks)

    # ---- persistence ----

    def initialize(self) -> None:
        with self._lock:
            loaded = self._load()
            if loaded is not None:
                self._tasks = loaded
                logger.info("TaskStore loaded key=%s total=%d", self._key, len(loaded))
            else:
                seeded = self._samples(self._clock())
                try:
                    self._commit(seeded)
                except PersistenceError:
                    logger.exception("Could not persist sample tasks; serving them from memory")
                    self._tasks = seeded
                logger.info("TaskStore seeded key=%s total=%d", self._key, len(seeded))
            self.loading = False

    def _load(self) -> list[Task] | None:
        try:
            raw = self._blobs.get(self._key)
        except Exception:
            logger.exception("Task blob read failed key=%s; treating as empty", self._key)
            return None

        if raw is None:
            return None

        try:
            return load_tasks(raw)
        except ValidationError:
            logger.warning("Discarding malformed task blob key=%s", self._key)
            return None

    def _commit(self, tasks: list[Task]) -> None:
        raw = dump_tasks(tasks)
        try:
            self._blobs.set(self._key, raw)
        except Exception as e:
            raise PersistenceError(f"failed to persist tasks under {self._key!r}") from e
        self._tasks = tasks

    def _publish(self, event_type: str, data: dict[str, Any], actor: Actor | None) -> None:
        if self._events is None:
            return
        try:
            self._events.publish(RealtimeEvent(type=event_type, data=data, actor=actor))
        except Exception:
            # the mutation is already committed
            logger.exception("Publishing %s failed", event_type)

    def _index_of(self, task_id: str) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    # ---- mutations ----
    # events are published under the lock so subscribers see them in commit order

    def create_task(self, draft: TaskDraft | Mapping[str, Any], *, actor: Actor | None = None) -> Task:
        if not isinstance(draft, TaskDraft):
            draft = TaskDraft.model_validate(draft)

        with self._lock:
            task_id = self._new_id()
            while self._index_of(task_id) is not None:
                task_id = self._new_id()

            now = self._clock()
            task = Task(
                id=task_id,
                created_at=now,
                updated_at=now,
                **draft.model_dump(include=set(TaskDraft.model_fields)),
            )
            self._commit([*self._tasks, task])
            logger.debug("Task created id=%s status=%s", task.id, task.status.value)
            self._publish(TASK_CREATED, {"task": task.model_dump(mode="json", by_alias=True)}, actor)
        return task

    def update_task(
        self,
        task_id: str,
        changes: TaskUpdate | Mapping[str, Any],
        *,
        actor: Actor | None = None,
    ) -> Task | None:
        """Merge `changes` onto the task. Returns None (and writes nothing) for an unknown id."""
        if not isinstance(changes, TaskUpdate):
            changes = TaskUpdate.model_validate(changes)

        with self._lock:
            index = self._index_of(task_id)
            if index is None:
                logger.debug("update_task: unknown id=%s", task_id)
                return None

            updated = self._tasks[index].model_copy(update={**changes.changes(), "updated_at": self._clock()})
            tasks = list(self._tasks)
            tasks[index] = updated
            self._commit(tasks)
            self._publish(TASK_UPDATED, {"task": updated.model_dump(mode="json", by_alias=True)}, actor)
        return updated

    def delete_task(self, task_id: str, *, actor: Actor | None = None) -> bool:
        with self._lock:
            index = self._index_of(task_id)
            if index is None:
                logger.debug("delete_task: unknown id=%s", task_id)
                return False

            self._commit(self._tasks[:index] + self._tasks[index + 1 :])
            self._publish(TASK_DELETED, {"taskId": task_id}, actor)
        return True

    def toggle_task_status(self, task_id: str, *, actor: Actor | None = None) -> Task | None:
        with self._lock:
            task = self.get_task(task_id)
            if task is None:
                return None
            return self.update_task(task_id, TaskUpdate(status=next_status(task.status)), actor=actor)

    # ---- queries ----

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            index = self._index_of(task_id)
            return self._tasks[index] if index is not None else None

    def get_tasks_by_status(self, status: TaskStatus | str) -> list[Task]:
        status = TaskStatus(status)
        with self._lock:
            return [t for t in self._tasks if t.status == status]

    def get_tasks_by_assignee(self, assignee: str) -> list[Task]:
        with self._lock:
            return [t for t in self._tasks if t.assigned_to == assignee]
