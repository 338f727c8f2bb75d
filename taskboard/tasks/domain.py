from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from taskboard.models.enums import TaskPriority, TaskStatus

# todo -> in-progress -> completed -> todo
STATUS_CYCLE: dict[TaskStatus, TaskStatus] = {
    TaskStatus.todo: TaskStatus.in_progress,
    TaskStatus.in_progress: TaskStatus.completed,
    TaskStatus.completed: TaskStatus.todo,
}

def next_status(status: TaskStatus) -> TaskStatus:
    return STATUS_CYCLE[TaskStatus(status)]

def new_task_id() -> str:
    return uuid.uuid4().hex

class TaskDraft(BaseModel):
    """Everything a caller supplies when creating a task."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(min_length=1, max_length=300)
    description: str = ""
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    assigned_to: str = ""
    created_by: str = ""
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)

class Task(TaskDraft):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: datetime
    updated_at: datetime

class TaskUpdate(BaseModel):
    """
    Partial update. Only explicitly provided fields are applied.

    Unknown keys (id, createdBy, createdAt, ...) are ignored, so identity and
    authorship can't be rewritten through an update. An explicit null only
    has meaning for dueDate, where it clears the date.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: str | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name != "due_date":
                continue
            out[name] = value
        return out

TASK_LIST = TypeAdapter(list[Task])

def dump_tasks(tasks: list[Task]) -> str:
    return TASK_LIST.dump_json(tasks, by_alias=True).decode("utf-8")

def load_tasks(raw: str | bytes) -> list[Task]:
    return TASK_LIST.validate_json(raw)
