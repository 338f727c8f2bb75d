from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taskboard.models.enums import TaskPriority, TaskStatus
from taskboard.tasks.domain import Task

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class TaskCreateIn(BaseModel):
    model_config = _camel

    title: str = Field(min_length=1, max_length=300)
    description: str = ""
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    # defaults to the creator
    assigned_to: str | None = None
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)

class TaskMoveIn(BaseModel):
    status: TaskStatus

class KanbanColumnOut(BaseModel):
    model_config = _camel

    status: TaskStatus
    title: str
    tasks: list[Task]

class CalendarDayOut(BaseModel):
    model_config = _camel

    day: date
    in_month: bool
    tasks: list[Task]

class CalendarOut(BaseModel):
    model_config = _camel

    year: int
    month: int
    days: list[CalendarDayOut]
    overdue: list[Task]
    upcoming: list[Task]

class DeletedOut(BaseModel):
    deleted: bool = True
