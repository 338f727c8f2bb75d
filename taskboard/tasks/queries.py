from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from taskboard.auth.tokens import as_utc
from taskboard.models.enums import TaskPriority, TaskStatus
from taskboard.tasks.domain import Task

ALL = "all"

KANBAN_TITLES: dict[TaskStatus, str] = {
    TaskStatus.todo: "To Do",
    TaskStatus.in_progress: "In Progress",
    TaskStatus.completed: "Completed",
}

@dataclass(frozen=True, slots=True)
class KanbanColumn:
    status: TaskStatus
    title: str
    tasks: list[Task]

def matches_search(task: Task, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    return (
        needle in task.title.lower()
        or needle in task.description.lower()
        or any(needle in tag.lower() for tag in task.tags)
    )

def filter_tasks(
    tasks: Iterable[Task],
    *,
    search: str = "",
    status: TaskStatus | str = ALL,
    priority: TaskPriority | str = ALL,
    assigned_to: str | None = None,
) -> list[Task]:
    """Search term plus status/priority/assignee filters; "all" switches a filter off."""
    status = status if status == ALL else TaskStatus(status)
    priority = priority if priority == ALL else TaskPriority(priority)

    out: list[Task] = []
    for t in tasks:
        if not matches_search(t, search):
            continue
        if status != ALL and t.status != status:
            continue
        if priority != ALL and t.priority != priority:
            continue
        if assigned_to is not None and t.assigned_to != assigned_to:
            continue
        out.append(t)
    return out

def status_counts(tasks: Iterable[Task]) -> dict[TaskStatus, int]:
    counts = {s: 0 for s in TaskStatus}
    for t in tasks:
        counts[t.status] += 1
    return counts

def kanban_columns(tasks: Iterable[Task]) -> list[KanbanColumn]:
    tasks = list(tasks)
    return [
        KanbanColumn(status=s, title=title, tasks=[t for t in tasks if t.status == s])
        for s, title in KANBAN_TITLES.items()
    ]

def is_overdue(task: Task, now: datetime) -> bool:
    if task.due_date is None or task.status == TaskStatus.completed:
        return False
    return as_utc(task.due_date) < as_utc(now)

def overdue_tasks(tasks: Iterable[Task], now: datetime) -> list[Task]:
    return [t for t in tasks if is_overdue(t, now)]

def upcoming_tasks(tasks: Iterable[Task], now: datetime, days: int = 7) -> list[Task]:
    now = as_utc(now)
    horizon = now + timedelta(days=days)
    return [
        t
        for t in tasks
        if t.due_date is not None
        and t.status != TaskStatus.completed
        and now <= as_utc(t.due_date) <= horizon
    ]

def tasks_for_date(tasks: Iterable[Task], day: date) -> list[Task]:
    # due dates are bucketed by their utc calendar day
    return [t for t in tasks if t.due_date is not None and as_utc(t.due_date).date() == day]

def calendar_days(year: int, month: int) -> list[date]:
    """Six full weeks for a month grid, starting on the Sunday on/before the 1st."""
    first = date(year, month, 1)
    # date.weekday(): monday=0 .. sunday=6
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    return [start + timedelta(days=i) for i in range(42)]
