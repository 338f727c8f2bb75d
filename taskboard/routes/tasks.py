from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from taskboard.auth.tokens import now_utc
from taskboard.models.enums import TaskPriority, TaskStatus
from taskboard.rbac.deps import (
    Principal,
    can_assign,
    can_delete_task,
    can_edit_task,
    get_principal,
    require_perm,
)
from taskboard.schemas.tasks import (
    CalendarDayOut,
    CalendarOut,
    DeletedOut,
    KanbanColumnOut,
    TaskCreateIn,
    TaskMoveIn,
)
from taskboard.tasks import queries
from taskboard.tasks.deps import get_task_store
from taskboard.tasks.domain import Task, TaskDraft, TaskUpdate
from taskboard.tasks.store import PersistenceError, TaskStore

router = APIRouter(prefix="/tasks", tags=["tasks"])

def unique_tags(tags: list[str]) -> list[str]:
    # order-preserving, blank tags dropped
    seen: set[str] = set()
    out: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out

def _get_or_404(store: TaskStore, task_id: str) -> Task:
    task = store.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="task not found")
    return task

def _unavailable(e: PersistenceError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))

@router.get("", response_model=list[Task])
def list_tasks(
    q: str = "",
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    assigned_to: str | None = Query(default=None, alias="assignedTo"),
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> list[Task]:
    return queries.filter_tasks(
        store.tasks,
        search=q,
        status=status or queries.ALL,
        priority=priority or queries.ALL,
        assigned_to=assigned_to,
    )

@router.get("/board", response_model=list[KanbanColumnOut])
def board(
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> list[KanbanColumnOut]:
    return [
        KanbanColumnOut(status=c.status, title=c.title, tasks=c.tasks)
        for c in queries.kanban_columns(store.tasks)
    ]

@router.get("/calendar", response_model=CalendarOut)
def calendar(
    year: int | None = Query(default=None, ge=1, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    principal: Principal = Depends(require_perm("can_access_calendar")),
    store: TaskStore = Depends(get_task_store),
) -> CalendarOut:
    now = now_utc()
    year = year or now.year
    month = month or now.month
    tasks = store.tasks

    try:
        grid = queries.calendar_days(year, month)
    except OverflowError:
        # the six-week grid would run past date.min or date.max
        raise HTTPException(status_code=422, detail="month is outside the supported calendar range")

    days = [
        CalendarDayOut(day=d, in_month=d.month == month, tasks=queries.tasks_for_date(tasks, d))
        for d in grid
    ]
    return CalendarOut(
        year=year,
        month=month,
        days=days,
        overdue=queries.overdue_tasks(tasks, now),
        upcoming=queries.upcoming_tasks(tasks, now),
    )

@router.get("/calendar/{day}", response_model=list[Task])
def tasks_on_day(
    day: date,
    principal: Principal = Depends(require_perm("can_access_calendar")),
    store: TaskStore = Depends(get_task_store),
) -> list[Task]:
    return queries.tasks_for_date(store.tasks, day)

@router.get("/overdue", response_model=list[Task])
def overdue(
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> list[Task]:
    return queries.overdue_tasks(store.tasks, now_utc())

@router.post("", response_model=Task)
def create_task(
    payload: TaskCreateIn,
    principal: Principal = Depends(require_perm("can_create_tasks")),
    store: TaskStore = Depends(get_task_store),
) -> Task:
    assignee = principal.email if payload.assigned_to is None else payload.assigned_to
    if not can_assign(principal, assignee):
        raise HTTPException(status_code=403, detail="forbidden")

    draft = TaskDraft(
        title=payload.title,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        assigned_to=assignee,
        created_by=principal.email,
        due_date=payload.due_date,
        tags=unique_tags(payload.tags),
    )
    try:
        return store.create_task(draft, actor=principal.actor)
    except PersistenceError as e:
        raise _unavailable(e)

@router.get("/{task_id}", response_model=Task)
def get_task(
    task_id: str,
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> Task:
    return _get_or_404(store, task_id)

@router.patch("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> Task:
    task = _get_or_404(store, task_id)

    # only users with edit-all, or the creator
    if not can_edit_task(principal, task):
        raise HTTPException(status_code=403, detail="forbidden")

    if payload.assigned_to is not None and payload.assigned_to != task.assigned_to:
        if not can_assign(principal, payload.assigned_to):
            raise HTTPException(status_code=403, detail="forbidden")

    if payload.tags is not None:
        payload.tags = unique_tags(payload.tags)

    try:
        updated = store.update_task(task_id, payload, actor=principal.actor)
    except PersistenceError as e:
        raise _unavailable(e)
    if updated is None:
        raise HTTPException(status_code=404, detail="task not found")
    return updated

@router.post("/{task_id}/toggle", response_model=Task)
def toggle_task(
    task_id: str,
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> Task:
    task = _get_or_404(store, task_id)
    if not can_edit_task(principal, task):
        raise HTTPException(status_code=403, detail="forbidden")

    try:
        toggled = store.toggle_task_status(task_id, actor=principal.actor)
    except PersistenceError as e:
        raise _unavailable(e)
    if toggled is None:
        raise HTTPException(status_code=404, detail="task not found")
    return toggled

# kanban drop onto a column
@router.post("/{task_id}/move", response_model=Task)
def move_task(
    task_id: str,
    payload: TaskMoveIn,
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> Task:
    task = _get_or_404(store, task_id)
    if not can_edit_task(principal, task):
        raise HTTPException(status_code=403, detail="forbidden")
    if task.status == payload.status:
        return task

    try:
        moved = store.update_task(task_id, TaskUpdate(status=payload.status), actor=principal.actor)
    except PersistenceError as e:
        raise _unavailable(e)
    if moved is None:
        raise HTTPException(status_code=404, detail="task not found")
    return moved

@router.delete("/{task_id}", response_model=DeletedOut)
def delete_task(
    task_id: str,
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
) -> DeletedOut:
    task = _get_or_404(store, task_id)
    if not can_delete_task(principal, task):
        raise HTTPException(status_code=403, detail="forbidden")

    try:
        store.delete_task(task_id, actor=principal.actor)
    except PersistenceError as e:
        raise _unavailable(e)
    return DeletedOut(deleted=True)
