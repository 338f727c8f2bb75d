from fastapi import APIRouter, Depends, HTTPException

from taskboard.auth.tokens import now_utc
from taskboard.models.enums import TaskStatus
from taskboard.rbac.deps import Principal, get_principal, require_perm
from taskboard.realtime.deps import get_notifications, get_presence
from taskboard.realtime.notifications import NotificationCenter
from taskboard.realtime.presence import PresenceTracker
from taskboard.schemas.dashboard import (
    DashboardOut,
    NotificationOut,
    NotificationsOut,
    PresenceUserOut,
    ReportOut,
    TaskCountsOut,
)
from taskboard.tasks import queries
from taskboard.tasks.deps import get_task_store
from taskboard.tasks.domain import Task
from taskboard.tasks.store import TaskStore

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

def _counts(tasks: list[Task]) -> TaskCountsOut:
    by_status = queries.status_counts(tasks)
    return TaskCountsOut(
        todo=by_status[TaskStatus.todo],
        in_progress=by_status[TaskStatus.in_progress],
        completed=by_status[TaskStatus.completed],
        total=len(tasks),
        overdue=len(queries.overdue_tasks(tasks, now_utc())),
    )

def _notifications_out(center: NotificationCenter) -> NotificationsOut:
    return NotificationsOut(
        unread_count=center.unread_count,
        items=[NotificationOut.model_validate(n, from_attributes=True) for n in center.recent()],
    )

@router.get("", response_model=DashboardOut)
def dashboard(
    principal: Principal = Depends(get_principal),
    store: TaskStore = Depends(get_task_store),
    notifications: NotificationCenter = Depends(get_notifications),
) -> DashboardOut:
    tasks = store.tasks
    return DashboardOut(
        name=principal.profile.full_name,
        email=principal.email,
        role=principal.role,
        permissions=principal.permissions,
        counts=_counts(tasks),
        assigned_to_me=len(store.get_tasks_by_assignee(principal.email)),
        unread_notifications=notifications.unread_count,
    )

@router.get("/reports", response_model=ReportOut)
def reports(
    principal: Principal = Depends(require_perm("can_access_reports")),
    store: TaskStore = Depends(get_task_store),
) -> ReportOut:
    tasks = store.tasks
    counts = _counts(tasks)
    rate = counts.completed / counts.total if counts.total else 0.0
    return ReportOut(counts=counts, completion_rate=round(rate, 4))

@router.get("/notifications", response_model=NotificationsOut)
def list_notifications(
    principal: Principal = Depends(get_principal),
    notifications: NotificationCenter = Depends(get_notifications),
) -> NotificationsOut:
    return _notifications_out(notifications)

@router.post("/notifications/read-all", response_model=NotificationsOut)
def mark_all_read(
    principal: Principal = Depends(get_principal),
    notifications: NotificationCenter = Depends(get_notifications),
) -> NotificationsOut:
    notifications.mark_all_as_read()
    return _notifications_out(notifications)

@router.post("/notifications/{notification_id}/read", response_model=NotificationsOut)
def mark_read(
    notification_id: str,
    principal: Principal = Depends(get_principal),
    notifications: NotificationCenter = Depends(get_notifications),
) -> NotificationsOut:
    if not notifications.mark_as_read(notification_id):
        raise HTTPException(status_code=404, detail="notification not found")
    return _notifications_out(notifications)

@router.delete("/notifications/{notification_id}", response_model=NotificationsOut)
def remove_notification(
    notification_id: str,
    principal: Principal = Depends(get_principal),
    notifications: NotificationCenter = Depends(get_notifications),
) -> NotificationsOut:
    if not notifications.remove(notification_id):
        raise HTTPException(status_code=404, detail="notification not found")
    return _notifications_out(notifications)

@router.get("/presence", response_model=list[PresenceUserOut])
def presence(
    principal: Principal = Depends(get_principal),
    tracker: PresenceTracker = Depends(get_presence),
) -> list[PresenceUserOut]:
    return [PresenceUserOut.model_validate(u, from_attributes=True) for u in tracker.users()]
