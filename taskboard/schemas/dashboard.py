from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskboard.models.enums import Role
from taskboard.rbac.perms import PermissionSet

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class TaskCountsOut(BaseModel):
    model_config = _camel

    todo: int
    in_progress: int
    completed: int
    total: int
    overdue: int

class DashboardOut(BaseModel):
    model_config = _camel

    name: str
    email: str
    role: Role
    permissions: PermissionSet
    counts: TaskCountsOut
    assigned_to_me: int
    unread_notifications: int

class ReportOut(BaseModel):
    model_config = _camel

    counts: TaskCountsOut
    completion_rate: float

class NotificationOut(BaseModel):
    model_config = _camel

    id: str
    type: str
    title: str
    message: str
    timestamp: datetime
    read: bool
    user_name: str | None = None
    user_email: str | None = None

class NotificationsOut(BaseModel):
    model_config = _camel

    unread_count: int
    items: list[NotificationOut]

class PresenceUserOut(BaseModel):
    id: str
    name: str
    email: str
    status: str
