from datetime import datetime, timedelta

from taskboard.models.enums import TaskPriority, TaskStatus
from taskboard.tasks.domain import Task

DAY = timedelta(days=1)
HOUR = timedelta(hours=1)

def sample_tasks(now: datetime) -> list[Task]:
    """The starter board written on first run, dated relative to `now`."""
    return [
        Task(
            id="1",
            title="Setup project repository",
            description="Initialize the project repository with proper structure and documentation",
            status=TaskStatus.completed,
            priority=TaskPriority.high,
            assigned_to="admin@example.com",
            created_by="admin@example.com",
            created_at=now - 2 * DAY,
            updated_at=now - DAY,
            due_date=now + 3 * DAY,
            tags=["setup", "documentation"],
        ),
        Task(
            id="2",
            title="Design user interface mockups",
            description="Create wireframes and mockups for the main application interface",
            status=TaskStatus.in_progress,
            priority=TaskPriority.medium,
            assigned_to="manager@example.com",
            created_by="admin@example.com",
            created_at=now - DAY,
            updated_at=now - 2 * HOUR,
            due_date=now + 5 * DAY,
            tags=["design", "ui/ux"],
        ),
        Task(
            id="3",
            title="Implement authentication system",
            description="Build secure login and registration functionality with role-based access",
            status=TaskStatus.todo,
            priority=TaskPriority.high,
            assigned_to="user@example.com",
            created_by="manager@example.com",
            created_at=now - 12 * HOUR,
            updated_at=now - 12 * HOUR,
            due_date=now + 7 * DAY,
            tags=["backend", "security"],
        ),
    ]
