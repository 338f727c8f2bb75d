from __future__ import annotations

from enum import Enum

class Role(str, Enum):
    user = "user"
    guest = "guest"

    @classmethod
    def normalize(cls, value: object) -> Role:
        # exact match only; anything else (including None) is a guest
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.guest

class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in-progress"
    completed = "completed"

class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"

class TokenPurpose(str, Enum):
    confirm = "confirm"
    recovery = "recovery"
