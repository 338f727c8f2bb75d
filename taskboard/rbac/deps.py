from dataclasses import dataclass

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from taskboard.auth.deps import get_current_user
from taskboard.auth.profiles import PrincipalProfile, load_profile
from taskboard.db import get_db
from taskboard.models.enums import Role
from taskboard.models.user import User
from taskboard.rbac.perms import CAPABILITIES, PermissionSet, resolve
from taskboard.realtime.events import Actor
from taskboard.tasks.domain import Task

@dataclass(frozen=True)
class Principal:
    user: User
    profile: PrincipalProfile
    permissions: PermissionSet

    @property
    def id(self) -> str:
        return str(self.user.id)

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def role(self) -> Role:
        return self.profile.role

    @property
    def actor(self) -> Actor:
        return Actor(id=self.id, name=self.profile.full_name, email=self.email)

def get_principal(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Principal:
    profile = load_profile(db, user.id)
    return Principal(user=user, profile=profile, permissions=resolve(profile.role))

def require_perm(capability: str):
    if capability not in CAPABILITIES:
        raise RuntimeError(f"unknown permission capability: {capability}")

    def _checker(principal: Principal = Depends(get_principal)) -> Principal:
        if not getattr(principal.permissions, capability):
            raise HTTPException(status_code=403, detail="forbidden")
        return principal

    return _checker

# tasks are owned by the email that created them
def owns(principal: Principal, task: Task) -> bool:
    return task.created_by == principal.email

def can_edit_task(principal: Principal, task: Task) -> bool:
    return principal.permissions.can_edit_all_tasks or owns(principal, task)

def can_delete_task(principal: Principal, task: Task) -> bool:
    if principal.permissions.can_delete_all_tasks:
        return True
    return principal.permissions.can_delete_own_tasks and owns(principal, task)

def can_assign(principal: Principal, assignee: str) -> bool:
    # leaving a task unassigned or taking it yourself is always allowed
    return principal.permissions.can_assign_tasks or assignee in ("", principal.email)
