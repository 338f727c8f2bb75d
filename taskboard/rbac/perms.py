from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskboard.models.enums import Role

class PermissionSet(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    can_create_tasks: bool
    can_edit_all_tasks: bool
    can_delete_all_tasks: bool
    can_delete_own_tasks: bool
    can_assign_tasks: bool
    can_access_calendar: bool
    can_access_reports: bool

PERMS: dict[Role, PermissionSet] = {
    Role.user: PermissionSet(
        can_create_tasks=True,
        can_edit_all_tasks=True,
        can_delete_all_tasks=True,
        can_delete_own_tasks=True,
        can_assign_tasks=True,
        can_access_calendar=True,
        can_access_reports=False,
    ),
    Role.guest: PermissionSet(
        can_create_tasks=True,
        can_edit_all_tasks=False,
        can_delete_all_tasks=False,
        can_delete_own_tasks=True,
        can_assign_tasks=False,
        can_access_calendar=True,
        can_access_reports=False,
    ),
}

CAPABILITIES: frozenset[str] = frozenset(PermissionSet.model_fields)

def resolve(role: Role | str | None) -> PermissionSet:
    """Capability flags for a role. Unknown or missing roles get guest flags."""
    return PERMS[Role.normalize(role)]
