"""
Permission catalog
The closed set of capabilities a workspace role can be granted.
Used by request validation, the authorization gate and the seed script.
"""

from enum import Enum
from typing import Dict, List


# Every workspace owns exactly one role with this name. It is created together
# with the workspace, carries the whole catalog and is hidden from role management.
ADMIN_ROLE_NAME = "Admin"


class Permission(str, Enum):
    UPDATE_WORKSPACE = "update_workspace"
    DELETE_WORKSPACE = "delete_workspace"
    MANAGE_ROLES = "manage_roles"
    MANAGE_PERMISSIONS = "manage_permissions"
    INVITE_MEMBERS = "invite_members"
    VIEW_MEMBERS = "view_members"
    VIEW_ROLES = "view_roles"
    VIEW_PERMISSIONS = "view_permissions"
    REMOVE_MEMBERS = "remove_members"
    ASSIGN_ROLES_TO_MEMBERS = "assign_roles_to_members"

    def __str__(self) -> str:
        return self.value


PERMISSION_DESCRIPTIONS: Dict[Permission, str] = {
    Permission.UPDATE_WORKSPACE: "Rename the workspace",
    Permission.DELETE_WORKSPACE: "Delete the workspace",
    Permission.MANAGE_ROLES: "Create, update and delete roles",
    Permission.MANAGE_PERMISSIONS: "Change the permissions attached to roles",
    Permission.INVITE_MEMBERS: "Share the workspace invite code",
    Permission.VIEW_MEMBERS: "List workspace members",
    Permission.VIEW_ROLES: "List workspace roles",
    Permission.VIEW_PERMISSIONS: "List the permission catalog",
    Permission.REMOVE_MEMBERS: "Remove members from the workspace",
    Permission.ASSIGN_ROLES_TO_MEMBERS: "Change the role of a workspace member",
}

ALL_PERMISSIONS = frozenset(Permission)


def parse_permission_names(names) -> List[Permission]:
    """Map stored permission names onto the catalog, skipping names it does not know."""
    parsed = []
    for name in names:
        try:
            parsed.append(Permission(name))
        except ValueError:
            continue
    return parsed


def get_permission_seed_rows() -> List[Dict[str, str]]:
    """Rows for the permissions table, in catalog order."""
    return [
        {"name": permission.value, "description": PERMISSION_DESCRIPTIONS[permission]}
        for permission in Permission
    ]
