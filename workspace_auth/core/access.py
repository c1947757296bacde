"""
Workspace-scoped permission resolution and the authorization gate.

A caller's role inside a workspace resolves to one of two shapes:
AdminRole (the protected per-workspace role, implicitly the whole catalog) or
CustomRole (exactly the permissions linked through role_permissions).
Nothing here is cached; every protected request re-reads the store.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Iterable, Optional, Union

from pydantic import BaseModel
from supabase import Client

from workspace_auth.config.permissions_config import (
    ADMIN_ROLE_NAME,
    ALL_PERMISSIONS,
    Permission,
    parse_permission_names,
)
from workspace_auth.core.exceptions import PermissionDenied, ServerError
from workspace_auth.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

ACCESS_SELECT = (
    "workspace_id, role_id, "
    "workspaces!inner(id, name, owner_user_id, is_default, invite_code, created_at, updated_at), "
    "roles(id, name, role_permissions(permissions(name)))"
)


@dataclass(frozen=True)
class AdminRole:
    role_id: str
    name: str = ADMIN_ROLE_NAME

    @property
    def permissions(self) -> FrozenSet[Permission]:
        return ALL_PERMISSIONS


@dataclass(frozen=True)
class CustomRole:
    role_id: str
    name: str
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)


ResolvedRole = Union[AdminRole, CustomRole]


def is_protected_role(role: dict) -> bool:
    """True for the per-workspace Admin role, which role management must never touch."""
    return role.get("name") == ADMIN_ROLE_NAME


class WorkspaceSummary(BaseModel):
    id: str
    name: str
    owner_user_id: Optional[str] = None
    invite_code: str
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class WorkspaceAccess:
    workspace: WorkspaceSummary
    role: ResolvedRole

    @property
    def permissions(self) -> FrozenSet[Permission]:
        return self.role.permissions

    def to_response(self) -> dict:
        return {
            "workspace": self.workspace.model_dump(mode="json"),
            "role_id": self.role.role_id,
            "role_name": self.role.name,
            "permissions": sorted(p.value for p in self.permissions),
        }


@dataclass(frozen=True)
class WorkspaceContext:
    """What a protected handler receives: who is calling, in which workspace, with which role."""
    user: UserResponse
    workspace_id: str
    access: WorkspaceAccess


def check_permission(permissions: Iterable[Permission], required: Permission) -> None:
    """Authorization gate: exact membership of the single required permission."""
    if required not in set(permissions):
        raise PermissionDenied()


class PermissionResolver:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def resolve(self, user_id: str, workspace_id: Optional[str] = None) -> WorkspaceAccess:
        """Resolve (user, workspace) to role and permissions.

        Without a workspace id the caller's default workspace is used.
        Every failure, including "not a member", is reported as ServerError.
        """
        query = self.supabase.table("workspace_users")\
            .select(ACCESS_SELECT)\
            .eq("user_id", user_id)
        if workspace_id is None:
            # earliest membership in a default workspace
            query = query.eq("workspaces.is_default", True).order("created_at")
        else:
            query = query.eq("workspace_id", workspace_id)

        try:
            result = query.limit(1).execute()
        except Exception as e:
            logger.error("Error resolving workspace access for user %s: %s", user_id, e)
            raise ServerError() from e

        if not result.data or not result.data[0].get("roles") or not result.data[0].get("workspaces"):
            logger.warning("No membership for user %s in workspace %s", user_id, workspace_id)
            raise ServerError()

        row = result.data[0]
        return WorkspaceAccess(
            workspace=WorkspaceSummary(**row["workspaces"]),
            role=self._resolve_role(row["roles"]),
        )

    @staticmethod
    def _resolve_role(role: dict) -> ResolvedRole:
        if is_protected_role(role):
            return AdminRole(role_id=role["id"])

        names = [
            link["permissions"]["name"]
            for link in role.get("role_permissions") or []
            if link.get("permissions")
        ]
        permissions = parse_permission_names(names)
        if len(permissions) != len(names):
            logger.warning("Role %s links permissions outside the catalog", role["id"])
        return CustomRole(role_id=role["id"], name=role["name"], permissions=frozenset(permissions))
