import logging
from supabase import Client
from workspace_auth.config.permissions_config import ADMIN_ROLE_NAME
from workspace_auth.core.access import is_protected_role
from workspace_auth.core.exceptions import AppError, NotFound, store_error
from workspace_auth.modules.roles.schemas import PermissionResponse, RoleWithPermissions
from typing import List, Optional

logger = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_permissions(self) -> List[PermissionResponse]:
        """List the seeded permission catalog"""
        try:
            result = self.supabase.table("permissions")\
                .select("name, description")\
                .order("name")\
                .execute()
            return [PermissionResponse(**permission) for permission in result.data]
        except Exception as e:
            raise store_error(e)


class RoleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def ensure_not_protected(self, workspace_id: str, role_id: str) -> None:
        """Reject any mutation aimed at the workspace's Admin role.

        The Admin role is reported as missing, whatever the caller's own permissions.
        """
        try:
            result = self.supabase.table("roles")\
                .select("id, name")\
                .eq("id", role_id)\
                .eq("workspace_id", workspace_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise store_error(e)

        if result.data and is_protected_role(result.data[0]):
            logger.warning("Refused mutation of protected role %s in workspace %s", role_id, workspace_id)
            raise NotFound("Role not found")

    def list_roles(self, workspace_id: str) -> List[RoleWithPermissions]:
        """List the workspace's roles with their permission names, Admin excluded"""
        try:
            result = self.supabase.table("roles")\
                .select("id, name, description, role_permissions(permissions(name))")\
                .eq("workspace_id", workspace_id)\
                .neq("name", ADMIN_ROLE_NAME)\
                .order("name")\
                .execute()
        except Exception as e:
            raise store_error(e)

        roles = []
        for row in result.data or []:
            permissions = [
                link["permissions"]["name"]
                for link in row.get("role_permissions") or []
                if link.get("permissions")
            ]
            roles.append(RoleWithPermissions(
                id=row["id"],
                name=row["name"],
                description=row.get("description"),
                permissions=permissions,
            ))
        return roles

    def create_role(
        self,
        workspace_id: str,
        name: str,
        description: Optional[str],
        permissions: List[str],
    ) -> RoleWithPermissions:
        """Create a role and its permission links in one transaction"""
        try:
            result = self.supabase.rpc("create_role", {
                "p_workspace_id": workspace_id,
                "p_name": name,
                "p_description": description,
                "p_permissions": permissions,
            }).execute()

            if not result.data:
                raise AppError("Failed to create role")

            role = result.data[0]
            logger.info("Created role %s in workspace %s", role["id"], workspace_id)
            return RoleWithPermissions(
                id=role["id"],
                name=role["name"],
                description=role.get("description"),
                permissions=permissions,
            )
        except AppError:
            raise
        except Exception as e:
            raise store_error(e, "A role with this name already exists")

    def update_role(
        self,
        workspace_id: str,
        role_id: str,
        name: str,
        description: Optional[str],
        permissions: List[str],
    ) -> RoleWithPermissions:
        """Rename/redescribe a role and replace its permission set"""
        self.ensure_not_protected(workspace_id, role_id)
        try:
            result = self.supabase.rpc("update_role", {
                "p_workspace_id": workspace_id,
                "p_role_id": role_id,
                "p_name": name,
                "p_description": description,
                "p_permissions": permissions,
            }).execute()
        except Exception as e:
            raise store_error(e, "A role with this name already exists")

        if not result.data:
            raise NotFound("Role not found")

        role = result.data[0]
        return RoleWithPermissions(
            id=role["id"],
            name=role["name"],
            description=role.get("description"),
            permissions=permissions,
        )

    def delete_role(self, workspace_id: str, role_id: str) -> None:
        """Delete a role; its permission links go with it.

        Members still holding the role make the store reject the delete (Conflict);
        reassigning them first is up to the caller.
        """
        self.ensure_not_protected(workspace_id, role_id)
        try:
            self.supabase.table("roles")\
                .delete()\
                .eq("id", role_id)\
                .eq("workspace_id", workspace_id)\
                .execute()
        except Exception as e:
            raise store_error(e, "Role is still assigned to workspace members")

    def get_role_id_by_name(self, workspace_id: str, name: str) -> str:
        """Translate a role name into its id within one workspace"""
        try:
            result = self.supabase.table("roles")\
                .select("id")\
                .eq("workspace_id", workspace_id)\
                .eq("name", name)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise store_error(e)

        if not result.data:
            raise NotFound("Role not found")
        return result.data[0]["id"]
