import logging
from supabase import Client
from workspace_auth.core.exceptions import AppError, store_error
from workspace_auth.modules.workspaces.schemas import WorkspaceListItem
from typing import List

logger = logging.getLogger(__name__)

DUPLICATE_NAME = "Workspace with the same name already exists"


class WorkspaceService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_workspace(self, name: str, owner_user_id: str) -> str:
        """Create a workspace with its Admin role and owner membership; returns the id"""
        try:
            result = self.supabase.rpc("create_workspace", {
                "p_name": name,
                "p_owner_user_id": owner_user_id,
            }).execute()

            if not result.data:
                raise AppError("Failed to create workspace")

            workspace_id = result.data[0]["id"]
            logger.info("User %s created workspace %s", owner_user_id, workspace_id)
            return workspace_id
        except AppError:
            raise
        except Exception as e:
            raise store_error(e, DUPLICATE_NAME)

    def list_user_workspaces(self, user_id: str) -> List[WorkspaceListItem]:
        """List every workspace the user belongs to, with the user's role name"""
        try:
            result = self.supabase.table("workspace_users")\
                .select("workspaces(id, name, is_default, invite_code, created_at, updated_at), roles(name)")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise store_error(e)

        workspaces = []
        for row in result.data or []:
            workspace = row.get("workspaces")
            if not workspace:
                continue
            role = row.get("roles") or {}
            workspaces.append(WorkspaceListItem(
                workspace_id=workspace["id"],
                workspace_name=workspace["name"],
                invite_code=workspace["invite_code"],
                is_default=workspace.get("is_default"),
                created_at=workspace.get("created_at"),
                updated_at=workspace.get("updated_at"),
                role_name=role.get("name"),
            ))
        return workspaces

    def update_workspace(self, workspace_id: str, name: str) -> None:
        try:
            self.supabase.table("workspaces")\
                .update({"name": name})\
                .eq("id", workspace_id)\
                .execute()
        except Exception as e:
            raise store_error(e, DUPLICATE_NAME)

    def delete_workspace(self, workspace_id: str) -> None:
        """Delete a workspace; roles, links and memberships cascade"""
        try:
            self.supabase.table("workspaces")\
                .delete()\
                .eq("id", workspace_id)\
                .execute()
        except Exception as e:
            raise store_error(e)
