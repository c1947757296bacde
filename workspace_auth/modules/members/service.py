import logging
from supabase import Client
from workspace_auth.config.permissions_config import ADMIN_ROLE_NAME
from workspace_auth.core.exceptions import BadRequest, store_error
from workspace_auth.modules.members.schemas import MemberWithRole
from typing import List

logger = logging.getLogger(__name__)

INVALID_INVITE_CODE = "Invalid invite code"


class MemberService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def join_workspace(self, user_id: str, invite_code: str) -> str:
        """Join the workspace owning invite_code and return its id.

        The new member gets the non-Admin role whose name sorts first. An unknown
        code, a workspace without such a role and an existing membership all fail
        the same way.
        """
        try:
            workspace_result = self.supabase.table("workspaces")\
                .select("id")\
                .eq("invite_code", invite_code)\
                .limit(1)\
                .execute()
            if not workspace_result.data:
                raise BadRequest(INVALID_INVITE_CODE)
            workspace_id = workspace_result.data[0]["id"]

            role_result = self.supabase.table("roles")\
                .select("id, name")\
                .eq("workspace_id", workspace_id)\
                .neq("name", ADMIN_ROLE_NAME)\
                .order("name")\
                .limit(1)\
                .execute()
            if not role_result.data:
                raise BadRequest(INVALID_INVITE_CODE)

            # Conditional insert: an existing (workspace_id, user_id) row returns no data
            result = self.supabase.table("workspace_users").upsert(
                {
                    "workspace_id": workspace_id,
                    "user_id": user_id,
                    "role_id": role_result.data[0]["id"],
                },
                on_conflict="workspace_id,user_id",
                ignore_duplicates=True,
            ).execute()
        except BadRequest:
            raise
        except Exception as e:
            raise store_error(e)

        if not result.data:
            raise BadRequest(INVALID_INVITE_CODE)

        logger.info("User %s joined workspace %s", user_id, workspace_id)
        return workspace_id

    def remove_member(self, user_id: str, workspace_id: str) -> None:
        """Remove a membership; removing a non-member is not an error"""
        try:
            self.supabase.table("workspace_users")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("workspace_id", workspace_id)\
                .execute()
        except Exception as e:
            raise store_error(e)

    def list_members(self, workspace_id: str) -> List[MemberWithRole]:
        """List members with their role names"""
        try:
            result = self.supabase.table("workspace_users")\
                .select("user_id, users(id, name, email), roles(name)")\
                .eq("workspace_id", workspace_id)\
                .execute()
        except Exception as e:
            raise store_error(e)

        members = []
        for row in result.data or []:
            user = row.get("users")
            role = row.get("roles")
            if not user or not role:
                continue
            members.append(MemberWithRole(
                user_id=user["id"],
                user_name=user["name"],
                user_email=user["email"],
                role_name=role["name"],
            ))
        return members

    def update_member_role(self, workspace_id: str, user_id: str, role_id: str) -> None:
        """Point a membership at another role.

        role_id is trusted to belong to workspace_id; resolve it with
        RoleService.get_role_id_by_name first.
        """
        try:
            self.supabase.table("workspace_users")\
                .update({"role_id": role_id})\
                .eq("user_id", user_id)\
                .eq("workspace_id", workspace_id)\
                .execute()
        except Exception as e:
            raise store_error(e)
