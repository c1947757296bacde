import uuid
from fastapi import APIRouter, Depends, Response
from workspace_auth.config.permissions_config import Permission
from workspace_auth.core.access import PermissionResolver, WorkspaceContext
from workspace_auth.core.cookies import set_workspace_cookie
from workspace_auth.core.dependencies import get_current_user, get_permission_resolver, require_permission
from workspace_auth.database.supabase_client import get_supabase
from workspace_auth.modules.members.schemas import UpdateMemberRole
from workspace_auth.modules.members.service import MemberService
from workspace_auth.modules.roles.routes import get_role_service
from workspace_auth.modules.roles.service import RoleService
from workspace_auth.modules.users.schemas import UserResponse
from supabase import Client

router = APIRouter(prefix="/members", tags=["members"])


def get_member_service(supabase: Client = Depends(get_supabase)) -> MemberService:
    return MemberService(supabase)


@router.get("/invite/{invite_code}")
async def join_workspace(
    invite_code: str,
    response: Response,
    current_user: UserResponse = Depends(get_current_user),
    service: MemberService = Depends(get_member_service),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Join a workspace with its invite code and switch to it"""
    workspace_id = service.join_workspace(current_user.id, invite_code)
    access = resolver.resolve(current_user.id, workspace_id)
    set_workspace_cookie(response, access.workspace.id)
    return {"status": "success", "data": access.to_response()}


@router.get("")
async def list_members(
    context: WorkspaceContext = Depends(require_permission(Permission.VIEW_MEMBERS)),
    service: MemberService = Depends(get_member_service)
):
    """List workspace members with their roles"""
    return {"status": "success", "data": {"users": service.list_members(context.workspace_id)}}


@router.delete("/{user_id}")
async def remove_member(
    user_id: uuid.UUID,
    context: WorkspaceContext = Depends(require_permission(Permission.REMOVE_MEMBERS)),
    service: MemberService = Depends(get_member_service)
):
    """Remove a member from the workspace"""
    service.remove_member(str(user_id), context.workspace_id)
    return {"status": "success", "message": "Removed user from workspace successfully"}


@router.patch("/{user_id}")
async def update_member_role(
    user_id: uuid.UUID,
    body: UpdateMemberRole,
    context: WorkspaceContext = Depends(require_permission(Permission.ASSIGN_ROLES_TO_MEMBERS)),
    service: MemberService = Depends(get_member_service),
    role_service: RoleService = Depends(get_role_service)
):
    """Assign another role (by name) to a member"""
    role_id = role_service.get_role_id_by_name(context.workspace_id, body.role_name)
    service.update_member_role(context.workspace_id, str(user_id), role_id)
    return {"status": "success", "message": "User role updated successfully"}
