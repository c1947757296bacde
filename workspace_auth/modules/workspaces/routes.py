import uuid
from fastapi import APIRouter, Depends, Response
from workspace_auth.config.permissions_config import Permission
from workspace_auth.core.access import PermissionResolver, WorkspaceContext
from workspace_auth.core.cookies import set_workspace_cookie
from workspace_auth.core.dependencies import get_current_user, get_permission_resolver, require_permission
from workspace_auth.database.supabase_client import get_supabase
from workspace_auth.modules.users.schemas import UserResponse
from workspace_auth.modules.workspaces.schemas import WorkspaceCreate, WorkspaceUpdate
from workspace_auth.modules.workspaces.service import WorkspaceService
from supabase import Client

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def get_workspace_service(supabase: Client = Depends(get_supabase)) -> WorkspaceService:
    return WorkspaceService(supabase)


@router.post("", status_code=201)
async def create_workspace(
    workspace_data: WorkspaceCreate,
    response: Response,
    current_user: UserResponse = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Create a workspace owned by the caller and switch to it"""
    workspace_id = service.create_workspace(workspace_data.name, current_user.id)
    access = resolver.resolve(current_user.id, workspace_id)
    set_workspace_cookie(response, access.workspace.id)
    return {"status": "success", "data": access.to_response()}


@router.get("")
async def list_workspaces(
    current_user: UserResponse = Depends(get_current_user),
    service: WorkspaceService = Depends(get_workspace_service)
):
    """List the caller's workspaces"""
    return {"status": "success", "data": {"workspaces": service.list_user_workspaces(current_user.id)}}


@router.put("")
async def update_workspace(
    workspace_data: WorkspaceUpdate,
    context: WorkspaceContext = Depends(require_permission(Permission.UPDATE_WORKSPACE)),
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Rename the current workspace"""
    service.update_workspace(context.workspace_id, workspace_data.name)
    return {"status": "success", "message": "Workspace updated successfully"}


@router.delete("")
async def delete_workspace(
    context: WorkspaceContext = Depends(require_permission(Permission.DELETE_WORKSPACE)),
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Delete the current workspace"""
    service.delete_workspace(context.workspace_id)
    return {"status": "success", "message": "Workspace deleted successfully"}


@router.get("/{workspace_id}")
async def switch_workspace(
    workspace_id: uuid.UUID,
    response: Response,
    current_user: UserResponse = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Show a workspace the caller belongs to and make it the current one"""
    access = resolver.resolve(current_user.id, str(workspace_id))
    set_workspace_cookie(response, access.workspace.id)
    return {"status": "success", "data": access.to_response()}
