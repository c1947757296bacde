import uuid
from fastapi import APIRouter, Depends
from workspace_auth.config.permissions_config import Permission
from workspace_auth.core.access import WorkspaceContext
from workspace_auth.database.supabase_client import get_supabase
from workspace_auth.modules.roles.schemas import RoleCreate, RoleUpdate
from workspace_auth.modules.roles.service import RoleService, PermissionService
from workspace_auth.core.dependencies import require_permission
from supabase import Client

router = APIRouter(prefix="/roles", tags=["roles"])
permissions_router = APIRouter(prefix="/permissions", tags=["permissions"])


def get_role_service(supabase: Client = Depends(get_supabase)) -> RoleService:
    return RoleService(supabase)


def get_permission_service(supabase: Client = Depends(get_supabase)) -> PermissionService:
    return PermissionService(supabase)


@permissions_router.get("")
async def list_permissions(
    context: WorkspaceContext = Depends(require_permission(Permission.VIEW_PERMISSIONS)),
    service: PermissionService = Depends(get_permission_service)
):
    """List the permission catalog"""
    permissions = service.list_permissions()
    return {"status": "success", "data": {"permissions": permissions}}


@router.get("")
async def list_roles(
    context: WorkspaceContext = Depends(require_permission(Permission.VIEW_ROLES)),
    service: RoleService = Depends(get_role_service)
):
    """List the workspace's roles (the Admin role is never listed)"""
    return {"status": "success", "roles": service.list_roles(context.workspace_id)}


@router.post("", status_code=201)
async def create_role(
    role_data: RoleCreate,
    context: WorkspaceContext = Depends(require_permission(Permission.MANAGE_ROLES)),
    service: RoleService = Depends(get_role_service)
):
    """Create a role in the current workspace"""
    role = service.create_role(
        context.workspace_id, role_data.name, role_data.description, role_data.permission_names()
    )
    return {"status": "success", "message": "Role created successfully", "data": {"role": role}}


@router.put("/{role_id}")
async def update_role(
    role_id: uuid.UUID,
    role_data: RoleUpdate,
    context: WorkspaceContext = Depends(require_permission(Permission.MANAGE_ROLES)),
    service: RoleService = Depends(get_role_service)
):
    """Update a role; the permission list replaces the previous one"""
    role = service.update_role(
        context.workspace_id, str(role_id), role_data.name, role_data.description, role_data.permission_names()
    )
    return {"status": "success", "message": "Role updated successfully", "data": {"role": role}}


@router.delete("/{role_id}")
async def delete_role(
    role_id: uuid.UUID,
    context: WorkspaceContext = Depends(require_permission(Permission.MANAGE_ROLES)),
    service: RoleService = Depends(get_role_service)
):
    """Delete a role"""
    service.delete_role(context.workspace_id, str(role_id))
    return {"status": "success", "message": "Role deleted successfully"}
