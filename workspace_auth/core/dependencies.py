"""
Core dependencies for route protection and permission checking.

Resolution order per protected request:
token -> user (get_current_user) -> workspace cookie (get_workspace_id)
-> role + permissions (PermissionResolver) -> gate (require_permission).
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from workspace_auth.config.permissions_config import Permission
from workspace_auth.config.settings import settings
from workspace_auth.core.access import PermissionResolver, WorkspaceContext, check_permission
from workspace_auth.core.exceptions import (
    InvalidToken,
    PermissionDenied,
    TokenNotProvided,
    Unauthorized,
    UserNoLongerExists,
)
from workspace_auth.core.tokens import verify_token
from workspace_auth.database.supabase_client import get_supabase
from workspace_auth.modules.users.schemas import UserResponse
from workspace_auth.modules.users.service import UserService

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"
WORKSPACE_COOKIE = "workspace"

security = HTTPBearer(auto_error=False)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_permission_resolver(supabase: Client = Depends(get_supabase)) -> PermissionResolver:
    return PermissionResolver(supabase)


def get_request_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """Session cookie first, then the Authorization: Bearer header"""
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    raise TokenNotProvided()


def get_current_user(
    token: str = Depends(get_request_token),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Resolve the user the token was issued for"""
    subject = verify_token(token, settings.jwt_secret_key)

    try:
        user_id = str(uuid.UUID(subject))
    except ValueError:
        raise InvalidToken()

    try:
        user = user_service.get_user_by_id(user_id)
    except Exception as e:
        logger.error("Error loading user %s: %s", user_id, e)
        raise InvalidToken() from e

    if user is None:
        raise UserNoLongerExists()
    return user


def get_workspace_id(request: Request) -> str:
    """Workspace bound to the session through the workspace cookie"""
    raw = request.cookies.get(WORKSPACE_COOKIE)
    if not raw:
        raise Unauthorized("Workspace id not found")
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        raise Unauthorized("Invalid workspace id")


def require_permission(required_permission: Permission):
    """Factory function to create a permission check dependency for one route"""
    def check(
        user: UserResponse = Depends(get_current_user),
        workspace_id: str = Depends(get_workspace_id),
        resolver: PermissionResolver = Depends(get_permission_resolver),
    ) -> WorkspaceContext:
        access = resolver.resolve(user.id, workspace_id)
        try:
            check_permission(access.permissions, required_permission)
        except PermissionDenied:
            logger.warning(
                "User %s denied %s in workspace %s", user.id, required_permission.value, workspace_id
            )
            raise
        return WorkspaceContext(user=user, workspace_id=workspace_id, access=access)
    return check
