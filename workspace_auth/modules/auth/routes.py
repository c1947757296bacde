from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse
from workspace_auth.config.settings import settings
from workspace_auth.core.access import PermissionResolver
from workspace_auth.core.cookies import clear_session_cookies, set_token_cookie, set_workspace_cookie
from workspace_auth.core.dependencies import get_current_user, get_permission_resolver, get_user_service
from workspace_auth.core.security import NotificationSender, get_notification_sender
from workspace_auth.modules.auth.schemas import (
    ForgotPasswordRequest,
    LoginData,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from workspace_auth.modules.auth.service import AuthService
from workspace_auth.modules.users.schemas import UserResponse
from workspace_auth.modules.users.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    user_service: UserService = Depends(get_user_service),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    notifier: NotificationSender = Depends(get_notification_sender)
) -> AuthService:
    return AuthService(user_service, resolver, notifier)


@router.post("/register", status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    service.register(register_data)
    return {
        "status": "success",
        "message": "Registration successful! Please check your email to verify your account",
    }


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service)
):
    """Login, set the token cookie and, when there is one, the default workspace cookie"""
    token, user, workspace = service.login(login_data)
    set_token_cookie(response, token)
    if workspace is not None:
        set_workspace_cookie(response, workspace.workspace.id)
    return LoginResponse(
        token=token,
        data=LoginData(user=user, workspace=workspace.to_response() if workspace else None),
    )


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookies"""
    clear_session_cookies(response)
    return {"status": "success", "message": "Logged out successfully"}


@router.get("/verify")
async def verify_email(
    token: str = Query(min_length=1),
    service: AuthService = Depends(get_auth_service)
):
    """Verify the email address from the link, sign the user in and redirect to the frontend"""
    session_token = service.verify_email(token)
    response = RedirectResponse(settings.frontend_base_url, status_code=303)
    set_token_cookie(response, session_token)
    return response


@router.post("/resend-verification")
async def resend_verification(
    current_user: UserResponse = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Send a new verification link to the signed-in user"""
    service.resend_verification(current_user)
    return {"status": "success", "message": "Verification email sent"}


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a password reset link"""
    service.forgot_password(body.email)
    return {"status": "success", "message": "Password reset email sent"}


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Set a new password with the token from the reset link"""
    service.reset_password(body)
    return {"status": "success", "message": "Password reset successful"}
