from fastapi import APIRouter, Depends, Query
from workspace_auth.core.dependencies import get_current_user, get_user_service
from workspace_auth.core.security import NotificationSender, get_notification_sender
from workspace_auth.modules.users.schemas import ChangeEmailRequest, UpdatePasswordRequest, UserResponse
from workspace_auth.modules.users.service import AccountService, UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_account_service(
    user_service: UserService = Depends(get_user_service),
    notifier: NotificationSender = Depends(get_notification_sender)
) -> AccountService:
    return AccountService(user_service, notifier)


@router.get("/me")
async def get_me(current_user: UserResponse = Depends(get_current_user)):
    """Get the authenticated user"""
    return {"status": "success", "data": {"user": current_user}}


@router.put("/update-password")
async def update_password(
    body: UpdatePasswordRequest,
    current_user: UserResponse = Depends(get_current_user),
    service: AccountService = Depends(get_account_service)
):
    """Change the password after checking the current one"""
    service.update_password(current_user.id, body.current_password, body.new_password)
    return {"status": "success", "message": "Password updated successfully"}


@router.put("/change-email")
async def change_email(
    body: ChangeEmailRequest,
    current_user: UserResponse = Depends(get_current_user),
    service: AccountService = Depends(get_account_service)
):
    """Request an email change; the new address gets a confirmation link"""
    service.request_email_change(current_user, body.email)
    return {
        "status": "success",
        "message": "Verification link has been sent to your new email address. "
                   "Please check your inbox to confirm your email change",
    }


@router.get("/verify-email")
async def verify_email_change(
    token: str = Query(min_length=1),
    current_user: UserResponse = Depends(get_current_user),
    service: AccountService = Depends(get_account_service)
):
    """Confirm an email change with the token from the link"""
    service.confirm_email_change(current_user.id, token)
    return {"status": "success", "message": "Email changed successfully"}
