import logging
from typing import Optional, Tuple

from workspace_auth.config.settings import settings
from workspace_auth.core.access import PermissionResolver, WorkspaceAccess
from workspace_auth.core.exceptions import AppError, BadRequest, ServerError
from workspace_auth.core.security import (
    TEMPLATE_RESET,
    TEMPLATE_VERIFICATION,
    TEMPLATE_WELCOME,
    NotificationSender,
    hash_password,
    is_expired,
    new_account_token,
    normalize_account_token,
    verify_password,
)
from workspace_auth.core.tokens import issue_token
from workspace_auth.modules.auth.schemas import LoginRequest, RegisterRequest, ResetPasswordRequest
from workspace_auth.modules.users.schemas import UserResponse
from workspace_auth.modules.users.service import INVALID_TOKEN, UserService

logger = logging.getLogger(__name__)

WRONG_CREDENTIALS = "Email or password is wrong"


class AuthService:
    def __init__(
        self,
        user_service: UserService,
        resolver: PermissionResolver,
        notifier: NotificationSender,
    ):
        self.user_service = user_service
        self.resolver = resolver
        self.notifier = notifier

    def register(self, register_data: RegisterRequest) -> UserResponse:
        """Register a new user and send the email verification link.

        The user row stays when the link cannot be sent; the link can be
        requested again with resend_verification.
        """
        try:
            password_hash = hash_password(register_data.password)
        except ValueError as e:
            raise BadRequest(str(e))

        token, expires_at = new_account_token(settings.account_token_ttl_hours)
        user = self.user_service.create_user(
            register_data.name, register_data.email, password_hash, token, expires_at
        )

        self._send_verification(
            user,
            token,
            "We were unable to send your verification email. However, you can login "
            "and request email verification again."
        )
        return user

    def resend_verification(self, user: UserResponse) -> None:
        """Issue a new verification token for a signed-in, unverified user"""
        if user.email_verified:
            raise BadRequest("Email is already verified")

        token, expires_at = new_account_token(settings.account_token_ttl_hours)
        self.user_service.save_verification(user.id, token, expires_at)
        self._send_verification(user, token, "We were unable to send your verification email. Please try again later")

    def login(self, login_data: LoginRequest) -> Tuple[str, UserResponse, Optional[WorkspaceAccess]]:
        """Check credentials and issue a session token.

        Also resolves the default workspace; a user without one still logs in.
        """
        user = self.user_service.get_user_with_credentials(login_data.email)
        if user is None or not verify_password(login_data.password, user.password):
            raise BadRequest(WRONG_CREDENTIALS)

        token = self._issue_session(user.id)

        try:
            workspace = self.resolver.resolve(user.id)
        except AppError:
            workspace = None

        public_user = UserResponse(**user.model_dump(exclude={"password"}))
        return token, public_user, workspace

    def verify_email(self, raw_token: str) -> str:
        """Mark the user behind a verification token as verified; returns a session token"""
        token = normalize_account_token(raw_token)
        verification = self.user_service.get_verification(token) if token else None
        if verification is None:
            raise BadRequest(INVALID_TOKEN)
        if is_expired(verification.expires_at):
            raise BadRequest("Verification token has expired")

        self.user_service.mark_verified(verification.user_id)
        user = self.user_service.get_user_by_id(verification.user_id)
        if user is None:
            raise BadRequest(INVALID_TOKEN)

        try:
            self.notifier.send(user.email, TEMPLATE_WELCOME, {
                "name": user.name,
                "link": settings.frontend_base_url,
            })
        except Exception as e:
            logger.error("Failed to send welcome email to %s: %s", user.email, e)

        logger.info("User %s verified their email", user.id)
        return self._issue_session(user.id)

    def forgot_password(self, email: str) -> None:
        """Store a reset token and send the reset link"""
        user = self.user_service.get_user_with_credentials(email)
        if user is None:
            raise BadRequest(WRONG_CREDENTIALS)

        token, expires_at = new_account_token(settings.account_token_ttl_hours)
        self.user_service.save_password_reset(user.id, token, expires_at)

        try:
            self.notifier.send(user.email, TEMPLATE_RESET, {
                "name": user.name,
                "link": f"{settings.frontend_base_url}/auth/reset-password?token={token}",
            })
        except Exception as e:
            logger.error("Failed to send password reset email to %s: %s", user.email, e)
            raise ServerError("We were unable to send the password reset email. Please try again later")

    def reset_password(self, reset_data: ResetPasswordRequest) -> None:
        token = normalize_account_token(reset_data.token)
        password_reset = self.user_service.get_password_reset(token) if token else None
        if password_reset is None:
            raise BadRequest(INVALID_TOKEN)
        if is_expired(password_reset.expires_at):
            raise BadRequest("Password reset token has expired")

        try:
            password_hash = hash_password(reset_data.password)
        except ValueError as e:
            raise BadRequest(str(e))

        self.user_service.reset_password(password_reset.user_id, password_hash)
        logger.info("User %s reset their password", password_reset.user_id)

    def _send_verification(self, user: UserResponse, token: str, failure_message: str) -> None:
        try:
            self.notifier.send(user.email, TEMPLATE_VERIFICATION, {
                "name": user.name,
                "link": f"{settings.backend_base_url}/api/v1/auth/verify?token={token}",
            })
        except Exception as e:
            logger.error("Failed to send verification email to %s: %s", user.email, e)
            raise ServerError(failure_message)

    @staticmethod
    def _issue_session(user_id: str) -> str:
        try:
            return issue_token(user_id, settings.jwt_secret_key, settings.jwt_maxage)
        except ValueError as e:
            raise ServerError(str(e))
