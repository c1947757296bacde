import logging
from datetime import datetime
from supabase import Client
from workspace_auth.config.settings import settings
from workspace_auth.core.exceptions import AppError, BadRequest, Conflict, ServerError, Unauthorized, store_error
from workspace_auth.core.security import (
    TEMPLATE_EMAIL_CHANGE,
    NotificationSender,
    hash_password,
    is_expired,
    new_account_token,
    normalize_account_token,
    verify_password,
)
from workspace_auth.modules.users.schemas import AccountToken, PendingEmailChange, UserResponse, UserWithCredentials
from typing import Optional

logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = "id, name, email, email_verified, created_at, updated_at"
DUPLICATE_EMAIL = "A user with this email already exists"
INVALID_TOKEN = "Invalid token"


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> Optional[UserResponse]:
        """Get user by ID, None when the row does not exist"""
        result = self.supabase.table("users")\
            .select(PUBLIC_COLUMNS)\
            .eq("id", user_id)\
            .limit(1)\
            .execute()

        if not result.data:
            return None

        return UserResponse(**result.data[0])

    def get_user_with_credentials(self, email: str) -> Optional[UserWithCredentials]:
        """Get user and password hash by email (login only)"""
        try:
            result = self.supabase.table("users")\
                .select(PUBLIC_COLUMNS + ", password")\
                .eq("email", email)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error("Error loading user by email: %s", e)
            raise store_error(e)

        if not result.data:
            return None

        return UserWithCredentials(**result.data[0])

    def get_password_hash(self, user_id: str) -> Optional[str]:
        try:
            result = self.supabase.table("users")\
                .select("password")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise store_error(e)
        return result.data[0]["password"] if result.data else None

    def email_exists(self, email: str) -> bool:
        try:
            result = self.supabase.table("users")\
                .select("id")\
                .eq("email", email)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise store_error(e)
        return bool(result.data)

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        verification_token: str,
        token_expires_at: datetime,
    ) -> UserResponse:
        """Insert a new user and its email verification token in one transaction.

        A duplicate email is a Conflict.
        """
        try:
            result = self.supabase.rpc("register_user", {
                "p_name": name,
                "p_email": email,
                "p_password": password_hash,
                "p_token": verification_token,
                "p_expires_at": token_expires_at.isoformat(),
            }).execute()

            if not result.data:
                raise AppError("Failed to create user")

            row = {k: v for k, v in result.data[0].items() if k != "password"}
            return UserResponse(**row)
        except AppError:
            raise
        except Exception as e:
            raise store_error(e, DUPLICATE_EMAIL)

    def set_password(self, user_id: str, password_hash: str) -> None:
        try:
            self.supabase.table("users")\
                .update({"password": password_hash})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise store_error(e)

    # email verification

    def get_verification(self, token: str) -> Optional[AccountToken]:
        return self._get_account_token("email_verifications", token)

    def save_verification(self, user_id: str, token: str, expires_at: datetime) -> None:
        self._save_account_token("email_verifications", user_id, token, expires_at)

    def mark_verified(self, user_id: str) -> None:
        """Set email_verified and drop every pending verification token of the user"""
        try:
            self.supabase.table("users")\
                .update({"email_verified": True})\
                .eq("id", user_id)\
                .execute()
            self.supabase.table("email_verifications")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise store_error(e)

    # password reset

    def save_password_reset(self, user_id: str, token: str, expires_at: datetime) -> None:
        self._save_account_token("password_resets", user_id, token, expires_at)

    def _save_account_token(self, table: str, user_id: str, token: str, expires_at: datetime) -> None:
        try:
            self.supabase.table(table).insert({
                "user_id": user_id,
                "token": token,
                "expires_at": expires_at.isoformat(),
            }).execute()
        except Exception as e:
            raise store_error(e)

    def get_password_reset(self, token: str) -> Optional[AccountToken]:
        return self._get_account_token("password_resets", token)

    def reset_password(self, user_id: str, password_hash: str) -> None:
        """Store the new hash and consume every reset token of the user"""
        self.set_password(user_id, password_hash)
        try:
            self.supabase.table("password_resets")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise store_error(e)

    # email change

    def save_email_change(self, user_id: str, new_email: str, token: str, expires_at: datetime) -> None:
        try:
            self.supabase.table("users")\
                .update({
                    "pending_email": new_email,
                    "pending_email_token": token,
                    "pending_email_expires_at": expires_at.isoformat(),
                })\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise store_error(e)

    def get_email_change(self, token: str) -> Optional[PendingEmailChange]:
        try:
            result = self.supabase.table("users")\
                .select("id, pending_email, pending_email_expires_at")\
                .eq("pending_email_token", token)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise store_error(e)
        return PendingEmailChange(**result.data[0]) if result.data else None

    def apply_email_change(self, user_id: str, new_email: str) -> None:
        try:
            self.supabase.table("users")\
                .update({
                    "email": new_email,
                    "pending_email": None,
                    "pending_email_token": None,
                    "pending_email_expires_at": None,
                })\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise store_error(e, DUPLICATE_EMAIL)

    def _get_account_token(self, table: str, token: str) -> Optional[AccountToken]:
        try:
            result = self.supabase.table(table)\
                .select("user_id, token, expires_at")\
                .eq("token", token)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise store_error(e)
        return AccountToken(**result.data[0]) if result.data else None


class AccountService:
    """Credential and email changes of the signed-in user"""

    def __init__(self, user_service: UserService, notifier: NotificationSender):
        self.user_service = user_service
        self.notifier = notifier

    def update_password(self, user_id: str, current_password: str, new_password: str) -> None:
        current_hash = self.user_service.get_password_hash(user_id)
        if current_hash is None or not verify_password(current_password, current_hash):
            raise Unauthorized("Current password is incorrect")

        try:
            password_hash = hash_password(new_password)
        except ValueError as e:
            raise BadRequest(str(e))
        self.user_service.set_password(user_id, password_hash)
        logger.info("User %s changed their password", user_id)

    def request_email_change(self, user: UserResponse, new_email: str) -> None:
        """Park the new address on the user and send a confirmation link to it"""
        if self.user_service.email_exists(new_email):
            raise Conflict(DUPLICATE_EMAIL)

        token, expires_at = new_account_token(settings.account_token_ttl_hours)
        self.user_service.save_email_change(user.id, new_email, token, expires_at)

        try:
            self.notifier.send(new_email, TEMPLATE_EMAIL_CHANGE, {
                "name": user.name,
                "email": user.email,
                "new_email": new_email,
                "link": f"{settings.frontend_base_url}/user/change-email?token={token}",
            })
        except Exception as e:
            logger.error("Failed to send email change confirmation to %s: %s", new_email, e)
            raise ServerError("We were unable to send your email change request. Please try again later")

    def confirm_email_change(self, user_id: str, raw_token: str) -> None:
        """Swap in the pending address; the token must belong to the signed-in user"""
        token = normalize_account_token(raw_token)
        pending = self.user_service.get_email_change(token) if token else None
        if pending is None or pending.id != user_id or not pending.pending_email:
            raise BadRequest(INVALID_TOKEN)
        if pending.pending_email_expires_at is None or is_expired(pending.pending_email_expires_at):
            raise BadRequest("Email change token has expired")

        self.user_service.apply_email_change(pending.id, pending.pending_email)
        logger.info("User %s confirmed an email change", pending.id)
