"""
Credential and notification collaborators.
The authorization core only calls verify_password(plaintext, hash) and
NotificationSender.send(recipient, template, params); hashing is argon2id.
Account flows (verification, password reset, email change) use single-use
random tokens with an expiry, stored next to the user.
"""

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol, Tuple

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHash, VerificationError

logger = logging.getLogger(__name__)

_pwd_hasher = PasswordHasher(type=Type.ID)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 64

_COMPLEXITY_RULES = [
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character"),
]

# Notification templates
TEMPLATE_VERIFICATION = "verification"
TEMPLATE_WELCOME = "welcome"
TEMPLATE_RESET = "reset"
TEMPLATE_EMAIL_CHANGE = "email_change"


def check_password_complexity(password: str) -> str:
    """Upper, lower, digit and special character; returns the password unchanged"""
    for pattern, message in _COMPLEXITY_RULES:
        if not pattern.search(password):
            raise ValueError(message)
    return password


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty")
    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValueError(f"Password must not be more than {MAX_PASSWORD_LENGTH} characters")
    return _pwd_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd_hasher.verify(password_hash, password)
    except (InvalidHash, VerificationError):
        return False


class NotificationSender(Protocol):
    def send(self, recipient: str, template: str, params: Dict[str, Any]) -> None:
        ...


class LoggingNotificationSender:
    """Default sender: mail delivery lives outside this service, so just record the request."""

    def send(self, recipient: str, template: str, params: Dict[str, Any]) -> None:
        logger.info("Notification '%s' queued for %s", template, recipient)


def get_notification_sender() -> NotificationSender:
    return LoggingNotificationSender()


def new_account_token(ttl_hours: int) -> Tuple[str, datetime]:
    """A fresh single-use token and the moment it stops being accepted"""
    return str(uuid.uuid4()), datetime.now(timezone.utc) + timedelta(hours=ttl_hours)


def is_expired(expires_at: datetime) -> bool:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) > expires_at


def normalize_account_token(raw: str) -> Optional[str]:
    """Canonical form of an account token, None when it is not a UUID"""
    try:
        return str(uuid.UUID(raw))
    except (TypeError, ValueError):
        return None
