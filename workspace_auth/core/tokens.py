"""Signed session tokens (HS256 JWTs carrying the user id as subject)."""

from datetime import datetime, timedelta, timezone

import jwt

from workspace_auth.core.exceptions import InvalidToken

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def issue_token(subject: str, secret: str, expires_in_seconds: int) -> str:
    """Return a token for subject that expires expires_in_seconds from now."""
    if not subject:
        raise ValueError("Token subject must not be empty")

    now = datetime.now(timezone.utc)
    claims = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in_seconds)).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> str:
    """Return the subject of a valid token; anything else raises InvalidToken."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.PyJWTError as exc:
        raise InvalidToken() from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise InvalidToken()
    return subject
