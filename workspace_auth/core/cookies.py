from fastapi import Response

from workspace_auth.config.settings import settings
from workspace_auth.core.dependencies import TOKEN_COOKIE, WORKSPACE_COOKIE


def _set_cookie(response: Response, key: str, value: str) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=settings.jwt_maxage,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,
    )


def set_token_cookie(response: Response, token: str) -> None:
    _set_cookie(response, TOKEN_COOKIE, token)


def set_workspace_cookie(response: Response, workspace_id: str) -> None:
    _set_cookie(response, WORKSPACE_COOKIE, workspace_id)


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(TOKEN_COOKIE, path="/")
    response.delete_cookie(WORKSPACE_COOKIE, path="/")
