"""
Cookie Management Utilities

Auth tokens travel in HttpOnly cookies. The refresh cookie is scoped to the
refresh endpoint so it is never sent anywhere else.
"""
from typing import Optional
from fastapi import Response
from starlette.requests import Request

from silver_admin.core.config import settings

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
REFRESH_COOKIE_PATH = "/api/auth/refresh-token"


def get_cookie_domain() -> Optional[str]:
    """Configured cookie domain, or None for a host-only cookie."""
    return settings.COOKIE_DOMAIN or None


def set_access_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=access_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        domain=get_cookie_domain(),
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """Set both auth cookies on a response."""
    set_access_cookie(response, access_token)
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        domain=get_cookie_domain(),
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path=REFRESH_COOKIE_PATH,
    )


def clear_auth_cookies(response: Response) -> None:
    """Clear all authentication cookies."""
    domain = get_cookie_domain()
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, domain=domain, path="/")
    response.delete_cookie(key=REFRESH_TOKEN_COOKIE, domain=domain, path=REFRESH_COOKIE_PATH)


def get_access_token_from_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def get_refresh_token_from_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(REFRESH_TOKEN_COOKIE)
