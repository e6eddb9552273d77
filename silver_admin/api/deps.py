"""
API dependencies

Access tokens are read from the HttpOnly cookie, with an Authorization
Bearer header accepted as a fallback for API clients. Cookies are
SameSite=strict, which stands in for a separate CSRF token.
"""
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from silver_admin.core.cookies import get_access_token_from_cookie
from silver_admin.core.database import get_db
from silver_admin.core.exceptions import (
    ForbiddenError,
    InvalidTokenError,
    TokenExpiredError,
    UnauthorizedError,
)
from silver_admin.core.security import TokenKind, decode_token
from silver_admin.models.admin import Admin

# Optional bearer - doesn't fail if no Authorization header
security = HTTPBearer(auto_error=False)


def get_token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """
    Extract access token from request.

    Priority:
    1. HttpOnly cookie
    2. Authorization header (Bearer token)
    """
    token = get_access_token_from_cookie(request)
    if token:
        return token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


async def get_current_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    """Resolve the authenticated admin from the access token."""
    token = get_token_from_request(request, credentials)
    if not token:
        raise UnauthorizedError("Not authenticated")

    try:
        payload = decode_token(token, TokenKind.ACCESS)
    except TokenExpiredError as e:
        raise UnauthorizedError("Token expired. Please refresh your token", code="TOKEN_EXPIRED") from e
    except InvalidTokenError as e:
        raise UnauthorizedError("Invalid token") from e

    try:
        admin_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise UnauthorizedError("Invalid token") from e

    result = await db.execute(select(Admin).where(Admin.id == admin_id))
    admin = result.scalar_one_or_none()

    if not admin:
        raise UnauthorizedError("Admin not found")

    if not admin.is_active:
        raise ForbiddenError("Account is deactivated")

    return admin
