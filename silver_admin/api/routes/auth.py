"""
Authentication routes

- Login rate limited per client IP
- Tokens set as HttpOnly cookies (also returned in the body for API clients)
- Refresh token cookie is scoped to the refresh endpoint
- Registration restricted to super-admins
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from silver_admin.api.deps import get_current_admin
from silver_admin.core.config import settings
from silver_admin.core.cookies import (
    clear_auth_cookies,
    get_refresh_token_from_cookie,
    set_access_cookie,
    set_auth_cookies,
)
from silver_admin.core.database import get_db
from silver_admin.core.exceptions import UnauthorizedError
from silver_admin.core.permissions import AdminRole, require_role
from silver_admin.core.rate_limit import limiter
from silver_admin.core.responses import created, success
from silver_admin.models.admin import Admin
from silver_admin.schemas.admin import (
    AdminCreate,
    AdminLogin,
    AdminProfileUpdate,
    AdminResponse,
    PasswordChange,
)
from silver_admin.services.admin_service import AdminService

router = APIRouter()


def _admin_data(admin: Admin) -> dict:
    return AdminResponse.model_validate(admin).model_dump()


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(
    request: Request,
    credentials: AdminLogin,
    db: AsyncSession = Depends(get_db),
):
    """Login and get access/refresh tokens."""
    admin, access_token, refresh_token = await AdminService(db).login(
        credentials.email, credentials.password
    )
    response = success(
        "Login successful",
        {
            "admin": _admin_data(admin),
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
        },
    )
    set_auth_cookies(response, access_token, refresh_token)
    return response


@router.post("/refresh-token")
async def refresh_token(request: Request, db: AsyncSession = Depends(get_db)):
    """Issue a new access token from the refresh cookie."""
    token = get_refresh_token_from_cookie(request)
    if not token:
        raise UnauthorizedError("Refresh token missing")

    _, access_token = await AdminService(db).refresh_access(token)
    response = success("Token refreshed", {"access_token": access_token, "token_type": "bearer"})
    set_access_cookie(response, access_token)
    return response


@router.post("/logout")
async def logout(
    current_admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Revoke all refresh tokens and clear cookies."""
    await AdminService(db).logout(current_admin.id)
    response = success("Logged out successfully")
    clear_auth_cookies(response)
    return response


@router.get("/me")
async def get_me(current_admin: Admin = Depends(get_current_admin)):
    return success("Profile fetched", _admin_data(current_admin))


@router.put("/update-profile")
async def update_profile(
    profile: AdminProfileUpdate,
    current_admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    admin = await AdminService(db).update_profile(
        current_admin.id, profile.model_dump(exclude_unset=True)
    )
    return success("Profile updated", _admin_data(admin))


@router.put("/change-password")
async def change_password(
    passwords: PasswordChange,
    current_admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Change password. Every session has to log in again afterwards."""
    await AdminService(db).change_password(
        current_admin.id, passwords.old_password, passwords.new_password
    )
    response = success("Password changed successfully. Please log in again")
    clear_auth_cookies(response)
    return response


@router.post("/register")
async def register(
    admin_in: AdminCreate,
    current_admin: Admin = Depends(require_role(AdminRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Create a new admin account (super-admin only)."""
    admin = await AdminService(db).register(
        name=admin_in.name,
        email=admin_in.email,
        password=admin_in.password,
        role=admin_in.role,
        phone=admin_in.phone,
        avatar=admin_in.avatar,
        requested_by=current_admin,
    )
    return created("Admin registered successfully", _admin_data(admin))
