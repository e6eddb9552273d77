"""
AdminService - identity management for admin accounts

Handles:
- Registration (role → permission grants, single bcrypt hash)
- Login / logout / access-token refresh
- Password change and self-service profile edits
- Activation / deactivation

Revocation model: every refresh token carries the admin's token_version at
issuance. Logout, password change and deactivation bump the version with a
single UPDATE so concurrent requests never lose an increment.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from silver_admin.core.config import settings
from silver_admin.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TokenError,
    UnauthorizedError,
    ValidationFailedError,
)
from silver_admin.core.permissions import DEFAULT_ROLE, AdminRole, permissions_for
from silver_admin.core.security import (
    MAX_PASSWORD_BYTES,
    TokenKind,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from silver_admin.models.admin import Admin

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
PROFILE_FIELDS = ("name", "phone", "avatar")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationFailedError("Name is required", details={"field": "name"})
    return name


def validate_password_strength(password: str) -> None:
    """Length rules applied before hashing."""
    if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
            details={"field": "password"},
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationFailedError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            details={"field": "password"},
        )


class AdminService:
    """Admin account lifecycle bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, admin_id: int, fresh: bool = False) -> Optional[Admin]:
        query = select(Admin).where(Admin.id == admin_id)
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_or_404(self, admin_id: int, fresh: bool = False) -> Admin:
        admin = await self._get(admin_id, fresh=fresh)
        if not admin:
            raise NotFoundError("Admin not found", details={"admin_id": admin_id})
        return admin

    async def get_by_email(self, email: str) -> Optional[Admin]:
        result = await self.db.execute(
            select(Admin).where(Admin.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[Any] = None,
        phone: Optional[str] = None,
        avatar: Optional[str] = None,
        requested_by: Optional[Admin] = None,
    ) -> Admin:
        """
        Create an admin account.

        Role defaults to staff and permissions are taken from the role table;
        callers cannot supply their own permission list.
        """
        name = clean_name(name)
        email = normalize_email(email)
        role_value = (role or DEFAULT_ROLE)
        role_value = role_value.value if isinstance(role_value, AdminRole) else role_value
        try:
            permissions = permissions_for(role_value)
        except ValueError as e:
            raise ValidationFailedError(str(e), details={"field": "role"}) from e

        validate_password_strength(password)

        if await self.get_by_email(email):
            raise ConflictError("Admin with this email already exists")

        admin = Admin(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            role=role_value,
            permissions=permissions,
            is_active=True,
            phone=phone,
            avatar=avatar,
            token_version=0,
        )
        self.db.add(admin)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("Admin with this email already exists") from e

        logger.info(
            "Admin registered: id=%s role=%s by=%s",
            admin.id,
            admin.role,
            requested_by.id if requested_by else None,
        )
        return admin

    async def login(self, email: str, password: str) -> Tuple[Admin, str, str]:
        """
        Verify credentials and issue a token pair.

        Returns:
            (admin, access_token, refresh_token)
        """
        admin = await self.get_by_email(email)

        # Same response whether the account is unknown, inactive or the password is wrong
        if not admin or not admin.is_active or not verify_password(password, admin.hashed_password):
            logger.warning("Failed login attempt for %s", normalize_email(email))
            raise UnauthorizedError(INVALID_CREDENTIALS)

        admin.last_login_at = datetime.now(timezone.utc)
        await self.db.flush()

        logger.info("Admin logged in: id=%s", admin.id)
        return admin, create_access_token(admin), create_refresh_token(admin)

    async def logout(self, admin_id: int) -> None:
        """Invalidate every outstanding refresh token. A missing admin is a no-op."""
        await self.db.execute(
            update(Admin)
            .where(Admin.id == admin_id)
            .values(token_version=Admin.token_version + 1)
        )
        await self.db.flush()
        logger.info("Admin logged out: id=%s", admin_id)

    async def refresh_access(self, refresh_token: str) -> Tuple[Admin, str]:
        """Exchange a valid refresh token for a new access token."""
        try:
            payload = decode_token(refresh_token, TokenKind.REFRESH)
        except TokenError as e:
            raise UnauthorizedError("Invalid or expired refresh token") from e

        try:
            admin_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise UnauthorizedError("Invalid or expired refresh token") from e

        admin = await self._get(admin_id, fresh=True)
        if not admin or not admin.is_active:
            raise UnauthorizedError("Invalid or expired refresh token")

        if payload.get("token_version") != admin.token_version:
            logger.warning("Stale refresh token presented for admin %s", admin_id)
            raise UnauthorizedError("Refresh token has been revoked")

        logger.info("Access token refreshed: id=%s", admin.id)
        return admin, create_access_token(admin)

    async def change_password(self, admin_id: int, old_password: str, new_password: str) -> None:
        admin = await self._get_or_404(admin_id)

        if not verify_password(old_password, admin.hashed_password):
            raise BadRequestError("Current password is incorrect")

        validate_password_strength(new_password)

        await self.db.execute(
            update(Admin)
            .where(Admin.id == admin_id)
            .values(
                hashed_password=hash_password(new_password),
                token_version=Admin.token_version + 1,
                updated_at=datetime.now(timezone.utc),
            )
        )
        await self.db.flush()
        logger.info("Password changed: id=%s", admin_id)

    async def update_profile(self, admin_id: int, fields: Dict[str, Any]) -> Admin:
        """Apply name / phone / avatar. Anything else is ignored."""
        admin = await self._get_or_404(admin_id)
        fields = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}

        if fields.get("name") is not None:
            admin.name = clean_name(fields["name"])
        if "phone" in fields:
            admin.phone = fields["phone"]
        if "avatar" in fields:
            admin.avatar = fields["avatar"]

        await self.db.flush()
        await self.db.refresh(admin)
        return admin

    async def get_profile(self, admin_id: int) -> Admin:
        return await self._get_or_404(admin_id)

    async def set_active(self, admin_id: int, is_active: bool, requested_by: Admin) -> Admin:
        if admin_id == requested_by.id and not is_active:
            raise ForbiddenError("You cannot deactivate your own account")

        await self._get_or_404(admin_id)

        values = {"is_active": is_active, "updated_at": datetime.now(timezone.utc)}
        if not is_active:
            values["token_version"] = Admin.token_version + 1

        await self.db.execute(update(Admin).where(Admin.id == admin_id).values(**values))
        await self.db.flush()

        logger.info(
            "Admin %s %s by %s",
            admin_id,
            "activated" if is_active else "deactivated",
            requested_by.id,
        )
        return await self._get(admin_id, fresh=True)
