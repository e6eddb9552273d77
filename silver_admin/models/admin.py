"""
Admin model

Staff accounts for the admin console. Passwords are stored as bcrypt
digests only; token_version invalidates refresh tokens when bumped.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, CheckConstraint

from silver_admin.core.database import Base


class Admin(Base):
    """
    Admin account.

    Never hard-deleted: deactivate via is_active.
    token_version only ever increases (logout, password change, deactivation).
    """
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)  # stored lower-cased
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="staff")
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    phone = Column(String(30), nullable=True)
    avatar = Column(String(500), nullable=True)

    last_login_at = Column(DateTime(timezone=True), nullable=True)
    token_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint(
            "role IN ('super-admin', 'admin', 'manager', 'staff')",
            name="chk_admin_role"
        ),
        CheckConstraint("token_version >= 0", name="chk_admin_token_version"),
    )

    def __repr__(self):
        return f"<Admin(id={self.id}, email='{self.email}', role='{self.role}')>"
