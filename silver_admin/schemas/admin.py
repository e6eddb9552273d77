"""
Admin schemas
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from silver_admin.core.permissions import AdminRole


class AdminCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str
    role: Optional[AdminRole] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class AdminProfileUpdate(BaseModel):
    """Self-service profile fields. Role and permissions are not accepted here."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    avatar: Optional[str] = None


class PasswordChange(BaseModel):
    old_password: str
    new_password: str


class AdminStatusUpdate(BaseModel):
    is_active: bool


class AdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    permissions: List[str]
    is_active: bool
    phone: Optional[str] = None
    avatar: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
