"""
Admin account management routes (super-admin only)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from silver_admin.core.database import get_db
from silver_admin.core.permissions import AdminRole, require_role
from silver_admin.core.responses import success
from silver_admin.models.admin import Admin
from silver_admin.schemas.admin import AdminResponse, AdminStatusUpdate
from silver_admin.services.admin_service import AdminService

router = APIRouter(prefix="/admins", tags=["admins"])


@router.patch("/{admin_id}/status")
async def set_admin_status(
    admin_id: int,
    body: AdminStatusUpdate,
    current_admin: Admin = Depends(require_role(AdminRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Activate or deactivate an admin. Deactivation revokes their refresh tokens."""
    admin = await AdminService(db).set_active(admin_id, body.is_active, requested_by=current_admin)
    message = "Admin activated" if body.is_active else "Admin deactivated"
    return success(message, AdminResponse.model_validate(admin).model_dump())
