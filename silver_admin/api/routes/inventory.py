"""
Inventory routes

Stock records per warehouse and the movement ledger behind them.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from silver_admin.core.database import get_db
from silver_admin.core.permissions import Permission, require_permission
from silver_admin.core.responses import created, success
from silver_admin.models.admin import Admin
from silver_admin.schemas.inventory import (
    InventoryCreate,
    InventoryResponse,
    MovementCreate,
    ReservationChange,
    TransferCreate,
)
from silver_admin.services.inventory_service import InventoryService

router = APIRouter(prefix="/admin/inventory", tags=["admin-inventory"])


async def _record_data(service: InventoryService, inventory_id: int) -> dict:
    record = await service.get_record(inventory_id)
    return InventoryResponse.from_record(record).model_dump()


@router.post("")
async def create_inventory(
    body: InventoryCreate,
    admin: Admin = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    service = InventoryService(db)
    record = await service.create_record(
        product_id=body.product_id,
        variant_id=body.variant_id,
        warehouse=body.warehouse,
        initial_quantity=body.initial_quantity,
        performed_by=admin.id,
        location=body.location,
        batch_number=body.batch_number,
        supplier=body.supplier,
        purchase_cost=body.purchase_cost,
        notes=body.notes,
    )
    return created("Inventory record created", await _record_data(service, record.id))


@router.get("/{inventory_id}")
async def get_inventory(
    inventory_id: int,
    admin: Admin = Depends(require_permission(Permission.PRODUCTS_VIEW)),
    db: AsyncSession = Depends(get_db),
):
    return success("Inventory fetched", await _record_data(InventoryService(db), inventory_id))


@router.post("/{inventory_id}/movements")
async def add_movement(
    inventory_id: int,
    body: MovementCreate,
    admin: Admin = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    """Apply a stock movement and record it in the ledger."""
    service = InventoryService(db)
    await service.adjust_stock(
        inventory_id,
        body.movement_type,
        body.quantity,
        body.reason,
        reference=body.reference,
        performed_by=admin.id,
    )
    return created("Stock movement recorded", await _record_data(service, inventory_id))


@router.post("/{inventory_id}/transfer")
async def transfer_inventory(
    inventory_id: int,
    body: TransferCreate,
    admin: Admin = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    service = InventoryService(db)
    source, target = await service.transfer_stock(
        inventory_id,
        body.to_warehouse,
        body.quantity,
        body.reason,
        reference=body.reference,
        performed_by=admin.id,
    )
    return success(
        "Stock transferred",
        {
            "source": await _record_data(service, source.id),
            "target": await _record_data(service, target.id),
        },
    )


@router.post("/{inventory_id}/reserve")
async def reserve_stock(
    inventory_id: int,
    body: ReservationChange,
    admin: Admin = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    service = InventoryService(db)
    await service.reserve(inventory_id, body.quantity)
    return success("Stock reserved", await _record_data(service, inventory_id))


@router.post("/{inventory_id}/release")
async def release_stock(
    inventory_id: int,
    body: ReservationChange,
    admin: Admin = Depends(require_permission(Permission.PRODUCTS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    service = InventoryService(db)
    await service.release(inventory_id, body.quantity)
    return success("Reservation released", await _record_data(service, inventory_id))
