"""
Admin Orders Routes

Order creation and fulfillment. All endpoints require an authenticated
admin holding the matching orders.* permission.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from silver_admin.core.database import get_db
from silver_admin.core.permissions import Permission, require_permission
from silver_admin.core.responses import created, success
from silver_admin.models.admin import Admin
from silver_admin.schemas.order import (
    BulkStatusUpdate,
    OrderCreate,
    OrderResponse,
    PaymentUpdate,
    StatusUpdate,
)
from silver_admin.services.order_service import OrderService

router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


def _order_data(order) -> dict:
    return OrderResponse.model_validate(order).model_dump()


@router.post("/bulk-status")
async def bulk_update_status(
    body: BulkStatusUpdate,
    admin: Admin = Depends(require_permission(Permission.ORDERS_EDIT)),
):
    """Update status on many orders; failures are reported per order."""
    result = await OrderService.bulk_set_status(
        body.order_ids, body.status, note=body.note, actor_id=admin.id
    )
    return success(
        f"Updated {len(result.succeeded)} of {len(result.succeeded) + len(result.failed)} orders",
        result.to_dict(),
    )


@router.post("")
async def create_order(
    body: OrderCreate,
    admin: Admin = Depends(require_permission(Permission.ORDERS_CREATE)),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).create_order(
        customer_id=body.customer_id,
        items=[item.model_dump() for item in body.items],
        shipping_address=body.shipping_address.model_dump(),
        billing_address=body.billing_address.model_dump(),
        payment_method=body.payment_method,
        pricing=body.pricing.model_dump(),
        notes=body.notes,
        customer_note=body.customer_note,
        coupon_code=body.coupon_code,
        actor_id=admin.id,
    )
    return created("Order created successfully", _order_data(order))


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    admin: Admin = Depends(require_permission(Permission.ORDERS_VIEW)),
    db: AsyncSession = Depends(get_db),
):
    """Get single order with items and status history."""
    order = await OrderService(db).get_order(order_id)
    return success("Order fetched", _order_data(order))


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    body: StatusUpdate,
    admin: Admin = Depends(require_permission(Permission.ORDERS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).set_status(
        order_id,
        body.status,
        note=body.note,
        actor_id=admin.id,
        courier=body.courier,
        tracking_number=body.tracking_number,
    )
    return success("Order status updated", _order_data(order))


@router.patch("/{order_id}/payment")
async def update_payment_status(
    order_id: int,
    body: PaymentUpdate,
    admin: Admin = Depends(require_permission(Permission.ORDERS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).record_payment(
        order_id,
        body.status,
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        gateway_signature=body.gateway_signature,
    )
    return success("Payment status updated", _order_data(order))
