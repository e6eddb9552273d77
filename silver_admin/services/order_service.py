"""
OrderService - order creation and lifecycle

Handles:
- Server-side pricing (line subtotals, order totals)
- Order numbers ORD-YYYYMMDD-NNNN from a per-day counter row
- Status transitions with an append-only history
- Payment status updates
- Bulk status changes (one session per order)
"""
import logging
from datetime import datetime, timezone, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.orm import selectinload

from silver_admin.core.batch import BatchResult, run_batch
from silver_admin.core.config import settings
from silver_admin.core.database import get_db_session
from silver_admin.core.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from silver_admin.models.catalog import Product, ProductVariant
from silver_admin.models.coupon import normalize_coupon_code
from silver_admin.models.customer import User
from silver_admin.models.order import (
    Order,
    OrderItem,
    OrderSequence,
    OrderStatus,
    OrderStatusHistory,
    PaymentMethod,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
SEQUENCE_ATTEMPTS = 5

# Forward path; cancelled is reachable from any non-terminal status
STATUS_FLOW = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)
TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def to_money(value: Any) -> Decimal:
    """Quantize to two decimal places, half-up."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_line_subtotal(quantity: int, price_per_unit: Any, making_charges: Any = 0, tax: Any = 0) -> Decimal:
    """
    quantity × price_per_unit + tax

    price_per_unit is the all-in selling price; making_charges is the part of
    it attributed to workmanship and is stored on the line as a breakdown, so
    it cannot exceed the unit price.
    """
    price_per_unit = to_money(price_per_unit)
    if to_money(making_charges) > price_per_unit:
        raise ValidationFailedError(
            "Making charges cannot exceed the unit price",
            details={"price_per_unit": str(price_per_unit), "making_charges": str(to_money(making_charges))},
        )
    return to_money(Decimal(quantity) * price_per_unit + to_money(tax))


def calculate_order_pricing(
    lines: Iterable[Dict[str, Any]],
    shipping_charges: Any = 0,
    discount: Any = 0,
) -> Dict[str, Decimal]:
    """
    Order totals from already-priced lines.

    subtotal is the sum of line subtotals (which already include line tax);
    tax is reported separately as the sum of line taxes.
    total = subtotal + shipping - discount
    """
    lines = list(lines)
    subtotal = sum((to_money(line["subtotal"]) for line in lines), Decimal("0.00"))
    tax = sum((to_money(line.get("tax")) for line in lines), Decimal("0.00"))
    shipping_charges = to_money(shipping_charges)
    discount = to_money(discount)
    total = subtotal + shipping_charges - discount

    if total < 0:
        raise ValidationFailedError(
            "Discount cannot exceed order value",
            details={"subtotal": str(subtotal), "discount": str(discount)},
        )

    return {
        "subtotal": subtotal,
        "shipping_charges": shipping_charges,
        "discount": discount,
        "tax": tax,
        "total": total,
    }


def can_transition(current: Any, requested: Any) -> bool:
    current = OrderStatus(current)
    requested = OrderStatus(requested)
    if current in TERMINAL_STATUSES:
        return False
    if requested is OrderStatus.CANCELLED:
        return True
    return STATUS_FLOW.index(requested) > STATUS_FLOW.index(current)


def _order_timezone() -> tzinfo:
    if settings.ORDER_TIMEZONE.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(settings.ORDER_TIMEZONE)


def order_day(now: Optional[datetime] = None) -> str:
    """YYYYMMDD of `now` in the configured order timezone."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(_order_timezone()).strftime("%Y%m%d")


def format_order_number(day: str, value: int) -> str:
    return f"{settings.ORDER_NUMBER_PREFIX}-{day}-{value:04d}"


async def allocate_order_number(engine: AsyncEngine, now: Optional[datetime] = None) -> str:
    """
    Take the next number from the day's counter.

    Runs in its own short transaction so a slow order insert never holds the
    counter row. The first caller of the day creates the row, seeded from
    orders already numbered that day; losing that race retries the UPDATE.
    """
    day = order_day(now)

    for _ in range(SEQUENCE_ATTEMPTS):
        async with engine.begin() as conn:
            value = await conn.scalar(
                update(OrderSequence)
                .where(OrderSequence.day == day)
                .values(last_value=OrderSequence.last_value + 1)
                .returning(OrderSequence.last_value)
            )
        if value is not None:
            return format_order_number(day, value)

        try:
            async with engine.begin() as conn:
                existing = await conn.scalar(
                    select(func.count(Order.id)).where(
                        Order.order_number.like(f"{settings.ORDER_NUMBER_PREFIX}-{day}-%")
                    )
                )
                value = (existing or 0) + 1
                await conn.execute(insert(OrderSequence).values(day=day, last_value=value))
            return format_order_number(day, value)
        except IntegrityError:
            logger.debug("Order sequence row for %s created concurrently, retrying", day)

    raise ConflictError("Could not allocate an order number, please retry")


class OrderService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_order(self, order_id: int) -> Order:
        """Order with items and status history loaded."""
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items), selectinload(Order.status_history))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found", details={"order_id": order_id})
        return order

    async def _get_for_update(self, order_id: int) -> Order:
        result = await self.db.execute(
            select(Order).where(Order.id == order_id).with_for_update()
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found", details={"order_id": order_id})
        return order

    async def _price_items(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Resolve product snapshots and compute each line."""
        lines = []
        for item in items:
            product = await self.db.get(Product, item["product_id"])
            if not product:
                raise NotFoundError("Product not found", details={"product_id": item["product_id"]})

            variant = await self.db.get(ProductVariant, item["variant_id"])
            if not variant or variant.product_id != product.id:
                raise NotFoundError("Product variant not found", details={"variant_id": item["variant_id"]})

            price = item.get("price_per_unit")
            if price is None:
                price = variant.selling_price
            making_charges = to_money(item.get("making_charges"))
            tax = to_money(item.get("tax"))
            quantity = int(item["quantity"])
            if quantity < 1:
                raise ValidationFailedError("Quantity must be at least 1", details={"variant_id": variant.id})

            lines.append({
                "product_id": product.id,
                "variant_id": variant.id,
                "product_name": product.name,
                "sku": variant.sku,
                "image": variant.image,
                "quantity": quantity,
                "weight": item.get("weight") if item.get("weight") is not None else variant.weight,
                "price_per_unit": to_money(price),
                "making_charges": making_charges,
                "tax": tax,
                "subtotal": calculate_line_subtotal(quantity, price, making_charges, tax),
            })
        return lines

    async def create_order(
        self,
        customer_id: int,
        items: List[Dict[str, Any]],
        shipping_address: Dict[str, Any],
        billing_address: Dict[str, Any],
        payment_method: Any,
        pricing: Optional[Dict[str, Any]] = None,
        notes: Optional[str] = None,
        customer_note: Optional[str] = None,
        coupon_code: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> Order:
        """
        Create an order in status pending.

        Prices are taken from the request or, when omitted, from the variant's
        selling price. Client-supplied totals are never trusted. Stock is not
        touched; reservations go through the inventory ledger.
        """
        if not items:
            raise BadRequestError("Order must contain at least one item")

        customer = await self.db.get(User, customer_id)
        if not customer:
            raise NotFoundError("Customer not found", details={"customer_id": customer_id})

        lines = await self._price_items(items)
        pricing = pricing or {}
        totals = calculate_order_pricing(
            lines,
            shipping_charges=pricing.get("shipping_charges", 0),
            discount=pricing.get("discount", 0),
        )

        order_number = await allocate_order_number(self.db.bind)

        order = Order(
            order_number=order_number,
            customer_id=customer.id,
            shipping_address=dict(shipping_address),
            billing_address=dict(billing_address),
            payment_method=PaymentMethod(payment_method).value,
            payment_status=PaymentStatus.PENDING.value,
            status=OrderStatus.PENDING.value,
            notes=notes,
            customer_note=customer_note,
            coupon_code=normalize_coupon_code(coupon_code) if coupon_code else None,
            items=[OrderItem(**line) for line in lines],
            status_history=[
                OrderStatusHistory(status=OrderStatus.PENDING.value, note="Order created", updated_by=actor_id)
            ],
            **totals,
        )
        self.db.add(order)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("Order number already exists, please retry") from e

        logger.info(
            "Order %s created for customer %s: total=%s items=%d",
            order.order_number,
            customer.id,
            totals["total"],
            len(lines),
        )
        return await self.get_order(order.id)

    async def set_status(
        self,
        order_id: int,
        new_status: Any,
        note: Optional[str] = None,
        actor_id: Optional[int] = None,
        courier: Optional[str] = None,
        tracking_number: Optional[str] = None,
    ) -> Order:
        """
        Move an order to a new status.

        Setting the current status again changes nothing and writes no history.
        """
        new_status = OrderStatus(new_status)
        order = await self._get_for_update(order_id)
        current = OrderStatus(order.status)

        if new_status is current:
            return await self.get_order(order_id)

        if settings.ORDER_STRICT_TRANSITIONS and not can_transition(current, new_status):
            raise InvalidTransitionError(current.value, new_status.value)

        now = datetime.now(timezone.utc)
        order.status = new_status.value
        if new_status is OrderStatus.SHIPPED:
            order.shipped_at = now
            if courier:
                order.courier = courier
            if tracking_number:
                order.tracking_number = tracking_number
        elif new_status is OrderStatus.DELIVERED:
            order.delivered_at = now

        self.db.add(OrderStatusHistory(
            order_id=order.id,
            status=new_status.value,
            note=note,
            updated_by=actor_id,
        ))
        await self.db.flush()

        logger.info(
            "Order %s status %s -> %s by %s",
            order.order_number,
            current.value,
            new_status.value,
            actor_id,
        )
        return await self.get_order(order_id)

    async def record_payment(
        self,
        order_id: int,
        status: Any,
        gateway_order_id: Optional[str] = None,
        gateway_payment_id: Optional[str] = None,
        gateway_signature: Optional[str] = None,
    ) -> Order:
        status = PaymentStatus(status)
        order = await self._get_for_update(order_id)

        order.payment_status = status.value
        if gateway_order_id:
            order.gateway_order_id = gateway_order_id
        if gateway_payment_id:
            order.gateway_payment_id = gateway_payment_id
        if gateway_signature:
            order.gateway_signature = gateway_signature
        if status is PaymentStatus.PAID and not order.paid_at:
            order.paid_at = datetime.now(timezone.utc)

        await self.db.flush()
        logger.info("Order %s payment status -> %s", order.order_number, status.value)
        return await self.get_order(order_id)

    @staticmethod
    async def bulk_set_status(
        order_ids: Iterable[int],
        new_status: Any,
        note: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> BatchResult:
        """Apply set_status to many orders; each runs and commits independently."""
        new_status = OrderStatus(new_status)

        async def _worker(order_id: int) -> None:
            async with get_db_session() as db:
                await OrderService(db).set_status(order_id, new_status, note=note, actor_id=actor_id)

        result = await run_batch(order_ids, _worker)
        logger.info(
            "Bulk status -> %s: %d succeeded, %d failed",
            new_status.value,
            len(result.succeeded),
            len(result.failed),
        )
        return result
