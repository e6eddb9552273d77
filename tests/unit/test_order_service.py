import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from silver_admin.core.config import settings
from silver_admin.core.exceptions import (
    BadRequestError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from silver_admin.models import Order, OrderStatusHistory
from silver_admin.services.order_service import (
    OrderService,
    allocate_order_number,
    calculate_line_subtotal,
    calculate_order_pricing,
    can_transition,
    order_day,
)


def test_line_subtotal_counts_making_charges_inside_unit_price():
    assert calculate_line_subtotal(2, Decimal("500"), Decimal("50"), Decimal("33")) == Decimal("1033.00")
    assert calculate_line_subtotal(3, Decimal("199.99")) == Decimal("599.97")


def test_line_subtotal_rejects_making_charges_above_unit_price():
    with pytest.raises(ValidationFailedError):
        calculate_line_subtotal(1, Decimal("40"), Decimal("40.01"))


def test_order_pricing():
    lines = [
        {"subtotal": Decimal("1033.00"), "tax": Decimal("33.00")},
        {"subtotal": Decimal("250.50"), "tax": Decimal("7.50")},
    ]
    pricing = calculate_order_pricing(lines, shipping_charges=Decimal("99"), discount=Decimal("100"))
    assert pricing["subtotal"] == Decimal("1283.50")
    assert pricing["tax"] == Decimal("40.50")
    assert pricing["total"] == Decimal("1282.50")


def test_order_pricing_rejects_negative_total():
    with pytest.raises(ValidationFailedError):
        calculate_order_pricing([{"subtotal": Decimal("10"), "tax": 0}], discount=Decimal("11"))


@pytest.mark.parametrize("current, requested, allowed", [
    ("pending", "confirmed", True),
    ("pending", "shipped", True),
    ("processing", "confirmed", False),
    ("shipped", "cancelled", True),
    ("delivered", "cancelled", False),
    ("cancelled", "pending", False),
    ("delivered", "shipped", False),
])
def test_can_transition(current, requested, allowed):
    assert can_transition(current, requested) is allowed


def test_order_day_uses_configured_timezone(monkeypatch):
    late_evening_utc = datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)
    assert order_day(late_evening_utc) == "20260301"

    monkeypatch.setattr(settings, "ORDER_TIMEZONE", "Asia/Kolkata")
    assert order_day(late_evening_utc) == "20260302"


def _item(catalog, **overrides):
    item = {
        "product_id": catalog.product.id,
        "variant_id": catalog.variant.id,
        "quantity": 2,
        "making_charges": Decimal("50"),
        "tax": Decimal("33"),
    }
    item.update(overrides)
    return item


async def _create(db, catalog, address, items=None, **kwargs):
    order = await OrderService(db).create_order(
        customer_id=catalog.customer.id,
        items=items if items is not None else [_item(catalog)],
        shipping_address=address,
        billing_address=address,
        payment_method="cod",
        **kwargs,
    )
    await db.commit()
    return order


@pytest.mark.asyncio
async def test_create_order_prices_server_side(db, catalog, address):
    order = await _create(db, catalog, address)

    assert order.subtotal == Decimal("1033.00")
    assert order.tax == Decimal("33.00")
    assert order.total == Decimal("1033.00")
    assert order.status == "pending"
    assert order.payment_status == "pending"

    item = order.items[0]
    assert item.price_per_unit == Decimal("500.00")
    assert item.product_name == "Sterling Band Ring"
    assert item.sku == "RNG-001-S7"
    assert item.image == "https://cdn.example.com/rng-001-s7.jpg"

    assert [h.status for h in order.status_history] == ["pending"]


@pytest.mark.asyncio
async def test_create_order_with_shipping_discount_and_price_override(db, catalog, address):
    order = await _create(
        db,
        catalog,
        address,
        items=[_item(catalog, quantity=1, price_per_unit=Decimal("450"), making_charges=0, tax=0)],
        pricing={"shipping_charges": Decimal("60"), "discount": Decimal("10")},
        coupon_code=" diwali10 ",
    )
    assert order.subtotal == Decimal("450.00")
    assert order.total == Decimal("500.00")
    assert order.coupon_code == "DIWALI10"


@pytest.mark.asyncio
async def test_create_order_validation(db, catalog, address):
    service = OrderService(db)

    with pytest.raises(BadRequestError):
        await service.create_order(catalog.customer.id, [], address, address, "cod")

    with pytest.raises(NotFoundError):
        await service.create_order(9999, [_item(catalog)], address, address, "cod")

    with pytest.raises(NotFoundError):
        await service.create_order(
            catalog.customer.id, [_item(catalog, variant_id=9999)], address, address, "cod"
        )


@pytest.mark.asyncio
async def test_order_numbers_are_sequential_per_day(db, catalog, address):
    first = await _create(db, catalog, address)
    second = await _create(db, catalog, address)

    day = order_day()
    assert first.order_number == f"ORD-{day}-0001"
    assert second.order_number == f"ORD-{day}-0002"


@pytest.mark.asyncio
async def test_concurrent_allocation_yields_distinct_numbers(db_engine):
    numbers = await asyncio.gather(*(allocate_order_number(db_engine) for _ in range(10)))
    day = order_day()
    assert sorted(numbers) == [f"ORD-{day}-{n:04d}" for n in range(1, 11)]


@pytest.mark.asyncio
async def test_allocation_seeds_from_existing_orders(db, catalog, address, db_engine):
    day = order_day()
    for n in (1, 2):
        db.add(Order(
            order_number=f"ORD-{day}-{n:04d}",
            customer_id=catalog.customer.id,
            shipping_address=address,
            billing_address=address,
            subtotal=Decimal("0"),
            total=Decimal("0"),
            payment_method="cod",
        ))
    await db.commit()

    assert await allocate_order_number(db_engine) == f"ORD-{day}-0003"


@pytest.mark.asyncio
async def test_set_status_records_history_and_stamps(db, catalog, address, make_admin):
    admin = await make_admin()
    order = await _create(db, catalog, address)
    service = OrderService(db)

    order = await service.set_status(
        order.id, "shipped", note="Handed to courier", actor_id=admin.id,
        courier="BlueDart", tracking_number="BD123",
    )
    assert order.status == "shipped"
    assert order.shipped_at is not None
    assert order.courier == "BlueDart"
    assert order.tracking_number == "BD123"
    assert [(h.status, h.updated_by) for h in order.status_history] == [
        ("pending", None),
        ("shipped", admin.id),
    ]

    order = await service.set_status(order.id, "delivered")
    assert order.delivered_at is not None


@pytest.mark.asyncio
async def test_redundant_status_change_adds_no_history(db, catalog, address):
    order = await _create(db, catalog, address)
    service = OrderService(db)

    await service.set_status(order.id, "confirmed")
    await service.set_status(order.id, "confirmed")

    count = await db.scalar(
        select(func.count(OrderStatusHistory.id)).where(OrderStatusHistory.order_id == order.id)
    )
    assert count == 2


@pytest.mark.asyncio
async def test_backward_transition_rejected(db, catalog, address, monkeypatch):
    order = await _create(db, catalog, address)
    service = OrderService(db)
    await service.set_status(order.id, "processing")

    with pytest.raises(InvalidTransitionError) as exc_info:
        await service.set_status(order.id, "pending")
    assert exc_info.value.details == {"current_status": "processing", "requested_status": "pending"}

    monkeypatch.setattr(settings, "ORDER_STRICT_TRANSITIONS", False)
    order = await service.set_status(order.id, "pending")
    assert order.status == "pending"


@pytest.mark.asyncio
async def test_set_status_missing_order(db):
    with pytest.raises(NotFoundError):
        await OrderService(db).set_status(12345, "confirmed")


@pytest.mark.asyncio
async def test_record_payment(db, catalog, address):
    order = await _create(db, catalog, address)
    service = OrderService(db)

    order = await service.record_payment(order.id, "failed")
    assert order.payment_status == "failed"
    assert order.paid_at is None

    order = await service.record_payment(
        order.id, "paid", gateway_order_id="order_abc", gateway_payment_id="pay_xyz"
    )
    assert order.payment_status == "paid"
    assert order.paid_at is not None
    assert order.gateway_payment_id == "pay_xyz"


@pytest.mark.asyncio
async def test_bulk_set_status_reports_each_order(db, catalog, address):
    first = await _create(db, catalog, address)
    second = await _create(db, catalog, address)
    await OrderService(db).set_status(second.id, "delivered")
    await db.commit()

    result = await OrderService.bulk_set_status([first.id, second.id, 9999], "confirmed")

    assert result.succeeded == [first.id]
    assert {f.item for f in result.failed} == {second.id, 9999}

    refreshed = await OrderService(db).get_order(first.id)
    assert refreshed.status == "confirmed"
