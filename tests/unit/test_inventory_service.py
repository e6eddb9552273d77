import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from silver_admin.core.database import AsyncSessionLocal
from silver_admin.core.exceptions import (
    BadRequestError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
)
from silver_admin.models import (
    Inventory,
    MovementType,
    ProductVariant,
    StockMovement,
    available_quantity,
    compute_stock_status,
)
from silver_admin.services.inventory_service import InventoryService, signed_delta


@pytest.mark.parametrize("movement_type, quantity, expected", [
    (MovementType.IN, 5, 5),
    (MovementType.IN, -5, 5),
    (MovementType.RETURN, 2, 2),
    (MovementType.OUT, 3, -3),
    (MovementType.OUT, -3, -3),
    (MovementType.ADJUSTMENT, -4, -4),
    (MovementType.TRANSFER, 6, 6),
])
def test_signed_delta(movement_type, quantity, expected):
    assert signed_delta(movement_type, quantity) == expected


@pytest.mark.parametrize("quantity, threshold, expected", [
    (0, 5, "out-of-stock"),
    (3, 5, "low-stock"),
    (5, 5, "low-stock"),
    (6, 5, "in-stock"),
])
def test_compute_stock_status(quantity, threshold, expected):
    assert compute_stock_status(quantity, threshold) == expected


async def _movements(db, inventory_id):
    result = await db.execute(
        select(StockMovement).where(StockMovement.inventory_id == inventory_id).order_by(StockMovement.id)
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_get_or_create_record_is_idempotent(db, catalog):
    service = InventoryService(db)
    record, created = await service.get_or_create_record(catalog.product.id, catalog.variant.id, "main")
    again, created_again = await service.get_or_create_record(catalog.product.id, catalog.variant.id, "main")

    assert created is True
    assert created_again is False
    assert again.id == record.id
    assert record.stock_quantity == 0
    assert available_quantity(record) == 0


@pytest.mark.asyncio
async def test_get_or_create_rejects_unknown_product(db, catalog):
    with pytest.raises(NotFoundError):
        await InventoryService(db).get_or_create_record(catalog.product.id + 100, None)


@pytest.mark.asyncio
async def test_create_record_books_opening_stock(db, catalog, make_admin):
    admin = await make_admin()
    record = await InventoryService(db).create_record(
        catalog.product.id,
        catalog.variant.id,
        initial_quantity=12,
        performed_by=admin.id,
        supplier="Jaipur Silver Co",
    )

    assert record.stock_quantity == 12
    assert record.supplier == "Jaipur Silver Co"
    assert record.last_restocked_at is not None

    movements = await _movements(db, record.id)
    assert [(m.movement_type, m.quantity, m.performed_by) for m in movements] == [("in", 12, admin.id)]

    with pytest.raises(ConflictError):
        await InventoryService(db).create_record(catalog.product.id, catalog.variant.id)


@pytest.mark.asyncio
async def test_record_movement_leaves_balance_alone(db, catalog):
    service = InventoryService(db)
    record, _ = await service.get_or_create_record(catalog.product.id, catalog.variant.id)

    movement = await service.record_movement(record, MovementType.ADJUSTMENT, 7, "Audit note")
    assert movement.id is not None
    assert record.stock_quantity == 0

    with pytest.raises(BadRequestError):
        await service.record_movement(record, MovementType.IN, 1, "   ")


@pytest.mark.asyncio
async def test_adjust_stock_syncs_variant(db, catalog):
    service = InventoryService(db)
    record, _ = await service.get_or_create_record(catalog.product.id, catalog.variant.id)

    await service.adjust_stock(record.id, MovementType.IN, 10, "Supplier delivery", reference="PO-1")
    variant = await db.get(ProductVariant, catalog.variant.id)
    assert variant.stock_quantity == 10
    assert variant.stock_status == "in-stock"

    await service.adjust_stock(record.id, MovementType.OUT, 7, "Damaged in polishing")
    assert record.stock_quantity == 3
    assert variant.stock_quantity == 3
    assert variant.stock_status == "low-stock"

    movements = await _movements(db, record.id)
    assert [m.quantity for m in movements] == [10, -7]
    assert movements[0].reference == "PO-1"


@pytest.mark.asyncio
async def test_adjust_stock_cannot_go_negative_or_below_reserved(db, catalog):
    service = InventoryService(db)
    record, _ = await service.get_or_create_record(catalog.product.id, catalog.variant.id)
    await service.adjust_stock(record.id, MovementType.IN, 5, "Restock")

    with pytest.raises(InsufficientStockError):
        await service.adjust_stock(record.id, MovementType.OUT, 6, "Oversell")

    await service.reserve(record.id, 4)
    with pytest.raises(InsufficientStockError):
        await service.adjust_stock(record.id, MovementType.ADJUSTMENT, -2, "Count correction")

    assert record.stock_quantity == 5
    assert len(await _movements(db, record.id)) == 1


@pytest.mark.asyncio
async def test_reserve_and_release(db, catalog):
    service = InventoryService(db)
    record, _ = await service.get_or_create_record(catalog.product.id, catalog.variant.id)
    await service.adjust_stock(record.id, MovementType.IN, 5, "Restock")

    await service.reserve(record.id, 3)
    assert available_quantity(record) == 2

    with pytest.raises(InsufficientStockError):
        await service.reserve(record.id, 3)

    await service.release(record.id, 2)
    assert record.reserved_quantity == 1

    with pytest.raises(BadRequestError):
        await service.release(record.id, 5)


@pytest.mark.asyncio
async def test_transfer_creates_paired_movements(db, catalog):
    service = InventoryService(db)
    source, _ = await service.get_or_create_record(catalog.product.id, catalog.variant.id, "main")
    await service.adjust_stock(source.id, MovementType.IN, 8, "Restock")

    source, target = await service.transfer_stock(source.id, "showroom", 3, "Display stock")

    assert source.stock_quantity == 5
    assert target.stock_quantity == 3
    assert target.warehouse == "showroom"

    out_moves = await _movements(db, source.id)
    in_moves = await _movements(db, target.id)
    assert (out_moves[-1].movement_type, out_moves[-1].quantity) == ("transfer", -3)
    assert (in_moves[-1].movement_type, in_moves[-1].quantity) == ("transfer", 3)
    assert out_moves[-1].reference == in_moves[-1].reference

    # Variant total is unchanged by a transfer
    variant = await db.get(ProductVariant, catalog.variant.id)
    assert variant.stock_quantity == 8

    with pytest.raises(BadRequestError):
        await service.transfer_stock(source.id, "main", 1, "Same warehouse")


@pytest.mark.asyncio
async def test_missing_inventory_record(db):
    with pytest.raises(NotFoundError):
        await InventoryService(db).adjust_stock(999, MovementType.IN, 1, "Ghost")


@pytest.mark.asyncio
async def test_records_are_per_warehouse(db, catalog):
    service = InventoryService(db)
    await service.get_or_create_record(catalog.product.id, catalog.variant.id, "main")
    await service.get_or_create_record(catalog.product.id, catalog.variant.id, "showroom")
    result = await db.execute(select(Inventory).where(Inventory.variant_id == catalog.variant.id))
    assert {r.warehouse for r in result.scalars()} == {"main", "showroom"}


@pytest.mark.asyncio
async def test_product_level_records_are_unique_per_warehouse(db, catalog):
    product_id = catalog.product.id
    db.add(Inventory(product_id=product_id, variant_id=None, warehouse="main"))
    db.add(Inventory(product_id=product_id, variant_id=None, warehouse="main"))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()

    db.add(Inventory(product_id=product_id, variant_id=None, warehouse="main"))
    db.add(Inventory(product_id=product_id, variant_id=None, warehouse="showroom"))
    await db.commit()


@pytest.mark.asyncio
async def test_get_or_create_conflict_when_record_appears_concurrently(db, catalog, monkeypatch):
    product_id = catalog.product.id

    async def competing_insert(self, product_id, variant_id):
        async with AsyncSessionLocal() as other:
            other.add(Inventory(product_id=product_id, variant_id=variant_id, warehouse="main"))
            await other.commit()

    monkeypatch.setattr(InventoryService, "_validate_product", competing_insert)

    with pytest.raises(ConflictError):
        await InventoryService(db).get_or_create_record(product_id, None, "main")

    record, created = await InventoryService(db).get_or_create_record(product_id, None, "main")
    assert created is False


@pytest.mark.asyncio
async def test_blank_reason_leaves_balance_untouched(db, catalog):
    service = InventoryService(db)
    record = await service.create_record(catalog.product.id, catalog.variant.id, initial_quantity=5)

    with pytest.raises(BadRequestError):
        await service.adjust_stock(record.id, MovementType.OUT, 2, "   ")
    with pytest.raises(BadRequestError):
        await service.transfer_stock(record.id, "showroom", 2, "")

    assert record.stock_quantity == 5
    assert [m.movement_type for m in await _movements(db, record.id)] == ["in"]
    showroom = await db.execute(select(Inventory).where(Inventory.warehouse == "showroom"))
    assert showroom.scalar_one_or_none() is None
