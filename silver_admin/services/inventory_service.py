"""
InventoryService - warehouse stock ledger

Each inventory row holds the balance for one (product, variant, warehouse).
Every balance change goes through adjust_stock, which validates the result,
appends a StockMovement and re-syncs the variant's total stock. Movements
are never edited or deleted.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from silver_admin.core.exceptions import (
    BadRequestError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
)
from silver_admin.models.catalog import Product, ProductVariant
from silver_admin.models.inventory import Inventory, MovementType, StockMovement, available_quantity

logger = logging.getLogger(__name__)

DEFAULT_WAREHOUSE = "main"


def signed_delta(movement_type: MovementType, quantity: int) -> int:
    """
    Effect of a movement on stock.

    in / return always add, out always subtracts, adjustment and transfer
    keep the caller's sign.
    """
    movement_type = MovementType(movement_type)
    if movement_type in (MovementType.IN, MovementType.RETURN):
        return abs(quantity)
    if movement_type is MovementType.OUT:
        return -abs(quantity)
    return quantity


def clean_reason(reason: Optional[str]) -> str:
    if not reason or not reason.strip():
        raise BadRequestError("Movement reason is required")
    return reason.strip()


class InventoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_for_update(self, inventory_id: int) -> Inventory:
        result = await self.db.execute(
            select(Inventory)
            .where(Inventory.id == inventory_id)
            .with_for_update()
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("Inventory record not found", details={"inventory_id": inventory_id})
        return record

    async def get_record(self, inventory_id: int) -> Inventory:
        result = await self.db.execute(
            select(Inventory)
            .options(selectinload(Inventory.movements))
            .where(Inventory.id == inventory_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("Inventory record not found", details={"inventory_id": inventory_id})
        return record

    async def _validate_product(self, product_id: int, variant_id: Optional[int]) -> None:
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        if variant_id is not None:
            variant = await self.db.get(ProductVariant, variant_id)
            if not variant or variant.product_id != product_id:
                raise NotFoundError("Product variant not found", details={"variant_id": variant_id})

    async def get_or_create_record(
        self,
        product_id: int,
        variant_id: Optional[int] = None,
        warehouse: str = DEFAULT_WAREHOUSE,
    ) -> Tuple[Inventory, bool]:
        """
        Find the record for (product, variant, warehouse) or create an empty one.

        Returns:
            (record, created)
        """
        query = select(Inventory).where(
            Inventory.product_id == product_id,
            Inventory.warehouse == warehouse,
        )
        if variant_id is None:
            query = query.where(Inventory.variant_id.is_(None))
        else:
            query = query.where(Inventory.variant_id == variant_id)

        result = await self.db.execute(query)
        record = result.scalar_one_or_none()
        if record:
            return record, False

        await self._validate_product(product_id, variant_id)

        record = Inventory(
            product_id=product_id,
            variant_id=variant_id,
            warehouse=warehouse,
            stock_quantity=0,
            reserved_quantity=0,
        )
        self.db.add(record)
        await self._flush("Inventory record already exists for this product and warehouse")
        return record, True

    async def create_record(
        self,
        product_id: int,
        variant_id: Optional[int] = None,
        warehouse: str = DEFAULT_WAREHOUSE,
        initial_quantity: int = 0,
        performed_by: Optional[int] = None,
        **details: Any,
    ) -> Inventory:
        """
        Create a new stock record. An initial quantity is booked as an "in"
        movement so the opening balance shows up in the log.
        """
        record, created = await self.get_or_create_record(product_id, variant_id, warehouse)
        if not created:
            raise ConflictError(
                "Inventory record already exists for this product and warehouse",
                details={"inventory_id": record.id},
            )

        for key in ("location", "batch_number", "supplier", "purchase_cost", "notes"):
            if details.get(key) is not None:
                setattr(record, key, details[key])
        await self.db.flush()

        if initial_quantity:
            await self.adjust_stock(
                record.id,
                MovementType.IN,
                initial_quantity,
                reason="Opening stock",
                performed_by=performed_by,
            )
        return record

    async def record_movement(
        self,
        inventory: Inventory,
        movement_type: MovementType,
        quantity: int,
        reason: str,
        reference: Optional[str] = None,
        performed_by: Optional[int] = None,
    ) -> StockMovement:
        """Append a movement to the log. Balances are not touched here."""
        reason = clean_reason(reason)

        movement = StockMovement(
            inventory_id=inventory.id,
            movement_type=MovementType(movement_type).value,
            quantity=quantity,
            reason=reason,
            reference=reference,
            performed_by=performed_by,
        )
        self.db.add(movement)
        await self.db.flush()
        return movement

    async def adjust_stock(
        self,
        inventory_id: int,
        movement_type: MovementType,
        quantity: int,
        reason: str,
        reference: Optional[str] = None,
        performed_by: Optional[int] = None,
    ) -> Tuple[Inventory, StockMovement]:
        movement_type = MovementType(movement_type)
        reason = clean_reason(reason)
        delta = signed_delta(movement_type, quantity)
        if delta == 0:
            raise BadRequestError("Quantity must be non-zero")

        record = await self._get_for_update(inventory_id)
        new_quantity = record.stock_quantity + delta

        if new_quantity < 0:
            raise InsufficientStockError(
                "Insufficient stock",
                inventory_id=record.id,
                requested_qty=abs(delta),
                available_qty=record.stock_quantity,
            )
        if new_quantity < record.reserved_quantity:
            raise InsufficientStockError(
                "Stock cannot drop below the reserved quantity",
                inventory_id=record.id,
                requested_qty=abs(delta),
                available_qty=available_quantity(record),
            )

        record.stock_quantity = new_quantity
        if movement_type is MovementType.IN:
            record.last_restocked_at = datetime.now(timezone.utc)

        movement = await self.record_movement(
            record, movement_type, delta, reason, reference=reference, performed_by=performed_by
        )
        await self._sync_variant_stock(record.variant_id)

        logger.info(
            "Stock movement on inventory %s: %s %+d -> %d (by %s)",
            record.id,
            movement_type.value,
            delta,
            new_quantity,
            performed_by,
        )
        return record, movement

    async def transfer_stock(
        self,
        inventory_id: int,
        to_warehouse: str,
        quantity: int,
        reason: str,
        reference: Optional[str] = None,
        performed_by: Optional[int] = None,
    ) -> Tuple[Inventory, Inventory]:
        """Move stock between warehouses as a pair of transfer movements."""
        reason = clean_reason(reason)
        if quantity <= 0:
            raise BadRequestError("Transfer quantity must be positive")

        source = await self._get_for_update(inventory_id)
        if source.warehouse == to_warehouse:
            raise BadRequestError("Source and destination warehouse are the same")

        target, _ = await self.get_or_create_record(source.product_id, source.variant_id, to_warehouse)

        reference = reference or f"transfer:{source.warehouse}->{to_warehouse}"
        source, _ = await self.adjust_stock(
            source.id, MovementType.TRANSFER, -quantity, reason, reference, performed_by
        )
        target, _ = await self.adjust_stock(
            target.id, MovementType.TRANSFER, quantity, reason, reference, performed_by
        )
        return source, target

    async def reserve(self, inventory_id: int, quantity: int) -> Inventory:
        if quantity <= 0:
            raise BadRequestError("Reservation quantity must be positive")

        record = await self._get_for_update(inventory_id)
        if record.reserved_quantity + quantity > record.stock_quantity:
            raise InsufficientStockError(
                "Not enough available stock to reserve",
                inventory_id=record.id,
                requested_qty=quantity,
                available_qty=available_quantity(record),
            )
        record.reserved_quantity += quantity
        await self._flush()
        return record

    async def release(self, inventory_id: int, quantity: int) -> Inventory:
        if quantity <= 0:
            raise BadRequestError("Release quantity must be positive")

        record = await self._get_for_update(inventory_id)
        if quantity > record.reserved_quantity:
            raise BadRequestError(
                "Cannot release more than is reserved",
                details={"inventory_id": record.id, "reserved_qty": record.reserved_quantity},
            )
        record.reserved_quantity -= quantity
        await self._flush()
        return record

    async def _flush(self, conflict_message: str = "Inventory was modified concurrently, please retry") -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(conflict_message) from e

    async def _sync_variant_stock(self, variant_id: Optional[int]) -> None:
        """Mirror the summed warehouse stock onto the variant."""
        if variant_id is None:
            return
        await self._flush()
        total = await self.db.scalar(
            select(func.coalesce(func.sum(Inventory.stock_quantity), 0))
            .where(Inventory.variant_id == variant_id)
        )
        variant = await self.db.get(ProductVariant, variant_id)
        if variant:
            variant.apply_stock_quantity(int(total or 0))
            await self._flush()
