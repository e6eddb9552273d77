"""
Inventory and stock movement models

Per (product, variant, warehouse) stock state plus an append-only movement
log. Movements are an audit trail: balances live on the inventory row and
are never recomputed from history.
"""
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, Numeric,
    CheckConstraint, Index, UniqueConstraint, text
)
from sqlalchemy.orm import relationship

from silver_admin.core.database import Base


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    RETURN = "return"


class Inventory(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=True)
    warehouse = Column(String(50), nullable=False, default="main")
    location = Column(String(100))

    stock_quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)

    last_restocked_at = Column(DateTime(timezone=True), nullable=True)
    batch_number = Column(String(50), index=True)
    supplier = Column(String(255))
    purchase_cost = Column(Numeric(12, 2))
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    movements = relationship(
        "StockMovement",
        back_populates="inventory",
        order_by="StockMovement.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="chk_inventory_stock_nonneg"),
        CheckConstraint("reserved_quantity >= 0", name="chk_inventory_reserved_nonneg"),
        CheckConstraint("reserved_quantity <= stock_quantity", name="chk_inventory_reserved_le_stock"),
        UniqueConstraint("product_id", "variant_id", "warehouse", name="uq_inventory_product_variant_warehouse"),
        # NULL variant_ids never collide under the constraint above
        Index(
            "uq_inventory_product_warehouse_no_variant",
            "product_id",
            "warehouse",
            unique=True,
            postgresql_where=text("variant_id IS NULL"),
            sqlite_where=text("variant_id IS NULL"),
        ),
        Index("ix_inventory_warehouse", "warehouse"),
    )

    def __repr__(self):
        return f"<Inventory {self.id}: product {self.product_id} @ {self.warehouse} stock={self.stock_quantity}>"


def available_quantity(record: Inventory) -> int:
    """Stock that is not held by a reservation. Computed on read, never stored."""
    return (record.stock_quantity or 0) - (record.reserved_quantity or 0)


class StockMovement(Base):
    """Audit trail for inventory stock changes"""
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(
        Integer,
        ForeignKey("inventory.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    movement_type = Column(String(20), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)  # signed effect on stock
    reason = Column(String(255), nullable=False)
    reference = Column(String(100), nullable=True)

    performed_by = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    inventory = relationship("Inventory", back_populates="movements")

    __table_args__ = (
        CheckConstraint(
            "movement_type IN ('in', 'out', 'adjustment', 'transfer', 'return')",
            name="chk_movement_type"
        ),
    )

    def __repr__(self):
        return f"<StockMovement {self.id}: {self.movement_type} {self.quantity:+d} on inventory {self.inventory_id}>"
