"""
Order models

Orders snapshot prices and addresses at creation time. Status changes are
recorded in an append-only history table; order numbers come from a
per-day counter row (order_sequences).
"""
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Text, JSON, Numeric,
    CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from silver_admin.core.database import Base


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    RAZORPAY = "razorpay"
    COD = "cod"
    BANK_TRANSFER = "bank-transfer"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, index=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Snapshots copied at order time
    shipping_address = Column(JSON, nullable=False)
    billing_address = Column(JSON, nullable=False)

    # Pricing - Numeric(12,2) for money
    subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_charges = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)

    # Payment
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    gateway_order_id = Column(String(100))
    gateway_payment_id = Column(String(100))
    gateway_signature = Column(String(255))
    paid_at = Column(DateTime(timezone=True))

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)

    # Tracking
    courier = Column(String(100))
    tracking_number = Column(String(100))
    shipped_at = Column(DateTime(timezone=True))
    delivered_at = Column(DateTime(timezone=True))

    notes = Column(Text)
    customer_note = Column(Text)
    coupon_code = Column(String(50))

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    customer = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistory.id",
    )

    __table_args__ = (
        CheckConstraint("subtotal >= 0", name="chk_order_subtotal_nonneg"),
        CheckConstraint("shipping_charges >= 0", name="chk_order_shipping_nonneg"),
        CheckConstraint("discount >= 0", name="chk_order_discount_nonneg"),
        CheckConstraint("tax >= 0", name="chk_order_tax_nonneg"),
        CheckConstraint("total >= 0", name="chk_order_total_nonneg"),
        Index("ix_orders_customer_created", "customer_id", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True)

    # Snapshot of product at time of order
    product_name = Column(String(255), nullable=False)
    sku = Column(String(60), nullable=False)
    image = Column(String(500))
    quantity = Column(Integer, nullable=False)
    weight = Column(Numeric(10, 3))
    price_per_unit = Column(Numeric(12, 2), nullable=False)
    making_charges = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="chk_order_item_quantity"),
        CheckConstraint("price_per_unit >= 0", name="chk_order_item_price_nonneg"),
    )


class OrderStatusHistory(Base):
    """Append-only log of order status changes."""
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    note = Column(Text)
    updated_by = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("Order", back_populates="status_history")


class OrderSequence(Base):
    """Per-day counter for order numbers. One row per YYYYMMDD."""
    __tablename__ = "order_sequences"

    day = Column(String(8), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
