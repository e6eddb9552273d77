"""
Catalog models: categories, products, product variants

Only what order snapshots and inventory need. Browsing and search live in
the storefront service.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Numeric,
    CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from silver_admin.core.database import Base

STOCK_IN = "in-stock"
STOCK_LOW = "low-stock"
STOCK_OUT = "out-of-stock"

DEFAULT_LOW_STOCK_THRESHOLD = 5


def compute_stock_status(quantity: int, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> str:
    """Derive the variant stock badge from its quantity."""
    if quantity <= 0:
        return STOCK_OUT
    if quantity <= low_stock_threshold:
        return STOCK_LOW
    return STOCK_IN


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    description = Column(Text)
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    image = Column(String(500))
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    products = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    purity = Column(String(3), nullable=False, default="925")  # 925, 999
    weight = Column(Numeric(10, 3), nullable=False, default=0)
    making_charges = Column(Numeric(12, 2), default=0)
    gst_rate = Column(Numeric(5, 2), default=3)
    base_price = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    category = relationship("Category", back_populates="products")
    variants = relationship("ProductVariant", back_populates="product")

    __table_args__ = (
        CheckConstraint("purity IN ('925', '999')", name="chk_product_purity"),
        Index("ix_products_category_active", "category_id", "is_active"),
    )


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    sku = Column(String(60), unique=True, nullable=False, index=True)
    variant_name = Column(String(100), nullable=False)
    size = Column(String(30))
    color = Column(String(30))
    weight = Column(Numeric(10, 3))
    additional_price = Column(Numeric(12, 2), default=0)
    selling_price = Column(Numeric(12, 2), nullable=False)
    is_default = Column(Boolean, default=False)

    # Mirrors the sum of inventory stock across warehouses
    stock_quantity = Column(Integer, nullable=False, default=0)
    stock_status = Column(String(20), nullable=False, default=STOCK_OUT)
    low_stock_threshold = Column(Integer, nullable=False, default=DEFAULT_LOW_STOCK_THRESHOLD)

    image = Column(String(500))
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="chk_variant_stock_nonneg"),
        CheckConstraint(
            "stock_status IN ('in-stock', 'low-stock', 'out-of-stock')",
            name="chk_variant_stock_status"
        ),
    )

    def apply_stock_quantity(self, quantity: int) -> None:
        """Set stock and refresh the derived status before persisting."""
        self.stock_quantity = quantity
        self.stock_status = compute_stock_status(quantity, self.low_stock_threshold or 0)
