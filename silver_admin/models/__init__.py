from silver_admin.models.admin import Admin
from silver_admin.models.customer import User
from silver_admin.models.catalog import Category, Product, ProductVariant, compute_stock_status
from silver_admin.models.inventory import Inventory, StockMovement, MovementType, available_quantity
from silver_admin.models.order import (
    Order,
    OrderItem,
    OrderStatusHistory,
    OrderSequence,
    OrderStatus,
    PaymentStatus,
    PaymentMethod,
)
from silver_admin.models.coupon import Coupon, is_coupon_currently_valid, validate_coupon_window

__all__ = [
    "Admin",
    "User",
    # Catalog
    "Category",
    "Product",
    "ProductVariant",
    "compute_stock_status",
    # Inventory
    "Inventory",
    "StockMovement",
    "MovementType",
    "available_quantity",
    # Orders
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "OrderSequence",
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    # Coupons
    "Coupon",
    "is_coupon_currently_valid",
    "validate_coupon_window",
]
