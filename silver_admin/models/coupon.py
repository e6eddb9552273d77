"""
Coupon model

Discount codes managed from the admin console. Validity is derived on
read by is_coupon_currently_valid; nothing about it is stored.
"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Numeric, CheckConstraint

from silver_admin.core.database import Base
from silver_admin.core.exceptions import ValidationFailedError


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)  # stored upper-cased
    description = Column(Text)
    discount_type = Column(String(20), nullable=False)  # percentage, fixed
    discount_value = Column(Numeric(12, 2), nullable=False)
    min_order_value = Column(Numeric(12, 2), default=0)
    max_discount = Column(Numeric(12, 2))
    usage_limit = Column(Integer)
    usage_count = Column(Integer, nullable=False, default=0)
    per_user_limit = Column(Integer, nullable=False, default=1)
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_to = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("discount_type IN ('percentage', 'fixed')", name="chk_coupon_discount_type"),
        CheckConstraint("discount_value >= 0", name="chk_coupon_discount_nonneg"),
        CheckConstraint("usage_count >= 0", name="chk_coupon_usage_nonneg"),
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def validate_coupon_window(valid_from: datetime, valid_to: datetime) -> None:
    """Raise if the validity window is empty or inverted."""
    if _as_utc(valid_to) <= _as_utc(valid_from):
        raise ValidationFailedError("Valid to date must be after valid from date")


def normalize_coupon_code(code: str) -> str:
    return code.strip().upper()


def is_coupon_currently_valid(coupon: Coupon, now: Optional[datetime] = None) -> bool:
    """Active, inside its validity window, and below its usage limit."""
    now = _as_utc(now or datetime.now(timezone.utc))
    return bool(
        coupon.is_active
        and _as_utc(coupon.valid_from) <= now
        and _as_utc(coupon.valid_to) >= now
        and (not coupon.usage_limit or (coupon.usage_count or 0) < coupon.usage_limit)
    )
