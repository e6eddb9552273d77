"""
Order schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from silver_admin.models.order import OrderStatus, PaymentMethod, PaymentStatus


class AddressSnapshot(BaseModel):
    name: str
    phone: str
    line1: str
    line2: Optional[str] = None
    city: str
    state: str
    pincode: str
    country: str = "India"


class OrderItemCreate(BaseModel):
    product_id: int
    variant_id: int
    quantity: int = Field(..., ge=1)
    # Defaults to the variant's selling price when omitted
    price_per_unit: Optional[Decimal] = Field(None, ge=0)
    making_charges: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    weight: Optional[Decimal] = Field(None, ge=0)


class PricingInput(BaseModel):
    shipping_charges: Decimal = Field(Decimal("0"), ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)


class OrderCreate(BaseModel):
    customer_id: int
    items: List[OrderItemCreate]
    shipping_address: AddressSnapshot
    billing_address: AddressSnapshot
    pricing: PricingInput = PricingInput()
    payment_method: PaymentMethod
    notes: Optional[str] = None
    customer_note: Optional[str] = None
    coupon_code: Optional[str] = None


class StatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = None
    courier: Optional[str] = None
    tracking_number: Optional[str] = None


class BulkStatusUpdate(BaseModel):
    order_ids: List[int] = Field(..., min_length=1, max_length=100)
    status: OrderStatus
    note: Optional[str] = None


class PaymentUpdate(BaseModel):
    status: PaymentStatus
    gateway_order_id: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    gateway_signature: Optional[str] = None


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int]
    variant_id: Optional[int]
    product_name: str
    sku: str
    image: Optional[str] = None
    quantity: int
    price_per_unit: float
    making_charges: float
    tax: float
    subtotal: float


class StatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    note: Optional[str] = None
    updated_by: Optional[int] = None
    created_at: datetime


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    customer_id: int
    status: str
    items: List[OrderItemResponse]
    shipping_address: dict
    billing_address: dict
    subtotal: float
    shipping_charges: float
    discount: float
    tax: float
    total: float
    payment_method: str
    payment_status: str
    gateway_order_id: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    courier: Optional[str] = None
    tracking_number: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    notes: Optional[str] = None
    customer_note: Optional[str] = None
    coupon_code: Optional[str] = None
    status_history: List[StatusHistoryResponse]
    created_at: datetime
