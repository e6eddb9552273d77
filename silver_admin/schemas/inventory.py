"""
Inventory schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from silver_admin.models.inventory import Inventory, MovementType, available_quantity


class InventoryCreate(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    warehouse: str = Field("main", min_length=1, max_length=50)
    location: Optional[str] = None
    batch_number: Optional[str] = None
    supplier: Optional[str] = None
    purchase_cost: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    initial_quantity: int = Field(0, ge=0)


class MovementCreate(BaseModel):
    movement_type: MovementType
    quantity: int
    reason: str = Field(..., min_length=1, max_length=255)
    reference: Optional[str] = Field(None, max_length=100)


class TransferCreate(BaseModel):
    to_warehouse: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=255)
    reference: Optional[str] = Field(None, max_length=100)


class ReservationChange(BaseModel):
    quantity: int = Field(..., gt=0)


class MovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    movement_type: str
    quantity: int
    reason: str
    reference: Optional[str] = None
    performed_by: Optional[int] = None
    created_at: datetime


class InventoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    variant_id: Optional[int] = None
    warehouse: str
    location: Optional[str] = None
    stock_quantity: int
    reserved_quantity: int
    available_quantity: int
    last_restocked_at: Optional[datetime] = None
    batch_number: Optional[str] = None
    supplier: Optional[str] = None
    movements: List[MovementResponse] = []

    @classmethod
    def from_record(cls, record: Inventory, include_movements: bool = True) -> "InventoryResponse":
        return cls(
            id=record.id,
            product_id=record.product_id,
            variant_id=record.variant_id,
            warehouse=record.warehouse,
            location=record.location,
            stock_quantity=record.stock_quantity,
            reserved_quantity=record.reserved_quantity,
            available_quantity=available_quantity(record),
            last_restocked_at=record.last_restocked_at,
            batch_number=record.batch_number,
            supplier=record.supplier,
            movements=[MovementResponse.model_validate(m) for m in record.movements] if include_movements else [],
        )
