"""
Pydantic schemas for catalog products and vacuum-packed batches.
"""
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator

WEIGHT_QUANTUM = Decimal("0.001")


class SaleType(str, Enum):
    """How a product is priced at the counter."""
    UNIT = "UNIT"
    WEIGHT = "WEIGHT"


class InventoryType(str, Enum):
    """How a product's stock is tracked."""
    UNIT = "UNIT"                    # stock count
    WEIGHT = "WEIGHT"                # cut to order, stock not controlled
    VACUUM_PACKED = "VACUUM_PACKED"  # discrete weighed batches


class Product(BaseModel):
    """Catalog entry. Immutable during a transaction."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    sku: str
    name: str
    category_id: Optional[str] = None
    barcode: Optional[str] = None
    sale_type: SaleType
    inventory_type: Optional[InventoryType] = None
    unit: str = "unidad"
    price: Decimal = Field(..., ge=0)
    stock_units: Optional[int] = None
    is_active: bool = True

    @property
    def is_vacuum_packed(self) -> bool:
        return self.inventory_type == InventoryType.VACUUM_PACKED

    @property
    def tracks_unit_stock(self) -> bool:
        return self.inventory_type == InventoryType.UNIT and self.stock_units is not None


class ProductBatch(BaseModel):
    """One physical pre-weighed package of a vacuum-packed product."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    product_id: str
    batch_number: str
    actual_weight: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, description="Price of the whole package in Bs")
    unit_cost: Optional[Decimal] = None
    packed_at: datetime
    expiry_date: Optional[date] = None
    is_sold: bool = False
    is_reserved: bool = False
    notes: Optional[str] = None

    @field_validator("actual_weight")
    @classmethod
    def _weight_precision(cls, v: Decimal) -> Decimal:
        return v.quantize(WEIGHT_QUANTUM)


class BatchCreate(BaseModel):
    """Payload for registering a batch with the inventory collaborator."""
    product_id: str
    batch_number: str
    actual_weight: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., gt=0)
    packed_at: datetime
    notes: Optional[str] = None
