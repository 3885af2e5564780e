"""
Pydantic schemas for cart lines and cart snapshots.
"""
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum
import uuid
from pydantic import BaseModel, Field, ConfigDict, computed_field

from ..pricing import line_subtotal, line_total, effective_unit_price
from .product import Product, ProductBatch, SaleType


class LineState(str, Enum):
    """Lifecycle of a cart line."""
    DRAFT = "DRAFT"                        # quantity being edited, not sellable
    COMMITTED = "COMMITTED"
    REMOVED = "REMOVED"
    BATCH_REGISTERED = "BATCH_REGISTERED"  # phantom batch created at settlement


class BatchInfo(BaseModel):
    """
    Package data attached to a vacuum-packed line.

    ``batch_id`` is None for a phantom batch that still has to be registered.
    """
    batch_id: Optional[str] = None
    batch_number: Optional[str] = None
    actual_weight: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., gt=0)

    @classmethod
    def from_batch(cls, batch: ProductBatch) -> "BatchInfo":
        return cls(
            batch_id=batch.id,
            batch_number=batch.batch_number,
            actual_weight=batch.actual_weight,
            unit_price=batch.unit_price,
        )

    @property
    def is_phantom(self) -> bool:
        return self.batch_id is None


class CartLineItem(BaseModel):
    """One row in the transaction."""
    model_config = ConfigDict(validate_assignment=False)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    product: Product
    qty: Decimal
    unit_price: Decimal
    discount: Decimal = Decimal("0")
    batch_id: Optional[str] = None
    batch_number: Optional[str] = None
    actual_weight: Optional[Decimal] = None
    needs_batch_creation: bool = False
    state: LineState = LineState.COMMITTED
    pending_qty: Optional[Decimal] = None
    scale_barcode: Optional[str] = None

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def sale_type(self) -> SaleType:
        return self.product.sale_type

    @property
    def is_package(self) -> bool:
        """Batch and phantom lines: one package, quantity fixed at 1."""
        return self.batch_id is not None or self.needs_batch_creation

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return line_subtotal(self)

    @computed_field
    @property
    def total(self) -> Decimal:
        return line_total(self)

    @property
    def effective_unit_price(self) -> Decimal:
        return effective_unit_price(self.qty, self.unit_price, self.discount)


class CartTotals(BaseModel):
    subtotal: Decimal
    item_discounts: Decimal
    cart_discount: Decimal
    total: Decimal
    items_count: int


class CartSnapshot(BaseModel):
    """Read-only view of a cart handed to settlement and the API."""
    id: str
    created_at: datetime
    lines: List[CartLineItem]
    totals: CartTotals


class AddLineRequest(BaseModel):
    product_id: str
    qty: Decimal = Field(default=Decimal("1"), gt=0)


class SelectBatchRequest(BaseModel):
    product_id: str
    batch_id: str


class ManualBatchRequest(BaseModel):
    product_id: str
    weight: Decimal
    price: Decimal


class UpdateQtyRequest(BaseModel):
    qty: Decimal
    commit: bool = True


class DiscountRequest(BaseModel):
    amount: Decimal


class UnitPriceRequest(BaseModel):
    price: Decimal
    per_kg: bool = False
