"""
Pydantic schemas for payments and settled sales.
"""
from typing import Optional, List, Literal, Union, Annotated
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    TRANSFER = "TRANSFER"
    MIXED = "MIXED"


class SaleStatus(str, Enum):
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentRequest(BaseModel):
    """Tendered amounts. Only the amounts relevant to ``method`` are read."""
    method: PaymentMethod
    cash_amount: Optional[Decimal] = Field(None, ge=0)
    card_amount: Optional[Decimal] = Field(None, ge=0)
    transfer_amount: Optional[Decimal] = Field(None, ge=0)


class PaymentReceipt(BaseModel):
    """Amounts actually recorded on the sale."""
    method: PaymentMethod
    total: Decimal
    cash_amount: Optional[Decimal] = None
    card_amount: Optional[Decimal] = None
    transfer_amount: Optional[Decimal] = None
    change_amount: Optional[Decimal] = None


class _SaleLineBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    product_name: str
    unit_price: Decimal
    discount: Decimal = Decimal("0")
    subtotal: Decimal
    total: Decimal


class UnitSaleLine(_SaleLineBase):
    kind: Literal["unit"] = "unit"
    qty: int


class WeightSaleLine(_SaleLineBase):
    kind: Literal["weight"] = "weight"
    qty: Decimal


class BatchSaleLine(_SaleLineBase):
    kind: Literal["batch"] = "batch"
    qty: int = 1
    batch_id: str
    batch_number: Optional[str] = None
    actual_weight: Decimal


SaleLine = Annotated[
    Union[UnitSaleLine, WeightSaleLine, BatchSaleLine],
    Field(discriminator="kind"),
]


class Sale(BaseModel):
    """A settled transaction."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: SaleStatus = SaleStatus.COMPLETED
    cashier_id: Optional[str] = None
    terminal_id: Optional[str] = None
    items: List[SaleLine]
    subtotal: Decimal
    item_discounts: Decimal
    discount: Decimal
    total: Decimal
    payment_method: PaymentMethod
    cash_amount: Optional[Decimal] = None
    card_amount: Optional[Decimal] = None
    transfer_amount: Optional[Decimal] = None
    change_amount: Optional[Decimal] = None
    created_at: datetime


class CheckoutRequest(BaseModel):
    payment: PaymentRequest
    cashier_id: Optional[str] = None
