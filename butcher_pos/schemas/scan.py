"""
Pydantic schemas for scanner readings.
"""
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from .cart import CartLineItem
from .product import Product, ProductBatch


class ScaleBarcodeReading(BaseModel):
    """Value decoded from a scale label. Consumed once, never stored."""
    model_config = ConfigDict(frozen=True)

    product_code: str
    weight_kg: Decimal
    total_price: Decimal
    check_digit: int
    raw_barcode: str


class ScalePriceAudit(BaseModel):
    """Scale label price compared against the catalog price."""
    weight_kg: Decimal
    label_price: Decimal
    system_price: Decimal
    price_diff: Decimal
    custom_unit_price: Optional[Decimal] = None


class ScanRequest(BaseModel):
    barcode: str


class ScanResult(BaseModel):
    """Outcome of handling one scanned code."""
    product: Product
    line: Optional[CartLineItem] = None
    reading: Optional[ScaleBarcodeReading] = None
    audit: Optional[ScalePriceAudit] = None
    # Filled when the operator has to pick a lot by hand
    available_batches: List[ProductBatch] = []
    message: str = ""

    @property
    def requires_batch_selection(self) -> bool:
        return self.line is None
