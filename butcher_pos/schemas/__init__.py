"""
Pydantic schemas for the POS engine records and API payloads.
"""
from butcher_pos.schemas.product import (
    SaleType, InventoryType, Product, ProductBatch, BatchCreate
)
from butcher_pos.schemas.cart import (
    LineState, BatchInfo, CartLineItem, CartTotals, CartSnapshot,
    AddLineRequest, SelectBatchRequest, ManualBatchRequest, UpdateQtyRequest,
    DiscountRequest, UnitPriceRequest
)
from butcher_pos.schemas.scan import (
    ScaleBarcodeReading, ScalePriceAudit, ScanRequest, ScanResult
)
from butcher_pos.schemas.sale import (
    PaymentMethod, SaleStatus, PaymentRequest, PaymentReceipt,
    UnitSaleLine, WeightSaleLine, BatchSaleLine, SaleLine, Sale, CheckoutRequest
)

__all__ = [
    # Product
    "SaleType", "InventoryType", "Product", "ProductBatch", "BatchCreate",
    # Cart
    "LineState", "BatchInfo", "CartLineItem", "CartTotals", "CartSnapshot",
    "AddLineRequest", "SelectBatchRequest", "ManualBatchRequest", "UpdateQtyRequest",
    "DiscountRequest", "UnitPriceRequest",
    # Scan
    "ScaleBarcodeReading", "ScalePriceAudit", "ScanRequest", "ScanResult",
    # Sale
    "PaymentMethod", "SaleStatus", "PaymentRequest", "PaymentReceipt",
    "UnitSaleLine", "WeightSaleLine", "BatchSaleLine", "SaleLine", "Sale", "CheckoutRequest",
]
