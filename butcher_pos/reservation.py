"""
Reservation policy: decides how a product enters the cart.

Vacuum-packed products either consume a registered batch or become a phantom
batch that settlement registers later. Unit-tracked products are checked
against the stock still free for this draft. Decisions are plain values; the
cart turns rejections into typed errors.
"""
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Union, Literal
from pydantic import BaseModel

from .logging_config import get_logger
from .matcher import match_batch, is_available
from .pricing import to_decimal
from .schemas.product import Product, ProductBatch

logger = get_logger("reservation")


class RejectReason(str, Enum):
    INVALID_MANUAL_ENTRY = "invalid_manual_entry"
    INSUFFICIENT_STOCK = "insufficient_stock"
    BATCH_UNAVAILABLE = "batch_unavailable"
    NOT_VACUUM_PACKED = "not_vacuum_packed"


class ConsumeBatch(BaseModel):
    action: Literal["consume"] = "consume"
    batch: ProductBatch


class CreatePhantom(BaseModel):
    action: Literal["create_phantom"] = "create_phantom"
    weight: Decimal
    price: Decimal


class AllowUnits(BaseModel):
    action: Literal["allow"] = "allow"
    quantity: Decimal
    available: Optional[int] = None


class Reject(BaseModel):
    action: Literal["reject"] = "reject"
    reason: RejectReason
    available: Optional[int] = None


Decision = Union[ConsumeBatch, CreatePhantom, AllowUnits, Reject]


class ReservationPolicy:
    """Resolves scanned, selected and manually entered products."""

    def __init__(self, weight_tolerance: Decimal = None, price_tolerance: Decimal = None):
        self.tolerances = {}
        if weight_tolerance is not None:
            self.tolerances["weight_tolerance"] = weight_tolerance
        if price_tolerance is not None:
            self.tolerances["price_tolerance"] = price_tolerance

    def resolve_scan(
        self,
        product: Product,
        batches: Iterable[ProductBatch],
        weight_kg,
        total_price,
        in_cart_batch_ids: Iterable[str] = (),
    ) -> Decision:
        """Scanner path: consume the FIFO match, otherwise a phantom batch."""
        if not product.is_vacuum_packed:
            return Reject(reason=RejectReason.NOT_VACUUM_PACKED)

        batch = match_batch(
            batches, product.id, weight_kg, total_price, in_cart_batch_ids, **self.tolerances
        )
        if batch is not None:
            return ConsumeBatch(batch=batch)

        logger.info(f"[BATCH] Unregistered package for {product.name}, creating phantom batch")
        return self.resolve_manual(product, weight_kg, total_price)

    def resolve_manual(self, product: Product, weight, price) -> Decision:
        """Manual entry path: operator typed the weight and price of the package."""
        if not product.is_vacuum_packed:
            return Reject(reason=RejectReason.NOT_VACUUM_PACKED)

        weight = to_decimal(weight)
        price = to_decimal(price)
        if weight <= 0 or price <= 0:
            return Reject(reason=RejectReason.INVALID_MANUAL_ENTRY)
        return CreatePhantom(weight=weight, price=price)

    def resolve_selection(
        self,
        product: Product,
        batch: ProductBatch,
        in_cart_batch_ids: Iterable[str] = (),
    ) -> Decision:
        """Operator picked a lot from the available list."""
        if not product.is_vacuum_packed:
            return Reject(reason=RejectReason.NOT_VACUUM_PACKED)
        if not is_available(batch, product.id, in_cart_batch_ids):
            return Reject(reason=RejectReason.BATCH_UNAVAILABLE)
        return ConsumeBatch(batch=batch)

    def resolve_units(self, product: Product, quantity, already_in_cart=0) -> Decision:
        """
        Stock check for unit-tracked products.

        The draft only tracks what it has committed; persistent stock is
        decremented at settlement.
        """
        quantity = to_decimal(quantity)
        if not product.tracks_unit_stock:
            return AllowUnits(quantity=quantity)

        available = product.stock_units - int(already_in_cart)
        if available <= 0 or quantity > available:
            return Reject(reason=RejectReason.INSUFFICIENT_STOCK, available=max(available, 0))
        return AllowUnits(quantity=quantity, available=available)
