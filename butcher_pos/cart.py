"""
Cart engine.

The cart is an explicitly owned aggregate: an ordered list of lines plus an
index by line id. Every mutation validates first and only then touches state,
so a raised error always leaves the cart as it was.
"""
from datetime import datetime
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Dict, List, Optional, Set
import uuid

from .errors import (
    AppException, LineNotFoundError, InvalidManualEntryError, InvalidQuantityError,
    InsufficientStockError, InvalidDiscountError, InvalidPriceError,
    BatchRequiredError, BatchUnavailableError, ProductNotFoundError,
)
from .logging_config import get_logger
from .pricing import (
    ZERO, WEIGHT_QUANTUM, INPUT_QUANTUM, to_decimal, round_bs, round_input,
    line_subtotal, cart_subtotal, item_discounts_total, cart_total,
    price_override_discount, rescale_discount, package_price,
)
from .reservation import ReservationPolicy, ConsumeBatch, CreatePhantom, Reject, RejectReason
from .schemas.cart import BatchInfo, CartLineItem, CartSnapshot, CartTotals, LineState
from .schemas.product import Product, ProductBatch, SaleType

logger = get_logger("cart")

ONE = Decimal("1")
MIN_WEIGHT_QTY = Decimal("0.01")


def normalize_qty(sale_type: SaleType, qty) -> Decimal:
    """
    Quantity typed by the operator, made sellable.

    Units are truncated to whole numbers (minimum 1). Weights keep 2 decimals
    (minimum 0.01).
    """
    qty = to_decimal(qty)
    if sale_type == SaleType.UNIT:
        return max(ONE, qty.quantize(ONE, rounding=ROUND_DOWN))
    return max(MIN_WEIGHT_QTY, qty.quantize(INPUT_QUANTUM, rounding=ROUND_HALF_UP))


class Cart:
    """One transaction draft, mutated by a single cashier session."""

    def __init__(self, cart_id: str = None, policy: ReservationPolicy = None):
        self.id = cart_id or uuid.uuid4().hex
        self.created_at = datetime.utcnow()
        self.policy = policy or ReservationPolicy()
        self.lines: List[CartLineItem] = []
        self._index: Dict[str, CartLineItem] = {}
        self.cart_discount = ZERO

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.lines)

    def get_line(self, line_id: str) -> CartLineItem:
        line = self._index.get(line_id)
        if line is None:
            raise LineNotFoundError(line_id)
        return line

    def quantity_in_cart(self, product_id: str, exclude_line_id: str = None) -> Decimal:
        return sum(
            (l.qty for l in self.lines if l.product_id == product_id and l.id != exclude_line_id),
            ZERO,
        )

    def batch_ids(self) -> Set[str]:
        return {l.batch_id for l in self.lines if l.batch_id}

    def available_stock(self, product: Product) -> Optional[int]:
        """Units still free for this cart, None for untracked products."""
        if not product.tracks_unit_stock:
            return None
        return product.stock_units - int(self.quantity_in_cart(product.id))

    @property
    def subtotal(self) -> Decimal:
        return cart_subtotal(self.lines)

    @property
    def item_discounts(self) -> Decimal:
        return item_discounts_total(self.lines)

    @property
    def total(self) -> Decimal:
        return cart_total(self.lines, self.cart_discount)

    def totals(self) -> CartTotals:
        return CartTotals(
            subtotal=self.subtotal,
            item_discounts=self.item_discounts,
            cart_discount=self.cart_discount,
            total=self.total,
            items_count=len(self.lines),
        )

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(
            id=self.id,
            created_at=self.created_at,
            lines=[l.model_copy(deep=True) for l in self.lines],
            totals=self.totals(),
        )

    # ------------------------------------------------------------------
    # Adding lines
    # ------------------------------------------------------------------
    def add_line(
        self,
        product: Product,
        qty=ONE,
        batch_info: BatchInfo = None,
        unit_price=None,
        scale_barcode: str = None,
    ) -> CartLineItem:
        """
        Add a product to the cart.

        Packages (``batch_info`` given) always get their own line with quantity
        1. Loose products merge into an existing line of the same product and
        price.
        """
        if product is None:
            raise ProductNotFoundError("unknown")

        if batch_info is not None:
            return self._add_package(product, batch_info)
        if product.is_vacuum_packed:
            raise BatchRequiredError(product.name)

        qty = to_decimal(qty)
        if qty <= 0:
            raise InvalidQuantityError("Quantity must be greater than 0", qty)
        if product.sale_type == SaleType.UNIT:
            if qty != qty.to_integral_value():
                raise InvalidQuantityError("Unit products need a whole quantity", qty)
        else:
            qty = max(MIN_WEIGHT_QTY, qty.quantize(WEIGHT_QUANTUM, rounding=ROUND_HALF_UP))

        price = to_decimal(unit_price) if unit_price is not None else product.price

        decision = self.policy.resolve_units(product, qty, self.quantity_in_cart(product.id))
        if isinstance(decision, Reject):
            raise InsufficientStockError(product.name, decision.available)

        existing = self._find_mergeable(product, price)
        if existing is not None:
            new_qty = existing.qty + qty
            existing.discount = rescale_discount(existing.qty, new_qty, existing.unit_price, existing.discount)
            existing.qty = new_qty
            logger.debug(f"[CART] Merged {qty} into line {existing.id} ({product.name}), qty={new_qty}")
            return existing

        line = CartLineItem(
            product=product,
            qty=qty,
            unit_price=price,
            scale_barcode=scale_barcode,
        )
        self._append(line)
        logger.debug(f"[CART] Added {product.name} x {qty} @ {price}")
        return line

    def add_batch(self, product: Product, batch: ProductBatch) -> CartLineItem:
        """Operator picked a registered batch from the list."""
        decision = self.policy.resolve_selection(product, batch, self.batch_ids())
        if isinstance(decision, Reject):
            if decision.reason == RejectReason.NOT_VACUUM_PACKED:
                raise InvalidQuantityError(f"{product.name} is not sold by package")
            raise BatchUnavailableError(batch.id)
        return self._add_package(product, BatchInfo.from_batch(decision.batch))

    def add_manual_batch(self, product: Product, weight, price) -> CartLineItem:
        """Operator typed the weight and price of an unregistered package."""
        decision = self.policy.resolve_manual(product, weight, price)
        if isinstance(decision, Reject):
            if decision.reason == RejectReason.NOT_VACUUM_PACKED:
                raise InvalidQuantityError(f"{product.name} is not sold by package")
            raise InvalidManualEntryError(weight, price)
        return self._add_package(
            product, BatchInfo(actual_weight=decision.weight, unit_price=decision.price)
        )

    def add_scanned_package(self, product: Product, batches, weight_kg, total_price) -> CartLineItem:
        """Scanner path for vacuum-packed products: consume a match or go phantom."""
        decision = self.policy.resolve_scan(product, batches, weight_kg, total_price, self.batch_ids())
        if isinstance(decision, ConsumeBatch):
            return self._add_package(product, BatchInfo.from_batch(decision.batch))
        if isinstance(decision, CreatePhantom):
            return self._add_package(
                product, BatchInfo(actual_weight=decision.weight, unit_price=decision.price)
            )
        if decision.reason == RejectReason.NOT_VACUUM_PACKED:
            raise InvalidQuantityError(f"{product.name} is not sold by package")
        raise InvalidManualEntryError(weight_kg, total_price)

    def _add_package(self, product: Product, info: BatchInfo) -> CartLineItem:
        if info.batch_id is not None and info.batch_id in self.batch_ids():
            raise BatchUnavailableError(info.batch_id)

        line = CartLineItem(
            product=product,
            qty=ONE,
            unit_price=info.unit_price,
            batch_id=info.batch_id,
            batch_number=info.batch_number,
            actual_weight=info.actual_weight,
            needs_batch_creation=info.is_phantom,
        )
        self._append(line)
        if info.is_phantom:
            logger.info(
                f"[CART] Phantom batch line for {product.name}: {info.actual_weight} kg, Bs {info.unit_price}"
            )
        else:
            logger.info(f"[CART] Batch {info.batch_number} added for {product.name}")
        return line

    def _find_mergeable(self, product: Product, price: Decimal) -> Optional[CartLineItem]:
        # A draft keeps its pending input; the merge goes into the committed qty
        for line in self.lines:
            if (
                line.product_id == product.id
                and not line.is_package
                and line.state in (LineState.COMMITTED, LineState.DRAFT)
                and line.unit_price == price
            ):
                return line
        return None

    def _append(self, line: CartLineItem) -> None:
        self.lines.append(line)
        self._index[line.id] = line

    # ------------------------------------------------------------------
    # Editing lines
    # ------------------------------------------------------------------
    def update_qty(self, line_id: str, qty, commit: bool = True) -> CartLineItem:
        """
        Change the quantity of a line.

        With ``commit=False`` the value is held as a transient input (0 allowed)
        and the line becomes a draft until ``commit_line``.
        """
        line = self.get_line(line_id)
        qty = to_decimal(qty)
        if qty < 0:
            raise InvalidQuantityError("Quantity cannot be negative", qty)
        if line.is_package:
            if qty != ONE:
                raise InvalidQuantityError("Package lines have a fixed quantity of 1", qty)
            return line

        if not commit:
            line.pending_qty = qty
            line.state = LineState.DRAFT
            return line

        return self._apply_qty(line, normalize_qty(line.sale_type, qty))

    def commit_line(self, line_id: str) -> CartLineItem:
        """Normalize a draft quantity and make the line sellable again."""
        line = self.get_line(line_id)
        if line.state != LineState.DRAFT:
            return line
        pending = line.pending_qty if line.pending_qty is not None else line.qty
        return self._apply_qty(line, normalize_qty(line.sale_type, pending))

    def _apply_qty(self, line: CartLineItem, new_qty: Decimal) -> CartLineItem:
        product = line.product
        if product.tracks_unit_stock:
            available = product.stock_units - int(self.quantity_in_cart(product.id, exclude_line_id=line.id))
            if new_qty > available:
                raise InsufficientStockError(product.name, max(available, 0))

        line.discount = rescale_discount(line.qty, new_qty, line.unit_price, line.discount)
        line.qty = new_qty
        line.pending_qty = None
        line.state = LineState.COMMITTED
        logger.debug(f"[CART] Line {line.id} qty={new_qty}, discount={line.discount}")
        return line

    def remove_line(self, line_id: str) -> CartLineItem:
        line = self.get_line(line_id)
        self.lines.remove(line)
        del self._index[line_id]
        line.state = LineState.REMOVED
        logger.debug(f"[CART] Removed line {line_id} ({line.product.name})")
        return line

    # ------------------------------------------------------------------
    # Discounts and prices
    # ------------------------------------------------------------------
    def set_line_discount(self, line_id: str, amount) -> CartLineItem:
        """Item discount in Bs, within [0, line subtotal]."""
        line = self.get_line(line_id)
        amount = round_input(amount)
        subtotal = line_subtotal(line)
        if amount < 0 or amount > subtotal:
            raise InvalidDiscountError(amount, subtotal)
        line.discount = round_bs(amount)
        return line

    def set_line_unit_price(self, line_id: str, price, per_kg: bool = False) -> CartLineItem:
        """
        Override the price of a line, expressed as a discount.

        For package lines ``per_kg=True`` takes a per-kg price and converts it to
        the price of the whole package.
        """
        line = self.get_line(line_id)
        price = round_input(price)
        if price <= 0:
            raise InvalidPriceError(price)
        if per_kg and line.is_package and line.actual_weight:
            price = package_price(price, line.actual_weight)

        line.discount = price_override_discount(line.qty, line.unit_price, price)
        logger.info(f"[CART] Price override on line {line.id}: {line.unit_price} -> {price}, discount={line.discount}")
        return line

    def set_cart_discount(self, amount) -> Decimal:
        """Cart-level discount in Bs, within [0, cart subtotal]."""
        amount = round_input(amount)
        subtotal = self.subtotal
        if amount < 0 or amount > subtotal:
            raise InvalidDiscountError(amount, subtotal)
        self.cart_discount = round_bs(amount)
        return self.cart_discount

    # ------------------------------------------------------------------
    # Settlement hooks
    # ------------------------------------------------------------------
    def draft_lines(self) -> List[CartLineItem]:
        return [l for l in self.lines if l.state == LineState.DRAFT]

    def phantom_lines(self) -> List[CartLineItem]:
        return [l for l in self.lines if l.needs_batch_creation]

    def register_batch(self, line_id: str, batch_id: str) -> CartLineItem:
        """Attach the real batch id created for a phantom line."""
        line = self.get_line(line_id)
        if not line.needs_batch_creation:
            raise AppException(f"Line {line_id} is not waiting for a batch", status_code=409)
        line.batch_id = batch_id
        line.needs_batch_creation = False
        line.state = LineState.BATCH_REGISTERED
        return line

    def clear(self) -> None:
        """Drop every line, on completion, cancellation or abandonment."""
        self.lines = []
        self._index = {}
        self.cart_discount = ZERO
