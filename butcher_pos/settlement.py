"""
Settlement: turns a committed cart into a durable sale.

Everything happens in one database transaction. Phantom batches are
registered before the sale lines that reference them, consumed batches are
re-checked against the live sold/reserved flags, and unit stock is
decremented. Any failure rolls the whole attempt back and leaves the cart
untouched so the operator can fix it and retry.
"""
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from .cart import Cart
from .config import settings
from .errors import (
    AppException, EmptyCartError, InvalidQuantityError, BatchCreationError,
    ReservationConflictError, InsufficientStockError,
)
from .logging_config import get_logger
from .models import ProductBatchRecord, ProductRecord, SaleRecord, SaleLineRecord
from .payment import tender
from .ports import BatchStore
from .pricing import line_subtotal, line_total
from .repository import SqlBatchStore, generate_batch_number, sale_from_record
from .schemas.cart import CartLineItem
from .schemas.product import BatchCreate, InventoryType, SaleType
from .schemas.sale import PaymentRequest, Sale

logger = get_logger("settlement")


def _line_kind(line: CartLineItem) -> str:
    if line.batch_id or line.needs_batch_creation:
        return "batch"
    if line.sale_type == SaleType.WEIGHT:
        return "weight"
    return "unit"


def _register_phantom(store: BatchStore, line: CartLineItem, now: datetime) -> str:
    data = BatchCreate(
        product_id=line.product_id,
        batch_number=generate_batch_number(now),
        actual_weight=line.actual_weight,
        unit_price=line.unit_price,
        packed_at=now,
        notes="Registered at checkout",
    )
    try:
        batch = store.create_batch(data)
    except Exception as e:
        logger.error(f"[SETTLE] Batch creation failed for line {line.id}: {e}")
        raise BatchCreationError(line.id, str(e)) from e
    return batch.id


def _consume_batch(db: Session, line: CartLineItem, batch_id: str) -> ProductBatchRecord:
    row = (
        db.query(ProductBatchRecord)
        .filter(ProductBatchRecord.id == batch_id)
        .with_for_update()
        .first()
    )
    if row is None or row.is_sold or row.is_reserved:
        logger.warning(f"[SETTLE] Reservation conflict on batch {batch_id} (line {line.id})")
        raise ReservationConflictError(line.id, batch_id)
    row.is_sold = True
    return row


def _decrement_stock(db: Session, line: CartLineItem) -> None:
    row = (
        db.query(ProductRecord)
        .filter(ProductRecord.id == line.product_id)
        .with_for_update()
        .first()
    )
    if row is None or row.stock_units is None:
        return
    qty = int(line.qty)
    if row.stock_units < qty:
        raise InsufficientStockError(row.name, row.stock_units)
    row.stock_units -= qty


def settle_cart(
    db: Session,
    cart: Cart,
    payment: PaymentRequest,
    cashier_id: Optional[str] = None,
    batch_store: BatchStore = None,
    now: datetime = None,
) -> Sale:
    """
    Persist the cart as a completed sale and clear it.

    Raises BatchCreationError or ReservationConflictError when inventory
    disagrees with the cart; nothing is persisted in that case.
    """
    if not cart.lines:
        raise EmptyCartError()
    drafts = cart.draft_lines()
    if drafts:
        raise InvalidQuantityError("Confirm the quantity of every line before checkout", drafts[0].pending_qty)

    receipt = tender(cart.total, payment)
    store = batch_store or SqlBatchStore(db)
    now = now or datetime.utcnow()
    registered: Dict[str, str] = {}

    logger.info(f"[SETTLE] Settling cart {cart.id}: {len(cart.lines)} line(s), total Bs {receipt.total}")
    try:
        sale = SaleRecord(
            cashier_id=cashier_id,
            terminal_id=settings.terminal_id,
            subtotal=cart.subtotal,
            item_discounts=cart.item_discounts,
            discount=cart.cart_discount,
            total=receipt.total,
            payment_method=receipt.method.value,
            cash_amount=receipt.cash_amount,
            card_amount=receipt.card_amount,
            transfer_amount=receipt.transfer_amount,
            change_amount=receipt.change_amount,
            created_at=now,
        )
        db.add(sale)

        for position, line in enumerate(cart.lines):
            batch_id = line.batch_id
            if line.needs_batch_creation:
                batch_id = _register_phantom(store, line, now)
                registered[line.id] = batch_id
            if batch_id:
                row = _consume_batch(db, line, batch_id)
                batch_number = row.batch_number
            else:
                batch_number = None
                if line.product.inventory_type == InventoryType.UNIT:
                    _decrement_stock(db, line)

            sale.items.append(SaleLineRecord(
                position=position,
                kind=_line_kind(line),
                product_id=line.product_id,
                product_name=line.product.name,
                qty=line.qty,
                unit_price=line.unit_price,
                discount=line.discount,
                subtotal=line_subtotal(line),
                total=line_total(line),
                batch_id=batch_id,
                batch_number=batch_number,
                actual_weight=line.actual_weight,
            ))

        db.commit()
    except AppException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"[SETTLE] Settlement of cart {cart.id} failed: {e}", exc_info=True)
        raise

    # Durable now: back-fill real batch ids onto the phantom lines
    for line_id, batch_id in registered.items():
        cart.register_batch(line_id, batch_id)

    db.refresh(sale)
    result = sale_from_record(sale)
    logger.info(f"[SETTLE] Sale {result.id} recorded, total Bs {result.total}, change Bs {result.change_amount}")
    cart.clear()
    return result
