"""
Cart API endpoints for the counter terminal.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from butcher_pos.db import get_db
from butcher_pos.errors import ProductNotFoundError, BatchUnavailableError
from butcher_pos.matcher import available_batches
from butcher_pos.registry import CartRegistry, get_registry
from butcher_pos.repository import SqlCatalog, SqlBatchStore
from butcher_pos.scanner import ScanService
from butcher_pos.settlement import settle_cart
from butcher_pos.schemas import (
    CartSnapshot, ScanRequest, ScanResult, AddLineRequest, SelectBatchRequest,
    ManualBatchRequest, UpdateQtyRequest, DiscountRequest, UnitPriceRequest,
    ProductBatch, CheckoutRequest, Sale, Product,
)

router = APIRouter(prefix="/carts", tags=["Carts"])


def _product(db: Session, product_id: str) -> Product:
    product = SqlCatalog(db).get_by_id(product_id)
    if product is None or not product.is_active:
        raise ProductNotFoundError(product_id)
    return product


@router.post("", response_model=CartSnapshot, status_code=status.HTTP_201_CREATED)
def open_cart(registry: CartRegistry = Depends(get_registry)):
    """Start a new transaction."""
    return registry.open().snapshot()


@router.get("/{cart_id}", response_model=CartSnapshot)
def get_cart(cart_id: str, registry: CartRegistry = Depends(get_registry)):
    return registry.get(cart_id).snapshot()


@router.delete("/{cart_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_cart(cart_id: str, registry: CartRegistry = Depends(get_registry)):
    """Cancel or abandon the transaction."""
    registry.discard(cart_id)


@router.post("/{cart_id}/scan", response_model=ScanResult)
def scan(
    cart_id: str,
    body: ScanRequest,
    registry: CartRegistry = Depends(get_registry),
    db: Session = Depends(get_db)
):
    """
    Handle a scanned code.

    - Scale labels add a weight line or a package line
    - Plain codes add one unit, or return the batches to pick from
    """
    cart = registry.get(cart_id)
    service = ScanService(SqlCatalog(db), SqlBatchStore(db))
    return service.handle(cart, body.barcode)


@router.post("/{cart_id}/lines", response_model=CartSnapshot)
def add_line(
    cart_id: str,
    body: AddLineRequest,
    registry: CartRegistry = Depends(get_registry),
    db: Session = Depends(get_db)
):
    cart = registry.get(cart_id)
    cart.add_line(_product(db, body.product_id), body.qty)
    return cart.snapshot()


@router.get("/{cart_id}/products/{product_id}/batches", response_model=List[ProductBatch])
def list_batches(
    cart_id: str,
    product_id: str,
    registry: CartRegistry = Depends(get_registry),
    db: Session = Depends(get_db)
):
    """Batches still available for this cart, oldest first."""
    cart = registry.get(cart_id)
    product = _product(db, product_id)
    return available_batches(SqlBatchStore(db).list_available(product.id), product.id, cart.batch_ids())


@router.post("/{cart_id}/lines/batch", response_model=CartSnapshot)
def select_batch(
    cart_id: str,
    body: SelectBatchRequest,
    registry: CartRegistry = Depends(get_registry),
    db: Session = Depends(get_db)
):
    cart = registry.get(cart_id)
    product = _product(db, body.product_id)
    batch = SqlBatchStore(db).get(body.batch_id)
    if batch is None:
        raise BatchUnavailableError(body.batch_id)
    cart.add_batch(product, batch)
    return cart.snapshot()


@router.post("/{cart_id}/lines/manual-batch", response_model=CartSnapshot)
def add_manual_batch(
    cart_id: str,
    body: ManualBatchRequest,
    registry: CartRegistry = Depends(get_registry),
    db: Session = Depends(get_db)
):
    """Unregistered package: registered in inventory at checkout."""
    cart = registry.get(cart_id)
    cart.add_manual_batch(_product(db, body.product_id), body.weight, body.price)
    return cart.snapshot()


@router.patch("/{cart_id}/lines/{line_id}", response_model=CartSnapshot)
def update_qty(cart_id: str, line_id: str, body: UpdateQtyRequest, registry: CartRegistry = Depends(get_registry)):
    cart = registry.get(cart_id)
    cart.update_qty(line_id, body.qty, commit=body.commit)
    return cart.snapshot()


@router.post("/{cart_id}/lines/{line_id}/commit", response_model=CartSnapshot)
def commit_line(cart_id: str, line_id: str, registry: CartRegistry = Depends(get_registry)):
    cart = registry.get(cart_id)
    cart.commit_line(line_id)
    return cart.snapshot()


@router.delete("/{cart_id}/lines/{line_id}", response_model=CartSnapshot)
def remove_line(cart_id: str, line_id: str, registry: CartRegistry = Depends(get_registry)):
    cart = registry.get(cart_id)
    cart.remove_line(line_id)
    return cart.snapshot()


@router.put("/{cart_id}/lines/{line_id}/discount", response_model=CartSnapshot)
def set_line_discount(cart_id: str, line_id: str, body: DiscountRequest, registry: CartRegistry = Depends(get_registry)):
    cart = registry.get(cart_id)
    cart.set_line_discount(line_id, body.amount)
    return cart.snapshot()


@router.put("/{cart_id}/lines/{line_id}/unit-price", response_model=CartSnapshot)
def set_line_unit_price(cart_id: str, line_id: str, body: UnitPriceRequest, registry: CartRegistry = Depends(get_registry)):
    cart = registry.get(cart_id)
    cart.set_line_unit_price(line_id, body.price, per_kg=body.per_kg)
    return cart.snapshot()


@router.put("/{cart_id}/discount", response_model=CartSnapshot)
def set_cart_discount(cart_id: str, body: DiscountRequest, registry: CartRegistry = Depends(get_registry)):
    cart = registry.get(cart_id)
    cart.set_cart_discount(body.amount)
    return cart.snapshot()


@router.post("/{cart_id}/checkout", response_model=Sale)
def checkout(
    cart_id: str,
    body: CheckoutRequest,
    registry: CartRegistry = Depends(get_registry),
    db: Session = Depends(get_db)
):
    """Settle the cart. The cart is closed only when the sale is recorded."""
    cart = registry.get(cart_id)
    sale = settle_cart(db, cart, body.payment, cashier_id=body.cashier_id)
    registry.discard(cart_id)
    return sale
