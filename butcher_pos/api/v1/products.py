"""
Product lookup endpoints for the counter search box.
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from butcher_pos.catalog import search_products
from butcher_pos.db import get_db
from butcher_pos.errors import ProductNotFoundError
from butcher_pos.repository import SqlCatalog
from butcher_pos.schemas import Product

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("/search", response_model=List[Product])
def search(
    q: str = "",
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Search active products by name, SKU or barcode, tolerant to typos."""
    return search_products(SqlCatalog(db).list_active(), q, limit=limit)


@router.get("/barcode/{code}", response_model=Product)
def get_by_barcode(code: str, db: Session = Depends(get_db)):
    product = SqlCatalog(db).get_by_barcode(code)
    if product is None:
        raise ProductNotFoundError(code)
    return product
