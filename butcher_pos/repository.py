"""
SQLAlchemy-backed catalog, batch inventory and sale history.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy.orm import Session

from .logging_config import get_logger
from .models import ProductRecord, ProductBatchRecord, SaleRecord
from .schemas.product import Product, ProductBatch, BatchCreate
from .schemas.sale import Sale, UnitSaleLine, WeightSaleLine, BatchSaleLine

logger = get_logger("repository")


def generate_batch_number(packed_at: datetime = None) -> str:
    """Batch number for packages registered at the counter."""
    packed_at = packed_at or datetime.utcnow()
    return f"AUTO-{packed_at:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


class SqlCatalog:
    """CatalogLookup over the ``products`` table."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, product_id: str) -> Optional[Product]:
        row = self.db.get(ProductRecord, product_id)
        return Product.model_validate(row) if row else None

    def get_by_barcode(self, barcode: str) -> Optional[Product]:
        if not barcode:
            return None
        row = self.db.query(ProductRecord).filter(ProductRecord.barcode == barcode).first()
        return Product.model_validate(row) if row else None

    def list_active(self) -> List[Product]:
        rows = self.db.query(ProductRecord).filter(ProductRecord.is_active == True).order_by(ProductRecord.name).all()  # noqa: E712
        return [Product.model_validate(r) for r in rows]


class SqlBatchStore:
    """
    BatchStore over the ``product_batches`` table.

    ``create_batch`` only flushes: the caller's transaction decides whether the
    batch becomes durable.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_available(self, product_id: str) -> List[ProductBatch]:
        rows = (
            self.db.query(ProductBatchRecord)
            .filter(ProductBatchRecord.product_id == product_id)
            .order_by(ProductBatchRecord.packed_at, ProductBatchRecord.id)
            .all()
        )
        return [ProductBatch.model_validate(r) for r in rows]

    def get(self, batch_id: str) -> Optional[ProductBatch]:
        row = self.db.get(ProductBatchRecord, batch_id)
        return ProductBatch.model_validate(row) if row else None

    def create_batch(self, data: BatchCreate) -> ProductBatch:
        row = ProductBatchRecord(
            product_id=data.product_id,
            batch_number=data.batch_number,
            actual_weight=data.actual_weight,
            unit_price=data.unit_price,
            packed_at=data.packed_at,
            notes=data.notes,
        )
        self.db.add(row)
        self.db.flush()
        logger.info(f"[BATCH] Registered batch {row.batch_number} id={row.id} for product_id={row.product_id}")
        return ProductBatch.model_validate(row)


def sale_from_record(row: SaleRecord) -> Sale:
    """Rebuild the tagged sale lines from stored rows."""
    items = []
    for r in row.items:
        common = dict(
            product_id=r.product_id,
            product_name=r.product_name,
            unit_price=r.unit_price,
            discount=r.discount,
            subtotal=r.subtotal,
            total=r.total,
        )
        if r.kind == "batch":
            items.append(BatchSaleLine(
                batch_id=r.batch_id,
                batch_number=r.batch_number,
                actual_weight=r.actual_weight,
                **common
            ))
        elif r.kind == "weight":
            items.append(WeightSaleLine(qty=Decimal(r.qty), **common))
        else:
            items.append(UnitSaleLine(qty=int(r.qty), **common))

    return Sale(
        id=row.id,
        status=row.status,
        cashier_id=row.cashier_id,
        terminal_id=row.terminal_id,
        items=items,
        subtotal=row.subtotal,
        item_discounts=row.item_discounts,
        discount=row.discount,
        total=row.total,
        payment_method=row.payment_method,
        cash_amount=row.cash_amount,
        card_amount=row.card_amount,
        transfer_amount=row.transfer_amount,
        change_amount=row.change_amount,
        created_at=row.created_at,
    )


class SqlSaleRepository:
    """Read access to settled sales."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, sale_id: str) -> Optional[Sale]:
        row = self.db.get(SaleRecord, sale_id)
        return sale_from_record(row) if row else None

    def list_between(self, start: datetime = None, end: datetime = None) -> List[Sale]:
        q = self.db.query(SaleRecord)
        if start is not None:
            q = q.filter(SaleRecord.created_at >= start)
        if end is not None:
            q = q.filter(SaleRecord.created_at < end)
        return [sale_from_record(r) for r in q.order_by(SaleRecord.created_at).all()]
