from sqlalchemy import Column, Integer, String, DateTime, Numeric, Boolean, ForeignKey, Date, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from .db import Base


def _uuid() -> str:
    return uuid.uuid4().hex


class ProductRecord(Base):
    __tablename__ = "products"
    id = Column(String(32), primary_key=True, default=_uuid)
    sku = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, index=True, nullable=False)
    category_id = Column(String, index=True, nullable=True)
    barcode = Column(String, index=True, nullable=True)
    sale_type = Column(String(10), nullable=False)          # UNIT / WEIGHT
    inventory_type = Column(String(20), nullable=True)      # UNIT / WEIGHT / VACUUM_PACKED
    unit = Column(String(20), default="unidad")
    price = Column(Numeric(10, 2, asdecimal=True), nullable=False, default=0)
    stock_units = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    batches = relationship("ProductBatchRecord", back_populates="product")


class ProductBatchRecord(Base):
    __tablename__ = "product_batches"
    id = Column(String(32), primary_key=True, default=_uuid)
    product_id = Column(String(32), ForeignKey("products.id"), index=True, nullable=False)
    batch_number = Column(String, unique=True, index=True, nullable=False)
    actual_weight = Column(Numeric(10, 3, asdecimal=True), nullable=False)
    unit_price = Column(Numeric(10, 2, asdecimal=True), nullable=False)
    unit_cost = Column(Numeric(10, 2, asdecimal=True), nullable=True)
    packed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expiry_date = Column(Date, nullable=True)
    is_sold = Column(Boolean, default=False, nullable=False)
    is_reserved = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)

    product = relationship("ProductRecord", back_populates="batches")


class SaleRecord(Base):
    __tablename__ = "sales"
    id = Column(String(32), primary_key=True, default=_uuid)
    status = Column(String(20), default="COMPLETED", nullable=False)
    cashier_id = Column(String, nullable=True)
    terminal_id = Column(String, nullable=True)
    subtotal = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    item_discounts = Column(Numeric(12, 2, asdecimal=True), nullable=False, default=0)
    discount = Column(Numeric(12, 2, asdecimal=True), nullable=False, default=0)
    total = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    payment_method = Column(String(10), nullable=False)
    cash_amount = Column(Numeric(12, 2, asdecimal=True), nullable=True)
    card_amount = Column(Numeric(12, 2, asdecimal=True), nullable=True)
    transfer_amount = Column(Numeric(12, 2, asdecimal=True), nullable=True)
    change_amount = Column(Numeric(12, 2, asdecimal=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    items = relationship("SaleLineRecord", back_populates="sale", order_by="SaleLineRecord.position")


class SaleLineRecord(Base):
    __tablename__ = "sale_lines"
    id = Column(Integer, primary_key=True)
    sale_id = Column(String(32), ForeignKey("sales.id"), index=True, nullable=False)
    position = Column(Integer, nullable=False)
    kind = Column(String(10), nullable=False)  # unit / weight / batch
    product_id = Column(String(32), ForeignKey("products.id"), nullable=False)
    product_name = Column(String, nullable=False)
    qty = Column(Numeric(10, 3, asdecimal=True), nullable=False)
    unit_price = Column(Numeric(12, 4, asdecimal=True), nullable=False)  # per-kg scale prices
    discount = Column(Numeric(10, 2, asdecimal=True), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    total = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    batch_id = Column(String(32), ForeignKey("product_batches.id"), nullable=True)
    batch_number = Column(String, nullable=True)
    actual_weight = Column(Numeric(10, 3, asdecimal=True), nullable=True)

    sale = relationship("SaleRecord", back_populates="items")
