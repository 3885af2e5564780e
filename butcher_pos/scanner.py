"""
Scan workflow: barcode in, cart line out.

Scale labels are decoded and looked up by their 6-digit product code; any
other code goes to the standard catalog barcode lookup.
"""
from decimal import Decimal

from .barcode import parse_scale_barcode, format_weight
from .cart import Cart
from .config import settings
from .errors import ProductNotFoundError
from .logging_config import get_logger
from .matcher import available_batches
from .ports import CatalogLookup, BatchStore
from .pricing import expected_scale_price, price_per_kg
from .schemas.product import Product, SaleType
from .schemas.scan import ScaleBarcodeReading, ScalePriceAudit, ScanResult

logger = get_logger("scanner")


def audit_scale_price(
    product: Product,
    reading: ScaleBarcodeReading,
    threshold: Decimal = None
) -> ScalePriceAudit:
    """
    Compare the label price with the catalog per-kg price.

    Past the threshold the label wins: the line is priced so that its subtotal
    reproduces the printed total.
    """
    if threshold is None:
        threshold = settings.scale_price_variance_bs

    system_price = expected_scale_price(reading.weight_kg, product.price)
    diff = reading.total_price - system_price
    custom = None
    if abs(diff) >= threshold and reading.weight_kg > 0:
        custom = price_per_kg(reading.total_price, reading.weight_kg)
        logger.warning(
            f"[AUDIT] Scale price differs. Product: {product.name}, "
            f"Expected: Bs {system_price}, Label: Bs {reading.total_price}, Diff: {diff:+}"
        )
    return ScalePriceAudit(
        weight_kg=reading.weight_kg,
        label_price=reading.total_price,
        system_price=system_price,
        price_diff=diff,
        custom_unit_price=custom,
    )


class ScanService:
    """Resolves scanned codes against the catalog and inventory."""

    def __init__(self, catalog: CatalogLookup, batch_store: BatchStore):
        self.catalog = catalog
        self.batch_store = batch_store

    def handle(self, cart: Cart, barcode: str) -> ScanResult:
        barcode = (barcode or "").strip()
        logger.info(f"[SCAN] Code scanned: {barcode}")

        reading = parse_scale_barcode(barcode)
        if reading is not None:
            return self._handle_scale(cart, reading)

        product = self._lookup(barcode)
        if product.is_vacuum_packed:
            # No weight on a plain code: the operator picks the lot
            batches = available_batches(
                self.batch_store.list_available(product.id), product.id, cart.batch_ids()
            )
            return ScanResult(
                product=product,
                available_batches=batches,
                message=f"Select a batch for {product.name}",
            )

        line = cart.add_line(product, Decimal("1"))
        return ScanResult(product=product, line=line, message=f"{product.name} added")

    def _lookup(self, code: str) -> Product:
        product = self.catalog.get_by_barcode(code)
        if product is None or not product.is_active:
            logger.info(f"[SCAN] Product not found: {code}")
            raise ProductNotFoundError(code)
        return product

    def _handle_scale(self, cart: Cart, reading: ScaleBarcodeReading) -> ScanResult:
        product = self._lookup(reading.product_code)

        if product.is_vacuum_packed:
            batches = self.batch_store.list_available(product.id)
            line = cart.add_scanned_package(product, batches, reading.weight_kg, reading.total_price)
            return ScanResult(
                product=product,
                line=line,
                reading=reading,
                message=f"{product.name} - {format_weight(reading.weight_kg)} kg added",
            )

        if product.sale_type == SaleType.WEIGHT:
            audit = audit_scale_price(product, reading)
            line = cart.add_line(
                product,
                reading.weight_kg,
                unit_price=audit.custom_unit_price,
                scale_barcode=reading.raw_barcode,
            )
            return ScanResult(
                product=product,
                line=line,
                reading=reading,
                audit=audit,
                message=f"{product.name} - {format_weight(reading.weight_kg)} kg added",
            )

        line = cart.add_line(product, Decimal("1"))
        return ScanResult(product=product, line=line, reading=reading, message=f"{product.name} added")
