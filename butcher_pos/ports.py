"""
Collaborator interfaces consumed by the engine.

The engine never performs I/O itself; catalog and inventory access goes
through these protocols. ``repository.py`` holds the SQLAlchemy-backed
implementations.
"""
from typing import List, Optional, Protocol, runtime_checkable

from .schemas.product import Product, ProductBatch, BatchCreate


@runtime_checkable
class CatalogLookup(Protocol):
    """Read access to the product catalog."""

    def get_by_id(self, product_id: str) -> Optional[Product]:
        ...

    def get_by_barcode(self, barcode: str) -> Optional[Product]:
        """Standard barcode or 6-digit scale product code, compared as a string."""
        ...

    def list_active(self) -> List[Product]:
        ...


@runtime_checkable
class BatchStore(Protocol):
    """Inventory of vacuum-packed batches. Owns the reservation lock."""

    def list_available(self, product_id: str) -> List[ProductBatch]:
        """All batches of a product with current sold/reserved flags."""
        ...

    def get(self, batch_id: str) -> Optional[ProductBatch]:
        ...

    def create_batch(self, data: BatchCreate) -> ProductBatch:
        """Register a batch and return it with its real id."""
        ...
