"""
Batch matching for vacuum-packed products.

A scale reading (weight, price) is matched against the product's batches
within strict tolerances; among several candidates the oldest packed one is
taken first (FIFO).
"""
from decimal import Decimal
from typing import Iterable, List, Optional

from .config import settings
from .logging_config import get_logger
from .pricing import to_decimal
from .schemas.product import ProductBatch

logger = get_logger("matcher")


def fifo_key(batch: ProductBatch):
    """Oldest packed first; batch id breaks ties."""
    return (batch.packed_at, batch.id)


def is_available(batch: ProductBatch, product_id: str, exclude_ids: Iterable[str] = ()) -> bool:
    """Unsold, unreserved, for this product and not already in the cart."""
    return (
        batch.product_id == product_id
        and not batch.is_sold
        and not batch.is_reserved
        and batch.id not in set(exclude_ids)
    )


def available_batches(
    batches: Iterable[ProductBatch],
    product_id: str,
    exclude_ids: Iterable[str] = ()
) -> List[ProductBatch]:
    """Batches the operator may pick by hand, oldest first."""
    exclude = set(exclude_ids)
    out = [b for b in batches if is_available(b, product_id, exclude)]
    return sorted(out, key=fifo_key)


def find_candidates(
    batches: Iterable[ProductBatch],
    product_id: str,
    observed_weight_kg,
    observed_total_price,
    exclude_ids: Iterable[str] = (),
    weight_tolerance: Optional[Decimal] = None,
    price_tolerance: Optional[Decimal] = None,
) -> List[ProductBatch]:
    """
    Batches whose weight and price match the observed reading.

    Both tolerances are strict: a difference equal to the tolerance does not
    match.
    """
    if weight_tolerance is None:
        weight_tolerance = settings.weight_tolerance_kg
    if price_tolerance is None:
        price_tolerance = settings.price_tolerance_bs

    weight = to_decimal(observed_weight_kg)
    price = to_decimal(observed_total_price)
    exclude = set(exclude_ids)

    out: List[ProductBatch] = []
    for b in batches:
        if not is_available(b, product_id, exclude):
            continue
        if abs(b.actual_weight - weight) >= weight_tolerance:
            continue
        if abs(b.unit_price - price) >= price_tolerance:
            continue
        out.append(b)
    return out


def select_fifo(candidates: Iterable[ProductBatch]) -> Optional[ProductBatch]:
    candidates = list(candidates)
    if not candidates:
        return None
    return min(candidates, key=fifo_key)


def match_batch(
    batches: Iterable[ProductBatch],
    product_id: str,
    observed_weight_kg,
    observed_total_price,
    exclude_ids: Iterable[str] = (),
    **tolerances
) -> Optional[ProductBatch]:
    """Best matching batch for a reading, or None for an unregistered package."""
    candidates = find_candidates(
        batches, product_id, observed_weight_kg, observed_total_price, exclude_ids, **tolerances
    )
    chosen = select_fifo(candidates)
    if chosen:
        logger.info(
            f"[BATCH] Matched batch {chosen.batch_number} for product_id={product_id} "
            f"({len(candidates)} candidate(s))"
        )
    else:
        logger.info(
            f"[BATCH] No batch for product_id={product_id}, weight={observed_weight_kg}, "
            f"price={observed_total_price}"
        )
    return chosen
